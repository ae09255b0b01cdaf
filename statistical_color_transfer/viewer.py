"""OpenCV windows, trackbars and key map for interactive transfer sessions.

Key map: ``L`` Lab, ``R`` RGB, ``H`` HSV, ``X`` XYZ, ESC saves and exits.
Key parsing is pure (:func:`command_for_key`) so it can be exercised without a
display; everything that touches ``cv2.highgui`` lives in
:class:`InteractiveSession`.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Union

import cv2
import numpy as np

from .colorspaces import DEFAULT_COLOR_SPACE, ColorSpace
from .controller import ModeChange, ModeController, RateChange
from .settings import PERCENT_MAX

LOGGER = logging.getLogger("statistical_color_transfer")

SOURCE_WINDOW = "Source Image"
TARGET_WINDOW = "Original Target"
RESULT_WINDOW = "Modified Target"
CONTROLS_WINDOW = "Transfer Ratio"
README_WINDOW = "Instructions"

ESCAPE_KEY = 27


class Quit:
    """Sentinel command returned for the save-and-exit key."""

    def __repr__(self) -> str:
        return "QUIT"


QUIT = Quit()

KEYMAP: Dict[str, ColorSpace] = {
    "l": ColorSpace.LAB,
    "r": ColorSpace.RGB,
    "h": ColorSpace.HSV,
    "x": ColorSpace.XYZ,
}

INSTRUCTIONS: Sequence[str] = (
    "Keymap:",
    "'L' -> LAB, 'R' -> RGB",
    "'H' -> HSV, 'X' -> XYZ",
    "ESC -> Save and Exit",
)


def command_for_key(key: int) -> Optional[Union[ModeChange, Quit]]:
    """Translate a ``cv2.waitKey`` code into a command.

    Returns ``None`` for keys with no binding (including ``-1`` for "no key").
    """
    if key < 0:
        return None
    key &= 0xFF
    if key == ESCAPE_KEY:
        return QUIT
    space = KEYMAP.get(chr(key).lower())
    if space is None:
        return None
    return ModeChange(space)


def render_instructions(lines: Sequence[str] = INSTRUCTIONS) -> np.ndarray:
    """Draw the key map onto a white single-channel canvas."""
    line_height = 25
    canvas = np.full((line_height * (len(lines) + 1), 225), 255, dtype=np.uint8)
    for index, text in enumerate(lines, start=1):
        cv2.putText(canvas, text, (10, line_height * index), cv2.FONT_HERSHEY_PLAIN, 0.75, 0)
    return canvas


def _to_bgr(image: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_RGB2BGR)


class InteractiveSession:  # pragma: no cover - requires a display
    """Show the reference, target and live result, with one trackbar per channel."""

    def __init__(self, controller: ModeController) -> None:
        self.controller = controller
        self._height, self._width = controller.engine.target.shape[:2]

    def _open_windows(self) -> None:
        reference = self.controller.engine.reference
        for name in (SOURCE_WINDOW, TARGET_WINDOW, RESULT_WINDOW, README_WINDOW):
            cv2.namedWindow(name, cv2.WINDOW_AUTOSIZE)
        cv2.namedWindow(CONTROLS_WINDOW, cv2.WINDOW_NORMAL)
        cv2.moveWindow(SOURCE_WINDOW, 0, 0)
        cv2.moveWindow(TARGET_WINDOW, reference.shape[1] + 10, 0)
        cv2.moveWindow(RESULT_WINDOW, 0, self._height + 50)
        cv2.moveWindow(README_WINDOW, self._width + 10, self._height + 200)

        cv2.imshow(SOURCE_WINDOW, _to_bgr(reference))
        cv2.imshow(TARGET_WINDOW, _to_bgr(self.controller.engine.target))
        cv2.imshow(README_WINDOW, render_instructions())

    def _rebuild_trackbars(self) -> None:
        cv2.destroyWindow(CONTROLS_WINDOW)
        cv2.namedWindow(CONTROLS_WINDOW, cv2.WINDOW_NORMAL)
        cv2.moveWindow(CONTROLS_WINDOW, self._width + 10, self._height + 155)
        for channel, (name, percent) in enumerate(
            zip(self.controller.channel_names, self.controller.rates.as_percent())
        ):
            cv2.createTrackbar(name, CONTROLS_WINDOW, percent, PERCENT_MAX, self._on_trackbar(channel))
        cv2.resizeWindow(CONTROLS_WINDOW, 600, 125)

    def _on_trackbar(self, channel: int):
        def callback(percent: int) -> None:
            if self.controller.handle(RateChange.from_percent(channel, percent)):
                self._show_result()

        return callback

    def _show_result(self) -> None:
        if self.controller.output is not None:
            cv2.imshow(RESULT_WINDOW, _to_bgr(self.controller.output))

    def _apply_mode(self, command: ModeChange) -> None:
        if self.controller.handle(command):
            self._rebuild_trackbars()
            self._show_result()

    def run(self, initial: ColorSpace = DEFAULT_COLOR_SPACE) -> Optional[np.ndarray]:
        """Run the key loop until ESC and return the last output.

        A controller that already has a colour space keeps it (and its rates);
        otherwise the session starts in *initial*.
        """
        self._open_windows()
        if self.controller.space is None:
            self._apply_mode(ModeChange(initial))
        else:
            self._rebuild_trackbars()
            self._show_result()
        try:
            while True:
                command = command_for_key(cv2.waitKey(0))
                if command is QUIT:
                    break
                if isinstance(command, ModeChange):
                    self._apply_mode(command)
        finally:
            cv2.destroyAllWindows()
        LOGGER.info("Interactive session closed in %s", self.controller.space)
        return self.controller.output


__all__ = [
    "ESCAPE_KEY",
    "INSTRUCTIONS",
    "InteractiveSession",
    "KEYMAP",
    "QUIT",
    "command_for_key",
    "render_instructions",
]
