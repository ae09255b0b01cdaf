"""Mode/rate state holder that drives the transfer engine.

The controller owns the active colour space, the three blend rates and the
most recent output. It only changes in response to explicit commands:

``ModeChange(space)``
    Switching to a different space resets every rate to 100%, relabels the
    channels and recomputes everything. Asking for the active space again does
    nothing, so scrubbing the same mode key never discards tuned rates.

``RateChange(channel, rate)``
    Updates one channel and recomputes with the cached statistics.

Each command is handled synchronously; the output is replaced wholesale by a
new read-only array, so a reader holding the previous output never sees a
partially updated image.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Optional, Tuple, Union

import numpy as np

from .colorspaces import ColorSpace
from .engine import TransferEngine
from .io_utils import ConfigurationError
from .settings import RateVector, ensure_channel, ensure_rate, percent_to_rate

LOGGER = logging.getLogger("statistical_color_transfer")


@dataclasses.dataclass(frozen=True)
class ModeChange:
    """Request to work in *space*."""

    space: ColorSpace

    def __post_init__(self) -> None:
        object.__setattr__(self, "space", ColorSpace.parse(self.space))


@dataclasses.dataclass(frozen=True)
class RateChange:
    """Request to set the blend rate of one channel."""

    channel: int
    rate: float

    def __post_init__(self) -> None:
        ensure_channel(self.channel)
        object.__setattr__(self, "rate", ensure_rate(self.rate))

    @classmethod
    def from_percent(cls, channel: int, percent: int) -> "RateChange":
        """Build a command from an integer percentage (0-100), as trackbars report it."""
        return cls(channel, percent_to_rate(percent))


Command = Union[ModeChange, RateChange]


class ModeController:
    """Owns (colour space, rates) and the current transfer output."""

    def __init__(self, engine: TransferEngine) -> None:
        self.engine = engine
        self._space: Optional[ColorSpace] = None
        self._rates = RateVector.full()
        self._output: Optional[np.ndarray] = None

    @classmethod
    def from_images(cls, reference: np.ndarray, target: np.ndarray) -> "ModeController":
        return cls(TransferEngine(reference, target))

    @property
    def space(self) -> Optional[ColorSpace]:
        """Active colour space, or ``None`` before the first mode change."""
        return self._space

    @property
    def rates(self) -> RateVector:
        return self._rates

    @property
    def channel_names(self) -> Tuple[str, str, str]:
        if self._space is None:
            return ("", "", "")
        return self._space.channel_names

    @property
    def output(self) -> Optional[np.ndarray]:
        """Most recent transfer result (read-only), or ``None`` before the first mode change."""
        return self._output

    def handle(self, command: Command) -> bool:
        """Apply *command*; return ``True`` when the output was recomputed."""
        if isinstance(command, ModeChange):
            return self.change_mode(command.space)
        if isinstance(command, RateChange):
            return self.change_rate(command.channel, command.rate)
        raise ConfigurationError(f"Unsupported command: {command!r}")

    def change_mode(self, space: Union[ColorSpace, str]) -> bool:
        space = ColorSpace.parse(space)
        if space is self._space:
            LOGGER.debug("Already in %s; ignoring mode change", space.name)
            return False
        LOGGER.info("Switching to %s (%s)", space.name, ", ".join(space.channel_names))
        self._space = space
        self._rates = RateVector.full()
        self._recompute()
        return True

    def change_rate(self, channel: int, rate: float) -> bool:
        if self._space is None:
            raise ConfigurationError("Select a color space before changing rates")
        self._rates = self._rates.with_rate(channel, rate)
        LOGGER.debug(
            "%s rate set to %.2f", self._space.channel_names[channel], self._rates[channel]
        )
        self._recompute()
        return True

    def _recompute(self) -> None:
        assert self._space is not None
        self._output = self.engine.transfer(self._space, self._rates)


__all__ = [
    "Command",
    "ModeChange",
    "ModeController",
    "RateChange",
]
