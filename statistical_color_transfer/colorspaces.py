"""Working colour spaces for statistical transfer.

Every supported space is one row of :data:`COLOR_SPACES`. A row knows how to
move native 8-bit RGB pixels into its working encoding and back, the range each
working channel can represent, and the labels shown for its channels.

The working encodings follow OpenCV's 8-bit conventions (``L*255/100``,
``a+128`` and ``b+128`` for Lab, ``H/2`` for HSV, ``*255`` elsewhere) so that
every channel lives on a comparable, non-negative 0-255 scale. The conversion
itself runs in floating point, which keeps ``backward(forward(x))`` within one
unit of ``x``.

Example Usage
-------------

    from statistical_color_transfer.colorspaces import ColorSpace, backward, forward

    working = forward(rgb_uint8, ColorSpace.LAB)
    restored = backward(working, ColorSpace.LAB)
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

import cv2
import numpy as np

from .io_utils import ConfigurationError

_NATIVE_MAX = 255.0


class ColorSpace(enum.Enum):
    """Working colour spaces supported by the transfer engine."""

    LAB = "lab"
    RGB = "rgb"
    HSV = "hsv"
    XYZ = "xyz"

    @classmethod
    def parse(cls, value: Union[str, "ColorSpace"]) -> "ColorSpace":
        """Resolve a space from its name ("lab", "Lab", "LAB") or an instance."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(space.value for space in cls)
            raise ConfigurationError(f"Unknown color space {value!r} (choose from {choices})") from None

    @property
    def channel_names(self) -> Tuple[str, str, str]:
        return COLOR_SPACES[self].channel_names


@dataclass(frozen=True)
class WorkingSpace:
    """Conversion recipe and display metadata for one working colour space.

    Attributes:
        channel_names: Human-readable labels of the three working channels.
        forward_code: ``cv2.cvtColor`` code from float RGB, or ``None`` for identity.
        backward_code: ``cv2.cvtColor`` code back to float RGB, or ``None``.
        scale: Per-channel factor applied to OpenCV's float output.
        offset: Per-channel shift applied after scaling.
        upper: Largest representable working value per channel (lower bound is 0).
    """

    channel_names: Tuple[str, str, str]
    forward_code: Optional[int]
    backward_code: Optional[int]
    scale: Tuple[float, float, float]
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    upper: Tuple[float, float, float] = (_NATIVE_MAX, _NATIVE_MAX, _NATIVE_MAX)

    def forward(self, image: np.ndarray) -> np.ndarray:
        """Convert native ``uint8`` RGB pixels into float32 working values."""
        rgb = np.asarray(image, dtype=np.float32) / np.float32(_NATIVE_MAX)
        if self.forward_code is None:
            converted = rgb
        else:
            converted = cv2.cvtColor(np.ascontiguousarray(rgb), self.forward_code)
        scale = np.asarray(self.scale, dtype=np.float32)
        offset = np.asarray(self.offset, dtype=np.float32)
        return (converted * scale + offset).astype(np.float32)

    def backward(self, working: np.ndarray) -> np.ndarray:
        """Convert working values back to native ``uint8`` RGB, rounding and saturating."""
        scale = np.asarray(self.scale, dtype=np.float32)
        offset = np.asarray(self.offset, dtype=np.float32)
        decoded = ((np.asarray(working, dtype=np.float32) - offset) / scale).astype(np.float32)
        if self.backward_code is None:
            rgb = decoded
        else:
            rgb = cv2.cvtColor(np.ascontiguousarray(decoded), self.backward_code)
        return np.clip(np.rint(rgb * _NATIVE_MAX), 0, _NATIVE_MAX).astype(np.uint8)

    def clamp(self, working: np.ndarray) -> np.ndarray:
        """Saturate working values to the representable ``[0, upper]`` range."""
        upper = np.asarray(self.upper, dtype=working.dtype)
        return np.clip(working, 0.0, upper)


def _xyz_white_point() -> Tuple[float, float, float]:
    white = np.ones((1, 1, 3), dtype=np.float32)
    xyz = cv2.cvtColor(white, cv2.COLOR_RGB2XYZ)[0, 0] * _NATIVE_MAX
    return tuple(float(value) for value in xyz)  # type: ignore[return-value]


COLOR_SPACES: Dict[ColorSpace, WorkingSpace] = {
    ColorSpace.LAB: WorkingSpace(
        channel_names=("Luminance", "Alpha", "Beta"),
        forward_code=cv2.COLOR_RGB2Lab,
        backward_code=cv2.COLOR_Lab2RGB,
        scale=(_NATIVE_MAX / 100.0, 1.0, 1.0),
        offset=(0.0, 128.0, 128.0),
    ),
    ColorSpace.RGB: WorkingSpace(
        channel_names=("Red", "Green", "Blue"),
        forward_code=None,
        backward_code=None,
        scale=(_NATIVE_MAX, _NATIVE_MAX, _NATIVE_MAX),
    ),
    ColorSpace.HSV: WorkingSpace(
        channel_names=("Hue", "Saturation", "Value"),
        forward_code=cv2.COLOR_RGB2HSV,
        backward_code=cv2.COLOR_HSV2RGB,
        scale=(0.5, _NATIVE_MAX, _NATIVE_MAX),
        # 180 in the half-degree encoding is a full turn.
        upper=(180.0, _NATIVE_MAX, _NATIVE_MAX),
    ),
    ColorSpace.XYZ: WorkingSpace(
        channel_names=("X", "Y", "Z"),
        forward_code=cv2.COLOR_RGB2XYZ,
        backward_code=cv2.COLOR_XYZ2RGB,
        scale=(_NATIVE_MAX, _NATIVE_MAX, _NATIVE_MAX),
        upper=_xyz_white_point(),
    ),
}

DEFAULT_COLOR_SPACE = ColorSpace.LAB


def forward(image: np.ndarray, space: ColorSpace) -> np.ndarray:
    """Map native RGB pixels into the working encoding of *space*."""
    return COLOR_SPACES[space].forward(image)


def backward(working: np.ndarray, space: ColorSpace) -> np.ndarray:
    """Map working values of *space* back to native ``uint8`` RGB."""
    return COLOR_SPACES[space].backward(working)


__all__ = [
    "COLOR_SPACES",
    "ColorSpace",
    "DEFAULT_COLOR_SPACE",
    "WorkingSpace",
    "backward",
    "forward",
]
