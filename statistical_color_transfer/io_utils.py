"""I/O primitives and input validation for colour transfer sessions.

Key Components
--------------

ConfigurationError
    Raised for inputs the transfer engine cannot work with (too few channels,
    empty images, out-of-range commands).

Functions
---------

staged_write
    Context manager for atomic file writes through a staged temporary file.

validate_image
    Check that an array is a non-empty 8-bit image with at least three channels
    and return its colour channels.

load_image
    Decode an image file with Pillow into a native ``uint8`` RGB array.

validate_output_path
    Reject output paths whose suffix has no Pillow encoder before any work starts.

save_image
    Atomically write a native RGB array to disk.
"""
from __future__ import annotations

import contextlib
import logging
import os
import uuid
from pathlib import Path
from typing import Iterator, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

LOGGER = logging.getLogger("statistical_color_transfer")

COLOR_CHANNELS = 3


class ConfigurationError(ValueError):
    """Raised when images or commands cannot be accepted by the transfer core."""


@contextlib.contextmanager
def staged_write(destination: Path) -> Iterator[Path]:
    """Yield a hidden sibling path of *destination* and move it into place on success.

    The staged file is removed when the body (or the final move) raises.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    staged = destination.parent / f".{destination.name}.tmp-{uuid.uuid4().hex}"
    try:
        yield staged
        os.replace(staged, destination)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            staged.unlink()
        raise


def validate_image(image: np.ndarray, role: str = "image") -> np.ndarray:
    """Return the colour channels of *image* after validating its layout.

    Args:
        image: Array of shape ``(height, width, channels)`` and dtype ``uint8``.
        role: Name used in error messages ("reference", "target", ...).

    Returns:
        A contiguous ``(height, width, 3)`` ``uint8`` array. Channels beyond the
        third (alpha, etc.) are dropped.

    Raises:
        ConfigurationError: If the array is empty, not 8-bit, or has fewer
            than three channels.
    """
    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] < COLOR_CHANNELS:
        channels = 1 if arr.ndim == 2 else (arr.shape[2] if arr.ndim == 3 else 0)
        raise ConfigurationError(
            f"The {role} image may not be a color image: expected at least "
            f"{COLOR_CHANNELS} channels, got {channels}"
        )
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ConfigurationError(f"The {role} image is empty ({arr.shape[1]}x{arr.shape[0]})")
    if arr.dtype != np.uint8:
        raise ConfigurationError(f"The {role} image must be 8-bit (uint8), got {arr.dtype}")
    if arr.shape[2] > COLOR_CHANNELS:
        LOGGER.warning(
            "Dropping %s extra channel(s) from the %s image",
            arr.shape[2] - COLOR_CHANNELS,
            role,
        )
        arr = arr[:, :, :COLOR_CHANNELS]
    return np.ascontiguousarray(arr)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Decode *path* into a native ``uint8`` RGB array.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file cannot be decoded or is not a colour image.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as image:
            image.load()
            if image.mode == "P":
                image = image.convert("RGBA" if "transparency" in image.info else "RGB")
            bands = image.getbands()
            if len(bands) < COLOR_CHANNELS:
                raise ConfigurationError(
                    f"{path} may not be a color image (mode {image.mode!r} has {len(bands)} channel(s))"
                )
            if image.mode != "RGB":
                image = image.convert("RGB")
            arr = np.array(image, dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as exc:
        raise ConfigurationError(f"Unable to decode image data from {path}: {exc}") from exc

    LOGGER.debug("Loaded %s (%sx%s)", path, arr.shape[1], arr.shape[0])
    return validate_image(arr, role=path.name)


def _format_for(destination: Path) -> str:
    extension = destination.suffix.lower()
    image_format = Image.registered_extensions().get(extension)
    if image_format is None:
        raise ConfigurationError(f"Unsupported output format for {destination} (extension {extension!r})")
    return image_format


def validate_output_path(destination: Union[str, Path]) -> Path:
    """Return *destination* as a path, raising ``ConfigurationError`` if it cannot be encoded."""
    destination = Path(destination)
    _format_for(destination)
    return destination


def save_image(destination: Union[str, Path], image: np.ndarray) -> None:
    """Write a native RGB array to *destination* atomically.

    The encoder is chosen from the destination suffix.
    """
    destination = Path(destination)
    image_format = _format_for(destination)
    arr = validate_image(image, role="output")
    with staged_write(destination) as staged_path:
        Image.fromarray(arr).save(os.fspath(staged_path), format=image_format)
    LOGGER.info("Wrote %s", destination)


__all__ = [
    "COLOR_CHANNELS",
    "ConfigurationError",
    "load_image",
    "save_image",
    "staged_write",
    "validate_image",
    "validate_output_path",
]
