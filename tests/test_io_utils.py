from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from statistical_color_transfer.io_utils import (
    ConfigurationError,
    load_image,
    save_image,
    staged_write,
    validate_image,
    validate_output_path,
)


def _gradient(width: int = 8, height: int = 6) -> np.ndarray:
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)[:, None]
    return np.stack(
        [np.broadcast_to(x, (height, width)), np.broadcast_to(y, (height, width)), (x + y) / 2.0], axis=-1
    ).astype(np.uint8)


def test_save_then_load_png(tmp_path: Path):
    image = _gradient()
    destination = tmp_path / "nested" / "out.png"

    save_image(destination, image)

    assert destination.exists()
    assert np.array_equal(load_image(destination), image)
    assert [p.name for p in destination.parent.iterdir()] == ["out.png"]


def test_load_drops_alpha(tmp_path: Path):
    rgba = np.dstack([_gradient(), np.full((6, 8), 128, dtype=np.uint8)])
    path = tmp_path / "rgba.png"
    Image.fromarray(rgba).save(path)

    loaded = load_image(path)

    assert loaded.shape == (6, 8, 3)
    assert np.array_equal(loaded, rgba[:, :, :3])


def test_load_expands_palette_images(tmp_path: Path):
    path = tmp_path / "palette.png"
    Image.fromarray(_gradient()).convert("P").save(path)

    loaded = load_image(path)

    assert loaded.shape == (6, 8, 3)
    assert loaded.dtype == np.uint8


def test_grayscale_image_is_rejected(tmp_path: Path):
    path = tmp_path / "gray.png"
    Image.fromarray(np.zeros((4, 4), dtype=np.uint8)).save(path)

    with pytest.raises(ConfigurationError, match="may not be a color image"):
        load_image(path)


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "missing.png")


def test_undecodable_file(tmp_path: Path):
    path = tmp_path / "broken.png"
    path.write_text("not an image")

    with pytest.raises(ConfigurationError, match="Unable to decode"):
        load_image(path)


def test_unknown_output_extension(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="Unsupported output format"):
        save_image(tmp_path / "out.unknown", _gradient())


def test_staged_write_cleans_up_on_failure(tmp_path: Path):
    destination = tmp_path / "result.png"

    with pytest.raises(RuntimeError):
        with staged_write(destination) as staged:
            staged.write_bytes(b"partial")
            raise RuntimeError("boom")

    assert not destination.exists()
    assert list(tmp_path.iterdir()) == []


def test_staged_write_replaces_destination(tmp_path: Path):
    destination = tmp_path / "result.bin"
    destination.write_bytes(b"old")

    with staged_write(destination) as staged:
        staged.write_bytes(b"new")

    assert destination.read_bytes() == b"new"


def test_validate_image_truncates_extra_channels(caplog: pytest.LogCaptureFixture):
    arr = np.zeros((2, 2, 5), dtype=np.uint8)

    with caplog.at_level("WARNING", logger="statistical_color_transfer"):
        validated = validate_image(arr, role="reference")

    assert validated.shape == (2, 2, 3)
    assert validated.flags.c_contiguous
    assert "Dropping 2 extra channel(s) from the reference image" in caplog.text


def test_validate_output_path_accepts_known_suffixes(tmp_path: Path):
    assert validate_output_path(str(tmp_path / "result.JPG")) == tmp_path / "result.JPG"


def test_validate_output_path_rejects_unknown_suffix(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="Unsupported output format"):
        validate_output_path(tmp_path / "result.nosuchext")

    assert list(tmp_path.iterdir()) == []


def test_save_image_under_a_file_raises_os_error(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    with pytest.raises(OSError):
        save_image(blocker / "result.png", _gradient())
