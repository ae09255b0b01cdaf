from __future__ import annotations

import numpy as np
import pytest

from statistical_color_transfer import colorspaces
from statistical_color_transfer.colorspaces import ColorSpace
from statistical_color_transfer.controller import ModeChange, ModeController, RateChange
from statistical_color_transfer.io_utils import ConfigurationError
from statistical_color_transfer.settings import RateVector

from .documentation import documents


@pytest.fixture
def controller() -> ModeController:
    rng = np.random.default_rng(42)
    reference = rng.integers(30, 230, size=(16, 20, 3), endpoint=True).astype(np.uint8)
    target = rng.integers(10, 160, size=(12, 14, 3), endpoint=True).astype(np.uint8)
    return ModeController.from_images(reference, target)


def test_starts_uninitialised(controller: ModeController):
    assert controller.space is None
    assert controller.output is None
    assert controller.channel_names == ("", "", "")
    assert controller.rates == RateVector.full()


def test_mode_change_computes_output_and_labels(controller: ModeController):
    assert controller.handle(ModeChange(ColorSpace.HSV)) is True

    assert controller.space is ColorSpace.HSV
    assert controller.channel_names == ("Hue", "Saturation", "Value")
    assert controller.output is not None
    assert controller.output.shape == (12, 14, 3)


@documents("Switching to another space resets every rate to 100%")
def test_switching_space_resets_rates(controller: ModeController):
    controller.handle(ModeChange(ColorSpace.LAB))
    controller.handle(RateChange(0, 0.25))
    controller.handle(RateChange.from_percent(2, 70))
    assert controller.rates.as_percent() == (25, 100, 70)

    controller.handle(ModeChange(ColorSpace.XYZ))

    assert controller.rates == RateVector.full()
    assert controller.channel_names == ("X", "Y", "Z")


@documents("Re-selecting the active space neither recomputes nor resets rates")
def test_same_space_is_a_no_op(controller: ModeController):
    controller.handle(ModeChange(ColorSpace.RGB))
    controller.handle(RateChange(1, 0.5))
    output = controller.output

    assert controller.handle(ModeChange("rgb")) is False

    assert controller.output is output
    assert controller.rates.rates == (1.0, 0.5, 1.0)


def test_rate_change_updates_one_channel(controller: ModeController):
    controller.handle(ModeChange(ColorSpace.LAB))

    controller.handle(RateChange(1, 0.0))

    assert controller.rates.rates == (1.0, 0.0, 1.0)


def test_rate_change_reuses_the_cached_transform(controller: ModeController, monkeypatch: pytest.MonkeyPatch):
    controller.handle(ModeChange(ColorSpace.LAB))
    calls = []
    original_forward = colorspaces.forward

    def counting_forward(image, space):
        calls.append(space)
        return original_forward(image, space)

    monkeypatch.setattr(colorspaces, "forward", counting_forward)

    controller.handle(RateChange(0, 0.1))
    controller.handle(RateChange(1, 0.9))
    assert calls == []

    controller.handle(ModeChange(ColorSpace.HSV))
    assert calls == [ColorSpace.HSV, ColorSpace.HSV]


def test_output_is_replaced_not_mutated(controller: ModeController):
    controller.handle(ModeChange(ColorSpace.RGB))
    previous = controller.output
    snapshot = previous.copy()

    controller.handle(RateChange(0, 0.0))

    assert controller.output is not previous
    assert np.array_equal(previous, snapshot)
    assert not controller.output.flags.writeable


def test_zero_rates_restore_the_target(controller: ModeController):
    controller.handle(ModeChange(ColorSpace.RGB))
    for channel in range(3):
        controller.handle(RateChange(channel, 0.0))

    assert np.array_equal(controller.output, controller.engine.target)


def test_rate_change_before_mode_is_rejected(controller: ModeController):
    with pytest.raises(ConfigurationError, match="color space"):
        controller.handle(RateChange(0, 0.5))


@pytest.mark.parametrize(
    "factory",
    [
        lambda: RateChange(3, 0.5),
        lambda: RateChange(-1, 0.5),
        lambda: RateChange(0, 1.5),
        lambda: RateChange(0, float("nan")),
        lambda: RateChange.from_percent(0, 101),
        lambda: RateChange.from_percent(0, 50.5),
        lambda: ModeChange("cmyk"),
    ],
)
def test_invalid_commands_are_rejected_at_the_boundary(factory):
    with pytest.raises(ConfigurationError):
        factory()


def test_percent_commands_are_normalised():
    assert RateChange.from_percent(1, 40) == RateChange(1, 0.4)
    assert RateChange.from_percent(2, 0).rate == 0.0


def test_unknown_command_is_rejected(controller: ModeController):
    with pytest.raises(ConfigurationError, match="Unsupported command"):
        controller.handle("lab")  # type: ignore[arg-type]
