from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, strategies as st

from statistical_color_transfer.channel_stats import ChannelStats
from statistical_color_transfer.io_utils import ConfigurationError
from statistical_color_transfer.matching import blend_channel, clamp_rate, match_channel, scale_factor

from .documentation import documents


def _stats(mean: float, std: float) -> ChannelStats:
    return ChannelStats(means=(mean, 0.0, 0.0), stds=(std, 0.0, 0.0))


def test_match_recentres_and_rescales():
    destination = np.array([[0.0, 2.0], [0.0, 2.0]])

    matched = match_channel(destination, _stats(5.0, 2.0), _stats(1.0, 1.0), 0)

    assert matched.tolist() == [[3.0, 7.0], [3.0, 7.0]]


@documents("A constant destination channel is recentred with a scale factor of 1.0")
def test_constant_destination_uses_unit_scale():
    destination = np.full((3, 3), 4.0)

    with np.errstate(divide="raise", invalid="raise"):
        matched = match_channel(destination, _stats(1.0, 3.0), _stats(4.0, 0.0), 0)

    assert np.allclose(matched, 1.0)


def test_scale_factor():
    assert scale_factor(2.0, 4.0) == 0.5
    assert scale_factor(2.0, 0.0) == 1.0
    assert scale_factor(0.0, 0.0) == 1.0


def test_blend_endpoints():
    original = np.array([[1.0, 2.0, 3.0]])
    matched = np.array([[4.0, 5.0, 9.0]])

    assert np.array_equal(blend_channel(original, matched, 0.0), original)
    assert np.array_equal(blend_channel(original, matched, 1.0), matched)
    assert np.allclose(blend_channel(original, matched, 0.5), [[2.5, 3.5, 6.0]])


@pytest.mark.parametrize("rate, expected", [(-0.5, 0.0), (1.5, 1.0), (0.25, 0.25)])
def test_rates_are_clamped(rate: float, expected: float):
    assert clamp_rate(rate) == expected


def test_out_of_range_rate_blends_like_the_clamped_rate():
    original = np.array([1.0, 2.0])
    matched = np.array([3.0, 6.0])
    assert np.array_equal(blend_channel(original, matched, 7.0), matched)
    assert np.array_equal(blend_channel(original, matched, -1.0), original)


def test_nan_rate_is_rejected():
    with pytest.raises(ConfigurationError):
        blend_channel(np.zeros(2), np.ones(2), float("nan"))


def test_mismatched_buffers_are_rejected():
    with pytest.raises(ConfigurationError, match="different shapes"):
        blend_channel(np.zeros((2, 2)), np.zeros((2, 3)), 0.5)


@given(
    rate=st.floats(min_value=0.0, max_value=1.0),
    original=st.floats(min_value=-10.0, max_value=10.0),
    matched=st.floats(min_value=-10.0, max_value=10.0),
)
def test_blend_stays_between_original_and_match(rate: float, original: float, matched: float):
    result = float(blend_channel(np.array([original]), np.array([matched]), rate)[0])

    assert min(original, matched) - 1e-9 <= result <= max(original, matched) + 1e-9
