"""Reinhard-style statistical matching and per-channel rate blending.

Matching recentres a destination channel on its own mean, rescales its spread
to the source spread and shifts it onto the source mean (all in the log
domain), following Reinhard et al., "Color Transfer between Images" (2001).

A constant destination channel has no spread to rescale. In that case the scale
factor is defined as ``1.0``: the channel is only recentred, so every pixel lands
exactly on the source mean.
"""
from __future__ import annotations

import logging
import math

import numpy as np

from .channel_stats import ChannelStats
from .io_utils import ConfigurationError

LOGGER = logging.getLogger("statistical_color_transfer")


def clamp_rate(rate: float) -> float:
    """Clamp *rate* to ``[0, 1]``."""
    if math.isnan(rate):
        raise ConfigurationError("Blend rate must be a number, got NaN")
    return min(1.0, max(0.0, float(rate)))


def scale_factor(source_std: float, destination_std: float) -> float:
    """Return ``source_std / destination_std``, or ``1.0`` for a constant destination."""
    if destination_std == 0.0:
        return 1.0
    return source_std / destination_std


def match_channel(
    destination: np.ndarray,
    source_stats: ChannelStats,
    destination_stats: ChannelStats,
    channel: int,
) -> np.ndarray:
    """Match one log-domain destination channel onto the source statistics.

    Args:
        destination: 2D array of log values for a single destination channel.
        source_stats: Statistics of the reference image.
        destination_stats: Statistics of the destination image.
        channel: Index of the channel being matched.

    Returns:
        ``scale * (destination - dst_mean) + src_mean`` as a new array.
    """
    src_mean, src_std = source_stats.channel(channel)
    dst_mean, dst_std = destination_stats.channel(channel)
    scale = scale_factor(src_std, dst_std)
    if destination_stats.is_degenerate(channel):
        LOGGER.debug("Channel %s is constant in the destination; recentring only", channel)
    return scale * (np.asarray(destination, dtype=np.float64) - dst_mean) + src_mean


def blend_channel(original: np.ndarray, matched: np.ndarray, rate: float) -> np.ndarray:
    """Blend *original* towards *matched* by *rate* (clamped to ``[0, 1]``)."""
    original = np.asarray(original, dtype=np.float64)
    matched = np.asarray(matched, dtype=np.float64)
    if original.shape != matched.shape:
        raise ConfigurationError(
            f"Cannot blend channels of different shapes: {original.shape} vs {matched.shape}"
        )
    rate = clamp_rate(rate)
    return original * (1.0 - rate) + matched * rate


__all__ = [
    "blend_channel",
    "clamp_rate",
    "match_channel",
    "scale_factor",
]
