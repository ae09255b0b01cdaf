"""Log-domain channel statistics."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from .io_utils import COLOR_CHANNELS, ConfigurationError

# Working values are on a 0-255 scale; anything below this floor is treated as
# the floor so the logarithm stays finite.
LOG_EPSILON = 1e-3

# Standard deviations at or below this are summation noise on a constant channel.
DEGENERATE_STD = 1e-9


def to_log_domain(working: np.ndarray) -> np.ndarray:
    """Return the natural logarithm of *working* as float64, flooring at :data:`LOG_EPSILON`."""
    values = np.asarray(working, dtype=np.float64)
    return np.log(np.maximum(values, LOG_EPSILON))


def from_log_domain(log_values: np.ndarray) -> np.ndarray:
    return np.exp(log_values)


@dataclass(frozen=True)
class ChannelStats:
    """Per-channel mean and population standard deviation of log values."""

    means: Tuple[float, float, float]
    stds: Tuple[float, float, float]

    def __post_init__(self) -> None:
        if len(self.means) != COLOR_CHANNELS or len(self.stds) != COLOR_CHANNELS:
            raise ConfigurationError("ChannelStats requires exactly three means and three deviations")
        if any(std < 0.0 for std in self.stds):
            raise ConfigurationError(f"Standard deviations must be non-negative, got {self.stds}")

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return iter(zip(self.means, self.stds))

    def channel(self, index: int) -> Tuple[float, float]:
        """Return ``(mean, std)`` for channel *index*."""
        return self.means[index], self.stds[index]

    def is_degenerate(self, index: int) -> bool:
        """``True`` when channel *index* is constant (zero spread)."""
        return self.stds[index] == 0.0

    @classmethod
    def from_log(cls, log_values: np.ndarray) -> "ChannelStats":
        """Compute statistics from values already in the log domain.

        The reduction runs over every pixel with numpy's pairwise summation, so
        repeated calls on the same data give identical results.
        """
        arr = np.asarray(log_values, dtype=np.float64)
        if arr.ndim != 3 or arr.shape[2] != COLOR_CHANNELS:
            raise ConfigurationError(f"Expected a (height, width, 3) array, got shape {arr.shape}")
        if arr.shape[0] * arr.shape[1] == 0:
            raise ConfigurationError("Cannot compute statistics of an empty image")
        flat = arr.reshape(-1, COLOR_CHANNELS)
        means = flat.mean(axis=0)
        stds = flat.std(axis=0, ddof=0)
        stds = np.where(stds <= DEGENERATE_STD, 0.0, stds)
        return cls(
            means=tuple(float(value) for value in means),  # type: ignore[arg-type]
            stds=tuple(float(value) for value in stds),  # type: ignore[arg-type]
        )


def compute_channel_stats(working: np.ndarray) -> ChannelStats:
    """Log-transform *working* and return its per-channel statistics."""
    return ChannelStats.from_log(to_log_domain(working))


__all__ = [
    "ChannelStats",
    "DEGENERATE_STD",
    "LOG_EPSILON",
    "compute_channel_stats",
    "from_log_domain",
    "to_log_domain",
]
