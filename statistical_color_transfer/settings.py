"""Per-channel blend rates and transfer settings."""
from __future__ import annotations

import dataclasses
import math
from typing import Iterable, Iterator, Tuple, Union

from .colorspaces import DEFAULT_COLOR_SPACE, ColorSpace
from .io_utils import COLOR_CHANNELS, ConfigurationError

PERCENT_MAX = 100


def ensure_channel(channel: int) -> int:
    if isinstance(channel, bool) or not isinstance(channel, int):
        raise ConfigurationError(f"Channel index must be an integer, got {channel!r}")
    if not 0 <= channel < COLOR_CHANNELS:
        raise ConfigurationError(f"Channel index must be between 0 and {COLOR_CHANNELS - 1}, got {channel}")
    return channel


def ensure_rate(rate: float) -> float:
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Rate must be a number, got {rate!r}") from None
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"Rate must be between 0 and 1, got {rate!r}")
    return value


def percent_to_rate(percent: int) -> float:
    """Convert an integer percentage (0-100) into a rate."""
    if isinstance(percent, bool) or not isinstance(percent, int):
        raise ConfigurationError(f"Rate percentage must be an integer, got {percent!r}")
    if not 0 <= percent <= PERCENT_MAX:
        raise ConfigurationError(f"Rate percentage must be between 0 and {PERCENT_MAX}, got {percent}")
    return percent / float(PERCENT_MAX)


@dataclasses.dataclass(frozen=True)
class RateVector:
    """Blend rates for the three working channels, each in ``[0, 1]``."""

    rates: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        rates = tuple(self.rates)
        if len(rates) != COLOR_CHANNELS:
            raise ConfigurationError(f"Expected {COLOR_CHANNELS} rates, got {len(rates)}")
        object.__setattr__(self, "rates", tuple(ensure_rate(rate) for rate in rates))

    def __iter__(self) -> Iterator[float]:
        return iter(self.rates)

    def __getitem__(self, channel: int) -> float:
        return self.rates[ensure_channel(channel)]

    @classmethod
    def full(cls) -> "RateVector":
        return cls()

    @classmethod
    def from_percent(cls, percents: Iterable[int]) -> "RateVector":
        return cls(tuple(percent_to_rate(percent) for percent in percents))  # type: ignore[arg-type]

    def as_percent(self) -> Tuple[int, int, int]:
        return tuple(int(round(rate * PERCENT_MAX)) for rate in self.rates)  # type: ignore[return-value]

    def with_rate(self, channel: int, rate: float) -> "RateVector":
        """Return a copy with channel *channel* set to *rate*."""
        updated = list(self.rates)
        updated[ensure_channel(channel)] = ensure_rate(rate)
        return RateVector(tuple(updated))  # type: ignore[arg-type]


@dataclasses.dataclass
class TransferSettings:
    """Colour space and rates requested for a transfer run."""

    mode: ColorSpace = DEFAULT_COLOR_SPACE
    rates: RateVector = dataclasses.field(default_factory=RateVector)

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        self.mode = ColorSpace.parse(self.mode)
        if not isinstance(self.rates, RateVector):
            self.rates = RateVector(tuple(self.rates))

    @classmethod
    def from_options(cls, mode: Union[str, ColorSpace], percents: Iterable[int]) -> "TransferSettings":
        return cls(mode=mode, rates=RateVector.from_percent(percents))  # type: ignore[arg-type]


__all__ = [
    "PERCENT_MAX",
    "RateVector",
    "TransferSettings",
    "ensure_channel",
    "ensure_rate",
    "percent_to_rate",
]
