# ABOUTME: Reduces the provider's 3-hour forecast series to one sample per day.
# ABOUTME: Uses fixed-stride selection rather than calendar-day grouping.

from collections.abc import Sequence

from src.config import SAMPLE_INTERVAL_HOURS
from src.models import ForecastSample


def samples_per_day(interval_hours: int = SAMPLE_INTERVAL_HOURS) -> int:
    """Number of series entries covering 24 hours at the given sampling interval."""
    if interval_hours < 1 or 24 % interval_hours:
        raise ValueError(f"Sampling interval must divide 24 hours, got {interval_hours}")
    return 24 // interval_hours


SAMPLES_PER_DAY = samples_per_day()


def derive_daily(series: Sequence[ForecastSample], stride: int = SAMPLES_PER_DAY) -> list[ForecastSample]:
    """Pick the samples at positions 0, stride, 2*stride, ... keeping their order.

    Timestamps are not inspected, so the first sample of each stride stands in
    for the whole day regardless of where the series starts.
    """
    if stride < 1:
        raise ValueError(f"Stride must be at least 1, got {stride}")
    return list(series[::stride])
