"""Response time statistics over an endpoint's result window."""

from collections.abc import Sequence

from .models import ResponseTimeStats, Result
from .timefmt import round_half_away_from_zero

NANOSECONDS_PER_MILLISECOND = 1_000_000


def duration_to_ms(duration_ns: int) -> int:
    """Convert a duration in nanoseconds to whole milliseconds, truncating."""
    return int(duration_ns / NANOSECONDS_PER_MILLISECOND)


def compute_response_time_stats(results: Sequence[Result]) -> ResponseTimeStats | None:
    """Compute min, max and average response time of a result window.

    Each duration is truncated to whole milliseconds first; min and max are
    taken over the truncated values and the average is their mean rounded
    half away from zero.

    Returns:
        The statistics, or None when there are no results.
    """
    if not results:
        return None
    samples = [duration_to_ms(result.duration) for result in results]
    return ResponseTimeStats(
        min=min(samples),
        max=max(samples),
        average=round_half_away_from_zero(sum(samples) / len(samples)),
    )


def has_response_time_data(results: Sequence[Result]) -> bool:
    """Check whether any result carries a measured duration."""
    return any(result.duration > 0 for result in results)


def format_response_time(stats: ResponseTimeStats | None, show_average: bool = True) -> str:
    """Format statistics for the endpoint row, e.g. "~42ms" or "10-80ms"."""
    if stats is None:
        return ""
    if show_average:
        return f"~{stats.average}ms"
    if stats.min == stats.max:
        return f"{stats.min}ms"
    return f"{stats.min}-{stats.max}ms"


class ResponseTimeAggregator:
    """Memoizes statistics, recomputing only when the result sequence changes.

    Change is detected by identity: a new sequence object triggers
    recomputation even if its content is equal to the previous one.
    """

    def __init__(self) -> None:
        self._results: Sequence[Result] | None = None
        self._stats: ResponseTimeStats | None = None
        self.computations = 0

    def stats(self, results: Sequence[Result]) -> ResponseTimeStats | None:
        if results is not self._results:
            self._results = results
            self._stats = compute_response_time_stats(results)
            self.computations += 1
        return self._stats
