"""Post-parse filters over scored signals.

``filter_high_quality`` backs the processor's quality threshold.
``filter_signals`` is public API for callers that browse already-parsed
signals by direction, symbol, author, time range or free text; the relay
cycle itself does not use it.
"""

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

from signal_relay.signals.models import ParsedSignal

DAY_MS = 24 * 60 * 60 * 1000

TIME_RANGES = {
    "today": 1 * DAY_MS,
    "3days": 3 * DAY_MS,
    "week": 7 * DAY_MS,
    "month": 30 * DAY_MS,
}


def filter_high_quality(signals: Iterable[ParsedSignal], min_score: int = 60) -> List[ParsedSignal]:
    """Keep signals whose assessed score reaches ``min_score``. Unscored signals are dropped."""
    return [s for s in signals if s.quality is not None and s.quality.score >= min_score]


@dataclass(frozen=True)
class SignalCriteria:
    direction: Optional[str] = None
    symbol: Optional[str] = None
    author: Optional[str] = None
    time_range: Optional[str] = None
    search_query: Optional[str] = None


def _matches(signal: ParsedSignal, criteria: SignalCriteria, now_ms: int) -> bool:
    if criteria.direction and criteria.direction != "all" and signal.direction != criteria.direction:
        return False
    if criteria.symbol and criteria.symbol.upper() not in signal.symbol.upper():
        return False
    if criteria.author and criteria.author.lower() not in (signal.author or "").lower():
        return False
    if criteria.time_range and criteria.time_range != "all":
        window = TIME_RANGES.get(criteria.time_range)
        if window is None:
            raise ValueError(f"unknown time range {criteria.time_range!r}")
        if now_ms - signal.timestamp_ms > window:
            return False
    if criteria.search_query:
        query = criteria.search_query.lower()
        haystack = " ".join([
            signal.symbol,
            signal.original_content or "",
            signal.message_content or "",
            signal.author or "",
            signal.channel or "",
        ]).lower()
        if query not in haystack:
            return False
    return True


def filter_signals(signals: Iterable[ParsedSignal], criteria: SignalCriteria,
                   now_ms: Optional[int] = None) -> List[ParsedSignal]:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return [s for s in signals if _matches(s, criteria, now_ms)]
