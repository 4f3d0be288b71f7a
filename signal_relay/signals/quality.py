"""Additive 0-100 confidence score for a parsed signal."""

import re
from typing import List

from signal_relay.signals.lexicon import UNKNOWN, MARKET_PRICE, PREMIUM_PLATFORMS
from signal_relay.signals.models import ParsedSignal, QualityAssessment

EXTREME_HIGH = "extreme-high"
HIGH = "high"
MEDIUM = "medium"
LOW = "low"
EXTREME_LOW = "extreme-low"

# (minimum score, level), checked top-down.
LEVEL_THRESHOLDS = (
    (90, EXTREME_HIGH),
    (75, HIGH),
    (50, MEDIUM),
    (30, LOW),
)

MAX_REASONABLE_LEVERAGE = 50


def quality_level(score: int) -> str:
    for minimum, level in LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return EXTREME_LOW


def _present(value) -> bool:
    return bool(value) and str(value).strip() not in ("", UNKNOWN, MARKET_PRICE)


def _leverage_value(raw: str):
    digits = re.sub(r"\D", "", raw or "")
    return int(digits) if digits else None


def evaluate(signal: ParsedSignal) -> QualityAssessment:
    score = 0
    details: List[str] = []

    if _present(signal.symbol):
        score += 15
        details.append("Symbol identified (+15)")
    else:
        details.append("Symbol not identified")

    if _present(signal.direction):
        score += 15
        details.append("Direction identified (+15)")
    else:
        details.append("Direction not identified")

    if _present(signal.entry_price):
        score += 10
        details.append("Entry price given (+10)")
    else:
        details.append("Entry at market price")

    if _present(signal.stop_loss):
        score += 15
        details.append("Stop-loss set (+15)")
    else:
        details.append("No stop-loss")

    if _present(signal.target_price):
        score += 20
        details.append("Target price set (+20)")
    else:
        details.append("No target price")

    if signal.analysis and signal.analysis.strip():
        score += 10
        details.append("Analysis provided (+10)")
    else:
        details.append("No analysis")

    leverage = _leverage_value(signal.leverage) if _present(signal.leverage) else None
    if leverage is not None and 0 < leverage <= MAX_REASONABLE_LEVERAGE:
        score += 10
        details.append(f"Leverage {leverage}x within range (+10)")
    elif leverage is not None:
        score += 5
        details.append(f"Leverage {leverage}x out of range (+5)")
    else:
        score += 5
        details.append("No leverage suggested (+5)")

    if (signal.platform or "").lower() in PREMIUM_PLATFORMS:
        score += 5
        details.append(f"Platform {signal.platform} (+5)")

    score = max(0, min(100, score))
    return QualityAssessment(score=score, level=quality_level(score), details=tuple(details))
