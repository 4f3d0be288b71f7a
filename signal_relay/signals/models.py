import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from signal_relay.signals.lexicon import UNKNOWN, MARKET_PRICE

# Values above this are epoch millis; positive values at or below are seconds.
MILLIS_THRESHOLD = 1e12


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if value.strip() else None


def normalize_timestamp_ms(raw: Any, now_ms: Optional[int] = None) -> int:
    """Disambiguate a seconds-or-millis timestamp into epoch millis.

    Missing or non-numeric input falls back to the current time.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if raw is None or isinstance(raw, bool):
        return now_ms
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return now_ms
    if value != value:  # NaN
        return now_ms
    if value > MILLIS_THRESHOLD:
        return int(value)
    if value > 0:
        return int(value * 1000)
    return now_ms


@dataclass(frozen=True)
class RawMessage:
    id: str
    platform: Optional[str] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    channel_name: str = ""
    message_id: Optional[str] = None
    author_nickname: str = ""
    author_avatar: str = ""
    message_content: str = ""
    signal: Optional[str] = None
    analysis: str = ""
    timestamp: Any = None
    message_time: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RawMessage":
        """Build from one record of the frontend-messages API."""
        if not isinstance(payload, dict):
            raise ValueError(f"message record must be an object, got {type(payload).__name__}")
        msg_id = payload.get("id")
        if msg_id is None or str(msg_id).strip() == "":
            raise ValueError("message record has no id")
        return cls(
            id=str(msg_id),
            platform=_opt_str(payload.get("platform")),
            guild_id=_opt_str(payload.get("guild_id")),
            channel_id=_opt_str(payload.get("channel_id")),
            channel_name=payload.get("channel_name") or "",
            message_id=_opt_str(payload.get("message_id")),
            author_nickname=payload.get("author_nickname") or "",
            author_avatar=payload.get("author_avatar") or "",
            message_content=str(payload.get("message_content") or ""),
            signal=None if payload.get("signal") is None else str(payload["signal"]),
            analysis=str(payload.get("analysis") or ""),
            timestamp=payload.get("timestamp"),
            message_time=payload.get("message_time") or "",
        )


@dataclass(frozen=True)
class QualityAssessment:
    score: int
    level: str
    details: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedSignal:
    id: str
    author: str = ""
    author_avatar: str = ""
    platform: Optional[str] = None
    channel: str = ""
    channel_id: Optional[str] = None
    message_time: str = ""
    timestamp: Any = None
    symbol: str = UNKNOWN
    direction: str = UNKNOWN
    entry_price: str = MARKET_PRICE
    stop_loss: str = UNKNOWN
    target_price: str = UNKNOWN
    leverage: str = UNKNOWN
    position_size: str = UNKNOWN
    trade_type: str = UNKNOWN
    analysis: str = ""
    original_content: str = ""
    original_link: str = ""
    message_content: str = ""
    strategy: str = ""
    quality: Optional[QualityAssessment] = None

    def __post_init__(self):
        if not self.symbol:
            raise ValueError("symbol must be a ticker or 'unknown', never empty")

    def with_quality(self, assessment: QualityAssessment) -> "ParsedSignal":
        return replace(self, quality=assessment)

    @property
    def timestamp_ms(self) -> int:
        return normalize_timestamp_ms(self.timestamp)
