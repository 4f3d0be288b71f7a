"""Sink-facing signal records and timestamp rendering."""

from datetime import datetime
from typing import Any, Dict, Optional

import pytz

from signal_relay.signals.lexicon import UNKNOWN
from signal_relay.signals.models import ParsedSignal, normalize_timestamp_ms
from signal_relay.signals.quality import evaluate

DEFAULT_TIMEZONE = "Asia/Shanghai"
DISPLAY_FORMAT = "%Y/%m/%d %H:%M:%S"


def render_timestamp(raw: Any, tz_name: str = DEFAULT_TIMEZONE, now_ms: Optional[int] = None) -> str:
    """
    Render a seconds-or-millis timestamp in local display time.

    Args:
        raw: unix seconds or millis; anything missing or non-numeric means now
        tz_name: pytz zone name for display

    Returns:
        Time string like "2024/01/01 08:00:00"
    """
    millis = normalize_timestamp_ms(raw, now_ms)
    tz = pytz.timezone(tz_name)
    dt = datetime.fromtimestamp(millis / 1000, tz=pytz.utc).astimezone(tz)
    return dt.strftime(DISPLAY_FORMAT)


def signal_title(signal: ParsedSignal) -> str:
    author = signal.author or UNKNOWN
    return f"【{author}】{signal.symbol} 交易信号"


def format_signal_for_push(signal: ParsedSignal, tz_name: str = DEFAULT_TIMEZONE) -> Dict[str, Any]:
    """
    Build the outbound record for one signal. Every key is always present.

    Signals that were never scored are scored here.
    """
    quality = signal.quality or evaluate(signal)
    timestamp_ms = normalize_timestamp_ms(signal.timestamp)
    return {
        "id": signal.id,
        "title": signal_title(signal),
        "author": signal.author or UNKNOWN,
        "symbol": signal.symbol,
        "direction": signal.direction,
        "entry_price": signal.entry_price,
        "stop_loss": signal.stop_loss,
        "target_price": signal.target_price,
        "leverage": signal.leverage,
        "position_size": signal.position_size,
        "trade_type": signal.trade_type,
        "analysis": signal.analysis,
        "message_time": render_timestamp(timestamp_ms, tz_name),
        "timestamp_ms": timestamp_ms,
        "channel": signal.channel,
        "platform": signal.platform or "",
        "original_link": signal.original_link,
        "message_content": signal.message_content,
        "quality": quality.score,
        "quality_level": quality.level,
        "quality_details": list(quality.details),
    }
