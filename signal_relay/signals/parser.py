"""Turn one raw message into a ParsedSignal.

Stages, first success wins:
    structured     hint text preferred, content as backup
    freeform       content treated as the hint
    keyword-chain  loose substring/regex probes over content + hint
    minimal        symbol and direction unknown, content echoed verbatim
"""

import re
from typing import Optional

from signal_relay.core.logging import signal_logger
from signal_relay.signals.extractor import (
    FieldExtraction,
    extract_fields,
    first_match,
    regex_strategy,
)
from signal_relay.signals.lexicon import (
    UNKNOWN,
    MARKET_PRICE,
    MARKET_PRICE_LITERAL,
    SPOT,
    DIRECTIONS,
    KEYWORD_CHAIN_DIRECTIONS,
)
from signal_relay.signals.models import RawMessage, ParsedSignal

STRUCTURED = "structured"
FREEFORM = "freeform"
KEYWORD_CHAIN = "keyword-chain"
MINIMAL = "minimal"

TRADE_TYPE_SPOT = "spot"
TRADE_TYPE_CONTRACT = "contract"


def _is_blank(text: Optional[str]) -> bool:
    return text is None or str(text).strip() == ""


def build_original_link(message: RawMessage) -> str:
    """Reconstruct a link to the source message, or "" when ids are missing."""
    if not (message.platform and message.channel_id and message.message_id):
        return ""
    platform = message.platform.lower()
    if platform == "discord":
        guild = message.guild_id or "@me"
        return f"https://discord.com/channels/{guild}/{message.channel_id}/{message.message_id}"
    if platform == "kook":
        return f"https://www.kookapp.cn/app/channels/{message.channel_id}/messages/{message.message_id}"
    return f"{message.platform}://channel/{message.channel_id}/message/{message.message_id}"


def _strip_quote(value: str) -> Optional[str]:
    value = value.upper()
    for quote in ("/USDT", "USDT", "/USD"):
        if value.endswith(quote) and len(value) > len(quote):
            value = value[:-len(quote)]
            break
    return value if re.search(r"[A-Z]", value) else None


_chain_symbol = (
    regex_strategy(r"币种\s*[:：]\s*[#$]?([A-Za-z0-9]{1,10})", transform=_strip_quote),
    regex_strategy(r"[#$]([A-Za-z][A-Za-z0-9]{0,9})", transform=_strip_quote),
    regex_strategy(r"(?<![A-Za-z0-9])([A-Z]{2,10}(?:/USDT|USDT|/USD)?)(?![A-Za-z0-9])", transform=_strip_quote),
)
_chain_entry = (
    regex_strategy(rf"入场[价位]*\s*[:：]?\s*([\d.,~\-]*\d[\d.,~\-]*|{MARKET_PRICE_LITERAL})"),
    regex_strategy(r"价格\s*[:：]?\s*([\d.,~\-]*\d[\d.,~\-]*)"),
)
_chain_stop = (regex_strategy(r"止损\s*[:：]?\s*(\d[\d.,]*)"),)
_chain_target = (regex_strategy(r"(?:止盈|目标)\s*[:：]?\s*(\d[\d.,]*)"),)
_chain_leverage = (
    regex_strategy(r"杠杆\s*[:：]?\s*(\d+)\s*倍?", transform=lambda v: f"{v}x"),
    regex_strategy(r"(\d+)\s*倍", transform=lambda v: f"{v}x"),
)
_chain_position = (regex_strategy(r"仓位\s*[:：]?\s*(\d+(?:\.\d+)?)\s*%", transform=lambda v: f"{v}%"),)
_labelled_direction = re.compile(r"方向[ \t\u3000]*[:：][ \t\u3000]*([^\n]+)")


def _chain_direction(text: str) -> Optional[str]:
    labelled = _labelled_direction.search(text)
    scopes = [labelled.group(1)] if labelled else []
    scopes.append(text)
    for scope in scopes:
        lowered = scope.lower()
        for token, direction in KEYWORD_CHAIN_DIRECTIONS:
            if token in lowered:
                return direction
    return None


def keyword_chain(text: str) -> FieldExtraction:
    """Loose last-resort extraction: substring direction plus single-pattern probes."""
    texts = [text]
    direction = _chain_direction(text)
    leverage = first_match(_chain_leverage, texts)

    trade_type = None
    if direction == SPOT or "现货" in text:
        trade_type = TRADE_TYPE_SPOT
    elif leverage or "合约" in text:
        trade_type = TRADE_TYPE_CONTRACT

    return FieldExtraction(
        symbol=first_match(_chain_symbol, texts),
        direction=direction,
        entry_price=first_match(_chain_entry, texts),
        stop_loss=first_match(_chain_stop, texts),
        target_price=first_match(_chain_target, texts),
        leverage=leverage,
        position_size=first_match(_chain_position, texts),
        trade_type=trade_type,
    )


def _base_fields(message: RawMessage) -> dict:
    return dict(
        id=message.id,
        author=message.author_nickname,
        author_avatar=message.author_avatar,
        platform=message.platform,
        channel=message.channel_name,
        channel_id=message.channel_id,
        message_time=message.message_time,
        timestamp=message.timestamp,
        analysis=message.analysis.strip(),
        original_link=build_original_link(message),
        message_content=message.message_content,
    )


def _build(message: RawMessage, fields, strategy: str, source_text: str) -> ParsedSignal:
    direction = fields.direction or UNKNOWN
    if direction not in DIRECTIONS:
        direction = UNKNOWN
    return ParsedSignal(
        symbol=fields.symbol or UNKNOWN,
        direction=direction,
        entry_price=fields.entry_price or MARKET_PRICE,
        stop_loss=fields.stop_loss or UNKNOWN,
        target_price=fields.target_price or UNKNOWN,
        leverage=fields.leverage or UNKNOWN,
        position_size=fields.position_size or UNKNOWN,
        trade_type=fields.trade_type or UNKNOWN,
        original_content=source_text,
        strategy=strategy,
        **_base_fields(message),
    )


def parse_message(message: RawMessage) -> Optional[ParsedSignal]:
    """Parse one channel-filtered message; ``None`` means suppressed."""
    hint = None if _is_blank(message.signal) else message.signal
    content = None if _is_blank(message.message_content) else message.message_content

    if hint is None and content is None:
        signal_logger.signal_suppressed(message.id, "empty message")
        return None

    parsed = None
    if hint is not None:
        fields: FieldExtraction = extract_fields(hint, content)
        if fields.symbol:
            parsed = _build(message, fields, STRUCTURED, hint)
    elif content is not None:
        fields = extract_fields(content, content)
        if fields.symbol:
            parsed = _build(message, fields, FREEFORM, content)

    if parsed is None:
        combined = "\n".join(t for t in (content, hint) if t)
        chain = keyword_chain(combined)
        if chain.symbol:
            parsed = _build(message, chain, KEYWORD_CHAIN, content or hint)

    if parsed is None:
        parsed = ParsedSignal(
            original_content=content or hint,
            strategy=MINIMAL,
            **_base_fields(message),
        )

    signal_logger.signal_parsed(parsed.symbol, parsed.direction, parsed.channel, {
        "message_id": message.id,
        "strategy": parsed.strategy,
    })
    return parsed
