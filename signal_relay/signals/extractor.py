"""Per-field extraction strategies.

A strategy is a pure ``(text) -> Optional[str]``: a string means the field was
found, ``None`` means it was not. ``first_match`` walks a field's strategies in
order and tries each against the text sources in priority order (structured
hint first, free-form content second). Nothing in this module produces
placeholder values; callers decide what a miss looks like.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from signal_relay.core.logging import signal_logger
from signal_relay.signals.lexicon import (
    DIRECTION_MAP,
    SPOT_CLOSE_MAP,
    KNOWN_SYMBOLS,
    MARKET_PRICE_LITERAL,
    SYMBOL_LABELS,
    DIRECTION_LABELS,
    ENTRY_LABELS,
    STOP_LABELS,
    TARGET_LABELS,
    LEVERAGE_LABELS,
)

Strategy = Callable[[str], Optional[str]]

# ASCII-only boundaries; \b treats CJK characters as word characters.
_NOT_ALNUM_BEFORE = r"(?<![A-Za-z0-9])"
_NOT_ALNUM_AFTER = r"(?![A-Za-z0-9])"
# Spaces and tabs only, so a label's value stays on the label's line.
_INLINE_SPACE = r"[ \t\u3000]*"
_LEADING_LABEL = re.compile(r"[^\s\d:：][^\s:：]*[:：]")


def regex_strategy(pattern: str, flags: int = 0, group: int = 1,
                   transform: Optional[Callable[[str], Optional[str]]] = None) -> Strategy:
    compiled = re.compile(pattern, flags)

    def strategy(text: str) -> Optional[str]:
        # Later matches get a chance when the transform rejects an earlier one.
        for m in compiled.finditer(text):
            value = m.group(group).strip()
            if transform is not None:
                value = transform(value)
            if value:
                return value
        return None

    strategy.pattern = compiled
    return strategy


def literal_strategy(pattern: str, value: str, flags: int = 0) -> Strategy:
    compiled = re.compile(pattern, flags)

    def strategy(text: str) -> Optional[str]:
        return value if compiled.search(text) else None

    strategy.pattern = compiled
    return strategy


def label_strategy(labels: Sequence[str],
                   transform: Optional[Callable[[str], Optional[str]]] = None) -> Strategy:
    """Match ``<label>：value`` (full- or half-width colon).

    The value runs to end of line, or up to the next ``label：`` when several
    fields share one line. An empty label never borrows the next line, and a
    value that is itself another ``label：`` counts as not found.
    """
    alternation = "|".join(re.escape(label) for label in labels)

    def accept(value: str) -> Optional[str]:
        if _LEADING_LABEL.match(value):
            return None
        return transform(value) if transform is not None else value

    return regex_strategy(
        rf"(?:{alternation}){_INLINE_SPACE}[:：]{_INLINE_SPACE}([^\n]+?)(?=\s+[^\s:：]+[:：]|[\n，；;]|$)",
        transform=accept,
    )


def first_match(strategies: Iterable[Strategy], texts: Sequence[Optional[str]]) -> Optional[str]:
    """Return the first value any strategy finds, trying texts in priority order."""
    sources = [t for t in texts if t and t.strip()]
    for strategy in strategies:
        for text in sources:
            value = strategy(text)
            if value:
                return value
    return None


def _ticker(value: str) -> Optional[str]:
    value = value.strip().upper()
    if not value or not re.search(r"[A-Z]", value):
        return None
    return value


def _labelled_ticker(value: str) -> Optional[str]:
    m = re.search(r"[#$]?([A-Za-z0-9]{1,15})", value)
    return _ticker(m.group(1)) if m else None


def _numeric(value: str) -> Optional[str]:
    value = value.strip()
    return value if re.search(r"\d", value) else None


def _map_direction(value: str) -> Optional[str]:
    return DIRECTION_MAP.get(value.strip().lower())


_DIRECTION_WORD = (
    r"(多头|空头|做多|做空|看涨|看跌|多单|空单|"
    r"(?<![A-Za-z])(?:long|short|buy|sell|up|down)(?![A-Za-z]))"
)
_DIRECTION_SIDE = r"(上|下|涨|跌)方"
_DIRECTION_GLYPH = r"(\^|↓|⬆|⬇)"

_direction_content_strategies = (
    regex_strategy(_DIRECTION_WORD, re.IGNORECASE, transform=_map_direction),
    regex_strategy(_DIRECTION_SIDE, transform=_map_direction),
    regex_strategy(_DIRECTION_GLYPH, transform=_map_direction),
)


def normalize_direction(value: str) -> Optional[str]:
    """Map a labelled direction value onto the closed direction set.

    Unrecognized values are logged and treated as not found.
    """
    token = value.strip().lower()
    if token in DIRECTION_MAP:
        return DIRECTION_MAP[token]
    if token in SPOT_CLOSE_MAP:
        return SPOT_CLOSE_MAP[token]
    found = first_match(_direction_content_strategies, [value])
    if found:
        return found
    for keyword, direction in SPOT_CLOSE_MAP.items():
        if keyword in token:
            return direction
    signal_logger.warning("Unmapped direction token", {"token": value.strip()})
    return None


_known_symbols = "|".join(re.escape(s) for s in sorted(KNOWN_SYMBOLS, key=len, reverse=True))

SYMBOL_STRATEGIES = (
    label_strategy(SYMBOL_LABELS, transform=_labelled_ticker),
    regex_strategy(r"\$([A-Za-z0-9]+)/[A-Za-z0-9]+", transform=_ticker),
    regex_strategy(r"\$([A-Za-z0-9]+)" + _NOT_ALNUM_AFTER, transform=_ticker),
    regex_strategy(r"#([A-Za-z0-9]+)(?=\s|$)", transform=_ticker),
    regex_strategy(
        _NOT_ALNUM_BEFORE + r"([A-Z][A-Z0-9]{1,9})\s*(?:多头|空头|(?i:long|short)(?![A-Za-z]))",
        transform=_ticker,
    ),
    regex_strategy(
        _NOT_ALNUM_BEFORE + rf"({_known_symbols})" + _NOT_ALNUM_AFTER,
        re.IGNORECASE,
        transform=_ticker,
    ),
)

DIRECTION_STRATEGIES = (
    label_strategy(DIRECTION_LABELS, transform=normalize_direction),
) + _direction_content_strategies

ENTRY_STRATEGIES = (
    label_strategy(ENTRY_LABELS),
    regex_strategy(r"入场点\s*[:：]?\s*([\d.$]+)", transform=_numeric),
    regex_strategy(r"(?<![A-Za-z])Entry(?:\s*price)?\s*[:：]?\s*([\d.$]+)", re.IGNORECASE, transform=_numeric),
    literal_strategy(MARKET_PRICE_LITERAL, MARKET_PRICE_LITERAL),
    regex_strategy(r"([\d.]+)\s*(?:入场|进场|建仓)", transform=_numeric),
    regex_strategy(r"(?:建仓|买入|卖出)\s*[:：]?\s*([\d.]+)", transform=_numeric),
)

STOP_STRATEGIES = (
    label_strategy(STOP_LABELS),
    regex_strategy(r"止损设置\s*[:：]?\s*([\d.$]+)", transform=_numeric),
    regex_strategy(r"(?<![A-Za-z])Stop[\s-]*Loss\s*[:：]?\s*([\d.$]+)", re.IGNORECASE, transform=_numeric),
    regex_strategy(r"(?<![A-Za-z])SL\s*[:：]?\s*([\d.$]+)", re.IGNORECASE, transform=_numeric),
    regex_strategy(r"止损\s*[:：]?\s*([\d.$]+)", transform=_numeric),
)

TARGET_STRATEGIES = (
    label_strategy(TARGET_LABELS),
    regex_strategy(r"(?:目标位|目标|止盈)\s*[:：]?\s*([\d.$]+)", transform=_numeric),
    regex_strategy(r"(?<![A-Za-z])Target\s*[:：]?\s*([\d.$]+)", re.IGNORECASE, transform=_numeric),
    regex_strategy(r"(?<![A-Za-z])TP\d?\s*[:：]?\s*([\d.$]+)", re.IGNORECASE, transform=_numeric),
)

LEVERAGE_STRATEGIES = (
    label_strategy(LEVERAGE_LABELS),
    regex_strategy(r"杠杆\s*[:：]?\s*(\d+)"),
    regex_strategy(r"(?<![A-Za-z])Leverage\s*[:：]?\s*(\d+)", re.IGNORECASE),
    regex_strategy(r"(?<![A-Za-z0-9.])(\d+)\s*[Xx]" + _NOT_ALNUM_AFTER),
    regex_strategy(r"(\d+)\s*倍"),
)


@dataclass(frozen=True)
class FieldExtraction:
    """Raw extraction result; ``None`` marks a field that was not found."""
    symbol: Optional[str] = None
    direction: Optional[str] = None
    entry_price: Optional[str] = None
    stop_loss: Optional[str] = None
    target_price: Optional[str] = None
    leverage: Optional[str] = None
    position_size: Optional[str] = None
    trade_type: Optional[str] = None


def extract_symbol(*texts: Optional[str]) -> Optional[str]:
    return first_match(SYMBOL_STRATEGIES, texts)


def extract_direction(*texts: Optional[str]) -> Optional[str]:
    return first_match(DIRECTION_STRATEGIES, texts)


def extract_fields(hint: Optional[str], content: Optional[str]) -> FieldExtraction:
    """Run every field's strategies over the hint, then the content."""
    texts = (hint, content) if hint != content else (hint,)
    return FieldExtraction(
        symbol=first_match(SYMBOL_STRATEGIES, texts),
        direction=first_match(DIRECTION_STRATEGIES, texts),
        entry_price=first_match(ENTRY_STRATEGIES, texts),
        stop_loss=first_match(STOP_STRATEGIES, texts),
        target_price=first_match(TARGET_STRATEGIES, texts),
        leverage=first_match(LEVERAGE_STRATEGIES, texts),
    )
