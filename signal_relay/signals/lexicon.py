"""Static bilingual keyword tables shared by the extractor and parser.

Everything here is immutable module data, loaded once.
"""

from types import MappingProxyType

UNKNOWN = "unknown"
MARKET_PRICE = "market price"

# Literal the communities use for "enter at market"; a value in its own right.
MARKET_PRICE_LITERAL = "市价"

LONG = "long"
SHORT = "short"
SPOT = "spot"
CLOSE = "close"
DIRECTIONS = frozenset({LONG, SHORT, SPOT, CLOSE, UNKNOWN})

DIRECTION_MAP = MappingProxyType({
    "多头": LONG,
    "long": LONG,
    "做多": LONG,
    "看涨": LONG,
    "多单": LONG,
    "buy": LONG,
    "up": LONG,
    "^": LONG,
    "⬆": LONG,
    "上方": LONG,
    "上": LONG,
    "涨": LONG,
    "空头": SHORT,
    "short": SHORT,
    "做空": SHORT,
    "看跌": SHORT,
    "空单": SHORT,
    "sell": SHORT,
    "down": SHORT,
    "↓": SHORT,
    "⬇": SHORT,
    "下方": SHORT,
    "下": SHORT,
    "跌": SHORT,
})

# Reachable from labelled values and the keyword chain only.
SPOT_CLOSE_MAP = MappingProxyType({
    "现货": SPOT,
    "spot": SPOT,
    "平仓": CLOSE,
    "close": CLOSE,
})

# Ordered (token, direction) probes for the keyword chain. Long before short.
KEYWORD_CHAIN_DIRECTIONS = (
    ("做多", LONG),
    ("多单", LONG),
    ("long", LONG),
    ("做空", SHORT),
    ("空单", SHORT),
    ("short", SHORT),
    ("现货", SPOT),
    ("平仓", CLOSE),
)

KNOWN_SYMBOLS = (
    "BTC", "ETH", "SOL", "BNB", "ADA", "DOGE", "XRP", "DOT", "UNI", "LTC",
    "MATIC", "AVAX", "SHIB", "TRX", "LINK", "XLM", "TON", "NEAR", "ICP", "BSV",
    "EOS", "XMR", "DASH", "ZEC", "ETC", "BCH", "FIL", "ALGO", "ATOM", "MANA",
    "SAND", "AXS", "CHZ", "FTM", "TRB", "AAVE", "MKR", "COMP", "SNX", "DYDX",
    "CRV", "APE", "APT", "INJ", "RDNT", "JTO", "PYTH", "TIA", "FET", "RNDR",
    "WIF", "ORBS", "PEPE", "FLOKI", "ELON", "BONK", "HNT", "IMX", "MINA", "TOMO",
    "REN", "GRT", "OMG", "ZRX", "KNC", "BAT", "NEO", "QTUM", "ONT", "IOTA",
    "THETA", "VET", "EGLD", "KSM", "DODO", "RUNE", "CRPT", "SXP", "AKRO", "CTXC",
    "DENT", "REEF", "SUSHI", "YFI", "1INCH", "CELR", "STX", "RVN", "DGB", "HBAR",
    "XEM", "HOT", "LSK", "ARDR", "SC", "ZIL", "STRK", "BLUR", "SEI", "OP",
    "ARB", "BASE", "ZKS", "BNX", "AGIX", "LOOM", "CHR", "PERP", "GALA", "AXL",
    "OCEAN", "PIXEL", "STMX", "HFT", "CHESS", "HIFI", "SYS", "XNO", "AR", "FLUX",
    "TURBO", "NTRN", "ZETA", "ALT", "SAGA", "JUP", "WLD",
)
KNOWN_SYMBOL_SET = frozenset(KNOWN_SYMBOLS)

# Field labels, longest first so "目标价：" is not read as "目标：价".
SYMBOL_LABELS = ("交易对", "币种")
DIRECTION_LABELS = ("方向", "多空", "立场")
ENTRY_LABELS = ("入场价", "进场价", "入场", "进场")
STOP_LABELS = ("止损价", "止损点", "止损")
TARGET_LABELS = ("目标价", "目标点", "目标", "止盈")
LEVERAGE_LABELS = ("杠杆", "倍率")

PREMIUM_PLATFORMS = frozenset({"discord", "kook"})
