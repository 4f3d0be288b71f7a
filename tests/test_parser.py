"""Fallback chain behaviour of the signal parser."""

import pytest

from signal_relay.signals.lexicon import UNKNOWN, MARKET_PRICE, DIRECTIONS
from signal_relay.signals.parser import (
    parse_message,
    build_original_link,
    keyword_chain,
    STRUCTURED,
    FREEFORM,
    KEYWORD_CHAIN,
    MINIMAL,
)

STRUCTURED_HINT = "币种：BTC\n方向：多头\n入场：60000\n止损：59000\n目标：62000\n杠杆：10"


class TestFallbackChain:

    def test_structured_hint(self, make_message):
        signal = parse_message(make_message(signal=STRUCTURED_HINT, message_content="BTC 冲"))
        assert signal.strategy == STRUCTURED
        assert signal.symbol == "BTC"
        assert signal.direction == "long"
        assert signal.entry_price == "60000"
        assert signal.stop_loss == "59000"
        assert signal.target_price == "62000"
        assert signal.leverage == "10"
        assert signal.original_content == STRUCTURED_HINT

    def test_freeform_content(self, make_message):
        signal = parse_message(make_message(message_content="$ETH looking strong, long"))
        assert signal.strategy == FREEFORM
        assert signal.symbol == "ETH"
        assert signal.direction == "long"
        assert signal.entry_price == MARKET_PRICE
        assert signal.stop_loss == UNKNOWN
        assert signal.target_price == UNKNOWN
        assert signal.leverage == UNKNOWN

    def test_hint_without_symbol_uses_content_as_backup(self, make_message):
        signal = parse_message(make_message(signal="方向：空头", message_content="#DOGE 冲冲冲"))
        assert signal.strategy == STRUCTURED
        assert signal.symbol == "DOGE"
        assert signal.direction == "short"

    def test_keyword_chain(self, make_message):
        signal = parse_message(make_message(message_content="#XYZ空单 仓位：20% 杠杆5倍 合约"))
        assert signal.strategy == KEYWORD_CHAIN
        assert signal.symbol == "XYZ"
        assert signal.direction == "short"
        assert signal.leverage == "5x"
        assert signal.position_size == "20%"
        assert signal.trade_type == "contract"

    def test_minimal_record(self, make_message):
        content = "今天行情不好，大家小心"
        signal = parse_message(make_message(message_content=content))
        assert signal.strategy == MINIMAL
        assert signal.symbol == UNKNOWN
        assert signal.direction == UNKNOWN
        assert signal.original_content == content
        assert signal.message_content == content

    @pytest.mark.parametrize("hint,content", [
        (None, ""),
        ("   ", ""),
        ("", "  \n "),
    ])
    def test_blank_message_is_suppressed(self, make_message, hint, content):
        assert parse_message(make_message(signal=hint, message_content=content)) is None

    @pytest.mark.parametrize("content", [
        "$ETH looking strong, long",
        "方向：观望 $SOL",
        "今天行情不好",
        "BTC 平仓",
        "#XYZ空单",
        "random words",
    ])
    def test_invariants_hold(self, make_message, content):
        signal = parse_message(make_message(message_content=content))
        assert signal.symbol != ""
        assert signal.direction in DIRECTIONS

    def test_unmapped_label_does_not_leak(self, make_message):
        signal = parse_message(make_message(signal="币种：SOL\n方向：观望"))
        assert signal.symbol == "SOL"
        assert signal.direction == UNKNOWN


class TestKeywordChain:

    def test_spot(self):
        result = keyword_chain("方向：现货 币种：ARB 入场价：1.2")
        assert result.direction == "spot"
        assert result.symbol == "ARB"
        assert result.entry_price == "1.2"
        assert result.trade_type == "spot"

    def test_quote_suffix_is_stripped(self):
        assert keyword_chain("FOOUSDT 做多").symbol == "FOO"

    def test_close(self):
        assert keyword_chain("ETH 全部平仓").direction == "close"

    def test_nothing_found(self):
        result = keyword_chain("今天休息")
        assert result.symbol is None
        assert result.direction is None
        assert result.trade_type is None


class TestOriginalLink:

    def test_discord(self, make_message):
        message = make_message(platform="discord", guild_id="g1", channel_id="c2", message_id="m3")
        assert build_original_link(message) == "https://discord.com/channels/g1/c2/m3"

    def test_kook(self, make_message):
        message = make_message(platform="kook", channel_id="c2", message_id="m3")
        assert build_original_link(message) == "https://www.kookapp.cn/app/channels/c2/messages/m3"

    def test_other_platform(self, make_message):
        message = make_message(platform="telegram", channel_id="c2", message_id="m3")
        assert build_original_link(message) == "telegram://channel/c2/message/m3"

    @pytest.mark.parametrize("missing", ["platform", "channel_id", "message_id"])
    def test_missing_part_gives_empty_link(self, make_message, missing):
        message = make_message(**{missing: None})
        assert build_original_link(message) == ""

    def test_link_attached_to_signal(self, make_message):
        message = make_message(platform="kook", channel_id="c2", message_id="m3", signal=STRUCTURED_HINT)
        assert parse_message(message).original_link.startswith("https://www.kookapp.cn/")
