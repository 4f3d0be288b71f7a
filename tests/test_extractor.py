import pytest

from signal_relay.signals.extractor import (
    extract_fields,
    extract_symbol,
    extract_direction,
    first_match,
    regex_strategy,
    normalize_direction,
    ENTRY_STRATEGIES,
    LEVERAGE_STRATEGIES,
    STOP_STRATEGIES,
    TARGET_STRATEGIES,
)
from signal_relay.signals.lexicon import DIRECTION_MAP, LONG, SHORT


def test_first_match_short_circuits_in_strategy_order():
    calls = []

    def a(text):
        calls.append(("a", text))
        return None

    def b(text):
        calls.append(("b", text))
        return "hit"

    def c(text):
        calls.append(("c", text))
        return "never"

    assert first_match([a, b, c], ["hint", "content"]) == "hit"
    assert calls == [("a", "hint"), ("a", "content"), ("b", "hint")]


def test_first_match_skips_blank_sources():
    strategy = regex_strategy(r"(\d+)")
    assert first_match([strategy], [None, "   ", "abc 42"]) == "42"
    assert first_match([strategy], [None, ""]) is None


class TestSymbol:

    def test_label(self):
        assert extract_symbol("币种：BTC\n方向：多头") == "BTC"
        assert extract_symbol("交易对: eth/usdt") == "ETH"

    def test_dollar_pair_before_bare_dollar(self):
        assert extract_symbol("$sol/USDT looks ready, $ETH later") == "SOL"

    def test_bare_dollar(self):
        assert extract_symbol("$ETH looking strong, long") == "ETH"

    def test_dollar_price_is_not_a_symbol(self):
        assert extract_symbol("tp $62000 then $ARB") == "ARB"

    def test_hashtag(self):
        assert extract_symbol("#PEPE 冲") == "PEPE"

    def test_token_next_to_direction_keyword(self):
        assert extract_symbol("看好 WLD 多头") == "WLD"
        assert extract_symbol("NEWCOIN long now") == "NEWCOIN"

    def test_known_ticker_fallback(self):
        assert extract_symbol("大饼今天 btc 怎么看") == "BTC"

    def test_known_ticker_needs_boundaries(self):
        # "something" contains no standalone ticker
        assert extract_symbol("something happened") is None

    def test_no_symbol(self):
        assert extract_symbol("今天行情不好") is None


class TestDirection:

    @pytest.mark.parametrize("token", sorted(DIRECTION_MAP))
    def test_every_mapped_token_is_long_or_short(self, token):
        assert DIRECTION_MAP[token] in (LONG, SHORT)

    def test_label_uses_table(self):
        assert extract_direction("方向：空头") == SHORT
        assert extract_direction("立场: 做多") == LONG

    def test_label_spot_and_close(self):
        assert normalize_direction("现货") == "spot"
        assert normalize_direction("平仓") == "close"

    def test_unmapped_label_is_not_passed_through(self):
        assert normalize_direction("观望") is None

    def test_english_words_need_boundaries(self):
        assert extract_direction("update soon") is None
        assert extract_direction("going LONG here") == LONG

    def test_side_and_glyph(self):
        assert extract_direction("看下方支撑") == SHORT
        assert extract_direction("BTC ⬆") == LONG
        assert extract_direction("ETH ↓") == SHORT


class TestNumericFields:

    def test_entry_label(self):
        assert first_match(ENTRY_STRATEGIES, ["入场：60000"]) == "60000"

    def test_entry_english(self):
        assert first_match(ENTRY_STRATEGIES, ["Entry: 1.25"]) == "1.25"

    def test_entry_market_literal(self):
        assert first_match(ENTRY_STRATEGIES, ["市价短多"]) == "市价"

    def test_entry_number_before_keyword(self):
        assert first_match(ENTRY_STRATEGIES, ["3100进场"]) == "3100"

    def test_stop_variants(self):
        assert first_match(STOP_STRATEGIES, ["止损价：59000"]) == "59000"
        assert first_match(STOP_STRATEGIES, ["Stop Loss: 58000"]) == "58000"
        assert first_match(STOP_STRATEGIES, ["SL 57000"]) == "57000"

    def test_target_variants(self):
        assert first_match(TARGET_STRATEGIES, ["目标价：62000"]) == "62000"
        assert first_match(TARGET_STRATEGIES, ["TP1: 63000"]) == "63000"
        assert first_match(TARGET_STRATEGIES, ["止盈 64000"]) == "64000"

    def test_leverage_variants(self):
        assert first_match(LEVERAGE_STRATEGIES, ["杠杆：10"]) == "10"
        assert first_match(LEVERAGE_STRATEGIES, ["Leverage: 20x"]) == "20"
        assert first_match(LEVERAGE_STRATEGIES, ["开 25X"]) == "25"
        assert first_match(LEVERAGE_STRATEGIES, ["5倍"]) == "5"

    def test_hex_is_not_leverage(self):
        assert first_match(LEVERAGE_STRATEGIES, ["contract 0x1234ab"]) is None


def test_extract_fields_prefers_hint_over_content():
    hint = "币种：BTC\n方向：多头\n入场：60000"
    content = "$ETH short, entry: 3000"
    fields = extract_fields(hint, content)
    assert fields.symbol == "BTC"
    assert fields.direction == LONG
    assert fields.entry_price == "60000"
    assert fields.stop_loss is None


def test_labels_sharing_one_line():
    fields = extract_fields("币种：SOL 方向：做空 入场：150 止损：160；目标：120", None)
    assert fields.symbol == "SOL"
    assert fields.direction == SHORT
    assert fields.entry_price == "150"
    assert fields.stop_loss == "160"
    assert fields.target_price == "120"


def test_extract_fields_falls_back_to_content():
    fields = extract_fields("币种：BTC", "止损 59000 目标 62000")
    assert fields.stop_loss == "59000"
    assert fields.target_price == "62000"


class TestEmptyLabels:

    def test_empty_stop_does_not_take_next_line(self):
        fields = extract_fields("币种：BTC\n方向：多头\n止损：\n目标：65000", None)
        assert fields.stop_loss is None
        assert fields.target_price == "65000"

    def test_empty_entry_does_not_take_next_line(self):
        fields = extract_fields("币种：BTC\n入场：\n止损：58000", None)
        assert fields.entry_price is None
        assert fields.stop_loss == "58000"

    def test_value_that_is_another_label_is_rejected(self):
        assert first_match(STOP_STRATEGIES, ["止损： 目标：65000"]) is None

    def test_full_width_space_after_colon(self):
        assert first_match(STOP_STRATEGIES, ["止损：　59000"]) == "59000"
