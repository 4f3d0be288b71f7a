import pytest

from signal_relay.signals.models import ParsedSignal
from signal_relay.signals.parser import parse_message
from signal_relay.signals.quality import evaluate, quality_level, LEVEL_THRESHOLDS

STRUCTURED_HINT = "币种：BTC\n方向：多头\n入场：60000\n止损：59000\n目标：62000\n杠杆：10"


def test_fully_structured_signal_scores_high(make_message):
    signal = parse_message(make_message(signal=STRUCTURED_HINT))
    assessment = evaluate(signal)
    assert assessment.score == 85
    assert assessment.level == "high"


def test_platform_bonus(make_message):
    signal = parse_message(make_message(signal=STRUCTURED_HINT, platform="discord"))
    assessment = evaluate(signal)
    assert assessment.score == 90
    assert assessment.level == "extreme-high"


def test_freeform_signal_scores_low(make_message):
    signal = parse_message(make_message(message_content="$ETH looking strong, long"))
    assessment = evaluate(signal)
    # symbol 15 + direction 15 + no-leverage 5
    assert assessment.score == 35
    assert assessment.level == "low"


def test_minimal_signal(make_message):
    signal = parse_message(make_message(message_content="今天行情不好"))
    assert evaluate(signal).score == 5
    assert evaluate(signal).level == "extreme-low"


def test_analysis_counts():
    without = evaluate(ParsedSignal(id="1", symbol="BTC"))
    with_analysis = evaluate(ParsedSignal(id="1", symbol="BTC", analysis="breakout above range"))
    assert with_analysis.score - without.score == 10


def test_market_price_literal_counts_as_entry():
    assert evaluate(ParsedSignal(id="1", entry_price="市价")).score == 15
    assert evaluate(ParsedSignal(id="1")).score == 5


@pytest.mark.parametrize("leverage,points", [
    ("10", 10),
    ("50x", 10),
    ("75", 5),
    ("0", 5),
    ("unknown", 5),
])
def test_leverage_points(leverage, points):
    assert evaluate(ParsedSignal(id="1", leverage=leverage)).score == points


def test_maximum_score_is_capped():
    signal = ParsedSignal(
        id="1", symbol="BTC", direction="short", entry_price="1", stop_loss="2",
        target_price="0.5", leverage="5", analysis="why", platform="KOOK",
    )
    assessment = evaluate(signal)
    assert assessment.score == 100
    assert assessment.level == "extreme-high"
    assert len(assessment.details) == 8


@pytest.mark.parametrize("score,level", [
    (100, "extreme-high"),
    (90, "extreme-high"),
    (89, "high"),
    (75, "high"),
    (74, "medium"),
    (50, "medium"),
    (49, "low"),
    (30, "low"),
    (29, "extreme-low"),
    (0, "extreme-low"),
])
def test_level_thresholds(score, level):
    assert quality_level(score) == level


def test_level_is_monotonic():
    order = ["extreme-low", "low", "medium", "high", "extreme-high"]
    ranks = [order.index(quality_level(s)) for s in range(0, 101)]
    assert ranks == sorted(ranks)
    assert len(LEVEL_THRESHOLDS) == 4


def test_evaluate_is_deterministic(make_message):
    signal = parse_message(make_message(signal=STRUCTURED_HINT))
    assert evaluate(signal) == evaluate(signal)


def test_empty_label_earns_no_points(make_message):
    signal = parse_message(make_message(signal="币种：BTC\n方向：多头\n止损：\n目标：65000"))
    assert signal.stop_loss == "unknown"
    # symbol 15 + direction 15 + target 20 + no-leverage 5
    assert evaluate(signal).score == 55


def test_empty_entry_falls_back_to_market_price(make_message):
    signal = parse_message(make_message(signal="币种：BTC\n入场：\n止损：58000"))
    assert signal.entry_price == "market price"
    assert signal.stop_loss == "58000"
