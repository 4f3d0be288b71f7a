from dataclasses import dataclass, field, asdict
from typing import Iterable, List, Optional, Union, Dict, Any

from signal_relay.core.logging import signal_logger
from signal_relay.signals.channel_filter import ChannelFilter
from signal_relay.signals.filters import filter_high_quality
from signal_relay.signals.models import RawMessage, ParsedSignal
from signal_relay.signals.parser import parse_message
from signal_relay.signals.quality import evaluate
from signal_relay.storage.dedup_store import DedupStore

MessageLike = Union[RawMessage, Dict[str, Any]]


@dataclass
class BatchStats:
    received: int = 0
    blocked: int = 0
    suppressed: int = 0
    failed: int = 0
    low_quality: int = 0
    duplicates: int = 0
    emitted: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class BatchResult:
    signals: List[ParsedSignal] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)


class SignalProcessor:
    """Filter, parse, score and dedup one batch of raw messages."""

    def __init__(self, channel_filter: Optional[ChannelFilter] = None, min_quality_score: int = 0):
        self.channel_filter = channel_filter or ChannelFilter()
        self.min_quality_score = min_quality_score

    def extract_signals(self, messages: Iterable[MessageLike],
                        stats: Optional[BatchStats] = None) -> List[ParsedSignal]:
        """Parse and score every allowed message. One bad message never aborts the batch."""
        stats = stats if stats is not None else BatchStats()
        signals: List[ParsedSignal] = []

        for item in messages:
            stats.received += 1
            try:
                message = item if isinstance(item, RawMessage) else RawMessage.from_payload(item)
                if not self.channel_filter.is_allowed(message):
                    stats.blocked += 1
                    continue

                parsed = parse_message(message)
                if parsed is None:
                    stats.suppressed += 1
                    continue

                signals.append(parsed.with_quality(evaluate(parsed)))
            except Exception as e:
                stats.failed += 1
                signal_logger.error("Failed to process message", {
                    "message_id": item.get("id") if isinstance(item, dict) else getattr(item, "id", None),
                    "error": str(e),
                }, exc_info=True)

        kept = filter_high_quality(signals, self.min_quality_score)
        if len(kept) < len(signals):
            stats.low_quality += len(signals) - len(kept)
            signal_logger.debug("Signals below quality threshold", {
                "dropped": len(signals) - len(kept),
                "min_score": self.min_quality_score,
            })
        return kept

    def filter_new(self, signals: Iterable[ParsedSignal], store: DedupStore,
                   stats: Optional[BatchStats] = None) -> List[ParsedSignal]:
        """Drop signals already delivered, and repeats of the same id within the batch."""
        stats = stats if stats is not None else BatchStats()
        fresh: List[ParsedSignal] = []
        batch_ids = set()
        for signal in signals:
            if signal.id in batch_ids or store.seen(signal.id):
                stats.duplicates += 1
                continue
            batch_ids.add(signal.id)
            fresh.append(signal)
        return fresh

    def process_batch(self, messages: Iterable[MessageLike], store: DedupStore) -> BatchResult:
        stats = BatchStats()
        signals = self.extract_signals(messages, stats)
        fresh = self.filter_new(signals, store, stats)
        # oldest first; stable for equal timestamps
        fresh = sorted(fresh, key=lambda s: s.timestamp_ms)
        stats.emitted = len(fresh)
        signal_logger.batch_summary(stats.as_dict())
        return BatchResult(signals=fresh, stats=stats)
