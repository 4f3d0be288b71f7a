import asyncio
from dataclasses import dataclass, field, asdict
from typing import Dict, List

from signal_relay.core.errors import SourceError
from signal_relay.core.logging import system_logger
from signal_relay.signals.formatting import format_signal_for_push, DEFAULT_TIMEZONE
from signal_relay.signals.processor import SignalProcessor, BatchStats
from signal_relay.storage.dedup_store import DedupStore


@dataclass
class CycleReport:
    fetched: bool = False
    batch: BatchStats = field(default_factory=BatchStats)
    delivered: int = 0
    delivery_failed: int = 0
    evicted: int = 0
    delivered_ids: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return asdict(self)


class RelayCycle:
    """
    One relay run: fetch, process, deliver, remember.

    An id is marked seen only after the sink accepted it, so a failed push is
    retried on the next run. The reverse gap stays open: if marking fails after
    a successful push, that signal may be delivered twice.
    """

    def __init__(self, source, sink, store: DedupStore, processor: SignalProcessor = None,
                 delivery_interval: float = 1.0, tz_name: str = DEFAULT_TIMEZONE):
        self.source = source
        self.sink = sink
        self.store = store
        self.processor = processor or SignalProcessor()
        self.delivery_interval = delivery_interval
        self.tz_name = tz_name

    async def run_once(self) -> CycleReport:
        report = CycleReport()
        system_logger.info("Relay cycle started")

        try:
            messages = await self.source.fetch_messages()
        except SourceError as e:
            system_logger.error("Relay cycle aborted: source unavailable", {"error": str(e)})
            return report
        report.fetched = True

        self.store.load()
        result = self.processor.process_batch(messages, self.store)
        report.batch = result.stats

        for index, signal in enumerate(result.signals):
            if index and self.delivery_interval > 0:
                await asyncio.sleep(self.delivery_interval)
            record = format_signal_for_push(signal, self.tz_name)
            if await self.sink.send(record):
                self.store.mark_seen(signal.id)
                report.delivered += 1
                report.delivered_ids.append(signal.id)
            else:
                report.delivery_failed += 1

        report.evicted = self.store.evict_oldest()
        system_logger.info("Relay cycle finished", {
            "received": report.batch.received,
            "emitted": report.batch.emitted,
            "delivered": report.delivered,
            "delivery_failed": report.delivery_failed,
            "evicted": report.evicted,
        })
        return report
