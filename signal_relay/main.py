"""Entrypoint for the KOL signal relay."""

import argparse
import asyncio
import signal
import sys

from signal_relay.core.errors import ConfigError
from signal_relay.core.logging import system_logger
from signal_relay.delivery.dingtalk import DingTalkSink
from signal_relay.ingest.kol_api import KolMessageSource
from signal_relay.runtime.cycle import RelayCycle
from signal_relay.runtime.scheduler import RelayScheduler
from signal_relay.settings import Settings, load_settings
from signal_relay.signals.channel_filter import ChannelFilter
from signal_relay.signals.processor import SignalProcessor
from signal_relay.storage.dedup_store import DedupStore, JsonFileDedupBackend

EXIT_CONFIG_ERROR = 2


def build_cycle(settings: Settings) -> RelayCycle:
    store = DedupStore(JsonFileDedupBackend(settings.dedup_store_path), retain=settings.dedup_retain)
    processor = SignalProcessor(
        channel_filter=ChannelFilter(settings.blocked_channel_ids),
        min_quality_score=settings.min_quality_score,
    )
    return RelayCycle(
        source=KolMessageSource.from_settings(settings),
        sink=DingTalkSink.from_settings(settings),
        store=store,
        processor=processor,
        delivery_interval=settings.delivery_interval_seconds,
        tz_name=settings.display_timezone,
    )


async def run_forever(settings: Settings):
    scheduler = RelayScheduler(build_cycle(settings), settings.schedule_interval_minutes)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; KeyboardInterrupt still works
            pass

    scheduler.start()
    try:
        await stop_event.wait()
    finally:
        scheduler.stop()
        system_logger.info("Relay stopped")


async def run_once(settings: Settings):
    return await build_cycle(settings).run_once()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Relay KOL trading signals to DingTalk")
    parser.add_argument("--once", action="store_true", help="run a single relay cycle and exit")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings().validate()
    except ConfigError as e:
        system_logger.critical(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    system_logger.info("KOL signal relay starting", {
        "python_version": sys.version,
        "api_url": settings.kol_api_url,
        "interval_minutes": settings.schedule_interval_minutes,
        "dingtalk_configured": bool(settings.dingtalk_webhook),
        "blocked_channels": len(settings.blocked_channel_ids),
    })

    if args.once:
        report = asyncio.run(run_once(settings))
        return 0 if report.fetched else 1

    asyncio.run(run_forever(settings))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        system_logger.info("Relay stopped")
    except Exception as e:
        system_logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
