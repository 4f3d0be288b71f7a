"""
Channel Filter

Drops messages from blocked source channels before any parse work is spent
on them, so they never show up in quality statistics either.
"""

from typing import Dict, Iterable, Set

from signal_relay.core.logging import signal_logger
from signal_relay.signals.models import RawMessage


def is_allowed(message: RawMessage, blocked_channel_ids: Iterable[str]) -> bool:
    """False iff the message's stringified channel id is blocked."""
    return str(message.channel_id) not in blocked_channel_ids


class ChannelFilter:
    """Blocked-channel check with per-channel counters."""

    def __init__(self, blocked_channel_ids: Iterable = ()):
        self._blocked: Set[str] = {str(c) for c in blocked_channel_ids}
        self._blocked_hits: Dict[str, int] = {}

    @property
    def blocked_channel_ids(self) -> Set[str]:
        return set(self._blocked)

    def block(self, channel_id) -> None:
        self._blocked.add(str(channel_id))

    def unblock(self, channel_id) -> None:
        self._blocked.discard(str(channel_id))

    def is_allowed(self, message: RawMessage) -> bool:
        if is_allowed(message, self._blocked):
            return True
        channel = str(message.channel_id)
        self._blocked_hits[channel] = self._blocked_hits.get(channel, 0) + 1
        signal_logger.debug("Message from blocked channel skipped", {
            "message_id": message.id,
            "channel_id": channel,
            "channel_name": message.channel_name,
        })
        return False

    def get_stats(self) -> Dict:
        return {
            "blocked_channels": len(self._blocked),
            "blocked_messages": sum(self._blocked_hits.values()),
            "blocked_by_channel": dict(self._blocked_hits),
        }
