"""Source adapters — one per activity stream."""

from typing import List

from unified_inbox.adapters.sources.announcement import AnnouncementAdapter
from unified_inbox.adapters.sources.base import BaseSourceAdapter
from unified_inbox.adapters.sources.direct_message import DirectMessageAdapter
from unified_inbox.adapters.sources.system_alert import SystemAlertAdapter
from unified_inbox.adapters.sources.team_chat import TeamChatAdapter
from unified_inbox.adapters.sources.ticket_thread import TicketThreadAdapter


def default_adapters(store, preview_chars: int = 80, clock=None) -> List[BaseSourceAdapter]:
    """All five adapters over one shared record store."""
    return [
        DirectMessageAdapter(store, preview_chars, clock),
        TeamChatAdapter(store, preview_chars, clock),
        AnnouncementAdapter(store, preview_chars, clock),
        SystemAlertAdapter(store, preview_chars, clock),
        TicketThreadAdapter(store, preview_chars, clock),
    ]


__all__ = [
    "AnnouncementAdapter",
    "BaseSourceAdapter",
    "DirectMessageAdapter",
    "SystemAlertAdapter",
    "TeamChatAdapter",
    "TicketThreadAdapter",
    "default_adapters",
]
