"""
In-memory state of a running bot.

Everything here lives for the lifetime of the process only and resets on
restart. A single BotState instance is created at startup and handed to
the pipeline, the control commands and the status server.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from opportunity_bot.config import AppConfig
from opportunity_bot.models import Category

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DedupStore:
    """
    Identifiers of opportunities that were already posted.

    The store only grows; nothing is ever removed.
    """

    def __init__(self, identifiers: Iterable[str] = ()):
        self._seen: set[str] = set(identifiers)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, identifier: str) -> None:
        """Record an identifier as posted."""
        self._seen.add(identifier)


@dataclass
class Destination:
    """
    A channel that receives posts.

    Attributes
    ----------
    chat_id : str
        Telegram chat ID or @username.
    name : str
        Display name.
    active : bool
        Whether posts are currently sent here.
    created_at : datetime
        When the destination was registered.
    total_posts : int
        Number of successful sends to this channel.
    """

    chat_id: str
    name: str
    active: bool = True
    created_at: datetime = field(default_factory=_now)
    total_posts: int = 0


@dataclass
class OperationalState:
    """Pause flag controlling whether scans may run."""

    paused: bool = False
    paused_at: datetime | None = None
    resumed_at: datetime | None = None

    def pause(self) -> None:
        self.paused = True
        self.paused_at = _now()

    def resume(self) -> None:
        self.paused = False
        self.resumed_at = _now()


@dataclass
class Stats:
    """
    Posting counters.

    Attributes
    ----------
    total_posted : int
        Opportunities processed since startup.
    per_category : dict[Category, int]
        Opportunities processed per category.
    last_scan_at : datetime | None
        When the last scan finished.
    scans_today : int
        Scans finished on the calendar day of ``last_scan_at``.
    """

    total_posted: int = 0
    per_category: dict[Category, int] = field(
        default_factory=lambda: {category: 0 for category in Category}
    )
    last_scan_at: datetime | None = None
    scans_today: int = 0

    def record_post(self, category: Category) -> None:
        self.per_category[category] = self.per_category.get(category, 0) + 1
        self.total_posted += 1

    def record_scan(self, finished_at: datetime | None = None) -> None:
        finished_at = finished_at or _now()
        if self.last_scan_at is None or self.last_scan_at.date() != finished_at.date():
            self.scans_today = 0
        self.last_scan_at = finished_at
        self.scans_today += 1


class BotState:
    """
    Owner of all mutable runtime state.

    Attributes
    ----------
    seen : DedupStore
        Identifiers already posted.
    stats : Stats
        Posting counters.
    operational : OperationalState
        Pause flag.
    destinations : list[Destination]
        Channels to post to, primary first.
    started_at : datetime
        Process start time, used for uptime.
    """

    def __init__(self, destinations: Iterable[Destination] = ()):
        self.seen = DedupStore()
        self.stats = Stats()
        self.operational = OperationalState()
        self.destinations: list[Destination] = list(destinations)
        self.started_at = _now()
        self._scan_running = False

    @classmethod
    def from_config(cls, config: AppConfig) -> "BotState":
        """Create state with the destinations declared in the configuration."""
        destinations = [Destination(chat_id=config.telegram.chat_id, name="Main Channel")]
        for channel in config.telegram.channels:
            destinations.append(
                Destination(chat_id=channel.chat_id, name=channel.name, active=channel.active)
            )
        logger.debug("Registered %d destination(s)", len(destinations))
        return cls(destinations)

    @property
    def active_destinations(self) -> list[Destination]:
        return [d for d in self.destinations if d.active]

    @property
    def scan_running(self) -> bool:
        return self._scan_running

    def try_begin_scan(self) -> bool:
        """
        Claim the scan slot.

        Returns
        -------
        bool
            False if another scan already holds it.
        """
        if self._scan_running:
            return False
        self._scan_running = True
        return True

    def end_scan(self) -> None:
        self._scan_running = False

    def set_destination_active(self, chat_id: str, active: bool) -> bool:
        """
        Enable or disable a destination.

        Returns
        -------
        bool
            True if a destination with ``chat_id`` exists.
        """
        for destination in self.destinations:
            if destination.chat_id == chat_id:
                destination.active = active
                logger.info(
                    "Destination '%s' %s",
                    destination.name,
                    "activated" if active else "deactivated",
                )
                return True
        return False

    def uptime_seconds(self, now: datetime | None = None) -> int:
        now = now or _now()
        return int((now - self.started_at).total_seconds())
