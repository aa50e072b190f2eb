import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from pydantic import BaseModel
from wordlinks.game.models import date_key
from wordlinks.prompts.messages import pick_message
from wordlinks.terminal.clock import Clock

logger = logging.getLogger(__name__)

MIDNIGHT_MESSAGES = [
    "🌙 Rise and grind! New Links have dropped.",
    "🎯 Fresh Links just landed. Don't disappoint me.",
    "🔥 New Links alert! Time to prove your worth.",
    "⚡ Daily brain teaser is live. Try not to embarrass yourself.",
    "🎪 New Links circus is in town. Step right up!",
    "🚀 Houston, we have new Links. Don't crash and burn.",
    "🎮 Level up time! New Links await your genius.",
    "🧩 Links assembly required. Intellect not included.",
]

REMINDER_MESSAGES = [
    "😴 Still sleeping on today's Links? Wake up, champ!",
    "🏃‍♂️ Links are getting lonely. Show them some love.",
    "🤔 Today's Links called. They miss you terribly.",
    "😏 Avoiding today's Links won't make them disappear.",
    "🙄 Your Links are judging you right now. Just saying.",
    "🤨 Seriously? You're gonna ghost today's Links?",
    "😤 Today's Links are personally offended by your absence.",
    "🫤 Links are collecting dust. This is awkward.",
]


class ScheduledNotification(BaseModel):
    identifier: str              # "midnight_2025-01-14" or "reminder_2025-01-14"
    fire_at: datetime
    body: str


class NotificationScheduler(ABC):
    """
    Local reminders. Fire-and-forget from the game's point of view.
    """

    @abstractmethod
    def cancel_today_reminder(self):
        pass

    @abstractmethod
    def clear_all(self):
        pass

    @abstractmethod
    def schedule_upcoming(self, days: Optional[int] = None):
        pass


class InMemoryNotificationScheduler(NotificationScheduler):
    """
    Keeps a midnight "new puzzle" notice and an afternoon reminder per day.
    """

    def __init__(
        self,
        clock: Clock,
        reminder_hour: int = 15,
        max_scheduled_days: int = 30,
        rng: Optional[random.Random] = None,
    ):
        self.clock = clock
        self.reminder_hour = reminder_hour
        self.max_scheduled_days = max_scheduled_days
        self.rng = rng or random.Random()
        self.pending: Dict[str, ScheduledNotification] = {}
        self._last_body: Dict[str, str] = {}

    def schedule_upcoming(self, days: Optional[int] = None):
        days = min(days or self.max_scheduled_days, self.max_scheduled_days)
        today = self.clock.datetime_now().date()
        added = 0
        for offset in range(days):
            day = today + timedelta(days=offset)
            midnight = datetime.combine(day, datetime.min.time())
            reminder = midnight.replace(hour=self.reminder_hour)
            added += self._add(f"midnight_{date_key(day)}", midnight, "midnight", MIDNIGHT_MESSAGES)
            added += self._add(f"reminder_{date_key(day)}", reminder, "reminder", REMINDER_MESSAGES)
        logger.info(f"Scheduled {added} notifications, {len(self.pending)} pending")

    def _add(self, identifier: str, fire_at: datetime, kind: str, pool: List[str]) -> int:
        if identifier in self.pending or fire_at <= self.clock.datetime_now():
            return 0
        body = pick_message(pool, self._last_body.get(kind), self.rng)
        self._last_body[kind] = body
        self.pending[identifier] = ScheduledNotification(identifier=identifier, fire_at=fire_at, body=body)
        return 1

    def cancel_today_reminder(self):
        identifier = f"reminder_{date_key(self.clock.datetime_now().date())}"
        if self.pending.pop(identifier, None) is not None:
            logger.info("Cancelled today's reminder notification")

    def clear_all(self):
        self.pending.clear()
        logger.info("Cleared all notifications")
