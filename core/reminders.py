"""Daily streak reminder emails."""

import html
import logging

from .config import DEFAULT_FRONTEND_URL
from .errors import DeliveryError
from .interfaces import EmailSender, Storage, EMAIL_REMINDERS, USERS
from .models import ReminderSweepResult
from .stats import StatsAggregator
from .utils import utc_date, utc_now

logger = logging.getLogger(__name__)


def reminder_subject(streak: int) -> str:
    if streak == 0:
        return "Time to start fresh!"
    return f"Don't break your {streak}-day streak!"


def reminder_html(username: str, streak: int, frontend_url: str) -> str:
    if streak == 0:
        headline = "Your Chinese learning journey awaits"
        body = ("It's been a while since your last study session. Take just 5 minutes today "
                "to get back into your routine.")
        action = "Start Learning"
    else:
        headline = f"You're on a {streak}-day streak!"
        body = "Take just 5 minutes to study today and keep your momentum going."
        action = "Study Now"
    return (
        f'<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h1>{headline}</h1>'
        f'<p>Hi {html.escape(username)},</p>'
        f'<p>{body}</p>'
        f'<p><a href="{frontend_url}">{action}</a></p>'
        f'<p style="font-size: 12px;"><a href="{frontend_url}/profile">Manage email preferences</a></p>'
        f'</div>'
    )


class ReminderService:
    """Per-user reminder settings and the daily sweep."""

    def __init__(self, storage: Storage, stats: StatsAggregator, email_sender: EmailSender,
                 frontend_url: str = DEFAULT_FRONTEND_URL, clock=utc_now):
        self.storage = storage
        self.stats = stats
        self.email_sender = email_sender
        self.frontend_url = frontend_url.rstrip('/')
        self.clock = clock

    def _settings_record(self, user_id: str) -> dict:
        record, _ = self.storage.get_or_create(
            EMAIL_REMINDERS,
            defaults={'enabled': True, 'last_reminder_sent': None, 'last_streak_count': 0},
            user_id=user_id
        )
        return record

    def get_settings(self, user_id: str) -> dict:
        record = self.storage.find_one(EMAIL_REMINDERS, user_id=user_id)
        if record is None:
            return {'enabled': True, 'last_reminder_sent': None, 'last_streak_count': 0}
        return {
            'enabled': record.get('enabled', True),
            'last_reminder_sent': record.get('last_reminder_sent'),
            'last_streak_count': record.get('last_streak_count') or 0
        }

    def update_settings(self, user_id: str, enabled: bool) -> dict:
        record = self._settings_record(user_id)
        self.storage.update(EMAIL_REMINDERS, record['id'], {'enabled': enabled})
        self.storage.update(USERS, user_id, {'email_reminders_enabled': enabled})
        return self.get_settings(user_id)

    def send_daily_reminders(self) -> ReminderSweepResult:
        """Email every opted-in user whose streak has not grown since the last check.

        At most one reminder per user per UTC day. A failed delivery is logged
        and does not stop the sweep, nor does any other per-user failure.
        """
        result = ReminderSweepResult()
        users = self.storage.find_many(USERS, email_reminders_enabled=True)
        logger.info(f"Found {len(users)} users with email reminders enabled")

        for user in users:
            result.checked += 1
            try:
                if self._check_user(user):
                    result.sent += 1
            except DeliveryError as e:
                result.failed += 1
                logger.error(f"Failed to send reminder email to {user['email']}: {e}")
            except Exception as e:
                result.failed += 1
                logger.error(f"Failed to check reminder for user {user['id']}: {e}")

        logger.info(f"Reminder sweep done: {result.to_dict()}")
        return result

    def _check_user(self, user: dict) -> bool:
        record = self._settings_record(user['id'])
        if not record.get('enabled', True):
            return False

        now = self.clock()
        last_sent = record.get('last_reminder_sent')
        if last_sent is not None and utc_date(last_sent) == utc_date(now):
            return False

        streak = self.stats.current_streak(user['id'])
        if streak > (record.get('last_streak_count') or 0):
            self.storage.update(EMAIL_REMINDERS, record['id'], {'last_streak_count': streak})
            return False

        self.email_sender.send_email(
            user['email'],
            reminder_subject(streak),
            reminder_html(user.get('username') or 'there', streak, self.frontend_url)
        )
        self.storage.update(EMAIL_REMINDERS, record['id'], {
            'last_reminder_sent': now,
            'last_streak_count': streak
        })
        logger.info(f"Reminder email sent to {user['email']} - streak: {streak}")
        return True
