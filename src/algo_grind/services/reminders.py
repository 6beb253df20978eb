"""Once-a-day webhook reminder when practice goals are still unmet."""

import asyncio
from datetime import date, datetime, time
from enum import StrEnum

import httpx
import structlog

from algo_grind.ledger import PracticeLedger
from algo_grind.models.services import ReminderPayload, UnmetGoal

logger = structlog.get_logger()


class ReminderOutcome(StrEnum):
    SENT = "sent"
    NOT_DUE = "not_due"
    ALREADY_SENT = "already_sent"
    GOALS_MET = "goals_met"
    FAILED = "failed"


class GoalReminder:
    """Posts unmet goals to a webhook at most once per day.

    The reminder only fires after ``remind_after`` local time. A failed post
    is retried on the next check; a successful one marks the day as done.

    Args:
        ledger: Ledger whose goal adherence is checked.
        webhook_url: HTTPS endpoint receiving the reminder payload.
        remind_after: Local time of day after which reminders may fire.
        user_identifier: Identifies the user to the webhook receiver.
        timeout: HTTP timeout in seconds.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        ledger: PracticeLedger,
        webhook_url: str,
        remind_after: time,
        user_identifier: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not webhook_url.startswith("https://"):
            raise ValueError(f"Reminder webhook must be an https URL: {webhook_url!r}")
        self.ledger = ledger
        self.webhook_url = webhook_url
        self.remind_after = remind_after
        self.user_identifier = user_identifier
        self.timeout = timeout
        self._transport = transport
        self._last_sent: date | None = None

    @property
    def last_sent(self) -> date | None:
        return self._last_sent

    def build_payload(self, now: datetime) -> ReminderPayload:
        unmet = [
            UnmetGoal(
                category=p.label,
                target=p.target,
                solved=p.solved_in_period,
                remaining=p.remaining,
            )
            for p in self.ledger.unmet_goals(now)
        ]
        return ReminderPayload(user_identifier=self.user_identifier, unmet_goals=unmet)

    async def check(self, now: datetime | None = None) -> ReminderOutcome:
        """Send today's reminder if it is due and goals are unmet."""
        now = now or datetime.now()
        if self._last_sent == now.date():
            return ReminderOutcome.ALREADY_SENT
        if not self.ledger.initialized or now.time() < self.remind_after:
            return ReminderOutcome.NOT_DUE

        payload = self.build_payload(now)
        if not payload.unmet_goals:
            return ReminderOutcome.GOALS_MET

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.webhook_url, json=payload.model_dump(mode="json", by_alias=True)
                )
                response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("goal_reminder_failed", webhook_url=self.webhook_url)
            return ReminderOutcome.FAILED

        self._last_sent = now.date()
        logger.info("goal_reminder_sent", unmet=len(payload.unmet_goals))
        return ReminderOutcome.SENT

    async def run(self, interval_seconds: float) -> None:
        """Check periodically until cancelled."""
        while True:
            try:
                await self.check()
            except Exception:
                logger.exception("goal_reminder_check_failed")
            await asyncio.sleep(interval_seconds)
