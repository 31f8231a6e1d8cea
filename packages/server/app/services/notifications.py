"""
Outbound notifications.

Delivery itself is pluggable through ``EmailSender``; the default sender only
writes a structured log line.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.membership import Membership
from app.models.organization import Organization
from app.models.user import User
from app.services.subscriptions import TRIAL_REMINDER_DAYS
from quizory_shared.schemas.common import Language, Role, SubscriptionPlan

log = structlog.get_logger()


class EmailSender(Protocol):
    async def send_trial_reminder(
        self, email: str, display_name: str, days_left: int, language: Language
    ) -> None: ...


class LogEmailSender:
    """Sender that records the message instead of delivering it."""

    async def send_trial_reminder(
        self, email: str, display_name: str, days_left: int, language: Language
    ) -> None:
        log.info(
            "email.trial_reminder",
            to=email,
            display_name=display_name,
            days_left=days_left,
            language=language.value,
        )


async def _owner_of(session: AsyncSession, org_id: uuid.UUID) -> Optional[User]:
    result = await session.execute(
        select(User)
        .join(Membership, Membership.user_id == User.id)
        .where(Membership.org_id == org_id, Membership.role == Role.OWNER.value)
    )
    return result.scalars().first()


async def trials_ending_on(session: AsyncSession, day_start: datetime) -> list[Organization]:
    """Trial orgs whose expiry falls within the UTC calendar day starting at ``day_start``."""
    result = await session.execute(
        select(Organization).where(
            Organization.subscription_plan == SubscriptionPlan.TRIAL.value,
            Organization.trial_ends_at >= day_start,
            Organization.trial_ends_at < day_start + timedelta(days=1),
        )
    )
    return list(result.scalars().all())


async def send_trial_reminders(
    session: AsyncSession,
    sender: EmailSender,
    now: Optional[datetime] = None,
) -> int:
    """Email the owner of every trial ending ``TRIAL_REMINDER_DAYS`` days from today.

    A failure for one organization is logged and the sweep moves on.
    Returns the number of reminders sent.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    today = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    target = today + timedelta(days=TRIAL_REMINDER_DAYS)

    sent = 0
    for org in await trials_ending_on(session, target):
        try:
            owner = await _owner_of(session, org.id)
            if owner is None:
                log.warning("trial_reminder.no_owner", org_id=str(org.id))
                continue
            await sender.send_trial_reminder(
                owner.email,
                owner.display_name,
                TRIAL_REMINDER_DAYS,
                Language(owner.preferred_language),
            )
            sent += 1
        except Exception as exc:
            log.error("trial_reminder.failed", org_id=str(org.id), error=str(exc))

    log.info("trial_reminder.sweep_done", sent=sent, target_day=target.date().isoformat())
    return sent
