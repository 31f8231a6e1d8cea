"""
ARQ background tasks for the subscription lifecycle.

Both jobs run once a day: the sweep flips expired trials to free, and the
reminder job emails owners whose trial ends in five days.
"""

from __future__ import annotations

import structlog
from arq import cron
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.log_config import configure_logging
from app.services.notifications import LogEmailSender, send_trial_reminders
from app.services.subscriptions import expire_trials

log = structlog.get_logger()


async def expire_trials_job(ctx: dict) -> int:
    """Returns the number of organizations downgraded."""
    async with get_session_context() as session:
        count = await expire_trials(session)

    if count:
        log.info("trial.batch_expired", count=count)
    return count


async def trial_reminder_job(ctx: dict) -> int:
    sender = ctx.get("email_sender") or LogEmailSender()
    async with get_session_context() as session:
        return await send_trial_reminders(session, sender)


async def startup(ctx: dict) -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    ctx["email_sender"] = LogEmailSender()
    log.info("worker.started")


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [expire_trials_job, trial_reminder_job]
    cron_jobs = [
        cron(expire_trials_job, hour=3, minute=0),
        cron(trial_reminder_job, hour=9, minute=0),
    ]
    on_startup = startup
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
