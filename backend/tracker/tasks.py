"""Background tasks for the automation rule poller.

Celery beat calls ``run_due_automation_rules`` every AUTOMATION_POLL_SECONDS
(see CELERY_BEAT_SCHEDULE in settings). The ``_sync`` function is the same
tick without Celery, used by the management command and tests.
"""
import logging

from celery import shared_task

from tracker.automation import AutomationRunner

logger = logging.getLogger(__name__)


def _run_due_automation_rules_sync(now=None):
    """Run one poll tick over all users' due rules."""
    summary = AutomationRunner().run_due_rules(now=now)
    if summary['failed']:
        logger.warning(f"{summary['failed']} automation rule(s) exhausted their retries")
    return summary


@shared_task
def run_due_automation_rules():
    """Execute automation rules whose schedule has passed."""
    return _run_due_automation_rules_sync()
