# backend/tracker/automation.py
"""
Automation rule engine.

A rule pairs a schedule with an action. Once the schedule has passed, a poll
tick claims the rule (pending -> running, as a single conditional UPDATE),
executes its action and settles it:

    done         one-shot rule finished
    pending      recurring follow-up moved to its next occurrence, or a failed
                 run waiting for another attempt
    failed       AUTOMATION_MAX_ATTEMPTS runs in a row raised

Actions by rule type:
    application_package  bundle resume / cover letter / portfolio links for a job
    submission_schedule  "time to submit" notification, job moves to applied
    follow_up            reminder notification + email
    template_response    store the filled answer as a SavedResponse
    checklist            materialize an ApplicationChecklist
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.utils import timezone

from .exceptions import InvalidRuleConfig
from .models import (
    AutomationRule, ApplicationChecklist, ApplicationPackage, Document,
    JobEntry, Notification, SavedResponse,
)

logger = logging.getLogger(__name__)


class AutomationError(Exception):
    """A rule's action could not be carried out."""


#
# Config validation
#

def _require_job_id(config, rule_type):
    if not config.get('jobId'):
        raise InvalidRuleConfig(f"config.jobId is required for {rule_type} rules.")


def _check_optional_str(config, key):
    value = config.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidRuleConfig(f"config.{key} must be a string.")


def validate_rule_config(rule_type: str, config: Any) -> Dict[str, Any]:
    """
    Check that ``config`` has the shape ``rule_type`` expects.

    Returns the config (an empty dict when None was given).

    Raises:
        InvalidRuleConfig: on an unknown type or a malformed payload
    """
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise InvalidRuleConfig("config must be an object.")

    if rule_type == 'application_package':
        _require_job_id(config, rule_type)
        urls = config.get('portfolioUrls', [])
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise InvalidRuleConfig("config.portfolioUrls must be a list of URLs.")
    elif rule_type == 'submission_schedule':
        _require_job_id(config, rule_type)
        _check_optional_str(config, 'notes')
    elif rule_type == 'follow_up':
        interval = config.get('interval')
        if interval not in (None, ''):
            try:
                interval = int(interval)
            except (TypeError, ValueError):
                raise InvalidRuleConfig("config.interval must be a whole number of days.")
            if interval < 0:
                raise InvalidRuleConfig("config.interval cannot be negative.")
        _check_optional_str(config, 'message')
    elif rule_type == 'template_response':
        question = config.get('question')
        if not isinstance(question, str) or not question.strip():
            raise InvalidRuleConfig("config.question is required for template_response rules.")
        _check_optional_str(config, 'answer')
    elif rule_type == 'checklist':
        items = config.get('items')
        if not isinstance(items, list):
            raise InvalidRuleConfig("config.items must be a list.")
        for item in items:
            if not isinstance(item, dict) or not str(item.get('label') or '').strip():
                raise InvalidRuleConfig("Each checklist item needs a label.")
    else:
        raise InvalidRuleConfig(f"Unknown automation rule type: {rule_type}")

    return config


#
# Runner
#

class AutomationRunner:
    """
    Executes due automation rules.

    Safe to run from several workers at once: a rule is only executed by the
    poller whose claim UPDATE matched it.
    """

    def __init__(self, max_attempts: Optional[int] = None, stale_after_minutes: Optional[int] = None):
        self.max_attempts = max_attempts or getattr(settings, 'AUTOMATION_MAX_ATTEMPTS', 3)
        self.stale_after = timedelta(
            minutes=stale_after_minutes or getattr(settings, 'AUTOMATION_STALE_AFTER_MINUTES', 15)
        )

    def run_due_rules(self, now=None) -> Dict[str, int]:
        """
        One poll tick: run every enabled pending rule whose schedule has passed.

        Returns:
            dict of counters: due, executed, skipped, retried, failed, released
        """
        now = now or timezone.now()
        summary = {'due': 0, 'executed': 0, 'skipped': 0, 'retried': 0, 'failed': 0}
        summary['released'] = self.release_stale_claims(now)

        due_ids = list(
            AutomationRule.objects.filter(
                enabled=True, status='pending', schedule__lte=now,
            ).order_by('schedule').values_list('id', flat=True)
        )
        summary['due'] = len(due_ids)

        for rule_id in due_ids:
            outcome = self._claim_and_run(
                rule_id, now,
                claim_filter={'status': 'pending', 'enabled': True, 'schedule__lte': now},
            )
            if outcome is None:
                summary['skipped'] += 1
            elif outcome == 'retry':
                summary['retried'] += 1
            elif outcome == 'failed':
                summary['failed'] += 1
            else:
                summary['executed'] += 1

        logger.info(
            f"Automation tick: {summary['executed']} executed, {summary['retried']} retrying, "
            f"{summary['failed']} failed, {summary['skipped']} skipped"
        )
        return summary

    def run_rule(self, rule: AutomationRule, now=None) -> Optional[str]:
        """
        Run one rule immediately, ignoring its schedule.

        Returns the outcome ('done', 'rescheduled', 'retry', 'failed') or None
        when the rule is already being executed elsewhere.
        """
        now = now or timezone.now()
        return self._claim_and_run(
            rule.pk, now, claim_filter={'status__in': ('pending', 'done', 'failed')},
        )

    def release_stale_claims(self, now=None) -> int:
        """Return rules stuck in ``running`` (crashed worker) to the queue."""
        now = now or timezone.now()
        released = AutomationRule.objects.filter(
            status='running', claimed_at__lt=now - self.stale_after,
        ).update(status='pending', claimed_at=None, updated_at=now)
        if released:
            logger.warning(f"Released {released} stale automation rule claim(s)")
        return released

    def claim(self, rule_id, now, **claim_filter) -> bool:
        claimed = AutomationRule.objects.filter(pk=rule_id, **claim_filter).update(
            status='running', claimed_at=now, updated_at=now,
        )
        return claimed == 1

    def _claim_and_run(self, rule_id, now, claim_filter) -> Optional[str]:
        if not self.claim(rule_id, now, **claim_filter):
            logger.info(f"Automation rule {rule_id} already claimed, skipping")
            return None

        rule = AutomationRule.objects.select_related('user').get(pk=rule_id)
        logger.info(f"Running automation rule {rule.id} ({rule.type}) for user {rule.user_id}")

        try:
            with transaction.atomic():
                self.execute(rule, now)
        except Exception as e:
            logger.error(f"Automation rule {rule.id} failed: {e}", exc_info=True)
            return self._record_failure(rule, e, now)

        return self._record_success(rule, now)

    def _record_success(self, rule, now):
        rule.run_count += 1
        rule.last_run_at = now
        rule.attempts = 0
        rule.last_error = ''
        rule.claimed_at = None

        if rule.is_recurring:
            rule.schedule = self._next_occurrence(rule, now)
            rule.status = 'pending'
            outcome = 'rescheduled'
            logger.info(f"Automation rule {rule.id} rescheduled for {rule.schedule.isoformat()}")
        else:
            rule.status = 'done'
            outcome = 'done'

        rule.save(update_fields=[
            'run_count', 'last_run_at', 'attempts', 'last_error', 'claimed_at',
            'schedule', 'status', 'updated_at',
        ])
        return outcome

    def _record_failure(self, rule, error, now):
        rule.attempts += 1
        rule.last_error = str(error) or error.__class__.__name__
        rule.claimed_at = None

        if rule.attempts >= self.max_attempts:
            rule.status = 'failed'
            outcome = 'failed'
            logger.warning(f"Automation rule {rule.id} gave up after {rule.attempts} attempts")
        else:
            rule.status = 'pending'
            outcome = 'retry'
            logger.info(f"Automation rule {rule.id} will retry (attempt {rule.attempts}/{self.max_attempts})")

        rule.save(update_fields=['attempts', 'last_error', 'claimed_at', 'status', 'updated_at'])
        return outcome

    @staticmethod
    def _next_occurrence(rule, now):
        """Next schedule strictly after ``now``; missed occurrences collapse into one."""
        if rule.schedule > now:
            return rule.schedule
        step = timedelta(days=rule.interval_days)
        next_run = rule.schedule + step
        while next_run <= now:
            next_run += step
        return next_run

    #
    # Actions
    #

    def execute(self, rule: AutomationRule, now=None):
        now = now or timezone.now()
        handler = getattr(self, f"_run_{rule.type}", None)
        if handler is None:
            raise AutomationError(f"Unsupported rule type: {rule.type}")
        config = validate_rule_config(rule.type, rule.config)
        return handler(rule, config, now)

    def _get_job(self, rule, config, required=True):
        job_id = config.get('jobId')
        if not job_id:
            if required:
                raise AutomationError("Rule has no job attached")
            return None
        try:
            return JobEntry.objects.get(pk=job_id, user=rule.user)
        except (JobEntry.DoesNotExist, ValueError):
            raise AutomationError(f"Job {job_id} not found")

    def _get_document(self, rule, doc_id, doc_type):
        if not doc_id:
            return None
        try:
            return Document.objects.get(pk=doc_id, user=rule.user, doc_type=doc_type)
        except (Document.DoesNotExist, ValueError):
            raise AutomationError(f"{doc_type.replace('_', ' ').capitalize()} {doc_id} not found")

    def _job_link(self, job):
        base = getattr(settings, 'FRONTEND_URL', '').rstrip('/')
        return f"{base}/jobs/{job.id}" if job else ''

    def _run_application_package(self, rule, config, now):
        job = self._get_job(rule, config)
        package = ApplicationPackage.objects.create(
            user=rule.user,
            job=job,
            resume=self._get_document(rule, config.get('resumeId'), 'resume'),
            cover_letter=self._get_document(rule, config.get('coverLetterId'), 'cover_letter'),
            portfolio_urls=list(config.get('portfolioUrls') or []),
            automation_rule=rule,
        )
        job.add_history("Application package prepared", notes=f"Package {package.id}", automated=True)
        job.save(update_fields=['application_history', 'updated_at'])
        logger.info(f"Created application package {package.id} for job {job.id}")
        return package

    def _run_submission_schedule(self, rule, config, now):
        job = self._get_job(rule, config)
        notes = (config.get('notes') or '').strip()
        notification = Notification.objects.create(
            user=rule.user,
            title=f"Time to submit: {job.title}",
            message=notes or f"Your scheduled submission for {job.title} at {job.company_name} is due now.",
            notification_type='submission',
            link_url=self._job_link(job),
            automation_rule=rule,
        )
        job.add_history("Scheduled submission reached", notes=notes, automated=True)
        update_fields = ['application_history', 'updated_at']
        if job.stage == 'interested':
            job.stage = 'applied'
            job.last_stage_change = now
            job.add_history("Applied", notes="Moved to applied by submission schedule", automated=True)
            update_fields += ['stage', 'last_stage_change']
        job.save(update_fields=update_fields)
        return notification

    def _run_follow_up(self, rule, config, now):
        job = self._get_job(rule, config, required=False)
        user = rule.user

        if job:
            title = f"Follow up: {job.title} at {job.company_name}"
            default_message = f"It's time to follow up on your application for {job.title} at {job.company_name}."
        else:
            title = "Follow-up reminder"
            default_message = "It's time to follow up on your application."
        message = (config.get('message') or '').strip() or default_message

        notification = Notification.objects.create(
            user=user,
            title=title,
            message=message,
            notification_type='follow_up',
            link_url=self._job_link(job),
            automation_rule=rule,
        )

        if user.email:
            # after commit only; mail errors are logged by Django, not retried
            transaction.on_commit(
                lambda: self._send_reminder_email(rule, title, message, user.email),
                robust=True,
            )
        else:
            logger.warning(f"No email for user {user.pk}, follow-up rule {rule.id} posted in-app only")

        if job:
            job.add_history("Follow-up reminder sent", notes=message, automated=True)
            job.save(update_fields=['application_history', 'updated_at'])
        return notification

    def _send_reminder_email(self, rule, title, message, recipient):
        send_mail(
            subject=title,
            message=message,
            from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', 'no-reply@ontrack.local'),
            recipient_list=[recipient],
            fail_silently=False,
        )
        logger.info(f"Sent follow-up reminder for rule {rule.id} to {recipient}")

    def _run_template_response(self, rule, config, now):
        cover_letter_id = config.get('coverletterId') or config.get('coverLetterId')
        return SavedResponse.objects.create(
            user=rule.user,
            question=config['question'].strip(),
            answer=config.get('answer') or '',
            resume=self._get_document(rule, config.get('resumeId'), 'resume'),
            cover_letter=self._get_document(rule, cover_letter_id, 'cover_letter'),
            automation_rule=rule,
        )

    def _run_checklist(self, rule, config, now):
        items = [
            {'label': str(item['label']).strip(), 'done': bool(item.get('done', False))}
            for item in config.get('items') or []
        ]
        return ApplicationChecklist.objects.create(
            user=rule.user,
            job=self._get_job(rule, config, required=False),
            items=items,
            automation_rule=rule,
        )
