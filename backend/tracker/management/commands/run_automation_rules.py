"""
Management command to execute due automation rules.

Usage:
    python manage.py run_automation_rules
    python manage.py run_automation_rules --loop --interval=60

A single run is one poll tick, suitable for cron. ``--loop`` keeps polling
until interrupted, for deployments without Celery beat.
"""
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from tracker.tasks import _run_due_automation_rules_sync


class Command(BaseCommand):
    help = 'Run automation rules whose schedule has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Keep polling instead of running a single tick'
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=getattr(settings, 'AUTOMATION_POLL_SECONDS', 60),
            help='Seconds between ticks when looping (default: AUTOMATION_POLL_SECONDS)'
        )

    def handle(self, *args, **options):
        interval = max(options['interval'], 1)

        if not options['loop']:
            self._tick()
            return

        self.stdout.write(f"Polling automation rules every {interval}s (Ctrl+C to stop)")
        try:
            while True:
                self._tick()
                time.sleep(interval)
        except KeyboardInterrupt:
            self.stdout.write("Stopped automation poller")

    def _tick(self):
        summary = _run_due_automation_rules_sync()
        self.stdout.write(self.style.SUCCESS(
            f"Executed {summary['executed']} rule(s): {summary['retried']} retrying, "
            f"{summary['failed']} failed, {summary['skipped']} skipped"
        ))
        return summary
