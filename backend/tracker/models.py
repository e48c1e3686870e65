# backend/tracker/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone
import uuid


#
# =
# JOB ENTRIES
#
# =

class JobEntry(models.Model):
    """User-tracked job opportunities.

    The pipeline stage is the only field the analytics care about: goals link
    to a job and the job's stage tells whether the goal led to an interview
    or an offer.

    application_history format:
    [{"action": "Applied", "timestamp": "2024-11-04T10:30:00Z", "notes": "...", "automated": false}, ...]
    """
    JOB_TYPES = [
        ("ft", "Full-time"),
        ("pt", "Part-time"),
        ("contract", "Contract"),
        ("intern", "Internship"),
        ("temp", "Temporary"),
    ]

    STAGE_CHOICES = [
        ("interested", "Interested"),
        ("applied", "Applied"),
        ("recruiter", "Recruiter Call"),
        ("phone_screen", "Phone Screen"),
        ("technical", "Technical Interview"),
        ("interview", "Interview"),
        ("onsite", "Onsite"),
        ("final_round", "Final Round"),
        ("offer", "Offer"),
        ("rejected", "Rejected"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="job_entries")

    title = models.CharField(max_length=220)
    company_name = models.CharField(max_length=180)
    stage = models.CharField(max_length=20, choices=STAGE_CHOICES, default="interested")
    location = models.CharField(max_length=160, blank=True)
    industry = models.CharField(max_length=120, blank=True)
    job_type = models.CharField(max_length=20, choices=JOB_TYPES, default="ft")
    posting_url = models.URLField(blank=True)
    application_deadline = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True)

    application_history = models.JSONField(default=list, blank=True)
    last_stage_change = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=["user", "-updated_at"], name="job_user_updated_idx"),
            models.Index(fields=["user", "stage"], name="job_user_stage_idx"),
        ]

    def __str__(self):
        return f"{self.title} @ {self.company_name}"

    def add_history(self, action, notes="", automated=False):
        """Append an entry to the application history (not saved)."""
        entry = {
            "action": action,
            "timestamp": timezone.now().isoformat(),
            "notes": notes,
            "automated": automated,
        }
        if self.application_history:
            self.application_history.append(entry)
        else:
            self.application_history = [entry]
        return entry


class Document(models.Model):
    """Resume or cover letter produced by the builders."""
    DOC_TYPES = [
        ('resume', 'Resume'),
        ('cover_letter', 'Cover Letter'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="documents")
    doc_type = models.CharField(max_length=20, choices=DOC_TYPES)
    name = models.CharField(max_length=200)
    content = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        indexes = [models.Index(fields=["user", "doc_type"], name="doc_user_type_idx")]

    def __str__(self):
        return f"{self.name} ({self.get_doc_type_display()})"


#
# =
# SMART GOALS
#
# =

DEFAULT_MEASURABLE = "Progress tracked automatically by OnTrack."


class SmartGoal(models.Model):
    """
    SMART goal (Specific / Measurable / Achievable / Relevant / Time-bound)
    broken into short-term milestones that must be completed in deadline order.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='smart_goals')

    specific = models.TextField(help_text="What exactly will be accomplished")
    measurable = models.CharField(max_length=255, blank=True, default=DEFAULT_MEASURABLE)
    achievable = models.BooleanField(default=False)
    relevant = models.BooleanField(default=False)
    deadline = models.DateField(null=True, blank=True)
    linked_job = models.ForeignKey(
        JobEntry, on_delete=models.SET_NULL, null=True, blank=True, related_name='goals'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name="goal_user_created_idx"),
        ]

    def __str__(self):
        return self.specific[:80]

    def ordered_milestones(self):
        return list(self.short_term_goals.order_by('deadline', 'created_at'))

    def is_complete(self):
        milestones = self.ordered_milestones()
        return bool(milestones) and all(m.completed for m in milestones)

    def set_milestone_completed(self, milestone, completed):
        """
        Toggle a milestone while keeping completion in chronological order.

        A milestone can be completed only once every earlier milestone is
        complete, and reopened only while no later milestone is complete.
        Setting the state it already has is a no-op.

        Raises:
            MilestoneOrderError: the toggle would break the ordering
        """
        from tracker.exceptions import MilestoneOrderError

        # repeated toggles keep the original completed_at
        if milestone.completed == completed:
            return milestone

        milestones = self.ordered_milestones()
        index = next(i for i, m in enumerate(milestones) if m.pk == milestone.pk)

        if completed and not all(m.completed for m in milestones[:index]):
            raise MilestoneOrderError("Complete earlier milestones to unlock this one.")
        if not completed and any(m.completed for m in milestones[index + 1:]):
            raise MilestoneOrderError("Reopen later milestones before reopening this one.")

        milestone.completed = completed
        milestone.completed_at = timezone.now() if completed else None
        milestone.save(update_fields=['completed', 'completed_at'])
        SmartGoal.objects.filter(pk=self.pk).update(updated_at=timezone.now())
        return milestone


class ShortTermGoal(models.Model):
    """Milestone (sub-deadline) within a SMART goal."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    goal = models.ForeignKey(SmartGoal, on_delete=models.CASCADE, related_name='short_term_goals')

    title = models.CharField(max_length=200)
    deadline = models.DateField()
    completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    linked_job = models.ForeignKey(
        JobEntry, on_delete=models.SET_NULL, null=True, blank=True, related_name='milestones'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['deadline', 'created_at']
        indexes = [
            models.Index(fields=['goal', 'completed'], name="stg_goal_completed_idx"),
        ]

    def __str__(self):
        return f"{self.title} - due {self.deadline}"


#
# =
# REFERENCES
#
# =

class Reference(models.Model):
    """Professional reference the candidate can list on applications."""
    AVAILABILITY_STATUS = [
        ('available', 'Available'),
        ('limited', 'Limited Availability'),
        ('unavailable', 'Currently Unavailable'),
        ('other', 'Other'),
    ]

    CONTACT_METHODS = [
        ('email', 'Email'),
        ('phone', 'Phone'),
        ('either', 'Either'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='references')

    full_name = models.CharField(max_length=200)
    title = models.CharField(max_length=200, blank=True)
    organization = models.CharField(max_length=200, blank=True)
    relationship = models.CharField(max_length=100)
    email = models.EmailField()
    phone = models.CharField(max_length=50, blank=True)
    preferred_contact_method = models.CharField(max_length=20, choices=CONTACT_METHODS, default='email')
    tags = models.JSONField(default=list, blank=True)

    # Append-only: [{"action": "...", "message_content": "...", "date": "..."}]
    relationship_history = models.JSONField(default=list, blank=True)

    usage_count = models.PositiveIntegerField(default=0)
    last_used_at = models.DateTimeField(null=True, blank=True)
    availability_status = models.CharField(max_length=20, choices=AVAILABILITY_STATUS, default='available')
    availability_other_note = models.CharField(max_length=255, blank=True)
    preferred_opportunity_types = models.JSONField(default=list, blank=True)
    preferred_number_of_uses = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['user', 'availability_status'], name="ref_user_avail_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.relationship})"

    def log_relationship(self, action, message_content=""):
        entry = {
            "action": action,
            "message_content": message_content or "",
            "date": timezone.now().isoformat(),
        }
        self.relationship_history = [*(self.relationship_history or []), entry]
        self.save(update_fields=['relationship_history', 'updated_at'])
        return entry


class JobReference(models.Model):
    """A reference listed on a specific job application."""
    STATUS_CHOICES = [
        ('planned', 'Planned'),
        ('requested', 'Requested'),
        ('confirmed', 'Confirmed'),
        ('completed', 'Completed'),
        ('declined', 'Declined'),
    ]

    job = models.ForeignKey(JobEntry, on_delete=models.CASCADE, related_name='reference_usages')
    reference = models.ForeignKey(Reference, on_delete=models.CASCADE, related_name='job_usages')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='planned')
    feedback = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        unique_together = [('job', 'reference')]

    def __str__(self):
        return f"{self.reference.full_name} for {self.job}"


#
# =
# AUTOMATION
#
# =

class AutomationRule(models.Model):
    """
    Stored trigger-action pair executed once its schedule has passed.

    The config payload is shaped by ``type``:
      application_package  {jobId, resumeId, coverLetterId, portfolioUrls}
      submission_schedule  {jobId, notes}
      follow_up            {jobId, interval, message}
      template_response    {question, answer, resumeId, coverletterId}
      checklist            {items: [{label, done}]}

    ``status`` moves pending -> running -> done|failed. The pending -> running
    step is an atomic claim so overlapping pollers never run a rule twice.
    """
    TYPE_CHOICES = [
        ('application_package', 'Application Package'),
        ('submission_schedule', 'Submission Schedule'),
        ('follow_up', 'Follow-up Reminder'),
        ('template_response', 'Template Response'),
        ('checklist', 'Checklist'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('running', 'Running'),
        ('done', 'Done'),
        ('failed', 'Failed'),
    ]

    # Types whose schedule must be picked explicitly; the rest run once ASAP
    SCHEDULED_TYPES = ('submission_schedule', 'follow_up')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='automation_rules')

    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    schedule = models.DateTimeField(default=timezone.now)
    config = models.JSONField(default=dict, blank=True)
    enabled = models.BooleanField(default=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    attempts = models.PositiveSmallIntegerField(default=0)
    run_count = models.PositiveIntegerField(default=0)
    claimed_at = models.DateTimeField(null=True, blank=True)
    last_run_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'schedule'], name="rule_status_schedule_idx"),
            models.Index(fields=['user', '-created_at'], name="rule_user_created_idx"),
        ]

    def __str__(self):
        return f"{self.get_type_display()} rule ({self.status})"

    @property
    def interval_days(self):
        """Recurrence interval for follow-ups; 0 means one-shot."""
        if self.type != 'follow_up':
            return 0
        try:
            return max(int((self.config or {}).get('interval') or 0), 0)
        except (TypeError, ValueError):
            return 0

    @property
    def is_recurring(self):
        return self.interval_days > 0

    def rearm(self):
        """Put the rule back in the queue after an edit (not saved)."""
        self.status = 'pending'
        self.attempts = 0
        self.claimed_at = None
        self.last_error = ''


class ApplicationPackage(models.Model):
    """Resume + cover letter + portfolio links bundled for a job."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='application_packages')
    job = models.ForeignKey(JobEntry, on_delete=models.CASCADE, related_name='application_packages')
    resume = models.ForeignKey(Document, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    cover_letter = models.ForeignKey(Document, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    portfolio_urls = models.JSONField(default=list, blank=True)
    automation_rule = models.ForeignKey(
        AutomationRule, on_delete=models.SET_NULL, null=True, blank=True, related_name='packages'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Package for {self.job}"


class SavedResponse(models.Model):
    """Answer to a recurring application question, filled in by automation."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='saved_responses')
    question = models.TextField()
    answer = models.TextField(blank=True)
    resume = models.ForeignKey(Document, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    cover_letter = models.ForeignKey(Document, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    automation_rule = models.ForeignKey(
        AutomationRule, on_delete=models.SET_NULL, null=True, blank=True, related_name='saved_responses'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']


class ApplicationChecklist(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='application_checklists')
    job = models.ForeignKey(JobEntry, on_delete=models.SET_NULL, null=True, blank=True, related_name='checklists')
    # [{"label": "...", "done": false}]
    items = models.JSONField(default=list, blank=True)
    automation_rule = models.ForeignKey(
        AutomationRule, on_delete=models.SET_NULL, null=True, blank=True, related_name='checklists'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']


class Notification(models.Model):
    """In-app notifications (reminders raised by automation rules)."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=200)
    message = models.TextField()
    notification_type = models.CharField(max_length=50)  # follow_up, submission, system
    link_url = models.CharField(max_length=500, blank=True)
    is_read = models.BooleanField(default=False)
    automation_rule = models.ForeignKey(
        AutomationRule, on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["user", "is_read", "-created_at"], name="notif_user_read_idx"),
        ]

    def __str__(self):
        return self.title
