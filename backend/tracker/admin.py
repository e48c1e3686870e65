from django.contrib import admin

from .models import (
    # Jobs
    JobEntry, Document,
    # Goals
    SmartGoal, ShortTermGoal,
    # References
    Reference, JobReference,
    # Automation
    AutomationRule, ApplicationPackage, SavedResponse, ApplicationChecklist, Notification,
)


@admin.register(JobEntry)
class JobEntryAdmin(admin.ModelAdmin):
    list_display = ['title', 'company_name', 'user', 'stage', 'application_deadline', 'updated_at']
    list_filter = ['stage', 'job_type']
    search_fields = ['title', 'company_name', 'user__username']


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['name', 'doc_type', 'user', 'updated_at']
    list_filter = ['doc_type']
    search_fields = ['name', 'user__username']


class ShortTermGoalInline(admin.TabularInline):
    model = ShortTermGoal
    extra = 0
    readonly_fields = ['completed_at']


@admin.register(SmartGoal)
class SmartGoalAdmin(admin.ModelAdmin):
    list_display = ['specific', 'user', 'deadline', 'linked_job', 'created_at']
    search_fields = ['specific', 'user__username']
    inlines = [ShortTermGoalInline]


@admin.register(Reference)
class ReferenceAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'user', 'relationship', 'organization', 'availability_status', 'usage_count']
    list_filter = ['availability_status', 'preferred_contact_method']
    search_fields = ['full_name', 'email', 'organization', 'user__username']
    readonly_fields = ['usage_count', 'last_used_at', 'relationship_history', 'created_at', 'updated_at']


@admin.register(JobReference)
class JobReferenceAdmin(admin.ModelAdmin):
    list_display = ['reference', 'job', 'status', 'created_at']
    list_filter = ['status']


@admin.register(AutomationRule)
class AutomationRuleAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'schedule', 'status', 'enabled', 'attempts', 'run_count', 'last_run_at']
    list_filter = ['type', 'status', 'enabled']
    search_fields = ['user__username', 'last_error']
    readonly_fields = ['attempts', 'run_count', 'claimed_at', 'last_run_at', 'last_error', 'created_at', 'updated_at']


@admin.register(ApplicationPackage)
class ApplicationPackageAdmin(admin.ModelAdmin):
    list_display = ['job', 'user', 'resume', 'cover_letter', 'created_at']


@admin.register(SavedResponse)
class SavedResponseAdmin(admin.ModelAdmin):
    list_display = ['question', 'user', 'created_at']
    search_fields = ['question', 'answer']


@admin.register(ApplicationChecklist)
class ApplicationChecklistAdmin(admin.ModelAdmin):
    list_display = ['user', 'job', 'created_at']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'notification_type', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read']
    search_fields = ['title', 'message', 'user__username']
