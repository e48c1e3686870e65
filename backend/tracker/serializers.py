"""
Serializers for the tracker API.
"""
from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from tracker.automation import validate_rule_config
from tracker.exceptions import InvalidRuleConfig, RuleRunningError
from tracker.models import (
    DEFAULT_MEASURABLE, AutomationRule, Document, JobEntry, JobReference,
    Notification, Reference, ShortTermGoal, SmartGoal,
)


class OwnedJobField(serializers.PrimaryKeyRelatedField):
    """Job FK limited to the requesting user's jobs."""

    def get_queryset(self):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return JobEntry.objects.none()
        return JobEntry.objects.filter(user=request.user)


#
# Jobs
#

class JobEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = JobEntry
        fields = [
            'id', 'title', 'company_name', 'stage', 'location', 'industry',
            'job_type', 'posting_url', 'application_deadline', 'description',
            'application_history', 'last_stage_change', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'application_history', 'last_stage_change', 'created_at', 'updated_at']

    def create(self, validated_data):
        job = JobEntry(**validated_data)
        job.last_stage_change = timezone.now()
        job.add_history(f"Added as {job.get_stage_display()}")
        job.save()
        return job

    def update(self, instance, validated_data):
        new_stage = validated_data.get('stage')
        if new_stage and new_stage != instance.stage:
            old_label = instance.get_stage_display()
            instance.stage = new_stage
            instance.last_stage_change = timezone.now()
            instance.add_history(f"Stage changed: {old_label} -> {instance.get_stage_display()}")
        return super().update(instance, validated_data)


class DocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Document
        fields = ['id', 'doc_type', 'name', 'content', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


#
# Goals
#

class ShortTermGoalSerializer(serializers.ModelSerializer):
    linked_job_id = serializers.PrimaryKeyRelatedField(source='linked_job', read_only=True)

    class Meta:
        model = ShortTermGoal
        fields = ['id', 'title', 'deadline', 'completed', 'completed_at', 'linked_job_id', 'created_at']
        # Completion only changes through the ordered toggle endpoint
        read_only_fields = ['id', 'completed', 'completed_at', 'linked_job_id', 'created_at']


class MilestoneToggleSerializer(serializers.Serializer):
    completed = serializers.BooleanField()


class SmartGoalSerializer(serializers.ModelSerializer):
    short_term_goals = ShortTermGoalSerializer(many=True, required=False)
    linked_job_id = OwnedJobField(source='linked_job', required=False, allow_null=True)
    is_complete = serializers.SerializerMethodField()

    class Meta:
        model = SmartGoal
        fields = [
            'id', 'specific', 'measurable', 'achievable', 'relevant', 'deadline',
            'linked_job_id', 'short_term_goals', 'is_complete', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_is_complete(self, obj):
        return obj.is_complete() if obj.pk else False

    def validate_specific(self, value):
        if not value.strip():
            raise serializers.ValidationError("Describe what you want to accomplish.")
        return value.strip()

    def validate_measurable(self, value):
        return value.strip() or DEFAULT_MEASURABLE

    def validate(self, attrs):
        instance = self.instance
        achievable = attrs.get('achievable', instance.achievable if instance else False)
        relevant = attrs.get('relevant', instance.relevant if instance else False)
        if not (achievable and relevant):
            raise serializers.ValidationError("Goal must be achievable AND relevant.")
        return attrs

    def _create_milestones(self, goal, milestones):
        ShortTermGoal.objects.bulk_create([
            ShortTermGoal(goal=goal, linked_job=goal.linked_job, **milestone)
            for milestone in milestones
        ])

    @transaction.atomic
    def create(self, validated_data):
        milestones = validated_data.pop('short_term_goals', [])
        goal = SmartGoal.objects.create(**validated_data)
        self._create_milestones(goal, milestones)
        return goal

    @transaction.atomic
    def update(self, instance, validated_data):
        milestones = validated_data.pop('short_term_goals', None)
        previous_job_id = instance.linked_job_id
        goal = super().update(instance, validated_data)

        if milestones is not None:
            goal.short_term_goals.all().delete()
            self._create_milestones(goal, milestones)
        elif goal.linked_job_id != previous_job_id:
            goal.short_term_goals.filter(linked_job_id=previous_job_id).update(linked_job=goal.linked_job)
        return goal


#
# References
#

class ReferenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Reference
        fields = [
            'id', 'full_name', 'title', 'organization', 'relationship', 'email', 'phone',
            'preferred_contact_method', 'tags', 'relationship_history', 'usage_count',
            'last_used_at', 'availability_status', 'availability_other_note',
            'preferred_opportunity_types', 'preferred_number_of_uses',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'relationship_history', 'usage_count', 'last_used_at', 'created_at', 'updated_at',
        ]

    def _validate_string_list(self, value, label):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise serializers.ValidationError(f"{label} must be a list of strings.")
        return [v.strip() for v in value if v.strip()]

    def validate_tags(self, value):
        return self._validate_string_list(value, "Tags")

    def validate_preferred_opportunity_types(self, value):
        return self._validate_string_list(value, "Preferred opportunity types")

    def validate(self, attrs):
        status = attrs.get('availability_status', getattr(self.instance, 'availability_status', 'available'))
        if status != 'other':
            attrs['availability_other_note'] = ''
        return attrs


class RelationshipEntrySerializer(serializers.Serializer):
    action = serializers.CharField(max_length=100)
    message_content = serializers.CharField(required=False, allow_blank=True, default='')


class JobReferenceSerializer(serializers.ModelSerializer):
    reference_id = serializers.UUIDField(source='reference.id', read_only=True)
    full_name = serializers.CharField(source='reference.full_name', read_only=True)
    job_id = serializers.IntegerField(source='job.id', read_only=True)

    class Meta:
        model = JobReference
        fields = ['id', 'job_id', 'reference_id', 'full_name', 'status', 'feedback', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class AttachReferencesSerializer(serializers.Serializer):
    reference_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)


class ReferencePortfolioRequestSerializer(serializers.Serializer):
    goal = serializers.CharField(max_length=200)
    limit = serializers.IntegerField(required=False, default=5, min_value=1, max_value=50)


class AppreciationRequestSerializer(serializers.Serializer):
    TYPES = ['thank_you', 'update', 'keep_in_touch']

    reference_id = serializers.UUIDField()
    job_id = serializers.IntegerField(required=False, allow_null=True)
    type = serializers.ChoiceField(choices=TYPES, default='keep_in_touch')


#
# Automation
#

class AutomationRuleSerializer(serializers.ModelSerializer):
    schedule = serializers.DateTimeField(required=False)
    config = serializers.JSONField(required=False)

    class Meta:
        model = AutomationRule
        fields = [
            'id', 'type', 'schedule', 'config', 'enabled', 'status', 'attempts',
            'run_count', 'last_run_at', 'last_error', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'status', 'attempts', 'run_count', 'last_run_at', 'last_error',
            'created_at', 'updated_at',
        ]

    def validate(self, attrs):
        instance = self.instance
        rule_type = attrs.get('type', instance.type if instance else None)
        config = attrs.get('config', instance.config if instance else {})

        try:
            attrs_config = validate_rule_config(rule_type, config)
        except InvalidRuleConfig as e:
            raise serializers.ValidationError({'config': str(e.detail)})

        job_id = attrs_config.get('jobId')
        request = self.context.get('request')
        if job_id and request is not None:
            try:
                owned = JobEntry.objects.filter(pk=job_id, user=request.user).exists()
            except (TypeError, ValueError):
                owned = False
            if not owned:
                raise serializers.ValidationError({'config': f"Job {job_id} not found."})

        if instance is None:
            attrs['config'] = attrs_config
            if not attrs.get('schedule'):
                if rule_type in AutomationRule.SCHEDULED_TYPES:
                    raise serializers.ValidationError({'schedule': "schedule is required for this rule type."})
                # Immediate rules run once on the next tick
                attrs['schedule'] = timezone.now()
        return attrs

    def update(self, instance, validated_data):
        """
        Write only the edited fields, and only while no poller holds a claim.

        The instance may be stale by now (a tick can finish the rule after the
        view loaded it), so status and counters are never written back unless
        the edit re-arms the rule.
        """
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        fields = list(validated_data)

        if {'type', 'schedule', 'config'} & set(validated_data):
            instance.rearm()
            fields += ['status', 'attempts', 'claimed_at', 'last_error']

        instance.updated_at = timezone.now()
        fields.append('updated_at')

        updated = AutomationRule.objects.filter(pk=instance.pk).exclude(status='running').update(
            **{field: getattr(instance, field) for field in fields}
        )
        if not updated:
            raise RuleRunningError()

        instance.refresh_from_db()
        return instance


class NotificationSerializer(serializers.ModelSerializer):
    automation_rule_id = serializers.PrimaryKeyRelatedField(source='automation_rule', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'title', 'message', 'notification_type', 'link_url', 'is_read',
            'automation_rule_id', 'created_at',
        ]
        read_only_fields = fields
