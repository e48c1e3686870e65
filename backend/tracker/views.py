"""
API views for jobs, SMART goals, automation rules and references.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from tracker.automation import AutomationRunner
from tracker.goal_insights import analyze_goals
from tracker.models import (
    AutomationRule, Document, JobEntry, JobReference, Notification,
    Reference, ShortTermGoal, SmartGoal,
)
from tracker.reference_portfolio import (
    appreciation_message, collect_reference_stats, reference_impact, score_references,
)
from tracker.serializers import (
    AppreciationRequestSerializer, AttachReferencesSerializer, AutomationRuleSerializer,
    DocumentSerializer, JobEntrySerializer, JobReferenceSerializer,
    MilestoneToggleSerializer, NotificationSerializer, ReferencePortfolioRequestSerializer,
    ReferenceSerializer, RelationshipEntrySerializer, ShortTermGoalSerializer,
    SmartGoalSerializer,
)

logger = logging.getLogger(__name__)


# ======================
# Jobs
# ======================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def jobs_list_create(request):
    """
    GET: List the user's jobs (optional ?stage= filter)
    POST: Create a job
    """
    if request.method == 'GET':
        jobs = JobEntry.objects.filter(user=request.user)
        stage = request.query_params.get('stage')
        if stage:
            jobs = jobs.filter(stage=stage)
        return Response(JobEntrySerializer(jobs, many=True).data)

    serializer = JobEntrySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(user=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def job_detail(request, job_id):
    try:
        job = JobEntry.objects.get(pk=job_id, user=request.user)
    except JobEntry.DoesNotExist:
        return Response({"error": "Job not found"}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(JobEntrySerializer(job).data)

    if request.method in ['PUT', 'PATCH']:
        partial = request.method == 'PATCH'
        serializer = JobEntrySerializer(job, data=request.data, partial=partial)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    job.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def job_references(request, job_id):
    """
    GET: References listed on this job
    PUT: Replace the job's reference list with {"reference_ids": [...]}

    Newly attached references get their usage_count and last_used_at bumped.
    """
    try:
        job = JobEntry.objects.get(pk=job_id, user=request.user)
    except JobEntry.DoesNotExist:
        return Response({"error": "Job not found"}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'PUT':
        serializer = AttachReferencesSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        wanted = list(dict.fromkeys(serializer.validated_data['reference_ids']))
        references = {
            ref.pk: ref for ref in Reference.objects.filter(user=request.user, pk__in=wanted)
        }
        missing = [str(ref_id) for ref_id in wanted if ref_id not in references]
        if missing:
            return Response(
                {"error": f"Reference not found: {', '.join(missing)}"},
                status=status.HTTP_404_NOT_FOUND,
            )

        now = timezone.now()
        with transaction.atomic():
            job.reference_usages.exclude(reference_id__in=wanted).delete()
            for ref_id in wanted:
                _, created = JobReference.objects.get_or_create(job=job, reference=references[ref_id])
                if created:
                    Reference.objects.filter(pk=ref_id).update(
                        usage_count=F('usage_count') + 1, last_used_at=now, updated_at=now,
                    )
        logger.info(f"Job {job.id} now lists {len(wanted)} reference(s)")

    usages = job.reference_usages.select_related('reference', 'job')
    return Response(JobReferenceSerializer(usages, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def job_reference_detail(request, job_id, reference_id):
    """Update the status / feedback of a reference on one job."""
    try:
        usage = JobReference.objects.select_related('reference', 'job').get(
            job_id=job_id, job__user=request.user, reference_id=reference_id,
        )
    except JobReference.DoesNotExist:
        return Response({"error": "Job reference not found"}, status=status.HTTP_404_NOT_FOUND)

    serializer = JobReferenceSerializer(usage, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# ======================
# Documents & notifications
# ======================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def documents_list_create(request):
    if request.method == 'GET':
        docs = Document.objects.filter(user=request.user)
        doc_type = request.query_params.get('doc_type')
        if doc_type:
            docs = docs.filter(doc_type=doc_type)
        return Response(DocumentSerializer(docs, many=True).data)

    serializer = DocumentSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(user=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications_list(request):
    """Reminders produced by automation rules (?unread=true for unread only)."""
    notifications = Notification.objects.filter(user=request.user)
    if request.query_params.get('unread', '').lower() in ('1', 'true', 'yes'):
        notifications = notifications.filter(is_read=False)
    return Response(NotificationSerializer(notifications, many=True).data)


# ======================
# SMART goals
# ======================

def _goal_queryset(user):
    return SmartGoal.objects.filter(user=user).prefetch_related('short_term_goals')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def goals_list_create(request):
    """
    GET: List SMART goals with their milestones
    POST: Create a goal; nested short_term_goals inherit the goal's linked job
    """
    if request.method == 'GET':
        goals = _goal_queryset(request.user)
        return Response(SmartGoalSerializer(goals, many=True, context={'request': request}).data)

    serializer = SmartGoalSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        goal = serializer.save(user=request.user)
        return Response(
            SmartGoalSerializer(goal, context={'request': request}).data,
            status=status.HTTP_201_CREATED,
        )
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def goal_detail(request, goal_id):
    try:
        goal = _goal_queryset(request.user).get(pk=goal_id)
    except SmartGoal.DoesNotExist:
        return Response({"error": "Goal not found"}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(SmartGoalSerializer(goal, context={'request': request}).data)

    if request.method in ['PUT', 'PATCH']:
        partial = request.method == 'PATCH'
        serializer = SmartGoalSerializer(goal, data=request.data, partial=partial, context={'request': request})
        if serializer.is_valid():
            updated = serializer.save()
            updated = _goal_queryset(request.user).get(pk=updated.pk)
            return Response(SmartGoalSerializer(updated, context={'request': request}).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    goal.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def goal_milestone_toggle(request, goal_id, milestone_id):
    """
    Mark a milestone complete / incomplete.

    Milestones complete in deadline order; an out-of-order toggle is a 409.
    """
    try:
        goal = SmartGoal.objects.get(pk=goal_id, user=request.user)
        milestone = goal.short_term_goals.get(pk=milestone_id)
    except (SmartGoal.DoesNotExist, ShortTermGoal.DoesNotExist):
        return Response({"error": "Milestone not found"}, status=status.HTTP_404_NOT_FOUND)

    serializer = MilestoneToggleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # MilestoneOrderError propagates to the exception handler as a 409
    goal.set_milestone_completed(milestone, serializer.validated_data['completed'])
    return Response(ShortTermGoalSerializer(milestone).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def goal_insights(request):
    """Completion, timing and outcome analytics across the user's goals."""
    goals = SmartGoalSerializer(
        _goal_queryset(request.user), many=True, context={'request': request}
    ).data
    jobs = JobEntry.objects.filter(user=request.user).values('id', 'stage')
    return Response(analyze_goals(goals, jobs))


# ======================
# Automation rules
# ======================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def automation_rules_list_create(request):
    """
    GET: List automation rules
    POST: Create a rule. submission_schedule and follow_up need a schedule;
          other types run on the next poll when none is given.
    """
    if request.method == 'GET':
        rules = AutomationRule.objects.filter(user=request.user)
        rule_type = request.query_params.get('type')
        if rule_type:
            rules = rules.filter(type=rule_type)
        return Response(AutomationRuleSerializer(rules, many=True).data)

    serializer = AutomationRuleSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        rule = serializer.save(user=request.user)
        logger.info(f"Created automation rule {rule.id} ({rule.type}) scheduled for {rule.schedule.isoformat()}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def automation_rule_detail(request, rule_id):
    try:
        rule = AutomationRule.objects.get(pk=rule_id, user=request.user)
    except AutomationRule.DoesNotExist:
        return Response({"error": "Rule not found"}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(AutomationRuleSerializer(rule).data)

    if request.method in ['PUT', 'PATCH']:
        partial = request.method == 'PATCH'
        serializer = AutomationRuleSerializer(rule, data=request.data, partial=partial, context={'request': request})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    rule.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def automation_rule_run(request, rule_id):
    """Run a rule now, regardless of its schedule."""
    try:
        rule = AutomationRule.objects.get(pk=rule_id, user=request.user)
    except AutomationRule.DoesNotExist:
        return Response({"error": "Rule not found"}, status=status.HTTP_404_NOT_FOUND)

    outcome = AutomationRunner().run_rule(rule)
    if outcome is None:
        return Response({"error": "Rule is already running"}, status=status.HTTP_409_CONFLICT)

    rule.refresh_from_db()
    return Response({'outcome': outcome, 'rule': AutomationRuleSerializer(rule).data})


# ======================
# References
# ======================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def references_list_create(request):
    if request.method == 'GET':
        references = Reference.objects.filter(user=request.user)
        availability = request.query_params.get('availability_status')
        if availability:
            references = references.filter(availability_status=availability)
        return Response(ReferenceSerializer(references, many=True).data)

    serializer = ReferenceSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(user=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def reference_detail(request, reference_id):
    """Retrieve, update, or delete a specific reference"""
    try:
        reference = Reference.objects.get(pk=reference_id, user=request.user)
    except Reference.DoesNotExist:
        return Response({"error": "Reference not found"}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(ReferenceSerializer(reference).data)

    if request.method in ['PUT', 'PATCH']:
        partial = request.method == 'PATCH'
        serializer = ReferenceSerializer(reference, data=request.data, partial=partial)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    reference.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reference_relationship_add(request, reference_id):
    """Append an entry to the reference's relationship log."""
    try:
        reference = Reference.objects.get(pk=reference_id, user=request.user)
    except Reference.DoesNotExist:
        return Response({"error": "Reference not found"}, status=status.HTTP_404_NOT_FOUND)

    serializer = RelationshipEntrySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    reference.log_relationship(**serializer.validated_data)
    return Response(ReferenceSerializer(reference).data, status=status.HTTP_201_CREATED)


def _reference_usages(user):
    return (
        JobReference.objects.filter(reference__user=user, job__user=user)
        .order_by('created_at')
        .values(
            'reference_id',
            stage=F('job__stage'),
            job_title=F('job__title'),
            industry=F('job__industry'),
        )
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reference_impact_view(request):
    """Applications / interviews / offers per reference."""
    stats = collect_reference_stats(_reference_usages(request.user))
    return Response(reference_impact(stats))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reference_portfolio(request):
    """
    Rank the user's references for a career goal.

    Body: {"goal": "software engineer", "limit": 5}
    """
    serializer = ReferencePortfolioRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    goal = serializer.validated_data['goal']
    references = list(
        Reference.objects.filter(user=request.user).values(
            'id', 'full_name', 'title', 'organization', 'relationship', 'email', 'tags',
        )
    )
    ranked = []
    if references:
        stats = collect_reference_stats(_reference_usages(request.user))
        ranked = score_references(goal, references, stats, limit=serializer.validated_data['limit'])

    return Response({
        'goal': goal,
        'generated_at': timezone.now().isoformat(),
        'references': ranked,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reference_appreciation(request):
    """Generate a thank-you / update / keep-in-touch message for a reference."""
    serializer = AppreciationRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        reference = Reference.objects.get(pk=data['reference_id'], user=request.user)
    except Reference.DoesNotExist:
        return Response({"error": "Reference not found"}, status=status.HTTP_404_NOT_FOUND)

    job = None
    if data.get('job_id'):
        try:
            job = JobEntry.objects.get(pk=data['job_id'], user=request.user)
        except JobEntry.DoesNotExist:
            return Response({"error": "Job not found"}, status=status.HTTP_404_NOT_FOUND)

    message = appreciation_message(
        {'full_name': reference.full_name},
        {'title': job.title, 'company_name': job.company_name} if job else None,
        data['type'],
    )
    return Response({'generated_message': message})
