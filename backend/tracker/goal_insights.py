"""
Goal insights: completion, timing and spacing analytics for SMART goals.

``analyze_goals`` works on plain mappings (serialized goals and jobs) and
performs no I/O, so the same numbers come out of the API view, background
jobs and unit tests.

Goal mapping keys used:
    short_term_goals: [{deadline, completed, completed_at}, ...]
    linked_job_id (or linked_job): id of a job in ``jobs``
Job mapping keys used:
    id, stage
"""
import math
from datetime import date, datetime, time, timedelta, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

EMPTY_STATE_RECOMMENDATION = "Start by creating your first goal!"

OFFER_STAGES = {'offer'}
INTERVIEW_STAGES = {'final_round', 'onsite', 'interview', 'technical'}

LOW_COMPLETION_RATE = 40
HIGH_COMPLETION_RATE = 70
MANY_MILESTONES = 5
FEW_MILESTONES = 2
LATE_RATE_WARNING = 50
ON_TIME_RATE_PRAISE = 80
TIGHT_SPACING_DAYS = 5
WIDE_SPACING_DAYS = 21


def round_half_up(value):
    """Round .5 upwards (``round()`` would use banker's rounding)."""
    return int(math.floor(value + 0.5))


def _as_datetime(value):
    """
    Coerce a date/datetime/ISO string to an aware UTC datetime.

    Date-only values resolve to midnight UTC, so a milestone finished later
    on its deadline day counts as late.
    """
    if value is None or value == '':
        return None
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is None:
            parsed = parse_datetime(value)
        if parsed is None:
            raise ValueError(f"Unparseable date value: {value!r}")
        value = parsed
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            value = value.replace(tzinfo=dt_timezone.utc)
        return value.astimezone(dt_timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=dt_timezone.utc)
    raise TypeError(f"Unsupported date value: {value!r}")


def _classify_stage(stage):
    stage = (stage or '').replace('-', '_').lower()
    if stage in OFFER_STAGES:
        return 'offer'
    if stage in INTERVIEW_STAGES:
        return 'interview'
    return None


def _empty_insights():
    return {
        'completion_rate': 0,
        'avg_milestones': 0,
        'avg_on_time_rate': 0,
        'avg_late_rate': 0,
        'avg_spacing_days': None,
        'recommendations': [EMPTY_STATE_RECOMMENDATION],
        'career_success': {
            'goals_leading_to_interviews': 0,
            'goals_leading_to_offers': 0,
            'offer_conversion_rate': 0,
            'linked_goals': 0,
        },
    }


def build_recommendations(completion_rate, avg_milestones, on_time_rate, late_rate, avg_spacing_days):
    recs = []

    if completion_rate < LOW_COMPLETION_RATE:
        recs.append(
            "Your completion rate is low. Try reducing the number of active goals "
            "and focusing on 1-2 high-impact ones at a time."
        )
    elif completion_rate >= HIGH_COMPLETION_RATE:
        recs.append(
            "Strong completion rate! You're following through on your goals. "
            "Keep using the same structure!"
        )

    if avg_milestones >= MANY_MILESTONES:
        recs.append(
            f"Your goals average {round_half_up(avg_milestones)} milestones, which might be too complex. "
            "Try limiting future goals to 3-4 milestones for better momentum."
        )
    elif 0 < avg_milestones <= FEW_MILESTONES:
        recs.append(
            "Your goals tend to have very few milestones. "
            "Consider breaking goals into 3-4 steps for clearer progress markers."
        )

    if late_rate >= LATE_RATE_WARNING:
        recs.append(
            "Most of your milestones are completed late. "
            "Try extending deadlines or scheduling smaller steps."
        )
    elif on_time_rate >= ON_TIME_RATE_PRAISE:
        recs.append("You're completing milestones on time consistently. Great discipline!")

    if avg_spacing_days is not None:
        if avg_spacing_days < TIGHT_SPACING_DAYS:
            recs.append(
                "Your milestones are spaced very close together. "
                "Try giving yourself more room (7-14 days) to avoid burnout."
            )
        elif avg_spacing_days > WIDE_SPACING_DAYS:
            recs.append(
                "Milestones are spaced far apart. "
                "Smaller, more frequent milestones could help you stay engaged."
            )
        else:
            recs.append(
                f"Your milestones tend to be spaced about {avg_spacing_days} days apart. "
                "This is a healthy pace."
            )

    if not recs:
        recs.append(
            "Keep tracking your goals and adjusting milestones as needed. "
            "Small, consistent progress leads to big results."
        )
    return recs


def analyze_goals(goals, jobs, now=None):
    """
    Summarize goal follow-through and career outcomes.

    Args:
        goals: iterable of goal mappings
        jobs: iterable of job mappings, joined on the goal's linked job id
        now: completion time assumed for completed milestones without a
            ``completed_at`` (defaults to the current time)

    Returns:
        dict with completion_rate, avg_milestones, avg_on_time_rate,
        avg_late_rate, avg_spacing_days, recommendations and career_success
    """
    goals = list(goals or [])
    if not goals:
        return _empty_insights()

    now = _as_datetime(now) if now is not None else timezone.now()

    jobs_by_id = {}
    for job in jobs or []:
        if job and job.get('id') is not None:
            jobs_by_id[str(job['id'])] = job

    total_goals = len(goals)
    completed_goals = 0
    milestone_counts = []
    on_time = 0
    late = 0
    spacings = []

    linked_goals = 0
    goals_leading_to_interviews = 0
    goals_leading_to_offers = 0

    for goal in goals:
        milestones = goal.get('short_term_goals') or []
        if not milestones:
            continue

        milestone_counts.append(len(milestones))
        if all(m.get('completed') for m in milestones):
            completed_goals += 1

        ordered = sorted(milestones, key=lambda m: _as_datetime(m.get('deadline')))
        previous_due = None
        for milestone in ordered:
            due = _as_datetime(milestone.get('deadline'))
            if milestone.get('completed'):
                done = _as_datetime(milestone.get('completed_at')) or now
                if done <= due:
                    on_time += 1
                else:
                    late += 1
            if previous_due is not None:
                spacings.append(due - previous_due)
            previous_due = due

        linked_id = goal.get('linked_job_id', goal.get('linked_job'))
        if linked_id is None:
            continue
        job = jobs_by_id.get(str(linked_id))
        if job is None:
            continue
        linked_goals += 1
        outcome = _classify_stage(job.get('stage'))
        if outcome == 'offer':
            goals_leading_to_offers += 1
            goals_leading_to_interviews += 1
        elif outcome == 'interview':
            goals_leading_to_interviews += 1

    completion_rate = round_half_up(completed_goals / total_goals * 100)
    avg_milestones = sum(milestone_counts) / len(milestone_counts) if milestone_counts else 0
    on_time_rate = round_half_up(on_time / ((on_time + late) or 1) * 100)
    late_rate = 100 - on_time_rate

    avg_spacing_days = None
    if spacings:
        total = sum(spacings, timedelta())
        avg_spacing_days = round_half_up(total.total_seconds() / len(spacings) / 86400)

    # Offer rate is measured against every goal, not only linked ones;
    # linked_goals is returned so callers can derive the linked-only ratio.
    offer_conversion_rate = (
        round_half_up(goals_leading_to_offers / total_goals * 100)
        if goals_leading_to_offers else 0
    )

    return {
        'completion_rate': completion_rate,
        'avg_milestones': avg_milestones,
        'avg_on_time_rate': on_time_rate,
        'avg_late_rate': late_rate,
        'avg_spacing_days': avg_spacing_days,
        'recommendations': build_recommendations(
            completion_rate, avg_milestones, on_time_rate, late_rate, avg_spacing_days
        ),
        'career_success': {
            'goals_leading_to_interviews': goals_leading_to_interviews,
            'goals_leading_to_offers': goals_leading_to_offers,
            'offer_conversion_rate': offer_conversion_rate,
            'linked_goals': linked_goals,
        },
    }
