from datetime import datetime, timezone as dt_timezone

from tracker.goal_insights import (
    EMPTY_STATE_RECOMMENDATION,
    analyze_goals,
    build_recommendations,
    round_half_up,
)


def milestone(deadline, completed=False, completed_at=None):
    return {'deadline': deadline, 'completed': completed, 'completed_at': completed_at}


def goal(*milestones, linked_job_id=None):
    return {'short_term_goals': list(milestones), 'linked_job_id': linked_job_id}


def test_empty_goal_list_returns_zeroed_defaults():
    for goals in ([], None):
        result = analyze_goals(goals, [])
        assert result['completion_rate'] == 0
        assert result['avg_milestones'] == 0
        assert result['avg_on_time_rate'] == 0
        assert result['avg_late_rate'] == 0
        assert result['avg_spacing_days'] is None
        assert result['recommendations'] == [EMPTY_STATE_RECOMMENDATION]
        assert result['career_success'] == {
            'goals_leading_to_interviews': 0,
            'goals_leading_to_offers': 0,
            'offer_conversion_rate': 0,
            'linked_goals': 0,
        }


def test_single_goal_completed_on_its_deadline():
    goals = [goal(milestone('2024-01-01', completed=True, completed_at='2024-01-01'))]

    result = analyze_goals(goals, [])

    assert result['completion_rate'] == 100
    assert result['avg_milestones'] == 1
    assert result['avg_on_time_rate'] == 100
    assert result['avg_late_rate'] == 0
    assert result['avg_spacing_days'] is None


def test_only_completed_milestones_count_towards_timing():
    goals = [goal(
        milestone('2024-03-01', completed=True, completed_at='2024-02-28T10:00:00Z'),
        milestone('2024-03-08', completed=True, completed_at='2024-03-07T23:59:00Z'),
        milestone('2024-03-15'),
    )]

    result = analyze_goals(goals, [])

    assert result['completion_rate'] == 0
    assert result['avg_milestones'] == 3
    assert result['avg_on_time_rate'] == 100
    assert result['avg_late_rate'] == 0
    assert result['avg_spacing_days'] == 7
    assert result['recommendations'] == build_recommendations(0, 3, 100, 0, 7)


def test_date_only_deadline_is_due_at_midnight_utc():
    goals = [goal(
        milestone('2024-03-08', completed=True, completed_at='2024-03-08T00:00:00Z'),
        # later on the deadline day is already late
        milestone('2024-03-15', completed=True, completed_at='2024-03-15T18:00:00Z'),
    )]

    result = analyze_goals(goals, [])

    assert result['avg_on_time_rate'] == 50
    assert result['avg_late_rate'] == 50


def test_completion_after_deadline_day_is_late():
    goals = [goal(
        milestone('2024-03-01', completed=True, completed_at='2024-03-02T00:30:00Z'),
        milestone('2024-03-10', completed=True, completed_at='2024-03-09T12:00:00Z'),
    )]

    result = analyze_goals(goals, [])

    assert result['avg_on_time_rate'] == 50
    assert result['avg_late_rate'] == 50
    assert any('completed late' in rec for rec in result['recommendations'])


def test_missing_completed_at_uses_now():
    goals = [goal(milestone('2024-03-01', completed=True))]
    now = datetime(2024, 4, 1, tzinfo=dt_timezone.utc)

    result = analyze_goals(goals, [], now=now)

    assert result['avg_on_time_rate'] == 0
    assert result['avg_late_rate'] == 100


def test_milestones_are_sorted_by_deadline_before_spacing():
    goals = [goal(
        milestone('2024-01-21'),
        milestone('2024-01-01'),
        milestone('2024-01-11'),
    )]

    result = analyze_goals(goals, [])

    assert result['avg_spacing_days'] == 10
    assert "spaced about 10 days apart" in result['recommendations'][-1]


def test_goals_without_milestones_only_count_in_denominator():
    goals = [
        goal(milestone('2024-01-01', completed=True, completed_at='2023-12-30')),
        goal(linked_job_id=1),
    ]
    jobs = [{'id': 1, 'stage': 'offer'}]

    result = analyze_goals(goals, jobs)

    assert result['completion_rate'] == 50
    assert result['avg_milestones'] == 1
    # the milestone-less goal is skipped entirely, including its outcome
    assert result['career_success']['goals_leading_to_offers'] == 0
    assert result['career_success']['linked_goals'] == 0


def test_outcome_stages():
    jobs = [
        {'id': 1, 'stage': 'offer'},
        {'id': 2, 'stage': 'final_round'},
        {'id': 3, 'stage': 'technical'},
        {'id': 4, 'stage': 'applied'},
        {'id': 5, 'stage': 'phone_screen'},
    ]
    goals = [goal(milestone('2024-01-01'), linked_job_id=i) for i in range(1, 6)]
    goals.append(goal(milestone('2024-01-01'), linked_job_id=99))  # unknown job

    success = analyze_goals(goals, jobs)['career_success']

    assert success['goals_leading_to_offers'] == 1
    assert success['goals_leading_to_interviews'] == 3
    assert success['linked_goals'] == 5


def test_offer_conversion_rate_divides_by_all_goals():
    """The rate is offers over every goal, not over linked goals (2 linked, 4 total)."""
    jobs = [{'id': 1, 'stage': 'offer'}, {'id': 2, 'stage': 'applied'}]
    goals = [
        goal(milestone('2024-01-01'), linked_job_id=1),
        goal(milestone('2024-01-01'), linked_job_id=2),
        goal(milestone('2024-01-01')),
        goal(milestone('2024-01-01')),
    ]

    success = analyze_goals(goals, jobs)['career_success']

    assert success['offer_conversion_rate'] == 25
    assert success['linked_goals'] == 2


def test_offer_conversion_rate_is_zero_without_offers():
    jobs = [{'id': 1, 'stage': 'interview'}]
    goals = [goal(milestone('2024-01-01'), linked_job_id=1)]

    assert analyze_goals(goals, jobs)['career_success']['offer_conversion_rate'] == 0


def test_rates_round_half_up():
    goals = [goal(milestone('2024-01-01', completed=True, completed_at='2024-01-01'))]
    goals += [goal() for _ in range(7)]

    # 1/8 = 12.5%
    assert analyze_goals(goals, [])['completion_rate'] == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(0.49) == 0


def test_recommendation_thresholds():
    recs = build_recommendations(80, 6, 50, 50, 3)
    assert recs[0].startswith("Strong completion rate!")
    assert recs[1].startswith("Your goals average 6 milestones")
    assert recs[2].startswith("Most of your milestones are completed late.")
    assert recs[3].startswith("Your milestones are spaced very close together.")

    recs = build_recommendations(39, 2, 80, 20, 22)
    assert recs[0].startswith("Your completion rate is low.")
    assert recs[1].startswith("Your goals tend to have very few milestones.")
    assert recs[2].startswith("You're completing milestones on time consistently.")
    assert recs[3].startswith("Milestones are spaced far apart.")


def test_fallback_recommendation_when_nothing_fires():
    recs = build_recommendations(50, 3, 60, 40, None)
    assert len(recs) == 1
    assert recs[0].startswith("Keep tracking your goals")
