import pytest
from datetime import date, timedelta

from django.urls import reverse
from rest_framework.test import APIClient

from tracker.models import DEFAULT_MEASURABLE, ShortTermGoal, SmartGoal
from tracker.tests.fixtures import (
    JobEntryFactory, ShortTermGoalFactory, SmartGoalFactory, UserFactory,
)


@pytest.mark.django_db
class TestGoalsAPI:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def _payload(self, **overrides):
        today = date.today()
        payload = {
            'specific': 'Land a backend engineering role',
            'achievable': True,
            'relevant': True,
            'deadline': str(today + timedelta(days=90)),
            'short_term_goals': [
                {'title': 'Update resume', 'deadline': str(today + timedelta(days=7))},
                {'title': 'Apply to 10 jobs', 'deadline': str(today + timedelta(days=21))},
            ],
        }
        payload.update(overrides)
        return payload

    def test_requires_authentication(self):
        resp = APIClient().get(reverse('goals-list-create'))
        assert resp.status_code in (401, 403)

    def test_create_goal_with_nested_milestones(self):
        job = JobEntryFactory(user=self.user)

        resp = self.client.post(reverse('goals-list-create'), self._payload(linked_job_id=job.id), format='json')

        assert resp.status_code == 201
        data = resp.json()
        assert data['measurable'] == DEFAULT_MEASURABLE
        assert data['linked_job_id'] == job.id
        assert [m['title'] for m in data['short_term_goals']] == ['Update resume', 'Apply to 10 jobs']
        assert all(m['linked_job_id'] == job.id for m in data['short_term_goals'])
        assert all(m['completed'] is False for m in data['short_term_goals'])
        assert data['is_complete'] is False

    @pytest.mark.parametrize('flags', [
        {'achievable': False, 'relevant': True},
        {'achievable': True, 'relevant': False},
    ])
    def test_goal_must_be_achievable_and_relevant(self, flags):
        resp = self.client.post(reverse('goals-list-create'), self._payload(**flags), format='json')

        assert resp.status_code == 400
        assert resp.json()['non_field_errors'] == ["Goal must be achievable AND relevant."]
        assert SmartGoal.objects.count() == 0

    def test_cannot_link_another_users_job(self):
        other_job = JobEntryFactory()

        resp = self.client.post(reverse('goals-list-create'), self._payload(linked_job_id=other_job.id), format='json')

        assert resp.status_code == 400
        assert 'linked_job_id' in resp.json()

    def test_list_only_returns_own_goals(self):
        SmartGoalFactory(user=self.user)
        SmartGoalFactory()

        resp = self.client.get(reverse('goals-list-create'))

        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_detail_404_for_other_user(self):
        goal = SmartGoalFactory()

        resp = self.client.get(reverse('goal-detail', args=[goal.id]))

        assert resp.status_code == 404
        assert resp.json() == {"error": "Goal not found"}

    def test_relinking_goal_moves_inherited_milestones(self):
        old_job = JobEntryFactory(user=self.user)
        new_job = JobEntryFactory(user=self.user)
        goal = SmartGoalFactory(user=self.user, linked_job=old_job)
        ShortTermGoalFactory(goal=goal)

        resp = self.client.patch(reverse('goal-detail', args=[goal.id]), {'linked_job_id': new_job.id}, format='json')

        assert resp.status_code == 200
        assert resp.json()['short_term_goals'][0]['linked_job_id'] == new_job.id

    def test_delete_goal(self):
        goal = SmartGoalFactory(user=self.user)
        ShortTermGoalFactory(goal=goal)

        resp = self.client.delete(reverse('goal-detail', args=[goal.id]))

        assert resp.status_code == 204
        assert not SmartGoal.objects.filter(pk=goal.pk).exists()
        assert ShortTermGoal.objects.count() == 0


@pytest.mark.django_db
class TestMilestoneOrdering:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)
        self.goal = SmartGoalFactory(user=self.user)
        today = date.today()
        # created out of order on purpose; ordering follows deadline
        self.third = ShortTermGoalFactory(goal=self.goal, deadline=today + timedelta(days=30))
        self.first = ShortTermGoalFactory(goal=self.goal, deadline=today + timedelta(days=10))
        self.second = ShortTermGoalFactory(goal=self.goal, deadline=today + timedelta(days=20))

    def _toggle(self, milestone, completed):
        url = reverse('goal-milestone-toggle', args=[self.goal.id, milestone.id])
        return self.client.patch(url, {'completed': completed}, format='json')

    def test_complete_in_order(self):
        for milestone in (self.first, self.second, self.third):
            resp = self._toggle(milestone, True)
            assert resp.status_code == 200
            assert resp.json()['completed'] is True
            assert resp.json()['completed_at'] is not None

        self.goal.refresh_from_db()
        assert self.goal.is_complete()

    def test_cannot_skip_ahead(self):
        resp = self._toggle(self.second, True)

        assert resp.status_code == 409
        assert resp.json()['error']['code'] == 'milestone_order'
        self.second.refresh_from_db()
        assert self.second.completed is False

    def test_cannot_reopen_before_later_milestones(self):
        self._toggle(self.first, True)
        self._toggle(self.second, True)

        resp = self._toggle(self.first, False)
        assert resp.status_code == 409

        resp = self._toggle(self.second, False)
        assert resp.status_code == 200
        assert resp.json()['completed_at'] is None

        resp = self._toggle(self.first, False)
        assert resp.status_code == 200

    def test_repeated_completion_keeps_completed_at(self):
        first_completed_at = self._toggle(self.first, True).json()['completed_at']
        self.first.refresh_from_db()
        stored = self.first.completed_at

        resp = self._toggle(self.first, True)

        assert resp.status_code == 200
        assert resp.json()['completed_at'] == first_completed_at
        self.first.refresh_from_db()
        assert self.first.completed_at == stored

    def test_toggle_requires_boolean(self):
        url = reverse('goal-milestone-toggle', args=[self.goal.id, self.first.id])
        resp = self.client.patch(url, {}, format='json')
        assert resp.status_code == 400

    def test_unknown_milestone_is_404(self):
        other = ShortTermGoalFactory()
        resp = self._toggle(other, True)
        assert resp.status_code == 404


@pytest.mark.django_db
class TestGoalInsightsAPI:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def test_empty_state(self):
        resp = self.client.get(reverse('goal-insights'))

        assert resp.status_code == 200
        assert resp.json()['recommendations'] == ["Start by creating your first goal!"]

    def test_insights_use_goals_and_job_stages(self):
        offer_job = JobEntryFactory(user=self.user, stage='offer')
        goal = SmartGoalFactory(user=self.user, linked_job=offer_job)
        milestone = ShortTermGoalFactory(goal=goal, deadline=date.today() + timedelta(days=5))
        goal.set_milestone_completed(milestone, True)
        SmartGoalFactory(user=self.user)

        data = self.client.get(reverse('goal-insights')).json()

        assert data['completion_rate'] == 50
        assert data['avg_on_time_rate'] == 100
        assert data['career_success']['goals_leading_to_offers'] == 1
        assert data['career_success']['goals_leading_to_interviews'] == 1
        assert data['career_success']['offer_conversion_rate'] == 50
