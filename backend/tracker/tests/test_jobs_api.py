import pytest

from django.urls import reverse
from rest_framework.test import APIClient

from tracker.models import JobEntry
from tracker.tests.fixtures import DocumentFactory, JobEntryFactory, UserFactory


@pytest.mark.django_db
class TestJobsAPI:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def test_requires_authentication(self):
        resp = APIClient().get(reverse('jobs-list-create'))
        assert resp.status_code in (401, 403)

    def test_create_job_records_history(self):
        resp = self.client.post(reverse('jobs-list-create'), {
            'title': 'Platform Engineer',
            'company_name': 'Umbrella',
            'stage': 'applied',
        }, format='json')

        assert resp.status_code == 201
        data = resp.json()
        assert data['last_stage_change'] is not None
        assert data['application_history'][0]['action'] == 'Added as Applied'
        assert JobEntry.objects.get(pk=data['id']).user == self.user

    def test_missing_title_is_400(self):
        resp = self.client.post(reverse('jobs-list-create'), {'company_name': 'Umbrella'}, format='json')
        assert resp.status_code == 400
        assert 'title' in resp.json()

    def test_stage_change_is_logged(self):
        job = JobEntryFactory(user=self.user, stage='applied')

        resp = self.client.patch(reverse('job-detail', args=[job.id]), {'stage': 'interview'}, format='json')

        assert resp.status_code == 200
        assert resp.json()['stage'] == 'interview'
        assert resp.json()['application_history'][-1]['action'] == 'Stage changed: Applied -> Interview'

    def test_same_stage_adds_no_history(self):
        job = JobEntryFactory(user=self.user, stage='applied')

        resp = self.client.patch(reverse('job-detail', args=[job.id]), {'stage': 'applied', 'location': 'Remote'}, format='json')

        assert resp.json()['application_history'] == []
        assert resp.json()['location'] == 'Remote'

    def test_list_scoped_and_filtered_by_stage(self):
        JobEntryFactory(user=self.user, stage='applied')
        JobEntryFactory(user=self.user, stage='offer')
        JobEntryFactory(stage='offer')

        assert len(self.client.get(reverse('jobs-list-create')).json()) == 2
        resp = self.client.get(reverse('jobs-list-create'), {'stage': 'offer'})
        assert len(resp.json()) == 1

    def test_other_users_job_is_404(self):
        job = JobEntryFactory()
        resp = self.client.get(reverse('job-detail', args=[job.id]))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Job not found"}

    def test_delete_job(self):
        job = JobEntryFactory(user=self.user)
        resp = self.client.delete(reverse('job-detail', args=[job.id]))
        assert resp.status_code == 204
        assert not JobEntry.objects.filter(pk=job.pk).exists()


@pytest.mark.django_db
class TestDocumentsAPI:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def test_create_and_filter_documents(self):
        resp = self.client.post(reverse('documents-list-create'), {
            'doc_type': 'cover_letter', 'name': 'Generic letter', 'content': 'Dear hiring manager',
        }, format='json')
        assert resp.status_code == 201

        DocumentFactory(user=self.user, doc_type='resume')
        DocumentFactory(doc_type='resume')

        assert len(self.client.get(reverse('documents-list-create')).json()) == 2
        resp = self.client.get(reverse('documents-list-create'), {'doc_type': 'resume'})
        assert len(resp.json()) == 1
