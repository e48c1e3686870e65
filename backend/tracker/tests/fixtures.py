"""
Test fixtures and factories for creating test data.
Uses factory_boy for consistent test data generation.
"""
from datetime import date, timedelta

import factory
from factory.django import DjangoModelFactory
from django.contrib.auth import get_user_model
from django.utils import timezone
from tracker.models import (
    AutomationRule,
    Document,
    JobEntry,
    JobReference,
    Reference,
    ShortTermGoal,
    SmartGoal,
)

User = get_user_model()


class UserFactory(DjangoModelFactory):
    """Factory for creating test users"""
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.Sequence(lambda n: f'user{n}@example.com')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    is_active = True


class JobEntryFactory(DjangoModelFactory):
    class Meta:
        model = JobEntry

    user = factory.SubFactory(UserFactory)
    title = factory.Faker('job')
    company_name = factory.Faker('company')
    stage = 'interested'
    industry = 'Technology'


class DocumentFactory(DjangoModelFactory):
    class Meta:
        model = Document

    user = factory.SubFactory(UserFactory)
    doc_type = 'resume'
    name = factory.Sequence(lambda n: f'Resume v{n}')
    content = factory.Faker('text', max_nb_chars=200)


class SmartGoalFactory(DjangoModelFactory):
    class Meta:
        model = SmartGoal

    user = factory.SubFactory(UserFactory)
    specific = factory.Faker('sentence')
    achievable = True
    relevant = True
    deadline = factory.LazyFunction(lambda: date.today() + timedelta(days=60))


class ShortTermGoalFactory(DjangoModelFactory):
    """Milestones default to one week apart."""
    class Meta:
        model = ShortTermGoal

    goal = factory.SubFactory(SmartGoalFactory)
    title = factory.Sequence(lambda n: f'Milestone {n}')
    deadline = factory.Sequence(lambda n: date.today() + timedelta(days=7 * (n + 1)))
    linked_job = factory.LazyAttribute(lambda obj: obj.goal.linked_job)


class ReferenceFactory(DjangoModelFactory):
    class Meta:
        model = Reference

    user = factory.SubFactory(UserFactory)
    full_name = factory.Faker('name')
    title = 'Engineering Manager'
    organization = factory.Faker('company')
    relationship = 'Former manager'
    email = factory.Sequence(lambda n: f'ref{n}@example.com')
    tags = factory.LazyFunction(list)


class JobReferenceFactory(DjangoModelFactory):
    class Meta:
        model = JobReference

    job = factory.SubFactory(JobEntryFactory)
    reference = factory.SubFactory(ReferenceFactory, user=factory.SelfAttribute('..job.user'))


class AutomationRuleFactory(DjangoModelFactory):
    """Defaults to a due one-shot follow-up."""
    class Meta:
        model = AutomationRule

    user = factory.SubFactory(UserFactory)
    type = 'follow_up'
    schedule = factory.LazyFunction(lambda: timezone.now() - timedelta(minutes=5))
    config = factory.LazyFunction(lambda: {'message': 'Ping the recruiter'})
