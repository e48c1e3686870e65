"""
URL configuration for the tracker API (mounted under /api/).
"""
from django.urls import path
from tracker import views

# app_name = 'tracker'  # Left unset so tests can reverse() without a namespace

urlpatterns = [
    # Jobs
    path('jobs/', views.jobs_list_create, name='jobs-list-create'),
    path('jobs/<int:job_id>/', views.job_detail, name='job-detail'),
    path('jobs/<int:job_id>/references/', views.job_references, name='job-references'),
    path('jobs/<int:job_id>/references/<uuid:reference_id>/', views.job_reference_detail, name='job-reference-detail'),

    # SMART goals
    path('goals/', views.goals_list_create, name='goals-list-create'),
    path('goals/insights/', views.goal_insights, name='goal-insights'),
    path('goals/<uuid:goal_id>/', views.goal_detail, name='goal-detail'),
    path('goals/<uuid:goal_id>/short-term/<uuid:milestone_id>/', views.goal_milestone_toggle, name='goal-milestone-toggle'),

    # Automation
    path('automation/', views.automation_rules_list_create, name='automation-rules-list-create'),
    path('automation/<uuid:rule_id>/', views.automation_rule_detail, name='automation-rule-detail'),
    path('automation/<uuid:rule_id>/run/', views.automation_rule_run, name='automation-rule-run'),
    path('notifications/', views.notifications_list, name='notifications-list'),
    path('documents/', views.documents_list_create, name='documents-list-create'),

    # References
    path('references/', views.references_list_create, name='references-list-create'),
    path('references/impact/', views.reference_impact_view, name='reference-impact'),
    path('references/portfolio/', views.reference_portfolio, name='reference-portfolio'),
    path('references/appreciation/', views.reference_appreciation, name='reference-appreciation'),
    path('references/<uuid:reference_id>/', views.reference_detail, name='reference-detail'),
    path('references/<uuid:reference_id>/relationship/', views.reference_relationship_add, name='reference-relationship-add'),
]
