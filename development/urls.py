from django.urls import path
from . import views

app_name = 'development'

urlpatterns = [
    # Plans
    path('plans/', views.plan_list, name='plan_list'),
    path('plans/create/', views.plan_create, name='plan_create'),
    path('plans/generate/', views.plan_generate, name='plan_generate'),
    path('plans/<uuid:plan_id>/delete/', views.plan_delete, name='plan_delete'),
    path('plans/<uuid:plan_id>/activate/', views.plan_activate, name='plan_activate'),
    path('plans/<uuid:plan_id>/recalculate/', views.plan_recalculate, name='plan_recalculate'),
    path('plans/<uuid:plan_id>/report.pdf', views.PlanReportPdfView.as_view(), name='plan_report_pdf'),

    # Milestones
    path('plans/<uuid:plan_id>/milestones/create/', views.milestone_create, name='milestone_create'),
    path('plans/<uuid:plan_id>/milestones/<uuid:milestone_id>/toggle/', views.milestone_toggle, name='milestone_toggle'),
    path('plans/<uuid:plan_id>/milestones/<uuid:milestone_id>/edit/', views.milestone_edit, name='milestone_edit'),
    path('plans/<uuid:plan_id>/milestones/<uuid:milestone_id>/delete/', views.milestone_delete, name='milestone_delete'),

    # Habits
    path('plans/<uuid:plan_id>/habits/create/', views.habit_create, name='habit_create'),
    path('plans/<uuid:plan_id>/habits/<uuid:habit_id>/complete/', views.habit_complete, name='habit_complete'),
    path('plans/<uuid:plan_id>/habits/<uuid:habit_id>/streak/', views.habit_streak, name='habit_streak'),
    path('plans/<uuid:plan_id>/habits/<uuid:habit_id>/edit/', views.habit_edit, name='habit_edit'),
    path('plans/<uuid:plan_id>/habits/<uuid:habit_id>/delete/', views.habit_delete, name='habit_delete'),

    # Skills
    path('plans/<uuid:plan_id>/skills/create/', views.skill_create, name='skill_create'),
    path('plans/<uuid:plan_id>/skills/<uuid:skill_id>/edit/', views.skill_edit, name='skill_edit'),
    path('plans/<uuid:plan_id>/skills/<uuid:skill_id>/progress/', views.skill_progress, name='skill_progress'),
    path('plans/<uuid:plan_id>/skills/<uuid:skill_id>/delete/', views.skill_delete, name='skill_delete'),

    # Sophia
    path('sophia/', views.sophia_history, name='sophia_history'),
    path('sophia/chat/', views.sophia_chat, name='sophia_chat'),
    path('sophia/clear/', views.sophia_clear, name='sophia_clear'),
]
