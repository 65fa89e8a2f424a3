from django.urls import path

from . import views

urlpatterns = [
    path("schedule/preview/", views.schedule_preview, name="schedule-preview"),
    path("packages/", views.package_list, name="package-list"),
    path("clients/", views.client_collection, name="client-collection"),
    path("clients/<uuid:client_id>/", views.client_detail, name="client-detail"),
    path("clients/<uuid:client_id>/complete-tasks/", views.client_complete_tasks, name="client-complete-tasks"),
    path("clients/<uuid:client_id>/notes/", views.client_notes, name="client-notes"),
    path("clients/<uuid:client_id>/notes/<int:note_id>/", views.client_note_detail, name="client-note-detail"),
    path("clients/<uuid:client_id>/payments/", views.client_payments, name="client-payments"),
    path("tasks/", views.task_list, name="task-list"),
    path("tasks/board/", views.task_board, name="task-board"),
    path("tasks/<str:task_id>/", views.task_detail, name="task-detail"),
    path("tasks/<str:task_id>/notes/", views.task_notes, name="task-notes"),
    path("calendar/", views.calendar, name="calendar"),
    path("activity/", views.activity, name="activity"),
    path("team/", views.team, name="team"),
    path("metrics/dashboard/", views.dashboard_metrics, name="dashboard-metrics"),
    path("metrics/analytics/", views.analytics, name="analytics"),
    path("revenue/reset/", views.reset_revenue, name="reset-revenue"),
]
