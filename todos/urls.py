from django.urls import path

from . import views

app_name = "todos"

urlpatterns = [
    path("", views.task_collection, name="task_collection"),
    path("occurrences/", views.occurrences, name="occurrences"),
    path("<int:task_id>/", views.task_detail, name="task_detail"),
    path("<int:task_id>/complete/", views.complete, name="complete"),
    path("<int:task_id>/uncomplete/", views.uncomplete, name="uncomplete"),
    # Series lengths outside 1..TODOS["MAX_SERIES_LENGTH"], 0 included, answer 400.
    path("analytics/daily/<int:days>/", views.analytics_daily, name="analytics_daily"),
    path("analytics/weekly/<int:weeks>/", views.analytics_weekly, name="analytics_weekly"),
    path("analytics/monthly/<int:months>/", views.analytics_monthly, name="analytics_monthly"),
    path("analytics/statistics/", views.analytics_statistics, name="analytics_statistics"),
    path("analytics/history/<int:days>/", views.analytics_history, name="analytics_history"),
    path("analytics/dashboard/overview/", views.dashboard_overview, name="dashboard_overview"),
]
