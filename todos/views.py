"""JSON endpoints for tasks, occurrences and analytics.

Every view requires a session-authenticated user and only ever sees that
user's tasks. Engine failures arrive as typed exceptions and are turned into
JSON error responses by ``api_view``.
"""

import json
import logging
from functools import wraps

from django.http import HttpResponseNotAllowed, JsonResponse

from . import analytics, services
from .exceptions import Forbidden, InvalidRange, NotFound, ValidationFailure
from .serializers import occurrence_to_dict, task_to_dict

logger = logging.getLogger(__name__)


def _error(message, status, **extra):
    return JsonResponse({"error": message, "status": status, **extra}, status=status)


def api_view(*methods):
    """Restrict methods, require login and map engine failures to responses."""

    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            if request.method not in methods:
                return HttpResponseNotAllowed(methods)
            if not request.user.is_authenticated:
                return _error("Authentication required", 401)
            try:
                return view_func(request, *args, **kwargs)
            except ValidationFailure as exc:
                logger.warning("Validation failed on %s: %s", request.path, exc.errors)
                return _error("Validation failed", 400, details=exc.errors)
            except Forbidden as exc:
                logger.warning("Forbidden on %s for user %s: %s", request.path, request.user.pk, exc)
                return _error("Not authorized to access this task", 403)
            except NotFound as exc:
                logger.warning("Not found on %s: %s", request.path, exc)
                return _error("Task not found", 404)
            except InvalidRange as exc:
                logger.warning("Invalid range on %s: %s", request.path, exc)
                return _error(str(exc), 400)

        return _wrapped_view

    return decorator


def _json_body(request):
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationFailure({"__all__": ["Request body must be valid JSON."]}) from None
    if not isinstance(payload, dict):
        raise ValidationFailure({"__all__": ["Request body must be a JSON object."]})
    return payload


@api_view("GET", "POST")
def task_collection(request):
    if request.method == "POST":
        task = services.create_task(request.user, _json_body(request))
        logger.info("Created task %s for user %s", task.pk, request.user.pk)
        return JsonResponse(task_to_dict(task), status=201)
    tasks = services.list_tasks(request.user)
    return JsonResponse([task_to_dict(task) for task in tasks], safe=False)


@api_view("GET", "PUT", "PATCH", "DELETE")
def task_detail(request, task_id):
    if request.method == "GET":
        task = services.get_task(request.user, task_id)
        return JsonResponse(task_to_dict(task))
    if request.method == "DELETE":
        services.delete_task(request.user, task_id)
        return JsonResponse({"message": "Task deleted", "id": task_id})
    task = services.update_task(request.user, task_id, _json_body(request))
    return JsonResponse(task_to_dict(task))


@api_view("GET")
def occurrences(request):
    params = request.GET
    kind = params.get("range", "today")
    start, end = services.window_for(
        kind,
        day=params.get("date"),
        year=params.get("year"),
        month=params.get("month"),
    )
    rows = services.list_occurrences_in_range(request.user, start, end)
    return JsonResponse({
        "range": kind,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "occurrences": [occurrence_to_dict(row) for row in rows],
    })


def _mark(request, task_id, completed):
    task = services.mark_occurrence(
        request.user, task_id, request.GET.get("date") or None, completed=completed,
    )
    return JsonResponse(task_to_dict(task))


@api_view("PATCH", "POST")
def complete(request, task_id):
    return _mark(request, task_id, True)


@api_view("PATCH", "POST")
def uncomplete(request, task_id):
    return _mark(request, task_id, False)


@api_view("GET")
def analytics_daily(request, days):
    return JsonResponse(analytics.daily_productivity(request.user, days), safe=False)


@api_view("GET")
def analytics_weekly(request, weeks):
    return JsonResponse(analytics.weekly_productivity(request.user, weeks), safe=False)


@api_view("GET")
def analytics_monthly(request, months):
    return JsonResponse(analytics.monthly_productivity(request.user, months), safe=False)


@api_view("GET")
def analytics_statistics(request):
    return JsonResponse(analytics.task_statistics(request.user))


@api_view("GET")
def analytics_history(request, days):
    return JsonResponse(analytics.completion_history(request.user, days), safe=False)


@api_view("GET")
def dashboard_overview(request):
    return JsonResponse(analytics.dashboard_overview(request.user))
