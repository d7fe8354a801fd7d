import logging
import time
import uuid

logger = logging.getLogger("todos.requests")


class RequestIdMiddleware:
    """Tag each request with an id, echo it in ``X-Request-ID`` and log it."""

    header = "X-Request-ID"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.id = request.headers.get(self.header) or uuid.uuid4().hex
        started = time.monotonic()
        response = self.get_response(request)
        response[self.header] = request.id
        logger.info(
            "%s %s -> %s (%.1f ms) [%s]",
            request.method,
            request.path,
            response.status_code,
            (time.monotonic() - started) * 1000,
            request.id,
        )
        return response
