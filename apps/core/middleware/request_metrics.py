"""
Request metrics middleware.

Counts every HTTP request and observes its duration, labelled by method,
the matched URL route and the response status. Requests that match no
route share the ``unmatched`` label so a scan of random paths cannot grow
the label set.
"""

import time

from apps.core import metrics


class RequestMetricsMiddleware:
    """Feeds ``inventory_api_requests_total`` and ``inventory_api_request_duration_seconds``."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)

        match = getattr(request, "resolver_match", None)
        route = match.route if match is not None else "unmatched"
        metrics.API_REQUESTS.labels(method=request.method, route=route, status=str(response.status_code)).inc()
        metrics.API_REQUEST_SECONDS.labels(method=request.method, route=route).observe(time.monotonic() - started)
        return response
