from django.contrib.admindocs.views import simplify_regex
from django.urls import URLPattern, URLResolver, get_resolver
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView


class APIRootView(APIView):
    """
    Lists the direct children of the current path.

    Walks the URL configuration in resolver order, so the first matching
    pattern wins.

    Usage:
        path('api/v1/', APIRootView.as_view(view_name='v1'), name='v1-root'),
    """

    permission_classes = [AllowAny]
    view_name = None  # Set via as_view(view_name="...")

    def get_view_name(self):
        if self.view_name:
            return self.view_name
        return "API Root"

    def get(self, request):
        prefix = request.path if request.path.startswith("/") else "/" + request.path
        current_url_name = getattr(request.resolver_match, "url_name", None)
        script_name = request.META.get("SCRIPT_NAME", "")

        seen_paths = set()
        endpoints = {}

        for clean_path, pattern_name in self._extract_patterns(get_resolver().url_patterns, ""):
            if not clean_path.startswith(prefix):
                continue
            relative_path = clean_path[len(prefix) :]
            if not relative_path or relative_path == "/":
                continue

            first_segment = relative_path.strip("/").split("/")[0]
            # skip parameters and format suffixes
            if "<" in first_segment or "." in first_segment or not first_segment:
                continue
            if pattern_name and (pattern_name.endswith("-index") or pattern_name == "api-root"):
                continue
            if pattern_name == current_url_name:
                continue
            if first_segment in seen_paths:
                continue
            seen_paths.add(first_segment)

            endpoints[first_segment] = request.build_absolute_uri(script_name + prefix + first_segment + "/")

        return Response(dict(sorted(endpoints.items())))

    def _extract_patterns(self, patterns, current_path):
        """Yield (clean_path, pattern_name) tuples in traversal order."""
        for pattern in patterns:
            raw_path = current_path + str(pattern.pattern)
            clean_path = simplify_regex(raw_path)

            if isinstance(pattern, URLResolver):
                yield (clean_path, None)
                yield from self._extract_patterns(pattern.url_patterns, raw_path)
            elif isinstance(pattern, URLPattern):
                yield (clean_path, pattern.name)
