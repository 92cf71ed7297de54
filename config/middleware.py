"""
CORS preflight short-circuit.
Browsers send OPTIONS before every cross-origin POST; those requests
never reach a view and always get an empty 200 carrying the CORS headers
that CorsMiddleware adds on the way out.
"""

from django.http import HttpResponse


class PreflightMiddleware:
    """Answer every OPTIONS request with an empty 200 body."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.method == 'OPTIONS':
            return HttpResponse(status=200)
        return self.get_response(request)
