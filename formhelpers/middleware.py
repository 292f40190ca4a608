import logging

from .conf import get_setting
from .values import METHOD_FIELD

logger = logging.getLogger(__name__)


class OldInputMiddleware:
    """Move flashed input and errors from the session onto the request.

    Values flashed while handling one request are available as
    ``request.old_input`` and ``request.form_errors`` on the next request
    only. Must run after ``SessionMiddleware``.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        session = getattr(request, "session", None)
        if session is None:
            request.old_input, request.form_errors = {}, {}
        else:
            request.old_input = session.pop(get_setting("OLD_INPUT_KEY"), {})
            request.form_errors = session.pop(get_setting("ERRORS_KEY"), {})
        return self.get_response(request)


class MethodOverrideMiddleware:
    """Treat a POST carrying ``_method`` as PUT, PATCH or DELETE.

    Runs in ``process_view`` so it must be listed after
    ``CsrfViewMiddleware``, which only reads the token from POST bodies.
    """

    allowed_methods = ("PUT", "PATCH", "DELETE")

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_view(self, request, view_func, view_args, view_kwargs):
        if request.method == "POST":
            # Django only parses bodies of POST requests, so read it first.
            spoofed = request.POST.get(METHOD_FIELD, "").upper()
            if spoofed in self.allowed_methods:
                logger.debug("Overriding POST with %s for %s", spoofed, request.path)
                request.method = spoofed
        return None
