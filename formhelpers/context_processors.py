from .builder import FormBuilder
from .html import HtmlBuilder


def builders(request):
    """Expose the per-request builders to templates as ``html`` and ``form_builder``."""

    return {
        "html": HtmlBuilder.for_request(request),
        "form_builder": FormBuilder.for_request(request),
    }
