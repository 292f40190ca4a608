"""Settings used by the form helpers, with their defaults."""

from django.conf import settings

DEFAULTS = {
    "CONSIDER_REQUEST": False,
    "EMPTY_STRINGS_TO_NULL": False,
    "CSRF_FIELD": "csrfmiddlewaretoken",
    "DONT_FLASH": ("password", "password_confirmation", "current_password"),
    "OLD_INPUT_KEY": "_formhelpers_old_input",
    "ERRORS_KEY": "_formhelpers_errors",
}


def get_setting(name):
    """Return ``FORMHELPERS_<name>`` from the Django settings or its default."""
    return getattr(settings, f"FORMHELPERS_{name}", DEFAULTS[name])
