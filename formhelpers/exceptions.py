from django.core.exceptions import ImproperlyConfigured


class FormHelpersError(Exception):
    """Base class for errors raised by the form helpers."""


class UnknownExtensionError(FormHelpersError, AttributeError):
    """Raised when calling a component or macro that was never registered."""

    def __init__(self, owner, name):
        self.owner = owner
        self.name = name
        super().__init__(f"{owner}.{name} does not exist.")


class MissingCsrfTokenError(FormHelpersError, ImproperlyConfigured):
    """Raised when a CSRF field is requested without a token or a request."""
