"""Old input kept in the session across a failed-validation redirect."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .conf import get_setting
from .utils.keys import expand_input, lookup

logger = logging.getLogger(__name__)


class OldInputStore:
    """Read-only view over the input submitted on the previous request."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self.data = dict(data or {})

    @classmethod
    def from_request(cls, request):
        """Build the store from what ``OldInputMiddleware`` left on the request.

        Returns ``None`` when the request carries no session, so callers can
        tell "no session" apart from "nothing was flashed".
        """

        if not hasattr(request, "session"):
            return None
        data = getattr(request, "old_input", None)
        if data is None:
            data = request.session.get(get_setting("OLD_INPUT_KEY"), {})
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        return lookup(self.data, key, default)

    def all(self) -> dict:
        return self.data

    def count(self) -> int:
        return len(self.data)


def flash_input(request, data=None, errors=None) -> None:
    """Keep submitted input (and validation errors) for the next request.

    ``data`` defaults to ``request.POST``; fields listed in
    ``FORMHELPERS_DONT_FLASH`` and the CSRF field are never stored.
    ``errors`` may be a Django ``ErrorDict`` or a plain mapping of field
    name to messages.
    """

    if data is None:
        data = request.POST
    exclude = tuple(get_setting("DONT_FLASH")) + (get_setting("CSRF_FIELD"),)
    request.session[get_setting("OLD_INPUT_KEY")] = expand_input(data, exclude=exclude)

    if errors:
        request.session[get_setting("ERRORS_KEY")] = {
            field: [str(message) for message in messages]
            for field, messages in errors.items()
        }
    logger.debug("Flashed old input for %s", request.path)
