"""Decide which value a form control displays.

Values are looked up in this order, first hit wins:

1. the current request, when ``consider_request`` is enabled;
2. old input flashed into the session by a failed submission;
3. the value passed explicitly by the caller;
4. the bound model.

The ``_method`` field never reads from the request or old input.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .utils.keys import lookup, normalize_key

METHOD_FIELD = "_method"

# Controls that test membership against the whole old-input sequence.
SEQUENCE_TYPES = ("select", "checkbox")


class OldInputQueue:
    """Cursor per field key over repeated old-input values.

    Several text inputs named ``tags[]`` each take the next flashed value.
    """

    def __init__(self):
        self._cursors: Dict[str, int] = {}

    def next(self, key: str, values) -> tuple:
        """Return ``(True, value)`` for the next unread value, ``(False, None)`` once exhausted."""

        cursor = self._cursors.get(key, 0)
        if cursor >= len(values):
            return False, None
        self._cursors[key] = cursor + 1
        return True, values[cursor]

    def reset(self) -> None:
        self._cursors.clear()


class FieldValueResolver:
    def __init__(
        self,
        old_input=None,
        request_input=None,
        errors=None,
        consider_request: bool = False,
        empty_strings_to_null: bool = False,
    ):
        self.old_input = old_input
        self.request_input = request_input
        self.errors = errors or {}
        self.consider_request = consider_request
        self.empty_strings_to_null = empty_strings_to_null
        self.model = None
        self.queue = OldInputQueue()

    def resolve(self, name: Optional[str], value: Any = None, field_type: Optional[str] = None) -> Any:
        if name is None:
            return value

        live = self.request_value(name)
        if live is not None and name != METHOD_FIELD:
            return live

        old = self.old(name, field_type)
        if old is not None and name != METHOD_FIELD:
            return old

        if self.empty_strings_to_null and old is None and value is None and self.has_errors():
            # Blank fields stay blank after a failed submission instead of
            # falling back to the model.
            return None

        if value is not None:
            return value

        if self.model is not None:
            return self.model_value(name)

        return None

    def request_value(self, name: str) -> Any:
        if not self.consider_request or self.request_input is None:
            return None
        return self.request_input.get(normalize_key(name))

    def old(self, name: str, field_type: Optional[str] = None) -> Any:
        if self.old_input is None:
            return None

        key = normalize_key(name)
        payload = self.old_input.get(key)
        if not isinstance(payload, (list, tuple)):
            return payload

        if field_type in SEQUENCE_TYPES:
            return payload

        found, value = self.queue.next(key, payload)
        if found:
            return value
        return None

    def old_input_is_empty(self) -> bool:
        return self.old_input is not None and self.old_input.count() == 0

    def model_value(self, name: str) -> Any:
        if self.model is None:
            return None

        key = normalize_key(name)
        supports = getattr(self.model, "supports_field_resolution", None)
        if supports is not None and supports(key):
            return self.model.get_field_value(key)
        return lookup(self.model, key)

    def has_old(self, name: str) -> bool:
        """Whether old input holds an entry for ``name``, without consuming queued values."""

        if self.old_input is None:
            return False
        return self.old_input.get(normalize_key(name)) is not None

    def missing_old_and_model(self, name: str) -> bool:
        return not self.has_old(name) and self.model_value(name) is None

    def has_errors(self) -> bool:
        try:
            return len(self.errors) > 0
        except TypeError:
            return False

    def reset(self) -> None:
        """Forget the bound model and queue cursors at the end of a form."""

        self.model = None
        self.queue.reset()
