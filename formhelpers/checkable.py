"""Checked and selected state for checkboxes, radios and select options."""

from __future__ import annotations

from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db.models import QuerySet
from django.db.models.manager import BaseManager

from .utils.compare import is_truthy, loose_contains, loose_equals, stringify


def as_queryset(value: Any) -> Optional[QuerySet]:
    """Return ``value`` as a queryset when it is one or a (related) manager."""
    if isinstance(value, QuerySet):
        return value
    if isinstance(value, BaseManager):
        return value.all()
    return None


def queryset_contains(queryset: QuerySet, value: Any) -> bool:
    if value is None or value == "":
        return False
    try:
        return queryset.filter(pk=value).exists()
    except (TypeError, ValueError, ValidationError):
        return False


def checkbox_checked(resolver, name: str, value: Any, checked: Optional[bool]) -> Optional[bool]:
    live = resolver.request_value(name)

    # A submitted form without an entry for this checkbox means it was unchecked.
    if (
        not live
        and resolver.old_input is not None
        and not resolver.old_input_is_empty()
        and resolver.old(name, "checkbox") is None
    ):
        return False

    if live is None and resolver.missing_old_and_model(name):
        return checked

    posted = resolver.resolve(name, checked, "checkbox")

    if isinstance(posted, (list, tuple)):
        return loose_contains(posted, value)

    queryset = as_queryset(posted)
    if queryset is not None:
        return queryset_contains(queryset, value)

    return is_truthy(posted)


def radio_checked(resolver, name: str, value: Any, checked: Optional[bool]) -> Optional[bool]:
    live = resolver.request_value(name)

    if not live and resolver.missing_old_and_model(name):
        return checked

    return loose_equals(resolver.resolve(name, None, "radio"), value)


def checked_state(resolver, field_type: str, name: str, value: Any, checked: Optional[bool]) -> Optional[bool]:
    if field_type == "checkbox":
        return checkbox_checked(resolver, name, value, checked)
    if field_type == "radio":
        return radio_checked(resolver, name, value, checked)
    return loose_equals(resolver.resolve(name, None, field_type), value)


def is_selected(value: Any, selected: Any) -> bool:
    """Whether the option ``value`` is part of the ``selected`` value(s)."""

    if isinstance(selected, (list, tuple, set, frozenset)):
        return loose_contains(selected, value)

    queryset = as_queryset(selected)
    if queryset is not None:
        return queryset_contains(queryset, value)

    return stringify(value) == stringify(selected)
