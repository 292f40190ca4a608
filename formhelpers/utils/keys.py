"""Field name normalization and nested data lookups."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable

from django.core.exceptions import ObjectDoesNotExist

_KEY_REPLACEMENTS = (("[]", ""), ("[", "."), ("]", ""))


def normalize_key(name: str) -> str:
    """Turn bracket notation into a dotted path: ``user[address][city]`` -> ``user.address.city``."""

    for old, new in _KEY_REPLACEMENTS:
        name = name.replace(old, new)
    return name


def lookup(target: Any, key: str | None, default: Any = None) -> Any:
    """Walk ``target`` following the dotted ``key``.

    Each segment is resolved as a mapping key, a sequence index or an
    attribute, in that order. Missing segments (including empty related
    objects on Django models) return ``default``.
    """

    if key is None or key == "":
        return target

    for segment in key.split("."):
        if target is None:
            return default
        if isinstance(target, Mapping):
            if segment not in target:
                return default
            target = target[segment]
        elif isinstance(target, (list, tuple)):
            try:
                target = target[int(segment)]
            except (ValueError, IndexError):
                return default
        else:
            try:
                target = getattr(target, segment)
            except (AttributeError, ValueError, ObjectDoesNotExist):
                return default
    return target


def expand_input(data: Any, exclude: Iterable[str] = ()) -> dict:
    """Expand flat submitted data into nested dictionaries and lists.

    ``data`` is a ``QueryDict`` or a plain mapping. Names ending in ``[]``
    or carrying more than one value become lists; bracket and dotted names
    become nested dictionaries. Keys whose normalized name is listed in
    ``exclude`` are skipped, as are names that collide with a scalar
    already stored at the same path.
    """

    excluded = {normalize_key(name) for name in exclude}
    expanded: dict = {}

    for raw_key in data:
        key = normalize_key(raw_key)
        if key in excluded or key.split(".")[0] in excluded:
            continue

        if hasattr(data, "getlist"):
            values = data.getlist(raw_key)
        else:
            values = data[raw_key]
            if not isinstance(values, (list, tuple)):
                values = [values]

        if raw_key.endswith("[]") or len(values) > 1:
            value = list(values)
        else:
            value = values[0] if values else None

        *parents, leaf = key.split(".")
        target = expanded
        for segment in parents:
            target = target.setdefault(segment, {})
            if not isinstance(target, dict):
                break
        else:
            target[leaf] = value

    return expanded
