"""Model mixin that controls how bound models feed form values."""

from __future__ import annotations

from typing import Any, Callable, Dict

from django.core.exceptions import FieldDoesNotExist

from .utils.keys import lookup


def form_mutator(key: str):
    """Mark a method as the form mutator for ``key``.

    The method receives the raw attribute value and returns what the form
    control should display::

        class Event(FormAccessible, models.Model):
            @form_mutator("starts_at")
            def form_starts_at(self, value):
                return value.strftime("%Y-%m-%d")
    """

    def decorator(func: Callable) -> Callable:
        func.form_mutator_key = key
        return func

    return decorator


class FormAccessible:
    """Resolve dotted form keys against a model instance.

    Mutators declared with :func:`form_mutator` are collected into
    ``form_mutators`` when the class is created.
    """

    form_mutators: Dict[str, str] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        mutators = {}
        for klass in reversed(cls.__mro__):
            for attr_name, attr in vars(klass).items():
                key = getattr(attr, "form_mutator_key", None)
                if key is not None:
                    mutators[key] = attr_name
        cls.form_mutators = mutators

    def supports_field_resolution(self, key: str) -> bool:
        return True

    def has_form_mutator(self, key: str) -> bool:
        return key in self.form_mutators

    def mutate_form_attribute(self, key: str, value: Any) -> Any:
        return getattr(self, self.form_mutators[key])(value)

    def is_nested_model(self, key: str) -> bool:
        meta = getattr(self, "_meta", None)
        if meta is None:
            return False
        try:
            return meta.get_field(key).is_relation
        except FieldDoesNotExist:
            return False

    def get_field_value(self, key: str) -> Any:
        if self.has_form_mutator(key):
            return self.mutate_form_attribute(key, lookup(self, key))

        first, _, rest = key.partition(".")
        if rest and self.is_nested_model(first):
            related = lookup(self, first)
            if isinstance(related, FormAccessible) and related.has_form_mutator(rest):
                return related.get_field_value(rest)
            return lookup(related, rest)

        return lookup(self, key)
