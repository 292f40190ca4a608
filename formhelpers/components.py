"""Registries for named snippets that callers add to the builders.

A *component* renders a template with arguments mapped onto a signature;
a *macro* is a plain callable bound to the builder. Each builder class owns
its own registries.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

from django.utils.safestring import mark_safe

from .exceptions import UnknownExtensionError


@dataclass(frozen=True)
class Component:
    template: str
    signature: Tuple[Tuple[str, Any], ...]

    def get_data(self, args, kwargs) -> Dict[str, Any]:
        """Map positional and keyword arguments onto the signature, using defaults for the rest."""

        data = {}
        for index, (variable, default) in enumerate(self.signature):
            if variable in kwargs:
                data[variable] = kwargs[variable]
            elif index < len(args):
                data[variable] = args[index]
            else:
                data[variable] = default
        return data


def _normalize_signature(signature) -> Tuple[Tuple[str, Any], ...]:
    # ``{"name": default}`` or ``["name", ("other", default)]``
    if isinstance(signature, Mapping):
        return tuple(signature.items())

    normalized = []
    for item in signature:
        if isinstance(item, str):
            normalized.append((item, None))
        else:
            variable, default = item
            normalized.append((variable, default))
    return tuple(normalized)


class Componentable:
    """Mixin giving a builder class ``component``/``macro`` registration and ``call``."""

    _components: Dict[str, Component] = {}
    _macros: Dict[str, Callable] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._components = {}
        cls._macros = {}

    @classmethod
    def component(cls, name: str, template: str, signature=()) -> None:
        cls._components[name] = Component(template, _normalize_signature(signature))

    @classmethod
    def has_component(cls, name: str) -> bool:
        return name in cls._components

    @classmethod
    def macro(cls, name: str, func: Callable) -> None:
        cls._macros[name] = func

    @classmethod
    def has_macro(cls, name: str) -> bool:
        return name in cls._macros

    def render_component(self, name: str, *args, **kwargs):
        component = self._components[name]
        data = component.get_data(args, kwargs)
        return mark_safe(self.view.render(component.template, data))

    def call(self, name: str, *args, **kwargs):
        """Invoke the component or macro registered under ``name``."""

        if self.has_component(name):
            return self.render_component(name, *args, **kwargs)
        if self.has_macro(name):
            return self._macros[name](self, *args, **kwargs)
        raise UnknownExtensionError(type(self).__name__, name)
