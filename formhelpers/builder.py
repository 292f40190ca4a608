"""Form builder: opens and closes forms and renders their controls.

Every value-bearing control asks the :class:`FieldValueResolver` what to
display, so a form redisplayed after a failed submission comes back filled
with what the user typed, and an edit form falls back to the bound model.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from typing import Any, Optional

from django.middleware.csrf import get_token
from django.utils.dates import MONTHS
from django.utils.html import conditional_escape
from django.utils.safestring import SafeString, mark_safe
from django.utils.text import capfirst

from .adapters import DjangoUrlGenerator, DjangoViewRenderer, RequestInput
from .checkable import checked_state, is_selected
from .components import Componentable
from .conf import get_setting
from .exceptions import MissingCsrfTokenError
from .html import HtmlBuilder
from .session import OldInputStore
from .utils.compare import stringify
from .values import METHOD_FIELD, FieldValueResolver

logger = logging.getLogger(__name__)

DATE_FORMATS = {
    "date": "%Y-%m-%d",
    "datetime-local": "%Y-%m-%dT%H:%M",
    "time": "%H:%M",
    "week": "%G-W%V",
    "month": "%Y-%m",
}


def _is_group(display: Any) -> bool:
    return isinstance(display, (Mapping, list, tuple))


def _choices(items):
    """Iterate ``(value, display)`` pairs from a mapping or Django-style choices."""
    if isinstance(items, Mapping):
        return items.items()
    return items


class FormBuilder(Componentable):
    reserved = ("method", "url", "route", "action", "files")
    spoofed_methods = ("DELETE", "PATCH", "PUT")
    skip_value_types = ("file", "password", "checkbox", "radio")

    def __init__(
        self,
        html: Optional[HtmlBuilder] = None,
        url=None,
        view=None,
        csrf_token: Optional[str] = None,
        request=None,
        resolver: Optional[FieldValueResolver] = None,
    ):
        self.urls = url or DjangoUrlGenerator(request)
        self.view = view or DjangoViewRenderer(request)
        self.html = html or HtmlBuilder(self.urls, self.view)
        self.csrf_token = csrf_token
        self.request = request
        self.resolver = resolver or FieldValueResolver(
            request_input=RequestInput(request) if request is not None else None,
            consider_request=get_setting("CONSIDER_REQUEST"),
            empty_strings_to_null=get_setting("EMPTY_STRINGS_TO_NULL"),
        )
        self.labels = []
        self.is_open = False

    @classmethod
    def for_request(cls, request):
        """Return the builder for ``request``, creating it on first use.

        Old input and errors come from ``OldInputMiddleware``.
        """

        builder = getattr(request, "_formhelpers_form", None)
        if builder is None:
            resolver = FieldValueResolver(
                old_input=OldInputStore.from_request(request),
                request_input=RequestInput(request),
                errors=getattr(request, "form_errors", None),
                consider_request=get_setting("CONSIDER_REQUEST"),
                empty_strings_to_null=get_setting("EMPTY_STRINGS_TO_NULL"),
            )
            builder = cls(HtmlBuilder.for_request(request), request=request, resolver=resolver)
            request._formhelpers_form = builder
        return builder

    # Form lifecycle

    def open(
        self,
        method: str = "POST",
        url=None,
        route=None,
        action=None,
        files: bool = False,
        attrs: Optional[Mapping] = None,
    ) -> SafeString:
        if self.is_open:
            logger.warning("Opening a form while another one is still open; call close() first.")
        self.is_open = True

        attributes = {
            # Forms only support GET and POST, other verbs are spoofed below.
            "method": self.get_method(method),
            "data-method": method,
            "action": self.get_action(url=url, route=route, action=action),
            "accept-charset": "UTF-8",
        }
        if files:
            attributes["enctype"] = "multipart/form-data"
        attributes.update(
            (key, value) for key, value in (attrs or {}).items() if key not in self.reserved
        )

        appendage = self.get_appendage(method)
        return mark_safe(f"<form{self.html.attributes(attributes)}>{appendage}")

    def model(self, model: Any, **options) -> SafeString:
        self.set_model(model)
        return self.open(**options)

    def set_model(self, model: Any) -> None:
        self.resolver.model = model

    def get_model(self) -> Any:
        return self.resolver.model

    def close(self) -> SafeString:
        self.labels = []
        self.resolver.reset()
        self.is_open = False
        return mark_safe("</form>")

    def consider_request(self, consider: bool = True) -> None:
        self.resolver.consider_request = consider

    def set_session_store(self, store: OldInputStore) -> "FormBuilder":
        self.resolver.old_input = store
        return self

    def get_session_store(self) -> Optional[OldInputStore]:
        return self.resolver.old_input

    def get_method(self, method: str) -> str:
        method = method.upper()
        return method if method == "GET" else "POST"

    def get_action(self, url=None, route=None, action=None) -> str:
        if url is not None:
            if isinstance(url, (list, tuple)):
                return self.urls.to(url[0], url[1:])
            return self.urls.to(url)

        if route is not None:
            if isinstance(route, (list, tuple)):
                parameters = route[1] if len(route) == 2 else route[1:]
                return self.urls.route(route[0], parameters)
            return self.urls.route(route)

        if action is not None:
            if isinstance(action, (list, tuple)):
                parameters = action[1] if len(action) == 2 else action[1:]
                return self.urls.action(action[0], parameters)
            return self.urls.action(action)

        return self.urls.current()

    def get_appendage(self, method: str) -> str:
        method = method.upper()
        appendage = ""
        if method in self.spoofed_methods:
            appendage += self.hidden(METHOD_FIELD, method)
        if method != "GET":
            appendage += self.token()
        return appendage

    def token(self) -> SafeString:
        token = self.csrf_token
        if not token:
            if self.request is None:
                raise MissingCsrfTokenError(
                    "A CSRF token is required: pass csrf_token or build the form for a request."
                )
            token = get_token(self.request)
        return self.hidden(get_setting("CSRF_FIELD"), token)

    # Values

    def get_value_attribute(self, name: Optional[str] = None, value: Any = None, field_type: Optional[str] = None) -> Any:
        return self.resolver.resolve(name, value, field_type)

    def old(self, name: str, field_type: Optional[str] = None) -> Any:
        return self.resolver.old(name, field_type)

    def old_input_is_empty(self) -> bool:
        return self.resolver.old_input_is_empty()

    def get_id_attribute(self, name: Optional[str], attrs: Mapping) -> Optional[str]:
        if "id" in attrs:
            return attrs["id"]
        if name in self.labels:
            return name
        return None

    # Controls

    def label(self, name: str, value: Optional[str] = None, attrs=None, escape: bool = True) -> SafeString:
        self.labels.append(name)

        value = value or " ".join(capfirst(word) for word in name.replace("_", " ").split(" "))
        if escape:
            value = conditional_escape(value)

        return mark_safe(
            f'<label for="{conditional_escape(name)}"{self.html.attributes(attrs)}>{value}</label>'
        )

    def input(self, field_type: str, name: Optional[str] = None, value: Any = None, attrs=None) -> SafeString:
        if field_type not in self.skip_value_types:
            value = self.get_value_attribute(name, value, field_type)
        return self.render_input(field_type, name, value, attrs)

    def render_input(self, field_type: str, name: Optional[str], value: Any, attrs=None) -> SafeString:
        attrs = dict(attrs or {})
        attrs.setdefault("name", name)
        attrs["id"] = self.get_id_attribute(name, attrs)
        attrs["type"] = field_type
        attrs["value"] = value
        return mark_safe(f"<input{self.html.attributes(attrs)}>")

    def text(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("text", name, value, attrs)

    def password(self, name: str, attrs=None) -> SafeString:
        return self.input("password", name, "", attrs)

    def range(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("range", name, value, attrs)

    def hidden(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("hidden", name, value, attrs)

    def search(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("search", name, value, attrs)

    def email(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("email", name, value, attrs)

    def tel(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("tel", name, value, attrs)

    def number(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("number", name, value, attrs)

    def url(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("url", name, value, attrs)

    def color(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.input("color", name, value, attrs)

    def file(self, name: str, attrs=None) -> SafeString:
        return self.input("file", name, None, attrs)

    def date_input(self, field_type: str, name: str, value: Any = None, attrs=None) -> SafeString:
        """Resolve the value first so model dates get formatted too."""

        value = self.get_value_attribute(name, value, field_type)
        if field_type == "datetime" and isinstance(value, datetime.datetime):
            value = value.isoformat()
        elif isinstance(value, (datetime.date, datetime.time)):
            value = value.strftime(DATE_FORMATS.get(field_type, "%Y-%m-%d"))
        return self.render_input(field_type, name, value, attrs)

    def date(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.date_input("date", name, value, attrs)

    def datetime(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.date_input("datetime", name, value, attrs)

    def datetime_local(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.date_input("datetime-local", name, value, attrs)

    def time(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.date_input("time", name, value, attrs)

    def week(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.date_input("week", name, value, attrs)

    def month(self, name: str, value: Any = None, attrs=None) -> SafeString:
        return self.date_input("month", name, value, attrs)

    def textarea(self, name: str, value: Any = None, attrs=None) -> SafeString:
        attrs = dict(attrs or {})
        attrs.setdefault("name", name)
        attrs = self.set_textarea_size(attrs)
        attrs["id"] = self.get_id_attribute(name, attrs)

        value = stringify(self.get_value_attribute(name, value, "textarea"))
        return mark_safe(
            f"<textarea{self.html.attributes(attrs)}>{conditional_escape(value)}</textarea>"
        )

    def set_textarea_size(self, attrs: dict) -> dict:
        size = attrs.pop("size", None)
        if size:
            cols, _, rows = str(size).partition("x")
            attrs["cols"], attrs["rows"] = cols, rows
        else:
            attrs.setdefault("cols", 50)
            attrs.setdefault("rows", 10)
        return attrs

    def select(
        self,
        name: str,
        choices=(),
        selected: Any = None,
        attrs=None,
        option_attrs: Optional[Mapping] = None,
        optgroup_attrs: Optional[Mapping] = None,
    ) -> SafeString:
        """Render a ``<select>``.

        ``choices`` is a mapping or Django-style ``(value, display)`` pairs;
        a display that is itself a mapping or list of pairs becomes an
        ``<optgroup>``. A ``placeholder`` attribute becomes a hidden empty
        first option.
        """

        selected = self.get_value_attribute(name, selected, "select")

        attrs = dict(attrs or {})
        attrs["id"] = self.get_id_attribute(name, attrs)
        attrs.setdefault("name", name)
        option_attrs = option_attrs or {}
        optgroup_attrs = optgroup_attrs or {}

        parts = []
        placeholder = attrs.pop("placeholder", None)
        if placeholder is not None:
            parts.append(self.placeholder_option(placeholder, selected))

        for value, display in _choices(choices):
            parts.append(
                self.get_select_option(
                    display, value, selected, option_attrs.get(value, {}), optgroup_attrs.get(value, {})
                )
            )

        return mark_safe(f"<select{self.html.attributes(attrs)}>{''.join(parts)}</select>")

    def select_range(self, name: str, begin: int, end: int, selected: Any = None, attrs=None) -> SafeString:
        step = 1 if end >= begin else -1
        values = range(begin, end + step, step)
        return self.select(name, [(value, value) for value in values], selected, attrs)

    def select_year(self, name: str, begin: int, end: int, selected: Any = None, attrs=None) -> SafeString:
        return self.select_range(name, begin, end, selected, attrs)

    def select_month(self, name: str, selected: Any = None, attrs=None, month_names: Mapping = MONTHS) -> SafeString:
        return self.select(name, [(month, str(month_names[month])) for month in range(1, 13)], selected, attrs)

    def get_select_option(self, display: Any, value: Any, selected: Any, attrs=None, optgroup_attrs=None) -> SafeString:
        if _is_group(display):
            return self.option_group(display, value, selected, optgroup_attrs, attrs)
        return self.option(display, value, selected, attrs)

    def option_group(self, choices, label: Any, selected: Any, attrs=None, option_attrs=None, level: int = 0) -> SafeString:
        space = "&nbsp;" * level
        option_attrs = option_attrs or {}
        parts = []
        for value, display in _choices(choices):
            if _is_group(display):
                parts.append(self.option_group(display, value, selected, attrs, option_attrs.get(value, {}), level + 5))
            else:
                parts.append(
                    self.option(mark_safe(space + conditional_escape(display)), value, selected, option_attrs.get(value, {}))
                )
        label = mark_safe(space + conditional_escape(label))
        return mark_safe(f'<optgroup label="{label}"{self.html.attributes(attrs)}>{"".join(parts)}</optgroup>')

    def option(self, display: Any, value: Any, selected: Any = None, attrs=None) -> SafeString:
        options = {"value": value, "selected": is_selected(value, selected), **(attrs or {})}
        markup = f"<option{self.html.attributes(options)}>"
        if display is not None:
            markup += f"{conditional_escape(display)}</option>"
        return mark_safe(markup)

    def placeholder_option(self, display: Any, selected: Any = None) -> SafeString:
        options = {"selected": is_selected(None, selected), "value": "", "hidden": True}
        return mark_safe(f"<option{self.html.attributes(options)}>{conditional_escape(display)}</option>")

    def checkbox(self, name: str, value: Any = 1, checked: Optional[bool] = None, attrs=None) -> SafeString:
        return self.checkable("checkbox", name, value, checked, attrs)

    def radio(self, name: str, value: Any = None, checked: Optional[bool] = None, attrs=None) -> SafeString:
        if value is None:
            value = name
        return self.checkable("radio", name, value, checked, attrs)

    def checkable(self, field_type: str, name: str, value: Any, checked: Optional[bool], attrs=None) -> SafeString:
        attrs = dict(attrs or {})
        if checked_state(self.resolver, field_type, name, value, checked):
            attrs["checked"] = "checked"
        return self.input(field_type, name, value, attrs)

    def reset(self, value: str, attrs=None) -> SafeString:
        return self.input("reset", None, value, attrs)

    def image(self, url: str, name: str, attrs=None) -> SafeString:
        attrs = dict(attrs or {})
        attrs["src"] = self.urls.asset(url)
        return self.input("image", name, None, attrs)

    def submit(self, value: Optional[str] = None, attrs=None) -> SafeString:
        return self.input("submit", None, value, attrs)

    def button(self, value: Optional[str] = None, attrs=None) -> SafeString:
        """Render a ``<button>``; ``value`` is trusted markup, e.g. an icon plus text."""

        attrs = dict(attrs or {})
        attrs.setdefault("type", "button")
        return mark_safe(f"<button{self.html.attributes(attrs)}>{stringify(value)}</button>")

    def datalist(self, list_id: str, choices=()) -> SafeString:
        if isinstance(choices, Mapping):
            options = [self.option(display, value) for value, display in choices.items()]
        else:
            options = [self.option(value, value) for value in choices]
        return mark_safe(f"<datalist{self.html.attributes({'id': list_id})}>{''.join(options)}</datalist>")
