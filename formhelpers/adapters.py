"""Thin wrappers around the Django services the builders depend on."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import quote, urlsplit

from django.template.loader import render_to_string
from django.templatetags.static import static
from django.urls import reverse
from django.utils.module_loading import import_string

from .utils.keys import expand_input, lookup


def _split_parameters(parameters):
    if parameters is None:
        return None, None
    if isinstance(parameters, Mapping):
        return None, dict(parameters)
    if isinstance(parameters, (list, tuple)):
        return list(parameters), None
    return [parameters], None


class DjangoUrlGenerator:
    """Build URLs for paths, named routes, views and static assets.

    Without a request the generator returns site-relative paths; with one
    it returns absolute URLs for the request's host.
    """

    def __init__(self, request=None):
        self.request = request

    def to(self, path: str, parameters=(), secure: Optional[bool] = None) -> str:
        if urlsplit(path).scheme or path.startswith("//"):
            return path

        segments = [path.strip("/")] + [quote(str(param), safe="") for param in parameters or ()]
        path = "/" + "/".join(segment for segment in segments if segment)
        return self.absolute(path, secure)

    def route(self, name: str, parameters=None, secure: Optional[bool] = None) -> str:
        args, kwargs = _split_parameters(parameters)
        return self.absolute(reverse(name, args=args, kwargs=kwargs), secure)

    def action(self, view, parameters=None, secure: Optional[bool] = None) -> str:
        if isinstance(view, str):
            view = import_string(view)
        args, kwargs = _split_parameters(parameters)
        return self.absolute(reverse(view, args=args, kwargs=kwargs), secure)

    def current(self) -> str:
        if self.request is None:
            return ""
        return self.request.build_absolute_uri(self.request.path)

    def asset(self, path: str, secure: Optional[bool] = None) -> str:
        if urlsplit(path).scheme or path.startswith("//"):
            return path
        return self.absolute(static(path), secure)

    def absolute(self, path: str, secure: Optional[bool] = None) -> str:
        if self.request is None or urlsplit(path).scheme:
            return path
        url = self.request.build_absolute_uri(path)
        if secure is True and url.startswith("http://"):
            url = "https://" + url[len("http://"):]
        elif secure is False and url.startswith("https://"):
            url = "http://" + url[len("https://"):]
        return url


class DjangoViewRenderer:
    def __init__(self, request=None):
        self.request = request

    def render(self, template_name: str, data: Mapping[str, Any]) -> str:
        return render_to_string(template_name, dict(data), request=self.request)


class RequestInput:
    """Read submitted values from the query string and body of a request."""

    def __init__(self, request):
        self.request = request
        self._data = None

    @property
    def data(self) -> dict:
        if self._data is None:
            data = expand_input(self.request.GET)
            data.update(expand_input(self.request.POST))
            self._data = data
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return lookup(self.data, key, default)
