"""Template tags that expose the form and HTML builders.

Keyword arguments become HTML attributes: inner underscores turn into
hyphens (``data_id`` -> ``data-id``) and a trailing underscore is dropped
so reserved words can be used (``class_`` -> ``class``)::

    {% load formhelpers %}
    {% form_model profile route="profiles:edit" pk=profile.pk method="PUT" %}
        {% form_label "email" %}
        {% form_email "email" class_="form-control" required=True %}
        {% form_checkbox "newsletter" %}
    {% form_close %}
"""

from __future__ import annotations

from django import template

from ..builder import FormBuilder
from ..html import HtmlBuilder

register = template.Library()


def _attrs(attrs: dict) -> dict:
    converted = {}
    for key, value in attrs.items():
        if key.endswith("_"):
            key = key[:-1]
        else:
            key = key.replace("_", "-")
        converted[key] = value
    return converted


def _form_builder(context) -> FormBuilder:
    builder = context.get("form_builder")
    if builder is None:
        builder = FormBuilder.for_request(context["request"])
    return builder


def _html_builder(context) -> HtmlBuilder:
    builder = context.get("html")
    if builder is None:
        builder = HtmlBuilder.for_request(context["request"])
    return builder


def _open_options(method, url, route, action, files, params):
    # Extra keywords on a route/action are URL parameters, not attributes.
    options = {"method": method, "files": files}
    if url is not None:
        options["url"] = url
    elif route is not None:
        options["route"] = (route, params) if params else route
    elif action is not None:
        options["action"] = (action, params) if params else action
    return options


@register.simple_tag(takes_context=True)
def form_open(context, method="POST", url=None, route=None, action=None, files=False, attrs=None, **params):
    options = _open_options(method, url, route, action, files, params)
    return _form_builder(context).open(attrs=attrs, **options)


@register.simple_tag(takes_context=True)
def form_model(context, model, method="POST", url=None, route=None, action=None, files=False, attrs=None, **params):
    options = _open_options(method, url, route, action, files, params)
    return _form_builder(context).model(model, attrs=attrs, **options)


@register.simple_tag(takes_context=True)
def form_close(context):
    return _form_builder(context).close()


@register.simple_tag(takes_context=True)
def form_label(context, name, value=None, **attrs):
    return _form_builder(context).label(name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_input(context, field_type, name, value=None, **attrs):
    return _form_builder(context).input(field_type, name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_text(context, name, value=None, **attrs):
    return _form_builder(context).text(name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_email(context, name, value=None, **attrs):
    return _form_builder(context).email(name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_password(context, name, **attrs):
    return _form_builder(context).password(name, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_hidden(context, name, value=None, **attrs):
    return _form_builder(context).hidden(name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_date(context, name, value=None, **attrs):
    return _form_builder(context).date(name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_textarea(context, name, value=None, **attrs):
    return _form_builder(context).textarea(name, value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_select(context, name, choices, selected=None, **attrs):
    return _form_builder(context).select(name, choices, selected, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_checkbox(context, name, value=1, checked=None, **attrs):
    return _form_builder(context).checkbox(name, value, checked, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_radio(context, name, value=None, checked=None, **attrs):
    return _form_builder(context).radio(name, value, checked, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_submit(context, value=None, **attrs):
    return _form_builder(context).submit(value, _attrs(attrs))


@register.simple_tag(takes_context=True)
def form_component(context, name, *args, **kwargs):
    return _form_builder(context).call(name, *args, **kwargs)


@register.simple_tag(takes_context=True)
def link_to(context, url, title=None, **attrs):
    return _html_builder(context).link(url, title, _attrs(attrs))


@register.simple_tag(takes_context=True)
def link_to_asset(context, url, title=None, **attrs):
    return _html_builder(context).link_asset(url, title, _attrs(attrs))


@register.simple_tag(takes_context=True)
def link_to_route(context, name, title=None, *args, **attrs):
    return _html_builder(context).link_route(name, title, list(args) or None, _attrs(attrs))


@register.simple_tag(takes_context=True)
def link_to_action(context, action, title=None, *args, **attrs):
    return _html_builder(context).link_action(action, title, list(args) or None, _attrs(attrs))
