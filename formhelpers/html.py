"""HTML builder for links, assets, lists and generic tags.

Every public method except ``decode`` returns a ``SafeString`` so the result
can be dropped into a Django template without further escaping.
"""

from __future__ import annotations

import html
import random
from collections.abc import Mapping
from typing import Any, Optional

from django.utils.html import conditional_escape, escape
from django.utils.safestring import SafeString, mark_safe

from .adapters import DjangoUrlGenerator, DjangoViewRenderer
from .components import Componentable
from .utils.compare import stringify


def _is_positional(key: Any) -> bool:
    return isinstance(key, int) or (isinstance(key, str) and key.isdigit())


def attribute_element(key: Any, value: Any) -> Optional[str]:
    """Serialize one attribute, or return ``None`` when it should be left out."""

    # Positional entries are bare attributes such as "required".
    if _is_positional(key):
        return str(value)

    if isinstance(value, bool) and key != "value":
        return key if value else None

    if key == "class" and isinstance(value, (list, tuple)):
        return 'class="%s"' % " ".join(conditional_escape(stringify(item)) for item in value)

    if value is None:
        return None

    return '%s="%s"' % (key, conditional_escape(stringify(value)))


def attributes(attrs: Optional[Mapping] = None) -> str:
    """Build an attribute string with a leading space, or ``""`` when nothing renders.

    >>> attributes({"required": True, "class": ["a", "b"], "id": None, "data-x": "y"})
    ' required class="a b" data-x="y"'
    """

    rendered = []
    for key, value in (attrs or {}).items():
        element = attribute_element(key, value)
        if element is not None:
            rendered.append(element)
    return " " + " ".join(rendered) if rendered else ""


class HtmlBuilder(Componentable):
    def __init__(self, url=None, view=None):
        self.urls = url or DjangoUrlGenerator()
        self.view = view or DjangoViewRenderer()

    @classmethod
    def for_request(cls, request):
        """Return the builder for ``request``, creating it on first use."""

        builder = getattr(request, "_formhelpers_html", None)
        if builder is None:
            builder = cls(DjangoUrlGenerator(request), DjangoViewRenderer(request))
            request._formhelpers_html = builder
        return builder

    def attributes(self, attrs: Optional[Mapping] = None) -> str:
        return attributes(attrs)

    def entities(self, value: Any) -> str:
        return escape(stringify(value))

    def decode(self, value: str) -> str:
        """Turn entities back into characters. The result is plain text, not safe markup."""
        return html.unescape(value)

    def script(self, url: str, attrs=None, secure: Optional[bool] = None) -> SafeString:
        attrs = dict(attrs or {})
        attrs["src"] = self.urls.asset(url, secure)
        return mark_safe(f"<script{self.attributes(attrs)}></script>")

    def style(self, url: str, attrs=None, secure: Optional[bool] = None) -> SafeString:
        attrs = {"media": "all", "type": "text/css", "rel": "stylesheet", **(attrs or {})}
        attrs["href"] = self.urls.asset(url, secure)
        return mark_safe(f"<link{self.attributes(attrs)}>")

    def image(self, url: str, alt: Optional[str] = None, attrs=None, secure: Optional[bool] = None) -> SafeString:
        attrs = dict(attrs or {})
        attrs["alt"] = alt
        src = escape(self.urls.asset(url, secure))
        return mark_safe(f'<img src="{src}"{self.attributes(attrs)}>')

    def favicon(self, url: str, attrs=None, secure: Optional[bool] = None) -> SafeString:
        attrs = {"rel": "shortcut icon", "type": "image/x-icon", **(attrs or {})}
        attrs["href"] = self.urls.asset(url, secure)
        return mark_safe(f"<link{self.attributes(attrs)}>")

    def link(self, url: str, title: Any = None, attrs=None, secure: Optional[bool] = None, escape_title: bool = True) -> SafeString:
        url = self.urls.to(url, (), secure)

        if title is None or title is False:
            title = url
        if escape_title:
            title = self.entities(title)

        return mark_safe(f'<a href="{self.entities(url)}"{self.attributes(attrs)}>{title}</a>')

    def secure_link(self, url: str, title: Any = None, attrs=None, escape_title: bool = True) -> SafeString:
        return self.link(url, title, attrs, True, escape_title)

    def link_asset(self, url: str, title: Any = None, attrs=None, secure: Optional[bool] = None, escape_title: bool = True) -> SafeString:
        url = self.urls.asset(url, secure)
        return self.link(url, title or url, attrs, secure, escape_title)

    def link_secure_asset(self, url: str, title: Any = None, attrs=None, escape_title: bool = True) -> SafeString:
        return self.link_asset(url, title, attrs, True, escape_title)

    def link_route(self, name: str, title: Any = None, parameters=None, attrs=None, secure: Optional[bool] = None, escape_title: bool = True) -> SafeString:
        return self.link(self.urls.route(name, parameters), title, attrs, secure, escape_title)

    def link_action(self, action, title: Any = None, parameters=None, attrs=None, secure: Optional[bool] = None, escape_title: bool = True) -> SafeString:
        return self.link(self.urls.action(action, parameters), title, attrs, secure, escape_title)

    def mailto(self, email: str, title: Any = None, attrs=None, escape_title: bool = True) -> SafeString:
        email = self.email(email)
        if not title:
            # The obfuscated address is already made of entities.
            title = email
        elif escape_title:
            title = self.entities(title)

        href = self.obfuscate("mailto:") + email
        return mark_safe(f'<a href="{href}"{self.attributes(attrs)}>{title}</a>')

    def email(self, email: str) -> str:
        return self.obfuscate(email).replace("@", "&#64;")

    def obfuscate(self, value: str) -> str:
        """Randomly mix decimal entities, hex entities and plain characters."""

        safe = []
        for letter in value:
            if ord(letter) > 128:
                safe.append(letter)
                continue
            choice = random.randint(1, 3)
            if choice == 1:
                safe.append(f"&#{ord(letter)};")
            elif choice == 2:
                safe.append(f"&#x{ord(letter):x};")
            else:
                safe.append(letter)
        return "".join(safe)

    def nbsp(self, num: int = 1) -> SafeString:
        return mark_safe("&nbsp;" * num)

    def ol(self, items, attrs=None) -> SafeString:
        return self.listing("ol", items, attrs)

    def ul(self, items, attrs=None) -> SafeString:
        return self.listing("ul", items, attrs)

    def dl(self, items: Mapping, attrs=None) -> SafeString:
        parts = [f"<dl{self.attributes(attrs)}>"]
        for term, descriptions in items.items():
            if not isinstance(descriptions, (list, tuple)):
                descriptions = [descriptions]
            parts.append(f"<dt>{conditional_escape(term)}</dt>")
            parts.extend(f"<dd>{conditional_escape(description)}</dd>" for description in descriptions)
        parts.append("</dl>")
        return mark_safe("".join(parts))

    def listing(self, list_type: str, items, attrs=None) -> SafeString:
        if not items:
            return mark_safe("")

        entries = items.items() if isinstance(items, Mapping) else enumerate(items)
        body = "".join(self.listing_element(key, list_type, value) for key, value in entries)
        return mark_safe(f"<{list_type}{self.attributes(attrs)}>{body}</{list_type}>")

    def listing_element(self, key: Any, list_type: str, value: Any) -> str:
        if isinstance(value, (list, tuple, Mapping)):
            return self.nested_listing(key, list_type, value)
        return f"<li>{conditional_escape(value)}</li>"

    def nested_listing(self, key: Any, list_type: str, value: Any) -> str:
        if isinstance(key, int):
            return self.listing(list_type, value)
        return f"<li>{conditional_escape(key)}{self.listing(list_type, value)}</li>"

    def meta(self, name: str, content: str, attrs=None) -> SafeString:
        attrs = {"name": name, "content": content, **(attrs or {})}
        return mark_safe(f"<meta{self.attributes(attrs)}>")

    def tag(self, tag: str, content: Any, attrs=None) -> SafeString:
        """Wrap ``content`` in ``tag``; content is trusted markup, lists are concatenated."""

        if isinstance(content, (list, tuple)):
            content = "".join(str(item) for item in content)
        return mark_safe(f"<{tag}{self.attributes(attrs)}>{content}</{tag}>")
