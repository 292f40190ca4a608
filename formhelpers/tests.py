import datetime
import html

from django.http import HttpResponse, QueryDict
from django.test import RequestFactory, SimpleTestCase, override_settings
from django.urls import path
from django.utils.safestring import SafeData

from .accessible import FormAccessible, form_mutator
from .adapters import RequestInput
from .builder import FormBuilder
from .checkable import is_selected
from .conf import get_setting
from .exceptions import MissingCsrfTokenError, UnknownExtensionError
from .html import HtmlBuilder, attributes
from .middleware import MethodOverrideMiddleware, OldInputMiddleware
from .session import OldInputStore, flash_input
from .utils.compare import loose_equals
from .utils.keys import expand_input, normalize_key
from .values import FieldValueResolver


def ping(request, pk):
    return HttpResponse("pong")


urlpatterns = [
    path("ping/<int:pk>/", ping, name="ping"),
]


def make_builder(old_input=None, request=None, errors=None, consider_request=False,
                 empty_strings_to_null=False, csrf_token="tok", builder_class=FormBuilder, **kwargs):
    resolver = FieldValueResolver(
        old_input=OldInputStore(old_input) if old_input is not None else None,
        request_input=RequestInput(request) if request is not None else None,
        errors=errors,
        consider_request=consider_request,
        empty_strings_to_null=empty_strings_to_null,
    )
    return builder_class(csrf_token=csrf_token, request=request, resolver=resolver, **kwargs)


class Person(FormAccessible):
    def __init__(self, name, email):
        self.name = name
        self.email = email

    @form_mutator("email")
    def form_email(self, value):
        return value.upper()


class AttributeRenderingTests(SimpleTestCase):
    def test_renders_boolean_class_list_and_skips_none(self):
        rendered = attributes({"required": True, "class": ["a", "b"], "id": None, "data-x": "y"})
        self.assertEqual(rendered, ' required class="a b" data-x="y"')

    def test_positional_keys_are_bare_attributes(self):
        self.assertEqual(attributes({0: "disabled", "name": "q"}), ' disabled name="q"')

    def test_false_boolean_renders_nothing(self):
        self.assertEqual(attributes({"disabled": False}), "")
        self.assertEqual(attributes({}), "")

    def test_boolean_value_attribute_is_stringified(self):
        self.assertEqual(attributes({"value": True}), ' value="1"')
        self.assertEqual(attributes({"value": False}), ' value=""')

    def test_values_are_escaped(self):
        self.assertEqual(
            attributes({"title": '<b>"x"</b>'}),
            ' title="&lt;b&gt;&quot;x&quot;&lt;/b&gt;"',
        )


class KeyTests(SimpleTestCase):
    def test_brackets_become_dots(self):
        self.assertEqual(normalize_key("user[address][city]"), "user.address.city")
        self.assertEqual(normalize_key("tags[]"), "tags")
        self.assertEqual(normalize_key("a.b"), "a.b")

    def test_normalization_is_idempotent(self):
        once = normalize_key("user[address][city]")
        self.assertEqual(normalize_key(once), once)

    def test_expand_input_nests_and_excludes(self):
        data = QueryDict("tags[]=a&tags[]=b&user[name]=Ann&password=secret&single=1")
        self.assertEqual(
            expand_input(data, exclude=("password",)),
            {"tags": ["a", "b"], "user": {"name": "Ann"}, "single": "1"},
        )

    def test_request_input_reads_nested_values(self):
        request = RequestFactory().post("/", {"user[name]": "Ann", "tags[]": ["a", "b"]})
        request_input = RequestInput(request)
        self.assertEqual(request_input.get("user.name"), "Ann")
        self.assertEqual(request_input.get("tags"), ["a", "b"])
        self.assertIsNone(request_input.get("missing"))


class LooseEqualsTests(SimpleTestCase):
    def test_booleans_compare_by_truthiness(self):
        self.assertTrue(loose_equals("1", True))
        self.assertTrue(loose_equals("0", False))
        self.assertFalse(loose_equals("0", True))

    def test_numeric_strings_compare_numerically(self):
        self.assertTrue(loose_equals("1", 1))
        self.assertTrue(loose_equals("1.0", 1))
        self.assertFalse(loose_equals("abc", 0))

    def test_none_matches_empty_values(self):
        self.assertTrue(loose_equals(None, ""))
        self.assertTrue(loose_equals(None, 0))
        self.assertFalse(loose_equals(None, "0"))

    def test_strings(self):
        self.assertTrue(loose_equals("a", "a"))
        self.assertFalse(loose_equals("a", "b"))


class FieldValueResolverTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_live_request_wins_when_enabled(self):
        request = self.factory.post("/", {"name": "live"})
        builder = make_builder(old_input={"name": "old"}, request=request, consider_request=True)
        builder.set_model({"name": "model"})
        self.assertEqual(builder.get_value_attribute("name", "explicit"), "live")

    def test_request_is_ignored_by_default(self):
        request = self.factory.post("/", {"name": "live"})
        builder = make_builder(old_input={"name": "old"}, request=request)
        self.assertEqual(builder.get_value_attribute("name", "explicit"), "old")

    def test_explicit_value_beats_model(self):
        builder = make_builder()
        builder.set_model({"name": "model"})
        self.assertEqual(builder.get_value_attribute("name", "explicit"), "explicit")
        self.assertEqual(builder.get_value_attribute("name"), "model")

    def test_repeated_fields_consume_old_input_in_order(self):
        builder = make_builder(old_input={"tags": ["a", "b"]})
        self.assertEqual(builder.get_value_attribute("tags", None, "text"), "a")
        self.assertEqual(builder.get_value_attribute("tags", None, "text"), "b")
        self.assertEqual(builder.get_value_attribute("tags", "fallback", "text"), "fallback")

    def test_old_input_queues_are_kept_per_field(self):
        builder = make_builder(old_input={"tags": ["a", "b"], "names": ["x"]})
        self.assertEqual(builder.get_value_attribute("tags[]", None, "text"), "a")
        self.assertEqual(builder.get_value_attribute("names[]", None, "text"), "x")
        self.assertEqual(builder.get_value_attribute("tags[]", None, "text"), "b")

    def test_closing_the_form_restarts_the_queue(self):
        builder = make_builder(old_input={"tags": ["a", "b"]})
        self.assertIn('value="a"', builder.text("tags[]"))
        builder.close()
        self.assertIn('value="a"', builder.text("tags[]"))

    def test_select_and_checkbox_get_the_whole_sequence(self):
        builder = make_builder(old_input={"colors": ["red", "blue"]})
        self.assertEqual(builder.get_value_attribute("colors[]", None, "select"), ["red", "blue"])
        self.assertEqual(builder.get_value_attribute("colors[]", None, "select"), ["red", "blue"])
        self.assertEqual(builder.get_value_attribute("colors[]", None, "checkbox"), ["red", "blue"])

    def test_model_is_forgotten_after_close(self):
        builder = make_builder()
        builder.model({"name": "Ann"}, url="/save")
        self.assertEqual(builder.get_value_attribute("name"), "Ann")
        builder.close()
        self.assertIsNone(builder.get_model())
        self.assertIsNone(builder.get_value_attribute("name"))

    def test_errors_keep_blank_fields_blank(self):
        builder = make_builder(
            old_input={"email": "x"},
            errors={"email": ["Enter a valid email address."]},
            empty_strings_to_null=True,
        )
        builder.set_model({"name": "Ann"})
        self.assertIsNone(builder.get_value_attribute("name"))
        self.assertEqual(builder.get_value_attribute("name", "given"), "given")

    def test_model_is_used_without_errors(self):
        builder = make_builder(old_input={"email": "x"}, empty_strings_to_null=True)
        builder.set_model({"name": "Ann"})
        self.assertEqual(builder.get_value_attribute("name"), "Ann")

    def test_method_field_ignores_old_input(self):
        builder = make_builder(old_input={"_method": "DELETE"})
        self.assertEqual(builder.get_value_attribute("_method", "PUT"), "PUT")

    def test_method_field_ignores_live_request(self):
        request = self.factory.post("/", {"_method": "DELETE"})
        builder = make_builder(request=request, consider_request=True)
        self.assertIn(
            '<input name="_method" type="hidden" value="PUT">',
            builder.open(method="PUT", url="/x"),
        )

    def test_form_accessible_model_uses_mutators(self):
        builder = make_builder()
        builder.set_model(Person("Ann", "ann@example.com"))
        self.assertEqual(builder.get_value_attribute("email"), "ANN@EXAMPLE.COM")
        self.assertEqual(builder.get_value_attribute("name"), "Ann")

    def test_nested_names_read_nested_old_input(self):
        builder = make_builder(old_input={"user": {"address": {"city": "Lyon"}}})
        self.assertIn('value="Lyon"', builder.text("user[address][city]"))


class CheckedStateTests(SimpleTestCase):
    def test_submitted_form_without_checkbox_means_unchecked(self):
        builder = make_builder(old_input={"name": "Ann"})
        self.assertNotIn("checked", builder.checkbox("subscribe", 1, True))

    def test_fresh_form_keeps_default(self):
        builder = make_builder(old_input={})
        self.assertEqual(
            builder.checkbox("subscribe", 1, True),
            '<input checked="checked" name="subscribe" type="checkbox" value="1">',
        )
        self.assertEqual(
            builder.checkbox("subscribe", 1, False),
            '<input name="subscribe" type="checkbox" value="1">',
        )

    def test_checkbox_without_session_keeps_default(self):
        builder = make_builder()
        self.assertIn("checked", builder.checkbox("subscribe", 1, True))

    def test_checkbox_membership_in_old_sequence(self):
        builder = make_builder(old_input={"colors": ["red", "blue"]})
        self.assertIn("checked", builder.checkbox("colors[]", "red"))
        self.assertNotIn("checked", builder.checkbox("colors[]", "green"))
        self.assertIn("checked", builder.checkbox("colors[]", "blue"))

    def test_checkbox_uses_model_truthiness(self):
        builder = make_builder()
        builder.set_model({"active": "0", "admin": True})
        self.assertNotIn("checked", builder.checkbox("active"))
        self.assertIn("checked", builder.checkbox("admin"))

    def test_checkbox_reads_live_request(self):
        request = RequestFactory().post("/", {"terms": "1"})
        builder = make_builder(old_input={"other": "x"}, request=request, consider_request=True)
        self.assertIn("checked", builder.checkbox("terms"))

    def test_radio_loosely_matches_model_value(self):
        builder = make_builder()
        builder.set_model({"agree": True})
        self.assertIn("checked", builder.radio("agree", "1"))
        self.assertNotIn("checked", builder.radio("agree", "0"))

    def test_radio_matches_old_input(self):
        builder = make_builder(old_input={"size": "m"})
        self.assertIn("checked", builder.radio("size", "m"))
        self.assertNotIn("checked", builder.radio("size", "l", True))

    def test_radio_keeps_default_on_fresh_form(self):
        builder = make_builder()
        self.assertIn("checked", builder.radio("size", "m", True))
        self.assertIn('value="size"', builder.radio("size"))

    def test_repeated_radios_take_old_values_in_order(self):
        builder = make_builder(old_input={"size": ["s", "m"]})
        self.assertIn("checked", builder.radio("size[]", "s"))
        self.assertIn("checked", builder.radio("size[]", "m"))

    def test_selected_options_compare_loosely(self):
        self.assertTrue(is_selected(3, ["3"]))
        self.assertTrue(is_selected(True, ["1"]))
        self.assertFalse(is_selected("x", ["y"]))
        self.assertTrue(is_selected(None, None))


class FormLifecycleTests(SimpleTestCase):
    def test_spoofed_method_adds_hidden_fields(self):
        builder = make_builder()
        self.assertEqual(
            builder.open(method="PUT", url="/users/1"),
            '<form method="POST" data-method="PUT" action="/users/1" accept-charset="UTF-8">'
            '<input name="_method" type="hidden" value="PUT">'
            '<input name="csrfmiddlewaretoken" type="hidden" value="tok">',
        )

    def test_get_forms_have_no_hidden_fields(self):
        builder = make_builder()
        self.assertEqual(
            builder.open(method="GET", url="/search"),
            '<form method="GET" data-method="GET" action="/search" accept-charset="UTF-8">',
        )

    def test_post_form_gets_token_but_no_spoof(self):
        html_form = make_builder().open(url="/save", files=True, attrs={"class": "wide"})
        self.assertIn('enctype="multipart/form-data"', html_form)
        self.assertIn('class="wide"', html_form)
        self.assertIn('name="csrfmiddlewaretoken"', html_form)
        self.assertNotIn("_method", html_form)

    def test_route_and_url_targets(self):
        builder = make_builder()
        self.assertIn('action="/profiles/3/edit/"', builder.open(route=("profiles:edit", {"pk": 3})))
        builder.close()
        self.assertIn('action="/profiles/4/edit/"', builder.open(route=("profiles:edit", 4)))
        builder.close()
        self.assertIn('action="/files/a/b"', builder.open(url=("files", "a", "b")))

    @override_settings(ROOT_URLCONF=__name__)
    def test_action_targets(self):
        builder = make_builder()
        self.assertIn('action="/ping/7/"', builder.open(action=(ping, 7)))
        builder.close()
        self.assertIn('action="/ping/8/"', builder.open(action=("formhelpers.tests.ping", {"pk": 8})))
        self.assertEqual(HtmlBuilder().link_action(ping, "Ping", [9]), '<a href="/ping/9/">Ping</a>')

    def test_defaults_to_current_url(self):
        request = RequestFactory().get("/profiles/new/?x=1")
        builder = make_builder(request=request)
        self.assertIn('action="http://testserver/profiles/new/"', builder.open(method="GET"))

    def test_token_comes_from_request(self):
        builder = FormBuilder(request=RequestFactory().get("/"))
        self.assertIn('name="csrfmiddlewaretoken" type="hidden" value="', builder.token())

    def test_token_without_request_or_token_fails(self):
        with self.assertRaises(MissingCsrfTokenError):
            FormBuilder().open()

    def test_opening_twice_logs_a_warning(self):
        builder = make_builder()
        builder.open(url="/a")
        with self.assertLogs("formhelpers.builder", level="WARNING"):
            builder.open(url="/b")

    def test_close_clears_labels(self):
        builder = make_builder()
        builder.label("email")
        self.assertEqual(builder.close(), "</form>")
        self.assertNotIn("id=", builder.text("email"))


class ControlRenderingTests(SimpleTestCase):
    def setUp(self):
        self.builder = make_builder()

    def test_label_formats_name_and_assigns_id(self):
        self.assertEqual(self.builder.label("first_name"), '<label for="first_name">First Name</label>')
        self.assertEqual(
            self.builder.text("first_name", "Ann"),
            '<input name="first_name" id="first_name" type="text" value="Ann">',
        )
        self.assertIn('id="custom"', self.builder.text("first_name", None, {"id": "custom"}))

    def test_password_is_never_repopulated(self):
        builder = make_builder(old_input={"password": "secret"})
        self.assertEqual(builder.password("password"), '<input name="password" type="password" value="">')

    def test_textarea_size_shortcut_and_escaping(self):
        self.assertEqual(
            self.builder.textarea("bio", "Hi <you>", {"size": "30x5"}),
            '<textarea name="bio" cols="30" rows="5">Hi &lt;you&gt;</textarea>',
        )
        self.assertIn('cols="50" rows="10"', self.builder.textarea("notes"))

    def test_select_marks_selected_option(self):
        self.assertEqual(
            self.builder.select("size", {"S": "Small", "L": "Large"}, "L"),
            '<select name="size"><option value="S">Small</option><option value="L" selected>Large</option></select>',
        )

    def test_select_with_groups(self):
        self.assertEqual(
            self.builder.select("animal", [("Cats", [("leopard", "Leopard")]), ("dog", "Dog")]),
            '<select name="animal"><optgroup label="Cats"><option value="leopard">Leopard</option></optgroup>'
            '<option value="dog">Dog</option></select>',
        )

    def test_select_placeholder(self):
        self.assertEqual(
            self.builder.select("size", {"S": "Small"}, None, {"placeholder": "Pick"}),
            '<select name="size"><option selected value="" hidden>Pick</option><option value="S">Small</option></select>',
        )

    def test_multiple_select_from_old_input(self):
        builder = make_builder(old_input={"colors": ["red", "blue"]})
        rendered = builder.select(
            "colors[]", {"red": "Red", "green": "Green", "blue": "Blue"}, None, {"multiple": True}
        )
        self.assertIn('<option value="red" selected>Red</option>', rendered)
        self.assertIn('<option value="green">Green</option>', rendered)
        self.assertIn('<option value="blue" selected>Blue</option>', rendered)

    def test_select_range_and_month(self):
        self.assertEqual(
            self.builder.select_range("n", 1, 3, 2),
            '<select name="n"><option value="1">1</option><option value="2" selected>2</option>'
            '<option value="3">3</option></select>',
        )
        self.assertIn('<option value="1">January</option>', self.builder.select_month("month"))

    def test_datalist(self):
        self.assertEqual(
            self.builder.datalist("browsers", ["Firefox", "Chrome"]),
            '<datalist id="browsers"><option value="Firefox">Firefox</option>'
            '<option value="Chrome">Chrome</option></datalist>',
        )

    def test_date_controls_format_values(self):
        self.assertIn('value="2020-01-02"', self.builder.date("born", datetime.date(2020, 1, 2)))
        self.builder.set_model({"starts": datetime.datetime(2024, 5, 6, 7, 8)})
        self.assertIn('value="2024-05-06T07:08"', self.builder.datetime_local("starts"))
        self.assertIn('value="07:08"', self.builder.time("starts"))
        self.assertIn('value="2024-05"', self.builder.month("starts"))

    def test_buttons(self):
        self.assertEqual(self.builder.button("Go"), '<button type="button">Go</button>')
        self.assertEqual(self.builder.submit("Save"), '<input type="submit" value="Save">')
        self.assertEqual(self.builder.reset("Clear"), '<input type="reset" value="Clear">')


class ExtensionTests(SimpleTestCase):
    class RecordingView:
        def __init__(self):
            self.calls = []

        def render(self, template_name, data):
            self.calls.append((template_name, data))
            return f"<div>{data['title']}</div>"

    def test_macros_and_components(self):
        class CustomBuilder(FormBuilder):
            pass

        view = self.RecordingView()
        builder = make_builder(builder_class=CustomBuilder, view=view)
        CustomBuilder.macro("shout", lambda form, text: text.upper())
        CustomBuilder.component("card", "cards/card.html", ["title", ("body", "empty")])

        self.assertEqual(builder.call("shout", "hi"), "HI")
        self.assertEqual(builder.call("card", "Hello"), "<div>Hello</div>")
        self.assertEqual(view.calls, [("cards/card.html", {"title": "Hello", "body": "empty"})])
        self.assertFalse(FormBuilder.has_macro("shout"))

    def test_unknown_name_raises(self):
        with self.assertRaises(UnknownExtensionError):
            make_builder().call("nope")
        with self.assertRaises(AttributeError):
            HtmlBuilder().call("nope")


class HtmlBuilderTests(SimpleTestCase):
    def setUp(self):
        self.html = HtmlBuilder()

    def test_links(self):
        self.assertEqual(self.html.link("/about", "About <us>"), '<a href="/about">About &lt;us&gt;</a>')
        self.assertEqual(
            self.html.link("http://example.com"),
            '<a href="http://example.com">http://example.com</a>',
        )
        self.assertEqual(self.html.link_route("profiles:edit", "Edit", [5]), '<a href="/profiles/5/edit/">Edit</a>')

    def test_secure_link_uses_request_host(self):
        html_builder = HtmlBuilder.for_request(RequestFactory().get("/"))
        self.assertEqual(
            html_builder.secure_link("/login", "Log in"),
            '<a href="https://testserver/login">Log in</a>',
        )

    def test_assets(self):
        self.assertEqual(self.html.script("js/app.js"), '<script src="/static/js/app.js"></script>')
        self.assertEqual(
            self.html.style("css/site.css"),
            '<link media="all" type="text/css" rel="stylesheet" href="/static/css/site.css">',
        )
        self.assertEqual(self.html.image("img/logo.png", "Logo"), '<img src="/static/img/logo.png" alt="Logo">')

    def test_lists(self):
        self.assertEqual(self.html.ul(["a", ["b", "c"]]), "<ul><li>a</li><ul><li>b</li><li>c</li></ul></ul>")
        self.assertEqual(self.html.ol({"Fruits": ["apple"]}), "<ol><li>Fruits<ol><li>apple</li></ol></li></ol>")
        self.assertEqual(self.html.ul([]), "")
        self.assertEqual(self.html.dl({"Tea": ["Green", "Black"]}), "<dl><dt>Tea</dt><dd>Green</dd><dd>Black</dd></dl>")

    def test_meta_tag_and_nbsp(self):
        self.assertEqual(self.html.meta("description", "Forms"), '<meta name="description" content="Forms">')
        self.assertEqual(self.html.tag("p", ["<b>a</b>", "b"], {"class": "x"}), '<p class="x"><b>a</b>b</p>')
        self.assertEqual(self.html.nbsp(2), "&nbsp;&nbsp;")

    def test_mailto_is_obfuscated(self):
        self.assertEqual(html.unescape(self.html.email("ann@example.com")), "ann@example.com")
        self.assertEqual(
            html.unescape(self.html.mailto("ann@example.com")),
            '<a href="mailto:ann@example.com">ann@example.com</a>',
        )

    def test_mailto_keeps_non_ascii_characters(self):
        self.assertEqual(
            html.unescape(self.html.mailto("josé@example.com")),
            '<a href="mailto:josé@example.com">josé@example.com</a>',
        )

    def test_decode_returns_plain_text(self):
        decoded = self.html.decode("&lt;b&gt; &#64;")
        self.assertEqual(decoded, "<b> @")
        self.assertNotIsInstance(decoded, SafeData)


class SessionAndMiddlewareTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_flash_input_skips_secrets(self):
        request = self.factory.post(
            "/", {"name": "Ann", "password": "secret", "csrfmiddlewaretoken": "t", "tags[]": ["a"]}
        )
        request.session = {}
        flash_input(request, errors={"name": ["Too short."]})
        self.assertEqual(request.session[get_setting("OLD_INPUT_KEY")], {"name": "Ann", "tags": ["a"]})
        self.assertEqual(request.session[get_setting("ERRORS_KEY")], {"name": ["Too short."]})

    def test_old_input_middleware_moves_flash_to_request(self):
        request = self.factory.get("/")
        request.session = {
            get_setting("OLD_INPUT_KEY"): {"name": "Ann"},
            get_setting("ERRORS_KEY"): {"name": ["Too short."]},
        }
        OldInputMiddleware(lambda r: None)(request)
        self.assertEqual(request.old_input, {"name": "Ann"})
        self.assertEqual(request.form_errors, {"name": ["Too short."]})
        self.assertEqual(request.session, {})

        store = OldInputStore.from_request(request)
        self.assertEqual(store.get("name"), "Ann")
        self.assertEqual(store.count(), 1)

    def test_store_is_missing_without_session(self):
        self.assertIsNone(OldInputStore.from_request(self.factory.get("/")))

    def test_method_override(self):
        middleware = MethodOverrideMiddleware(lambda r: None)
        request = self.factory.post("/", {"_method": "put"})
        middleware.process_view(request, None, (), {})
        self.assertEqual(request.method, "PUT")

        request = self.factory.post("/", {"_method": "trace"})
        middleware.process_view(request, None, (), {})
        self.assertEqual(request.method, "POST")
