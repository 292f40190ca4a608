import datetime

from django.test import RequestFactory, TestCase
from django.urls import reverse

from formhelpers.builder import FormBuilder
from formhelpers.session import OldInputStore

from .forms import ProfileForm, profile_form_data
from .models import Address, Interest, Profile


class ProfileFixturesMixin:
    def setUp(self):
        self.music = Interest.objects.create(name="Music")
        self.hiking = Interest.objects.create(name="Hiking")
        self.address = Address.objects.create(street="", city="Lyon", postal_code="ab 12")
        self.profile = Profile.objects.create(
            name="Ann",
            email="Ann@Example.com",
            bio="Hello there",
            plan=Profile.PLAN_PRO,
            newsletter=True,
            birthday=datetime.date(1990, 5, 17),
            address=self.address,
        )
        self.profile.interests.add(self.music)
        self.edit_url = reverse("profiles:edit", args=[self.profile.pk])


class BoundModelTests(ProfileFixturesMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.builder = FormBuilder(csrf_token="tok")
        self.builder.set_model(self.profile)

    def test_mutators_format_model_values(self):
        self.assertIn('value="ann@example.com"', self.builder.email("email"))
        self.assertIn('value="AB12"', self.builder.text("address[postal_code]"))
        self.assertIn('value="Lyon"', self.builder.text("address[city]"))

    def test_related_manager_drives_checkboxes(self):
        self.assertIn("checked", self.builder.checkbox("interests[]", self.music.pk))
        self.assertNotIn("checked", self.builder.checkbox("interests[]", self.hiking.pk))

    def test_related_manager_drives_select(self):
        rendered = self.builder.select(
            "interests[]", [(self.music.pk, "Music"), (self.hiking.pk, "Hiking")], None, {"multiple": True}
        )
        self.assertIn(f'<option value="{self.music.pk}" selected>Music</option>', rendered)
        self.assertIn(f'<option value="{self.hiking.pk}">Hiking</option>', rendered)

    def test_old_input_beats_model(self):
        self.builder.set_session_store(OldInputStore({"email": "new@example.com", "interests": [str(self.hiking.pk)]}))
        self.assertIn('value="new@example.com"', self.builder.email("email"))
        self.assertIn("checked", self.builder.checkbox("interests[]", self.hiking.pk))
        self.assertNotIn("checked", self.builder.checkbox("interests[]", self.music.pk))


class ProfileFormTests(TestCase):
    def test_nested_names_are_mapped(self):
        music = Interest.objects.create(name="Music")
        post = RequestFactory().post("/", {
            "name": "Bob",
            "email": "bob@example.com",
            "plan": "free",
            "address[city]": "Paris",
            "interests[]": [music.pk],
        }).POST
        form = ProfileForm(profile_form_data(post))

        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data["city"], "Paris")
        self.assertEqual(list(form.cleaned_data["interests"]), [music])

    def test_short_name_is_rejected(self):
        form = ProfileForm({"name": "A", "email": "a@example.com", "plan": "free"})
        self.assertFalse(form.is_valid())
        self.assertIn("name", form.errors)


class ProfileCreateViewTests(TestCase):
    def setUp(self):
        self.music = Interest.objects.create(name="Music")
        self.hiking = Interest.objects.create(name="Hiking")
        self.url = reverse("profiles:create")

    def test_form_renders_with_csrf_field(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'action="http://testserver/profiles/new/"')
        self.assertContains(response, 'name="csrfmiddlewaretoken" type="hidden"')
        self.assertContains(response, '<option selected value="" hidden>Choose a plan</option>')
        self.assertNotContains(response, "_method")

    def test_failed_submission_refills_form_once(self):
        response = self.client.post(self.url, {
            "name": "A",
            "email": "ann@example.com",
            "plan": "pro",
            "birthday": "",
            "address[city]": "Paris",
            "interests[]": [self.music.pk],
        }, follow=True)

        self.assertRedirects(response, self.url)
        self.assertContains(response, "Enter at least two characters.")
        self.assertContains(response, 'id="name" type="text" value="A"')
        self.assertContains(response, 'id="email" type="email" value="ann@example.com"')
        self.assertContains(response, '<option value="pro" selected>Pro</option>')
        self.assertContains(response, '<input placeholder="City" name="address[city]" type="text" value="Paris">')
        self.assertContains(
            response, f'<input checked="checked" name="interests[]" type="checkbox" value="{self.music.pk}">'
        )
        self.assertContains(response, f'<input name="interests[]" type="checkbox" value="{self.hiking.pk}">')
        self.assertContains(response, '<input name="newsletter" type="checkbox" value="1">')
        self.assertFalse(Profile.objects.exists())

        response = self.client.get(self.url)
        self.assertNotContains(response, 'value="A"')
        self.assertNotContains(response, "Enter at least two characters.")

    def test_valid_submission_creates_profile(self):
        response = self.client.post(self.url, {
            "name": "Bob",
            "email": "bob@example.com",
            "plan": "team",
            "newsletter": "1",
            "address[city]": "Paris",
            "address[postal_code]": "75001",
            "interests[]": [self.hiking.pk],
        })

        self.assertRedirects(response, reverse("profiles:list"))
        profile = Profile.objects.get(email="bob@example.com")
        self.assertTrue(profile.newsletter)
        self.assertEqual(profile.address.city, "Paris")
        self.assertEqual(list(profile.interests.all()), [self.hiking])


class ProfileEditViewTests(ProfileFixturesMixin, TestCase):
    def test_form_is_filled_from_model(self):
        response = self.client.get(self.edit_url)

        self.assertContains(response, 'name="_method" type="hidden" value="PUT"')
        self.assertContains(response, 'name="_method" type="hidden" value="DELETE"')
        self.assertContains(response, 'id="name" type="text" value="Ann"')
        self.assertContains(response, 'value="ann@example.com"')
        self.assertContains(response, '<option value="pro" selected>Pro</option>')
        self.assertContains(response, 'name="birthday" type="date" value="1990-05-17"')
        self.assertContains(response, 'value="Lyon"')
        self.assertContains(response, 'value="AB12"')
        self.assertContains(response, '<label for="address[street]">Street</label>')
        self.assertContains(response, '<input checked="checked" name="newsletter" type="checkbox" value="1">')
        self.assertContains(
            response, f'<input checked="checked" name="interests[]" type="checkbox" value="{self.music.pk}">'
        )
        self.assertContains(response, "Hello there")

    def test_spoofed_put_updates_profile(self):
        response = self.client.post(self.edit_url, {
            "_method": "PUT",
            "name": "Ann Updated",
            "email": "ann@example.com",
            "plan": "team",
            "address[city]": "Nice",
        })

        self.assertRedirects(response, reverse("profiles:list"))
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.name, "Ann Updated")
        self.assertEqual(self.profile.plan, "team")
        self.assertFalse(self.profile.newsletter)
        self.assertEqual(self.profile.address.city, "Nice")
        self.assertFalse(self.profile.interests.exists())

    def test_failed_update_does_not_fall_back_to_model(self):
        response = self.client.post(self.edit_url, {
            "_method": "PUT",
            "name": "",
            "email": "ann@example.com",
            "plan": "pro",
        }, follow=True)

        self.assertRedirects(response, self.edit_url)
        self.assertContains(response, 'id="name" type="text" value=""')
        # Unchecked on submit, even though the model says otherwise.
        self.assertContains(response, '<input name="newsletter" type="checkbox" value="1">')
        # Blank after errors instead of the stored bio.
        self.assertNotContains(response, "Hello there")
        self.assertContains(response, 'name="_method" type="hidden" value="DELETE"')

    def test_spoofed_delete_removes_profile(self):
        response = self.client.post(
            reverse("profiles:delete", args=[self.profile.pk]), {"_method": "DELETE"}
        )

        self.assertRedirects(response, reverse("profiles:list"))
        self.assertFalse(Profile.objects.filter(pk=self.profile.pk).exists())

    def test_plain_post_to_delete_keeps_profile(self):
        response = self.client.post(reverse("profiles:delete", args=[self.profile.pk]))

        self.assertRedirects(response, self.edit_url)
        self.assertTrue(Profile.objects.filter(pk=self.profile.pk).exists())


class ProfileListViewTests(ProfileFixturesMixin, TestCase):
    def test_lists_links_to_edit_pages(self):
        response = self.client.get(reverse("profiles:list"))

        self.assertContains(
            response,
            f'<a href="http://testserver/profiles/{self.profile.pk}/edit/" class="profile-link">Ann</a>',
        )
        self.assertContains(response, 'href="http://testserver/profiles/new/"')
