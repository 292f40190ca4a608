from django import forms

from .models import Interest, Profile


class ProfileForm(forms.ModelForm):
    """Validates the hand-written profile form rendered with the form helpers."""

    city = forms.CharField(max_length=100, required=False)
    street = forms.CharField(max_length=200, required=False)
    postal_code = forms.CharField(max_length=20, required=False)

    class Meta:
        model = Profile
        fields = ["name", "email", "bio", "plan", "newsletter", "birthday", "interests"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["interests"].queryset = Interest.objects.order_by("name")
        self.fields["interests"].required = False

    def clean_name(self):
        name = self.cleaned_data["name"].strip()
        if len(name) < 2:
            raise forms.ValidationError("Enter at least two characters.")
        return name


def profile_form_data(post):
    """Map the nested field names used in the templates onto the Django form.

    The address controls are named ``address[city]`` and the interests
    ``interests[]``, which Django forms do not understand directly.
    """

    data = post.copy()
    for field in ("city", "street", "postal_code"):
        data[field] = post.get(f"address[{field}]", "")
    data.setlist("interests", post.getlist("interests[]"))
    return data
