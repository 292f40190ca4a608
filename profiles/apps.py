from django.apps import AppConfig


class ProfilesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "profiles"
    verbose_name = "Profiles"

    def ready(self):
        from formhelpers.builder import FormBuilder

        FormBuilder.component(
            "field",
            "profiles/components/field.html",
            ["name", ("label", None), ("field_type", "text")],
        )
