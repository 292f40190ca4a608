from django.apps import AppConfig


class FormHelpersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "formhelpers"
    verbose_name = "Form helpers"
