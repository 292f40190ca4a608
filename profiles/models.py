"""Models for the profiles example app."""

from django.db import models

from formhelpers.accessible import FormAccessible, form_mutator


class Interest(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Address(FormAccessible, models.Model):
    street = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20, blank=True)

    class Meta:
        verbose_name_plural = "addresses"

    def __str__(self):
        return f"{self.street}, {self.city}"

    @form_mutator("postal_code")
    def form_postal_code(self, value):
        return value.replace(" ", "").upper() if value else value


class Profile(FormAccessible, models.Model):
    """Person whose details are edited with the form helpers."""

    PLAN_FREE = "free"
    PLAN_PRO = "pro"
    PLAN_TEAM = "team"

    PLAN_CHOICES = [
        (PLAN_FREE, "Free"),
        (PLAN_PRO, "Pro"),
        (PLAN_TEAM, "Team"),
    ]

    name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    bio = models.TextField(blank=True)
    plan = models.CharField(max_length=20, choices=PLAN_CHOICES, default=PLAN_FREE)
    newsletter = models.BooleanField(default=False)
    birthday = models.DateField(null=True, blank=True)
    address = models.ForeignKey(
        Address,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="profiles",
    )
    interests = models.ManyToManyField(Interest, blank=True, related_name="profiles")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @form_mutator("email")
    def form_email(self, value):
        return value.lower() if value else value
