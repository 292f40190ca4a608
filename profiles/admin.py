from django.contrib import admin

from .models import Address, Interest, Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "plan", "newsletter", "created_at")
    list_filter = ("plan", "newsletter")
    search_fields = ("name", "email", "address__city")


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ("street", "city", "postal_code")
    search_fields = ("street", "city")


@admin.register(Interest)
class InterestAdmin(admin.ModelAdmin):
    search_fields = ("name",)
