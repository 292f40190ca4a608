"""
URL configuration for the formsite project.
"""
from django.contrib import admin
from django.shortcuts import redirect
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", lambda r: redirect("profiles:list")),
    path("profiles/", include("profiles.urls")),  # <- example app using the form helpers
]
