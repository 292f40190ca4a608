# profiles/views.py

import logging

from django.contrib import messages
from django.shortcuts import get_object_or_404, redirect, render

from formhelpers.session import flash_input

from .forms import ProfileForm, profile_form_data
from .models import Address, Interest, Profile

logger = logging.getLogger(__name__)


def _save_profile(form):
    profile = form.save(commit=False)
    city = form.cleaned_data.get("city")
    if city:
        address = profile.address or Address()
        address.street = form.cleaned_data.get("street", "")
        address.city = city
        address.postal_code = form.cleaned_data.get("postal_code", "")
        address.save()
        profile.address = address
    profile.save()
    form.save_m2m()
    return profile


def _form_context(profile=None):
    return {
        "profile": profile,
        "interests": Interest.objects.order_by("name"),
        "plan_choices": Profile.PLAN_CHOICES,
    }


def profile_list(request):
    profiles = Profile.objects.select_related("address").order_by("name")
    return render(request, "profiles/profile_list.html", {"profiles": profiles})


def profile_create(request):
    if request.method == "POST":
        form = ProfileForm(profile_form_data(request.POST))
        if form.is_valid():
            profile = _save_profile(form)
            messages.success(request, "Profile created.")
            logger.info("Created profile %s", profile.pk)
            return redirect("profiles:list")

        # Send the user back to the form with what they typed.
        flash_input(request, errors=form.errors)
        messages.error(request, "Please correct the errors below.")
        return redirect("profiles:create")

    return render(request, "profiles/profile_form.html", _form_context())


def profile_edit(request, pk):
    profile = get_object_or_404(Profile, pk=pk)
    # MethodOverrideMiddleware turns the spoofed form into a PUT.
    if request.method in ("PUT", "POST"):
        form = ProfileForm(profile_form_data(request.POST), instance=profile)
        if form.is_valid():
            _save_profile(form)
            messages.success(request, "Profile updated.")
            logger.info("Updated profile %s", profile.pk)
            return redirect("profiles:list")

        flash_input(request, errors=form.errors)
        messages.error(request, "Please correct the errors below.")
        return redirect("profiles:edit", pk=profile.pk)

    return render(request, "profiles/profile_form.html", _form_context(profile))


def profile_delete(request, pk):
    profile = get_object_or_404(Profile, pk=pk)
    if request.method == "DELETE":
        profile.delete()
        messages.success(request, "Profile deleted.")
        return redirect("profiles:list")
    return redirect("profiles:edit", pk=profile.pk)
