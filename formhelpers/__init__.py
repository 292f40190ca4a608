"""Helpers that build HTML and repopulate form controls from request state."""
