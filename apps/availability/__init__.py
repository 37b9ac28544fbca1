"""Availability app package: weekly rules, date overrides and slot generation."""
