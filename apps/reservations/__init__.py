"""Reservations app package: hold lifecycle, conflict checks and expiry sweeping."""
