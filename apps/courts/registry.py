"""Read-only court lookups used by the booking core."""

from __future__ import annotations

from uuid import UUID

from django.core.exceptions import ValidationError  # type: ignore

from shared.domain.exceptions import UnknownCourt

from .models import Court


class CourtRegistry:
    """Resolves court ids to Court rows, raising UnknownCourt when absent."""

    def get(self, court_id: UUID | str) -> Court:
        try:
            return Court.objects.get(pk=court_id)
        except (Court.DoesNotExist, ValidationError, ValueError):
            raise UnknownCourt(f"Court {court_id} not found")

    def get_for_update(self, court_id: UUID | str) -> Court:
        """Fetch and row-lock the court; the caller must be inside transaction.atomic()."""

        try:
            return Court.objects.select_for_update().get(pk=court_id)
        except (Court.DoesNotExist, ValidationError, ValueError):
            raise UnknownCourt(f"Court {court_id} not found")

    def exists(self, court_id: UUID | str) -> bool:
        try:
            return Court.objects.filter(pk=court_id).exists()
        except (ValidationError, ValueError):
            return False


court_registry = CourtRegistry()
