"""Domain event log model."""

from __future__ import annotations

from django.core.serializers.json import DjangoJSONEncoder  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore


class DomainEventRecord(models.Model):
    """One committed domain event. The auto-increment id is the read cursor."""

    id = models.BigAutoField(primary_key=True)
    type = models.CharField(max_length=64)
    payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "event_logs"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["type", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"#{self.pk} {self.type}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ValueError("Domain event records are write-once")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise ValueError("Domain event records cannot be deleted")
