"""Payments app package: idempotent ingestion of payment-provider webhooks."""
