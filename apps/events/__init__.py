"""Domain event log app package.

Stores the append-only log of domain events produced by the booking core
(reservation transitions, payment receipts). Notification dispatch and
audit/reporting collaborators read the log forward from a cursor; nothing
in the core ever updates or deletes an entry.
"""
