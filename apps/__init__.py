"""Domain apps of the court booking service."""
