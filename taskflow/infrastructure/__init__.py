"""Infrastructure layer: SQL persistence and notification dispatch adapters."""
