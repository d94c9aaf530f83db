"""Infrastructure layer for MedLedger: configuration, settings and logging."""
