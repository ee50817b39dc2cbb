"""Runtime services: telemetry and deferred callbacks."""
