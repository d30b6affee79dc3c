"""Core engine: configuration, storage, models, schemas and workflow services."""
