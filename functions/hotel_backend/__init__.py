"""
Backend package for the hotel web application's peripheral services.

Provides a FastAPI application for the public contact form and the admin
settings/media endpoints, with mail, settings, mirror and media
abstractions so each external SDK can be swapped for an in-memory double.
"""
