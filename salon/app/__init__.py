"""FastAPI application for the salon booking service."""
