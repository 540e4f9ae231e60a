"""FastAPI application for Linkwise."""
