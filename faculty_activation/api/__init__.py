"""API layer - FastAPI screen backend for the activation flow."""
