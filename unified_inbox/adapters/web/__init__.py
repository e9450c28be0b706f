"""Web adapters — FastAPI routes."""
