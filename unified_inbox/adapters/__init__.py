"""Adapters — record stores, change feeds, sources and the web surface."""
