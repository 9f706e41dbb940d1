"""Adapters for external services (text models, image models, data store)."""
