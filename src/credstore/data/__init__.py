"""Data operations for credstore: codec, caches and the entity service."""
