"""Adapters for the storage and identity-provider collaborators."""
