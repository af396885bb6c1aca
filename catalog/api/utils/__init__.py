"""Response envelope and request parsing helpers for the API layer."""
