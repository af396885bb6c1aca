"""Route handler sets and their route registration functions."""
