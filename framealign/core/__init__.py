"""Configuration and logging bootstrap."""
