"""Concrete collaborators backed by third-party libraries."""
