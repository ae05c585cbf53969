"""Application layer: alignment use cases and the multi-pass driver."""
