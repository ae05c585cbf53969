"""Numeric helpers shared by the homography and stabilization use cases."""
