"""
FrameAlign: alignment and stabilization-convergence engine for timelapse frames.

Layers:
- core: configuration and logging bootstrap
- domain: value objects, entities and collaborator interfaces
- application: use cases and the multi-pass stabilization driver
- infrastructure: OpenCV-backed collaborator implementations
"""

__version__ = "0.1.0"
