"""
Domain layer for the FrameAlign engine.

- shared: base value object, bounding box, error taxonomy, Result container
- alignment: transforms, landmarks, scores, settings and collaborator interfaces
"""
