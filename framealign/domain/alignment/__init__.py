"""
Alignment domain: transforms, landmarks, stabilization scores and the
collaborator interfaces (landmark detector, feature matcher, image transformer).
"""
