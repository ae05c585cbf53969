"""
Error taxonomy for the alignment engine.

Use cases report these through Result.failure(); only value-object
constructors and HomographyMatrix.transform_point raise them directly.
"""


class AlignmentError(Exception):
    """Base class for every expected failure of the alignment engine."""


class InvalidArgumentError(AlignmentError, ValueError):
    """Malformed numeric input (non-positive canvas size, wrong-length matrix array, ...)."""


class InsufficientCorrespondencesError(AlignmentError):
    """Fewer point matches than the homography solver needs."""


class DegenerateTransformError(AlignmentError):
    """A transform is non-invertible or numerically unstable."""


class NoValidMatchesError(AlignmentError):
    """Reprojection diagnostics were given an empty or unusable match list."""


class FeatureMatchingUnavailableError(AlignmentError):
    """The feature matching backend is not available on this host."""


class LandmarksNotDetectedError(AlignmentError):
    """The landmark detector returned nothing for a frame."""
