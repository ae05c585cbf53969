"""
Abstract landmark detector interface.

Concrete detectors (MediaPipe, platform vision frameworks) live outside this
package and are injected into the multi-pass driver. A detector owns its
model handle for a scoped lifetime: load once, release explicitly.
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from framealign.domain.alignment.entities.landmarks import Landmarks


class LandmarkDetector(ABC):
    """Detects face or body landmarks in an image."""

    @abstractmethod
    def load_model(self) -> None:
        """Acquire the underlying model."""
        pass

    @abstractmethod
    def detect(self, image: np.ndarray) -> Optional[Landmarks]:
        """
        Detect landmarks in an image.

        Args:
            image: Input image as numpy array

        Returns:
            Normalized landmarks, or None when nothing was detected
        """
        pass

    @abstractmethod
    def is_loaded(self) -> bool:
        """Check if model is loaded."""
        pass

    def release(self) -> None:
        """Free the model handle. Default is a no-op."""
        pass

    def __enter__(self) -> 'LandmarkDetector':
        if not self.is_loaded():
            self.load_model()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
