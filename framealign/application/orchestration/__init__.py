from framealign.application.orchestration.multi_pass_landscape_stabilization import (
    MultiPassLandscapeStabilizationUseCase,
)
from framealign.application.orchestration.multi_pass_stabilization import MultiPassStabilizationUseCase

__all__ = ["MultiPassLandscapeStabilizationUseCase", "MultiPassStabilizationUseCase"]
