from framealign.domain.shared.value_objects.base_value_object import BaseValueObject
from framealign.domain.shared.value_objects.bounding_box import BoundingBox

__all__ = ["BaseValueObject", "BoundingBox"]
