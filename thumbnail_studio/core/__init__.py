"""核心业务逻辑模块."""

from thumbnail_studio.core.geometry import (
    BoundingBox,
    Point,
    bound_box,
    contains_point,
    gradient_points,
    grid_lines,
    half_diagonal,
    rotated_bounds,
    safe_zone_rect,
)
from thumbnail_studio.core.layer_store import LayerStore
from thumbnail_studio.core.selection import SelectionController
from thumbnail_studio.core.transform import (
    CORNER_HANDLES,
    Gesture,
    GestureKind,
    TransformHandle,
    TransformResolver,
    min_box_size,
    resize_patch,
)

__all__ = [
    # 几何
    "BoundingBox",
    "Point",
    "bound_box",
    "contains_point",
    "gradient_points",
    "grid_lines",
    "half_diagonal",
    "rotated_bounds",
    "safe_zone_rect",
    # 图层存储
    "LayerStore",
    # 选择
    "SelectionController",
    # 变换
    "CORNER_HANDLES",
    "Gesture",
    "GestureKind",
    "TransformHandle",
    "TransformResolver",
    "min_box_size",
    "resize_patch",
]
