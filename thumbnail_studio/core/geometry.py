"""几何计算模块.

纯函数集合，不持有状态：渐变端点投影、包围盒约束、旋转包围盒、
网格与安全区计算。

坐标系与画布一致：原点在左上角，Y 轴向下，角度按顺时针为正。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import NamedTuple

from thumbnail_studio.utils.constants import GRID_SPACING, SAFE_ZONE_RATIO


class Point(NamedTuple):
    """二维点."""

    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    """变换包围盒.

    ``x``/``y`` 是锚点（未旋转时的左上角），盒子绕锚点旋转 ``rotation`` 度。

    Attributes:
        x: 锚点 X 坐标
        y: 锚点 Y 坐标
        width: 宽度
        height: 高度
        rotation: 旋转角度（度，顺时针）
    """

    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    @property
    def size(self) -> tuple[float, float]:
        """尺寸."""
        return (self.width, self.height)

    def moved_to(self, x: float, y: float) -> "BoundingBox":
        """返回移动锚点后的新盒子."""
        return replace(self, x=x, y=y)

    def rotated_to(self, rotation: float) -> "BoundingBox":
        """返回修改旋转角度后的新盒子."""
        return replace(self, rotation=rotation)


# ===================
# 渐变投影
# ===================


def half_diagonal(width: float, height: float) -> float:
    """画布半对角线长度."""
    return math.sqrt((width / 2) ** 2 + (height / 2) ** 2)


def gradient_points(angle: float, width: float, height: float) -> tuple[Point, Point]:
    """计算线性渐变的起止端点.

    渐变线穿过画布中心，两端距中心各为半对角线长度，因此任意角度、
    任意宽高比下渐变都能覆盖整个画布。

    Args:
        angle: 渐变角度（度）
        width: 画布宽度
        height: 画布高度

    Returns:
        (起点, 终点)
    """
    radians = math.radians(angle)
    cx = width / 2
    cy = height / 2
    d = half_diagonal(width, height)
    cos = math.cos(radians)
    sin = math.sin(radians)
    return (
        Point(cx - d * cos, cy - d * sin),
        Point(cx + d * cos, cy + d * sin),
    )


# ===================
# 包围盒约束
# ===================


def meets_min_size(box: BoundingBox, min_size: tuple[float, float]) -> bool:
    """包围盒是否满足最小尺寸."""
    min_width, min_height = min_size
    return box.width >= min_width and box.height >= min_height


def bound_box(
    old_box: BoundingBox,
    new_box: BoundingBox,
    min_size: tuple[float, float],
) -> BoundingBox:
    """约束缩放提议.

    新盒子任一边小于下限时原样返回旧盒子，否则接受新盒子。

    Args:
        old_box: 当前包围盒
        new_box: 提议的包围盒
        min_size: 最小 (宽, 高)

    Returns:
        被接受的包围盒
    """
    if not meets_min_size(new_box, min_size):
        return old_box
    return new_box


def scale_factor(start_box: BoundingBox, end_box: BoundingBox) -> float:
    """两个包围盒之间的统一缩放系数（按宽度计算）."""
    if start_box.width <= 0:
        return 1.0
    return end_box.width / start_box.width


def scaled_size(width: float, height: float, scale: float) -> tuple[int, int]:
    """按比例缩放尺寸并取整，每边至少 1 像素."""
    return (max(1, round(width * scale)), max(1, round(height * scale)))


# ===================
# 旋转
# ===================


def rotate_point(point: Point, angle: float, origin: Point = Point(0.0, 0.0)) -> Point:
    """绕 origin 顺时针旋转一个点（Y 轴向下）."""
    radians = math.radians(angle)
    cos = math.cos(radians)
    sin = math.sin(radians)
    dx = point.x - origin.x
    dy = point.y - origin.y
    return Point(origin.x + dx * cos - dy * sin, origin.y + dx * sin + dy * cos)


def rotated_corners(box: BoundingBox) -> tuple[Point, Point, Point, Point]:
    """包围盒旋转后的四个角：左上、右上、右下、左下."""
    origin = Point(box.x, box.y)
    corners = (
        Point(box.x, box.y),
        Point(box.x + box.width, box.y),
        Point(box.x + box.width, box.y + box.height),
        Point(box.x, box.y + box.height),
    )
    return tuple(rotate_point(c, box.rotation, origin) for c in corners)  # type: ignore[return-value]


def rotated_bounds(box: BoundingBox) -> tuple[float, float, float, float]:
    """旋转后包围盒的轴对齐外接矩形.

    Returns:
        (left, top, right, bottom)
    """
    corners = rotated_corners(box)
    xs = [c.x for c in corners]
    ys = [c.y for c in corners]
    return (min(xs), min(ys), max(xs), max(ys))


def contains_point(box: BoundingBox, x: float, y: float) -> bool:
    """点是否落在旋转包围盒内."""
    local = rotate_point(Point(x, y), -box.rotation, Point(box.x, box.y))
    return (
        box.x <= local.x <= box.x + box.width
        and box.y <= local.y <= box.y + box.height
    )


# ===================
# 编辑辅助线
# ===================


def grid_lines(
    width: int,
    height: int,
    spacing: int = GRID_SPACING,
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """计算网格线位置.

    只返回严格位于画布内部的线。

    Returns:
        (竖线 X 坐标, 横线 Y 坐标)
    """
    vertical = tuple(x for x in range(spacing, width, spacing))
    horizontal = tuple(y for y in range(spacing, height, spacing))
    return vertical, horizontal


def safe_zone_rect(width: float, height: float, ratio: float = SAFE_ZONE_RATIO) -> BoundingBox:
    """计算安全区矩形（每条边向内缩进 ratio 比例）."""
    padding_x = width * ratio
    padding_y = height * ratio
    return BoundingBox(
        x=padding_x,
        y=padding_y,
        width=width - padding_x * 2,
        height=height - padding_y * 2,
    )
