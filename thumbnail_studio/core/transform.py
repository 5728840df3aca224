"""变换解析模块.

把拖拽、缩放、旋转手势转换为对图层存储的一次性提交。

Features:
    - 三类手势：平移 / 缩放 / 旋转
    - 手势过程中的中间状态只保存在手势对象里，结束时才提交
    - 按图层类型约束最小包围盒，字号有下限
    - 对未选中图层发起手势时先隐式选中
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Union

from thumbnail_studio.core.geometry import (
    BoundingBox,
    Point,
    bound_box,
    rotate_point,
    scale_factor,
)
from thumbnail_studio.core.layer_store import LayerStore
from thumbnail_studio.core.selection import SelectionController
from thumbnail_studio.models.layers import ImageLayer, LayerRef, LayerType, TextLayer
from thumbnail_studio.utils.constants import IMAGE_MIN_BOX, MIN_FONT_SIZE, TEXT_MIN_BOX
from thumbnail_studio.utils.exceptions import TransformError, UnsupportedHandleError
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

Layer = Union[TextLayer, ImageLayer]

# 测量图层未旋转时的 (宽, 高)
LayerMeasure = Callable[[Layer], tuple[float, float]]


class GestureKind(str, Enum):
    """手势类型."""

    TRANSLATE = "translate"
    RESIZE = "resize"
    ROTATE = "rotate"


class TransformHandle(str, Enum):
    """变换框手柄."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


# 只有四角手柄可用于缩放
CORNER_HANDLES: tuple[TransformHandle, ...] = (
    TransformHandle.TOP_LEFT,
    TransformHandle.TOP_RIGHT,
    TransformHandle.BOTTOM_LEFT,
    TransformHandle.BOTTOM_RIGHT,
)

MIN_BOX_SIZES: dict[LayerType, tuple[int, int]] = {
    LayerType.IMAGE: IMAGE_MIN_BOX,
    LayerType.TEXT: TEXT_MIN_BOX,
}


def min_box_size(layer_type: LayerType) -> tuple[int, int]:
    """图层类型对应的最小包围盒."""
    return MIN_BOX_SIZES[layer_type]


def resize_patch(layer: Layer, start_box: BoundingBox, end_box: BoundingBox) -> dict[str, Any]:
    """计算缩放手势结束时要提交的属性.

    统一缩放系数由起止包围盒的宽度之比得出：图片乘进 ``scale``，
    文字乘进 ``font_size`` 且不低于最小字号。

    Args:
        layer: 手势开始时的图层
        start_box: 手势开始时的包围盒
        end_box: 手势结束时被接受的包围盒

    Returns:
        属性补丁，包围盒未变化时为空
    """
    if end_box == start_box:
        return {}
    factor = scale_factor(start_box, end_box)
    patch: dict[str, Any] = {
        "x": end_box.x,
        "y": end_box.y,
        "rotation": end_box.rotation,
    }
    if isinstance(layer, TextLayer):
        patch["font_size"] = max(MIN_FONT_SIZE, layer.font_size * factor)
    else:
        patch["scale"] = layer.scale * factor
    return patch


def rotate_about_center(box: BoundingBox, angle: float) -> BoundingBox:
    """保持盒子中心不动，把盒子旋转到 angle 度."""
    half = Point(box.width / 2, box.height / 2)
    center_offset = rotate_point(half, box.rotation)
    center = Point(box.x + center_offset.x, box.y + center_offset.y)
    new_offset = rotate_point(half, angle)
    return replace(
        box,
        x=center.x - new_offset.x,
        y=center.y - new_offset.y,
        rotation=angle,
    )


@dataclass
class Gesture:
    """进行中的手势.

    ``box`` 是手势过程中的展示状态，手势结束前不会写回图层存储。

    Attributes:
        kind: 手势类型
        ref: 目标图层引用
        origin: 手势开始时的图层快照
        start_box: 手势开始时的包围盒
        box: 当前包围盒
        handle: 缩放手柄（仅缩放手势）
        finished: 是否已结束
    """

    kind: GestureKind
    ref: LayerRef
    origin: Layer
    start_box: BoundingBox
    box: BoundingBox
    handle: Optional[TransformHandle] = None
    finished: bool = False


class TransformResolver:
    """变换解析器.

    Example:
        >>> resolver = TransformResolver(store, selection, measure)
        >>> gesture = resolver.begin_resize(ref, TransformHandle.BOTTOM_RIGHT)
        >>> resolver.propose_box(gesture, BoundingBox(0, 0, 30, 30))  # 小于下限，保持原盒子
        >>> resolver.end(gesture)
    """

    def __init__(
        self,
        store: LayerStore,
        selection: SelectionController,
        measure: LayerMeasure,
    ) -> None:
        """初始化变换解析器.

        Args:
            store: 图层存储
            selection: 选择控制器
            measure: 图层尺寸测量函数
        """
        self._store = store
        self._selection = selection
        self._measure = measure

    def layer_box(self, layer: Layer) -> BoundingBox:
        """图层当前的变换包围盒."""
        width, height = self._measure(layer)
        return BoundingBox(layer.x, layer.y, width, height, layer.rotation)

    # ===================
    # 手势开始
    # ===================

    def _begin(
        self,
        kind: GestureKind,
        ref: LayerRef,
        handle: Optional[TransformHandle] = None,
    ) -> Optional[Gesture]:
        layer = self._store.get(ref)
        if layer is None:
            logger.debug(f"忽略对不存在图层的手势: {ref.id}")
            return None
        if not self._selection.is_selected(ref):
            self._selection.select(ref)
        box = self.layer_box(layer)
        return Gesture(kind=kind, ref=ref, origin=layer, start_box=box, box=box, handle=handle)

    def begin_translate(self, ref: LayerRef) -> Optional[Gesture]:
        """开始拖拽手势."""
        return self._begin(GestureKind.TRANSLATE, ref)

    def begin_resize(self, ref: LayerRef, handle: TransformHandle) -> Optional[Gesture]:
        """开始缩放手势.

        Raises:
            UnsupportedHandleError: 使用了边中点手柄
        """
        handle = TransformHandle(handle)
        if handle not in CORNER_HANDLES:
            raise UnsupportedHandleError(handle.value)
        return self._begin(GestureKind.RESIZE, ref, handle)

    def begin_rotate(self, ref: LayerRef) -> Optional[Gesture]:
        """开始旋转手势."""
        return self._begin(GestureKind.ROTATE, ref)

    # ===================
    # 手势过程
    # ===================

    @staticmethod
    def _check(gesture: Gesture, kind: GestureKind) -> None:
        if gesture.finished:
            raise TransformError("手势已结束")
        if gesture.kind != kind:
            raise TransformError(f"手势类型不匹配: 期望 {kind.value}，实际 {gesture.kind.value}")

    def drag_to(self, gesture: Gesture, x: float, y: float) -> BoundingBox:
        """拖拽到指定位置（不做约束）."""
        self._check(gesture, GestureKind.TRANSLATE)
        gesture.box = gesture.box.moved_to(x, y)
        return gesture.box

    def propose_box(self, gesture: Gesture, new_box: BoundingBox) -> BoundingBox:
        """提交一个缩放提议.

        任一边小于图层类型下限时保留上一个被接受的盒子。

        Returns:
            被接受的包围盒
        """
        self._check(gesture, GestureKind.RESIZE)
        accepted = bound_box(gesture.box, new_box, min_box_size(gesture.ref.layer_type))
        if accepted is not new_box:
            logger.debug(f"缩放提议低于下限，已拒绝: {new_box.width:.0f}x{new_box.height:.0f}")
        gesture.box = accepted
        return accepted

    def rotate_to(self, gesture: Gesture, angle: float) -> BoundingBox:
        """旋转到指定角度（绕盒子中心，不限制角度）."""
        self._check(gesture, GestureKind.ROTATE)
        gesture.box = rotate_about_center(gesture.box, angle)
        return gesture.box

    # ===================
    # 手势结束
    # ===================

    def end(self, gesture: Gesture) -> Optional[Layer]:
        """结束手势并提交一次图层更新.

        手势期间图层已被删除时不提交。

        Returns:
            更新后的图层，图层不存在返回 None
        """
        if gesture.finished:
            raise TransformError("手势已结束")
        gesture.finished = True

        box = gesture.box
        if gesture.kind == GestureKind.TRANSLATE:
            patch: dict[str, Any] = {"x": box.x, "y": box.y}
        elif gesture.kind == GestureKind.RESIZE:
            patch = resize_patch(gesture.origin, gesture.start_box, box)
        else:
            patch = {"x": box.x, "y": box.y, "rotation": box.rotation}

        updated = self._store.update_layer(gesture.ref.id, patch)
        if updated is not None:
            logger.debug(f"提交{gesture.kind.value}手势: {gesture.ref.id} {patch}")
        return updated

    def cancel(self, gesture: Gesture) -> None:
        """放弃手势，不提交任何修改."""
        gesture.finished = True

    # ===================
    # 一次性手势
    # ===================

    def translate(self, ref: LayerRef, x: float, y: float) -> Optional[Layer]:
        """把图层移动到 (x, y)."""
        gesture = self.begin_translate(ref)
        if gesture is None:
            return None
        self.drag_to(gesture, x, y)
        return self.end(gesture)

    def resize(
        self,
        ref: LayerRef,
        new_box: BoundingBox,
        handle: TransformHandle = TransformHandle.BOTTOM_RIGHT,
    ) -> Optional[Layer]:
        """用一个最终包围盒完成缩放."""
        gesture = self.begin_resize(ref, handle)
        if gesture is None:
            return None
        self.propose_box(gesture, new_box)
        return self.end(gesture)

    def rotate(self, ref: LayerRef, angle: float) -> Optional[Layer]:
        """把图层旋转到 angle 度."""
        gesture = self.begin_rotate(ref)
        if gesture is None:
            return None
        self.rotate_to(gesture, angle)
        return self.end(gesture)
