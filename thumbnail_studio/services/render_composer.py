"""渲染编排模块.

把场景快照投影为可绘制的渲染计划：背景、网格、按两层固定顺序排列的
图层节点、安全区与选中框。纯函数式投影，不持有状态。

渲染节点通过图层引用（类型 + ID）指回图层，不持有可变对象，
每次渲染都从最新快照重新生成。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from thumbnail_studio.core.geometry import (
    BoundingBox,
    Point,
    contains_point,
    gradient_points,
    grid_lines,
    safe_zone_rect,
)
from thumbnail_studio.core.transform import CORNER_HANDLES, TransformHandle, min_box_size
from thumbnail_studio.models.canvas_config import BackgroundMode
from thumbnail_studio.models.layers import ImageLayer, LayerRef, TextLayer
from thumbnail_studio.models.scene import Scene
from thumbnail_studio.services.layer_metrics import measure_layer
from thumbnail_studio.utils.constants import (
    GRID_COLOR,
    GRID_SPACING,
    SAFE_ZONE_COLOR,
    SAFE_ZONE_DASH,
    SAFE_ZONE_STROKE_WIDTH,
    SELECTION_COLOR,
)
from thumbnail_studio.utils.exceptions import ImageDecodeError
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

Layer = Union[TextLayer, ImageLayer]
RGBAColor = tuple[int, int, int, int]


# ===================
# 渲染节点
# ===================


@dataclass(frozen=True)
class BackgroundNode:
    """背景填充."""

    width: int
    height: int
    mode: BackgroundMode
    color: str
    start_color: str
    end_color: str
    start: Optional[Point] = None
    end: Optional[Point] = None


@dataclass(frozen=True)
class GridNode:
    """网格线."""

    vertical: tuple[int, ...]
    horizontal: tuple[int, ...]
    color: RGBAColor = GRID_COLOR


@dataclass(frozen=True)
class SafeZoneNode:
    """安全区虚线框."""

    rect: BoundingBox
    color: RGBAColor = SAFE_ZONE_COLOR
    dash: tuple[int, int] = SAFE_ZONE_DASH
    stroke_width: int = SAFE_ZONE_STROKE_WIDTH


@dataclass(frozen=True)
class LayerNode:
    """图层节点."""

    ref: LayerRef
    layer: Layer
    box: BoundingBox


@dataclass(frozen=True)
class SelectionNode:
    """选中框."""

    ref: LayerRef
    box: BoundingBox
    anchors: tuple[TransformHandle, ...] = CORNER_HANDLES
    min_size: tuple[int, int] = (0, 0)
    color: RGBAColor = SELECTION_COLOR


@dataclass(frozen=True)
class RenderPlan:
    """渲染计划.

    绘制顺序固定：背景 -> 网格 -> 图片组 -> 文字组 -> 安全区 -> 选中框。
    """

    width: int
    height: int
    background: BackgroundNode
    image_nodes: tuple[LayerNode, ...] = ()
    text_nodes: tuple[LayerNode, ...] = ()
    grid: Optional[GridNode] = None
    safe_zone: Optional[SafeZoneNode] = None
    selection: Optional[SelectionNode] = None

    @property
    def layer_nodes(self) -> tuple[LayerNode, ...]:
        """按绘制顺序排列的全部图层节点."""
        return self.image_nodes + self.text_nodes

    @property
    def has_guides(self) -> bool:
        """是否包含仅编辑时可见的辅助元素."""
        return any(n is not None for n in (self.grid, self.safe_zone, self.selection))

    def node_for(self, ref: LayerRef) -> Optional[LayerNode]:
        """按引用查找图层节点."""
        for node in self.layer_nodes:
            if node.ref == ref:
                return node
        return None

    def hit_test(self, x: float, y: float) -> Optional[LayerRef]:
        """返回坐标处最上层图层的引用.

        Args:
            x: 画布 X 坐标
            y: 画布 Y 坐标

        Returns:
            图层引用，空白处返回 None
        """
        for node in reversed(self.layer_nodes):
            if contains_point(node.box, x, y):
                return node.ref
        return None


# ===================
# 编排器
# ===================


class RenderComposer:
    """渲染编排器.

    Example:
        >>> composer = RenderComposer()
        >>> plan = composer.compose(scene, include_guides=False)
        >>> plan.has_guides
        False
    """

    def __init__(
        self,
        measure: Callable[[Layer], tuple[float, float]] = measure_layer,
    ) -> None:
        """初始化渲染编排器.

        Args:
            measure: 图层尺寸测量函数
        """
        self._measure = measure

    def compose(self, scene: Scene, include_guides: bool = True) -> RenderPlan:
        """从场景快照生成渲染计划.

        Args:
            scene: 场景快照
            include_guides: 是否包含网格、安全区与选中框

        Returns:
            渲染计划
        """
        config = scene.config
        background = self._background(scene)
        image_nodes = self._layer_nodes(scene.image_layers)
        text_nodes = self._layer_nodes(scene.text_layers)

        grid = None
        safe_zone = None
        selection = None
        if include_guides:
            if config.show_grid:
                vertical, horizontal = grid_lines(config.width, config.height, GRID_SPACING)
                grid = GridNode(vertical=vertical, horizontal=horizontal)
            if config.show_safe_zone:
                safe_zone = SafeZoneNode(rect=safe_zone_rect(config.width, config.height))
            if scene.selection is not None:
                selection = self._selection_node(scene.selection, image_nodes + text_nodes)

        return RenderPlan(
            width=config.width,
            height=config.height,
            background=background,
            image_nodes=image_nodes,
            text_nodes=text_nodes,
            grid=grid,
            safe_zone=safe_zone,
            selection=selection,
        )

    def _background(self, scene: Scene) -> BackgroundNode:
        config = scene.config
        start = end = None
        if config.background_mode == BackgroundMode.GRADIENT:
            start, end = gradient_points(config.gradient_angle, config.width, config.height)
        return BackgroundNode(
            width=config.width,
            height=config.height,
            mode=config.background_mode,
            color=config.solid_color,
            start_color=config.gradient_start,
            end_color=config.gradient_end,
            start=start,
            end=end,
        )

    def _layer_nodes(self, layers: tuple[Layer, ...]) -> tuple[LayerNode, ...]:
        nodes = []
        for layer in layers:
            try:
                width, height = self._measure(layer)
            except ImageDecodeError as e:
                logger.warning(f"图层无法测量，已跳过: {layer.id}, 错误: {e}")
                continue
            box = BoundingBox(layer.x, layer.y, width, height, layer.rotation)
            nodes.append(LayerNode(ref=layer.ref, layer=layer, box=box))
        return tuple(nodes)

    @staticmethod
    def _selection_node(
        ref: LayerRef,
        nodes: tuple[LayerNode, ...],
    ) -> Optional[SelectionNode]:
        for node in nodes:
            if node.ref == ref:
                return SelectionNode(ref=ref, box=node.box, min_size=min_box_size(ref.layer_type))
        logger.debug(f"选中图层不在快照中: {ref.id}")
        return None
