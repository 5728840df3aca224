"""缩略图编辑器.

把图层存储、选择控制器、变换解析器、渲染与导出服务组合为一组编辑命令，
供界面层调用。界面层只通过这些命令修改场景，并通过 ``get_scene`` 读取快照。
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

from PIL import Image

from thumbnail_studio.core.geometry import BoundingBox
from thumbnail_studio.core.layer_store import LayerStore
from thumbnail_studio.core.selection import SelectionController
from thumbnail_studio.core.transform import Gesture, TransformHandle, TransformResolver
from thumbnail_studio.models.app_settings import get_settings
from thumbnail_studio.models.canvas_config import CanvasConfig, get_palette
from thumbnail_studio.models.layers import (
    DEFAULT_SHADOW,
    FONT_FAMILIES,
    FontStyle,
    ImageLayer,
    LayerRef,
    TextAlign,
    TextLayer,
)
from thumbnail_studio.models.scene import Scene
from thumbnail_studio.services.export_service import ExportArtifact, ExportService
from thumbnail_studio.services.image_loader import load_image_source
from thumbnail_studio.services.layer_metrics import measure_layer
from thumbnail_studio.services.rasterizer import Rasterizer
from thumbnail_studio.services.render_composer import RenderComposer, RenderPlan
from thumbnail_studio.utils.constants import (
    DEFAULT_IMAGE_SCALE,
    MAX_PREVIEW_ZOOM,
    MIN_PREVIEW_ZOOM,
)
from thumbnail_studio.utils.error_handler import safe_execute_async
from thumbnail_studio.utils.exceptions import InvalidConfigValueError
from thumbnail_studio.utils.helpers import clamp
from thumbnail_studio.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)

Layer = Union[TextLayer, ImageLayer]
ErrorCallback = Callable[[Exception], None]

# 上传图片的默认阴影
IMAGE_SHADOW = DEFAULT_SHADOW.model_copy(update={"opacity": 0.4})


def default_title_layer() -> dict[str, Any]:
    """新文档自带的标题图层字段."""
    return {
        "label": "Primary Title",
        "text": "KILLER THUMBNAILS",
        "font_family": FONT_FAMILIES[0].value,
        "font_size": 168,
        "font_style": FontStyle.BOLD,
        "fill": "#ffffff",
        "stroke": "#000000",
        "stroke_width": 4,
        "align": TextAlign.LEFT,
        "uppercase": True,
        "x": 140,
        "y": 180,
    }


class ThumbnailEditor:
    """缩略图编辑器.

    Example:
        >>> editor = ThumbnailEditor()
        >>> layer_id = editor.add_text_layer()
        >>> editor.update_layer(LayerRef.text(layer_id), text="Watch this")
        >>> artifact = await editor.export()
    """

    def __init__(
        self,
        config: Optional[CanvasConfig] = None,
        with_default_layers: bool = True,
    ) -> None:
        """初始化编辑器.

        Args:
            config: 初始画布配置，默认按应用设置的画布尺寸创建
            with_default_layers: 是否添加默认标题图层
        """
        settings = get_settings()
        set_log_level(settings.log_level)
        if config is None:
            config = CanvasConfig(
                width=settings.default_canvas_width,
                height=settings.default_canvas_height,
            )

        self._store = LayerStore(config)
        self._selection = SelectionController(self._store)
        self._resolver = TransformResolver(self._store, self._selection, measure_layer)
        self._composer = RenderComposer(measure_layer)
        self._rasterizer = Rasterizer()
        self._exporter = ExportService(self._composer, self._rasterizer)
        self._preview_zoom = clamp(settings.preview_zoom, MIN_PREVIEW_ZOOM, MAX_PREVIEW_ZOOM)

        if with_default_layers:
            self._store.add_text(default_title_layer())

        logger.info(f"编辑器已创建: {config.width}x{config.height}")

    # ===================
    # 属性
    # ===================

    @property
    def store(self) -> LayerStore:
        """图层存储."""
        return self._store

    @property
    def selection(self) -> Optional[LayerRef]:
        """当前选中的图层引用."""
        return self._selection.selection

    @property
    def config(self) -> CanvasConfig:
        """当前画布配置."""
        return self._store.config

    @property
    def preview_zoom(self) -> float:
        """预览缩放."""
        return self._preview_zoom

    def get_scene(self) -> Scene:
        """获取当前场景快照."""
        return self._store.snapshot(self._selection.selection)

    # ===================
    # 画布命令
    # ===================

    def set_config(self, **patch: Any) -> CanvasConfig:
        """修改画布配置.

        Raises:
            InvalidConfigValueError: 配置值不合法
        """
        return self._store.set_config(**patch)

    def apply_palette(self, name: str) -> CanvasConfig:
        """应用预设渐变配色.

        Raises:
            InvalidConfigValueError: 配色名称不存在
        """
        try:
            palette = get_palette(name)
        except KeyError as e:
            raise InvalidConfigValueError("palette", name, "未知配色") from e
        self._store.replace_config(self._store.config.with_palette(palette))
        logger.info(f"已应用配色: {palette.name}")
        return self._store.config

    def set_preview_zoom(self, factor: float) -> float:
        """设置预览缩放（限制在允许范围内）.

        Returns:
            实际生效的缩放
        """
        self._preview_zoom = clamp(factor, MIN_PREVIEW_ZOOM, MAX_PREVIEW_ZOOM)
        return self._preview_zoom

    # ===================
    # 图层命令
    # ===================

    def add_text_layer(self, **fields: Any) -> str:
        """添加文字图层并选中.

        Args:
            **fields: 覆盖默认值的字段

        Returns:
            新图层ID
        """
        config = self._store.config
        init: dict[str, Any] = {
            "label": "New Text",
            "text": "New Hook",
            "font_family": FONT_FAMILIES[0].value,
            "font_size": FONT_FAMILIES[0].default_size,
            "align": TextAlign.CENTER,
            "x": config.width / 3,
            "y": config.height / 2,
        }
        init.update(fields)
        layer_id = self._store.add_text(init)
        self._selection.select(LayerRef.text(layer_id))
        logger.info(f"添加文字图层: {layer_id}")
        return layer_id

    async def add_image_layer(self, data: bytes, filename: str = "image") -> str:
        """解码上传的图片，成功后添加图片图层并选中.

        解码失败时场景保持不变。

        Args:
            data: 图片字节
            filename: 文件名，去掉扩展名后作为图层名称

        Returns:
            新图层ID

        Raises:
            ImageDecodeError: 图片无法解码
            ImageTooLargeError: 图片超过大小限制
        """
        source = await load_image_source(data, filename)

        config = self._store.config
        layer_id = self._store.add_image({
            "label": source.label,
            "src": source.src,
            "scale": DEFAULT_IMAGE_SCALE,
            "opacity": 1.0,
            "x": config.width / 2,
            "y": config.height / 2,
            "shadow": IMAGE_SHADOW,
        })
        self._selection.select(LayerRef.image(layer_id))
        logger.info(f"添加图片图层: {layer_id} ({source.label}, {source.width}x{source.height})")
        return layer_id

    def update_layer(self, ref: LayerRef, **patch: Any) -> Optional[Layer]:
        """修改图层属性.

        引用指向不存在的图层时忽略。

        Raises:
            InvalidLayerPatchError: 补丁不合法
        """
        if not self._store.contains(ref):
            return None
        return self._store.update_layer(ref.id, patch)

    def select_layer(self, ref: LayerRef) -> None:
        """选中图层."""
        self._selection.select(ref)

    def clear_selection(self) -> None:
        """取消选中."""
        self._selection.clear()

    def delete_selected(self) -> Optional[LayerRef]:
        """删除选中的图层."""
        return self._selection.delete()

    def duplicate_selected(self) -> Optional[str]:
        """复制选中的图层并选中副本."""
        return self._selection.duplicate()

    # ===================
    # 变换命令
    # ===================

    def translate_layer(self, ref: LayerRef, x: float, y: float) -> Optional[Layer]:
        """把图层移动到 (x, y)."""
        return self._resolver.translate(ref, x, y)

    def resize_layer(
        self,
        ref: LayerRef,
        box: BoundingBox,
        handle: TransformHandle = TransformHandle.BOTTOM_RIGHT,
    ) -> Optional[Layer]:
        """按最终包围盒缩放图层."""
        return self._resolver.resize(ref, box, handle)

    def rotate_layer(self, ref: LayerRef, angle: float) -> Optional[Layer]:
        """把图层旋转到 angle 度."""
        return self._resolver.rotate(ref, angle)

    def begin_translate(self, ref: LayerRef) -> Optional[Gesture]:
        """开始拖拽手势."""
        return self._resolver.begin_translate(ref)

    def begin_resize(self, ref: LayerRef, handle: TransformHandle) -> Optional[Gesture]:
        """开始缩放手势."""
        return self._resolver.begin_resize(ref, handle)

    def begin_rotate(self, ref: LayerRef) -> Optional[Gesture]:
        """开始旋转手势."""
        return self._resolver.begin_rotate(ref)

    def drag_to(self, gesture: Gesture, x: float, y: float) -> BoundingBox:
        """拖拽手势移动."""
        return self._resolver.drag_to(gesture, x, y)

    def propose_box(self, gesture: Gesture, box: BoundingBox) -> BoundingBox:
        """缩放手势提议新包围盒."""
        return self._resolver.propose_box(gesture, box)

    def rotate_to(self, gesture: Gesture, angle: float) -> BoundingBox:
        """旋转手势转到新角度."""
        return self._resolver.rotate_to(gesture, angle)

    def end_gesture(self, gesture: Gesture) -> Optional[Layer]:
        """结束手势并提交."""
        return self._resolver.end(gesture)

    def cancel_gesture(self, gesture: Gesture) -> None:
        """放弃手势."""
        self._resolver.cancel(gesture)

    # ===================
    # 渲染与导出
    # ===================

    def compose(self, include_guides: bool = True) -> RenderPlan:
        """生成当前场景的渲染计划."""
        return self._composer.compose(self.get_scene(), include_guides=include_guides)

    def render_preview(self, include_guides: bool = True) -> Image.Image:
        """按预览缩放渲染当前场景."""
        return self._rasterizer.render_preview(self.compose(include_guides), self._preview_zoom)

    def hit_test(self, x: float, y: float) -> Optional[LayerRef]:
        """返回画布坐标处最上层的图层引用."""
        return self.compose(include_guides=False).hit_test(x, y)

    def select_at(self, x: float, y: float) -> Optional[LayerRef]:
        """点击画布：选中坐标处的图层，点击空白处取消选中."""
        ref = self.hit_test(x, y)
        if ref is None:
            self._selection.clear()
        else:
            self._selection.select(ref)
        return ref

    async def export(self) -> ExportArtifact:
        """导出当前场景为 PNG.

        Raises:
            ExportError: 导出失败
        """
        return await self._exporter.export(self.get_scene())

    # ===================
    # 界面入口（失败不抛出）
    # ===================

    async def upload_image(
        self,
        data: bytes,
        filename: str = "image",
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[str]:
        """上传图片；失败时回调 on_error 并返回 None，场景保持不变."""
        return await safe_execute_async(
            self.add_image_layer, data, filename, on_error=on_error,
        )

    async def try_export(self, on_error: Optional[ErrorCallback] = None) -> Optional[ExportArtifact]:
        """导出当前场景；失败时回调 on_error 并返回 None."""
        return await safe_execute_async(self.export, on_error=on_error)
