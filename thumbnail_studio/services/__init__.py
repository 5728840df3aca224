"""服务模块."""

from thumbnail_studio.services.export_service import ExportArtifact, ExportService, export_filename
from thumbnail_studio.services.font_resolver import find_font, font_for_text
from thumbnail_studio.services.image_loader import ImageSource, decode_image_source, load_image_source
from thumbnail_studio.services.layer_metrics import measure_image, measure_layer, measure_text
from thumbnail_studio.services.rasterizer import Rasterizer, render_gradient
from thumbnail_studio.services.render_composer import (
    BackgroundNode,
    GridNode,
    LayerNode,
    RenderComposer,
    RenderPlan,
    SafeZoneNode,
    SelectionNode,
)

__all__ = [
    # 导出
    "ExportArtifact",
    "ExportService",
    "export_filename",
    # 字体
    "find_font",
    "font_for_text",
    # 图片上传
    "ImageSource",
    "decode_image_source",
    "load_image_source",
    # 尺寸测量
    "measure_image",
    "measure_layer",
    "measure_text",
    # 渲染
    "BackgroundNode",
    "GridNode",
    "LayerNode",
    "Rasterizer",
    "RenderComposer",
    "RenderPlan",
    "SafeZoneNode",
    "SelectionNode",
    "render_gradient",
]
