"""数据模型模块."""

from thumbnail_studio.models.canvas_config import (
    GRADIENT_PALETTES,
    BackgroundMode,
    CanvasConfig,
    GradientPalette,
    get_palette,
)
from thumbnail_studio.models.layers import (
    # 枚举
    FontStyle,
    LayerType,
    TextAlign,
    # 常量
    DEFAULT_SHADOW,
    FONT_FAMILIES,
    # 图层类
    AnyLayer,
    FontFamily,
    ImageLayer,
    LayerBase,
    LayerRef,
    ShadowSettings,
    TextLayer,
    # 辅助函数
    generate_layer_id,
    layer_from_dict,
)
from thumbnail_studio.models.scene import Scene

__all__ = [
    # 画布
    "BackgroundMode",
    "CanvasConfig",
    "GradientPalette",
    "GRADIENT_PALETTES",
    "get_palette",
    # 枚举
    "FontStyle",
    "LayerType",
    "TextAlign",
    # 常量
    "DEFAULT_SHADOW",
    "FONT_FAMILIES",
    # 图层类
    "AnyLayer",
    "FontFamily",
    "ImageLayer",
    "LayerBase",
    "LayerRef",
    "ShadowSettings",
    "TextLayer",
    # 场景
    "Scene",
    # 辅助函数
    "generate_layer_id",
    "layer_from_dict",
]
