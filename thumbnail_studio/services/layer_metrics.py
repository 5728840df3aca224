"""图层尺寸测量.

计算图层未旋转时的包围盒尺寸，供变换解析与渲染共用。
"""

from __future__ import annotations

from typing import Union

from PIL import Image

from thumbnail_studio.models.layers import ImageLayer, TextLayer
from thumbnail_studio.services.font_resolver import Font, font_for_text
from thumbnail_studio.utils.constants import TEXT_PADDING
from thumbnail_studio.utils.exceptions import ImageDecodeError
from thumbnail_studio.utils.image_utils import load_source_image


def text_lines(layer: TextLayer) -> list[str]:
    """文字图层实际渲染的各行."""
    return layer.display_text.split("\n")


def text_font(layer: TextLayer) -> Font:
    """文字图层使用的字体."""
    return font_for_text(layer.font_family, layer.font_size, layer.is_bold, layer.display_text)


def measure_text(layer: TextLayer) -> tuple[float, float]:
    """测量文字图层尺寸.

    宽度 = 最长行宽 + 两侧内边距；高度 = 行数 x 字号 + 上下内边距。
    """
    font = text_font(layer)
    lines = text_lines(layer)
    width = max(font.getlength(line) for line in lines)
    height = layer.font_size * len(lines)
    return (width + TEXT_PADDING * 2, height + TEXT_PADDING * 2)


def source_image(layer: ImageLayer) -> Image.Image:
    """解码图片图层的来源.

    Raises:
        ImageDecodeError: 来源无法解码
    """
    try:
        return load_source_image(layer.src)
    except (ValueError, OSError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(layer.label, str(e)) from e


def measure_image(layer: ImageLayer) -> tuple[float, float]:
    """测量图片图层尺寸（原始尺寸 x 缩放）."""
    image = source_image(layer)
    return (image.width * layer.scale, image.height * layer.scale)


def measure_layer(layer: Union[TextLayer, ImageLayer]) -> tuple[float, float]:
    """测量任意图层的未旋转尺寸."""
    if isinstance(layer, TextLayer):
        return measure_text(layer)
    return measure_image(layer)
