"""光栅化引擎.

把渲染计划绘制为 RGBA 图片。

Features:
    - 纯色 / 线性渐变背景
    - 文字渲染支持描边、对齐、大写显示
    - 图片图层缩放与透明度
    - 绕锚点旋转
    - 每个图层独立的模糊阴影
    - 编辑辅助元素：网格、安全区虚线框、选中框
"""

from __future__ import annotations

import math
from typing import Union

from PIL import Image, ImageDraw, ImageFilter

from thumbnail_studio.core.geometry import (
    BoundingBox,
    Point,
    half_diagonal,
    rotated_corners,
    scaled_size,
)
from thumbnail_studio.core.transform import TransformHandle
from thumbnail_studio.models.canvas_config import BackgroundMode
from thumbnail_studio.models.layers import ImageLayer, ShadowSettings, TextAlign, TextLayer
from thumbnail_studio.services.layer_metrics import source_image, text_font, text_lines
from thumbnail_studio.services.render_composer import (
    BackgroundNode,
    GridNode,
    LayerNode,
    RenderPlan,
    SafeZoneNode,
    SelectionNode,
)
from thumbnail_studio.utils.constants import SELECTION_ANCHOR_SIZE, TEXT_PADDING
from thumbnail_studio.utils.exceptions import AppException
from thumbnail_studio.utils.helpers import clamp, hex_to_rgba
from thumbnail_studio.utils.image_utils import apply_opacity
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

Layer = Union[TextLayer, ImageLayer]

# 旋转包围盒四角顺序（左上、右上、右下、左下）对应的手柄
_CORNER_INDEX = {
    TransformHandle.TOP_LEFT: 0,
    TransformHandle.TOP_RIGHT: 1,
    TransformHandle.BOTTOM_RIGHT: 2,
    TransformHandle.BOTTOM_LEFT: 3,
}


# ===================
# 背景
# ===================


def render_gradient(
    width: int,
    height: int,
    angle: float,
    start_color: str,
    end_color: str,
) -> Image.Image:
    """渲染线性渐变.

    生成一张边长为画布对角线的水平灰度渐变，旋转到渐变角度后居中裁剪，
    作为两种颜色的混合蒙版。渐变起止点与 ``gradient_points`` 一致。

    Args:
        width: 画布宽度
        height: 画布高度
        angle: 渐变角度（度，顺时针）
        start_color: 起始颜色
        end_color: 结束颜色

    Returns:
        RGBA 渐变图片
    """
    side = max(2, math.ceil(half_diagonal(width, height) * 2))
    ramp = Image.linear_gradient("L").transpose(Image.Transpose.ROTATE_90)
    ramp = ramp.resize((side, side), Image.Resampling.BILINEAR)
    ramp = ramp.rotate(-angle, resample=Image.Resampling.BICUBIC)

    left = (side - width) // 2
    top = (side - height) // 2
    mask = ramp.crop((left, top, left + width, top + height))

    start = Image.new("RGBA", (width, height), hex_to_rgba(start_color))
    end = Image.new("RGBA", (width, height), hex_to_rgba(end_color))
    return Image.composite(end, start, mask)


def render_background(node: BackgroundNode) -> Image.Image:
    """渲染背景节点."""
    if node.mode == BackgroundMode.SOLID or node.start is None or node.end is None:
        return Image.new("RGBA", (node.width, node.height), hex_to_rgba(node.color))
    angle = math.degrees(math.atan2(node.end.y - node.start.y, node.end.x - node.start.x))
    return render_gradient(node.width, node.height, angle, node.start_color, node.end_color)


# ===================
# 图层贴图
# ===================


def _text_tile(layer: TextLayer, box: BoundingBox) -> tuple[Image.Image, int]:
    """绘制文字图层的未旋转贴图.

    Returns:
        (贴图, 四周留白)，留白用于容纳描边与下行字母
    """
    font = text_font(layer)
    lines = text_lines(layer)
    stroke_width = int(round(layer.stroke_width))
    margin = stroke_width + int(math.ceil(layer.font_size * 0.25))

    tile_size = (
        int(math.ceil(box.width)) + margin * 2,
        int(math.ceil(box.height)) + margin * 2,
    )
    tile = Image.new("RGBA", tile_size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(tile)

    inner_width = box.width - TEXT_PADDING * 2
    fill = hex_to_rgba(layer.fill)
    stroke = hex_to_rgba(layer.stroke)
    for i, line in enumerate(lines):
        if not line:
            continue
        line_width = font.getlength(line)
        if layer.align == TextAlign.CENTER:
            x = TEXT_PADDING + (inner_width - line_width) / 2
        elif layer.align == TextAlign.RIGHT:
            x = TEXT_PADDING + inner_width - line_width
        else:  # LEFT
            x = TEXT_PADDING
        y = TEXT_PADDING + i * layer.font_size
        draw.text(
            (margin + x, margin + y),
            line,
            font=font,
            fill=fill,
            stroke_width=stroke_width,
            stroke_fill=stroke,
        )
    return tile, margin


def _image_tile(layer: ImageLayer) -> tuple[Image.Image, int]:
    """生成图片图层的未旋转贴图（已缩放、已应用透明度）."""
    image = source_image(layer)
    size = scaled_size(image.width, image.height, layer.scale)
    tile = image.resize(size, Image.Resampling.LANCZOS)
    return apply_opacity(tile, layer.opacity), 0


def place_tile(
    tile: Image.Image,
    margin: int,
    anchor: Point,
    rotation: float,
    canvas_size: tuple[int, int],
) -> Image.Image:
    """把贴图绕锚点旋转后放到画布大小的透明图层上.

    用仿射逆变换一次完成平移与旋转；在预乘 alpha 模式下重采样，
    避免半透明边缘发黑。

    Args:
        tile: 未旋转贴图，锚点位于 (margin, margin)
        margin: 贴图四周留白
        anchor: 锚点的画布坐标
        rotation: 旋转角度（度，顺时针）
        canvas_size: 画布尺寸

    Returns:
        画布大小的 RGBA 图层
    """
    radians = math.radians(rotation)
    cos = math.cos(radians)
    sin = math.sin(radians)
    ax, ay = anchor
    data = (
        cos, sin, -cos * ax - sin * ay + margin,
        -sin, cos, sin * ax - cos * ay + margin,
    )
    placed = tile.convert("RGBa").transform(
        canvas_size,
        Image.Transform.AFFINE,
        data,
        resample=Image.Resampling.BICUBIC,
    )
    return placed.convert("RGBA")


def render_shadow(overlay: Image.Image, shadow: ShadowSettings) -> Image.Image:
    """根据图层轮廓生成阴影.

    阴影 = 图层 alpha 轮廓 x 阴影不透明度，按偏移平移后高斯模糊。

    Args:
        overlay: 画布大小的图层
        shadow: 阴影设置

    Returns:
        画布大小的阴影图层
    """
    silhouette = overlay.getchannel("A").point(lambda p: int(p * shadow.opacity))
    shadow_layer = Image.new("RGBA", overlay.size, hex_to_rgba(shadow.color))
    shadow_layer.putalpha(silhouette)

    shifted = Image.new("RGBA", overlay.size, (0, 0, 0, 0))
    shifted.paste(shadow_layer, (round(shadow.offset_x), round(shadow.offset_y)))
    if shadow.blur > 0:
        shifted = shifted.filter(ImageFilter.GaussianBlur(shadow.blur / 2))
    return shifted


# ===================
# 辅助元素
# ===================


def _dashed_line(
    draw: ImageDraw.ImageDraw,
    start: Point,
    end: Point,
    dash: tuple[int, int],
    fill: tuple[int, int, int, int],
    width: int,
) -> None:
    """绘制虚线."""
    length = math.hypot(end.x - start.x, end.y - start.y)
    if length == 0:
        return
    ux = (end.x - start.x) / length
    uy = (end.y - start.y) / length
    on, off = dash
    pos = 0.0
    while pos < length:
        seg_end = min(pos + on, length)
        draw.line(
            (start.x + ux * pos, start.y + uy * pos, start.x + ux * seg_end, start.y + uy * seg_end),
            fill=fill,
            width=width,
        )
        pos += on + off


def _draw_grid(canvas: Image.Image, node: GridNode) -> Image.Image:
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    width, height = canvas.size
    for x in node.vertical:
        draw.rectangle((x, 0, x, height - 1), fill=node.color)
    for y in node.horizontal:
        draw.rectangle((0, y, width - 1, y), fill=node.color)
    return Image.alpha_composite(canvas, overlay)


def _draw_safe_zone(canvas: Image.Image, node: SafeZoneNode) -> Image.Image:
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    corners = rotated_corners(node.rect)
    for i, start in enumerate(corners):
        end = corners[(i + 1) % len(corners)]
        _dashed_line(draw, start, end, node.dash, node.color, node.stroke_width)
    return Image.alpha_composite(canvas, overlay)


def _draw_selection(canvas: Image.Image, node: SelectionNode) -> Image.Image:
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    corners = rotated_corners(node.box)
    draw.polygon([tuple(c) for c in corners], outline=node.color, width=1)

    half = SELECTION_ANCHOR_SIZE / 2
    for handle in node.anchors:
        c = corners[_CORNER_INDEX[handle]]
        draw.rectangle(
            (c.x - half, c.y - half, c.x + half, c.y + half),
            fill=(255, 255, 255, 255),
            outline=node.color,
        )
    return Image.alpha_composite(canvas, overlay)


# ===================
# 光栅化器
# ===================


class Rasterizer:
    """光栅化器.

    Example:
        >>> plan = RenderComposer().compose(scene, include_guides=False)
        >>> image = Rasterizer().rasterize(plan)
        >>> image.size == (plan.width, plan.height)
        True
    """

    def rasterize(self, plan: RenderPlan) -> Image.Image:
        """按渲染计划绘制完整画布.

        Args:
            plan: 渲染计划

        Returns:
            画布原始尺寸的 RGBA 图片
        """
        canvas = render_background(plan.background)

        if plan.grid is not None:
            canvas = _draw_grid(canvas, plan.grid)

        for node in plan.layer_nodes:
            try:
                canvas = self._render_layer(canvas, node)
            except (AppException, OSError, ValueError) as e:
                logger.error(f"渲染图层失败: {node.ref.id}, 错误: {e}")

        if plan.safe_zone is not None:
            canvas = _draw_safe_zone(canvas, plan.safe_zone)
        if plan.selection is not None:
            canvas = _draw_selection(canvas, plan.selection)

        return canvas

    def render_preview(self, plan: RenderPlan, zoom: float) -> Image.Image:
        """按预览缩放绘制画布.

        Args:
            plan: 渲染计划
            zoom: 预览缩放

        Returns:
            缩放后的 RGBA 图片
        """
        image = self.rasterize(plan)
        if zoom == 1.0:
            return image
        size = scaled_size(plan.width, plan.height, clamp(zoom, 0.01, 1.0))
        return image.resize(size, Image.Resampling.LANCZOS)

    def _render_layer(self, canvas: Image.Image, node: LayerNode) -> Image.Image:
        """绘制单个图层及其阴影."""
        layer = node.layer
        if isinstance(layer, TextLayer):
            if not layer.display_text.strip():
                return canvas
            tile, margin = _text_tile(layer, node.box)
        else:
            tile, margin = _image_tile(layer)

        overlay = place_tile(
            tile,
            margin,
            Point(node.box.x, node.box.y),
            node.box.rotation,
            canvas.size,
        )

        if layer.shadow.visible:
            canvas = Image.alpha_composite(canvas, render_shadow(overlay, layer.shadow))
        return Image.alpha_composite(canvas, overlay)
