"""图层数据模型.

提供缩略图设计器的图层模型：文字图层与图片图层共用一组基础字段，
通过 ``type`` 字段区分。

Features:
    - 阴影设置
    - 图层基类（位置、旋转、阴影）
    - 文字图层 / 图片图层
    - 图层引用（类型 + ID）
    - 不可变模型，所有修改都生成新实例
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, NamedTuple, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from thumbnail_studio.utils.constants import DEFAULT_IMAGE_SCALE
from thumbnail_studio.utils.helpers import generate_short_id, normalize_hex_color
from thumbnail_studio.utils.image_utils import load_source_image


# ===================
# 枚举定义
# ===================


class LayerType(str, Enum):
    """图层类型枚举."""

    TEXT = "text"
    IMAGE = "image"


class FontStyle(str, Enum):
    """字体样式."""

    NORMAL = "normal"
    BOLD = "bold"


class TextAlign(str, Enum):
    """文字对齐方式."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


# ===================
# 字体目录
# ===================


class FontFamily(NamedTuple):
    """可选字体及其默认字号."""

    label: str
    value: str
    default_size: int


FONT_FAMILIES: tuple[FontFamily, ...] = (
    FontFamily("Anton (Bold)", "Anton", 84),
    FontFamily("Bebas Neue", "Bebas Neue", 96),
    FontFamily("Impact", "Impact", 88),
    FontFamily("Oswald", "Oswald", 76),
    FontFamily("Montserrat", "Montserrat", 64),
)


# ===================
# 辅助函数
# ===================


def generate_layer_id() -> str:
    """生成唯一的图层ID.

    Returns:
        8位十六进制字符串
    """
    return generate_short_id(8)


# ===================
# 阴影
# ===================


class ShadowSettings(BaseModel):
    """图层阴影设置.

    Attributes:
        color: 阴影颜色
        blur: 模糊半径
        opacity: 不透明度 (0-1)
        offset_x: X 方向偏移
        offset_y: Y 方向偏移
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    color: str = Field(default="#000000", description="阴影颜色")
    blur: float = Field(default=20, ge=0, description="模糊半径")
    opacity: float = Field(default=0.6, ge=0, le=1, description="不透明度")
    offset_x: float = Field(default=8, description="X 偏移")
    offset_y: float = Field(default=8, description="Y 偏移")

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return normalize_hex_color(v)

    @property
    def visible(self) -> bool:
        """阴影是否会产生可见像素."""
        return self.opacity > 0


DEFAULT_SHADOW = ShadowSettings()


# ===================
# 图层基类
# ===================


class LayerBase(BaseModel):
    """图层共用字段.

    选中、拖拽、旋转等只依赖共用字段的算法直接使用本类，
    不需要判断具体图层类型。

    Attributes:
        id: 图层唯一标识符（创建后不可变）
        label: 图层显示名称
        x: 锚点 X 坐标（未旋转时的左上角）
        y: 锚点 Y 坐标
        rotation: 旋转角度（度，顺时针）
        shadow: 阴影设置
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False, allow_inf_nan=False)

    id: str = Field(default_factory=generate_layer_id, min_length=1, description="图层唯一ID")
    label: str = Field(default="Layer", description="图层名称")
    x: float = Field(default=0, description="X坐标")
    y: float = Field(default=0, description="Y坐标")
    rotation: float = Field(default=0, description="旋转角度")
    shadow: ShadowSettings = Field(default=DEFAULT_SHADOW, description="阴影")

    @property
    def ref(self) -> "LayerRef":
        """指向本图层的引用."""
        return LayerRef(self.type, self.id)  # type: ignore[attr-defined]

    @property
    def position(self) -> tuple[float, float]:
        """锚点坐标."""
        return (self.x, self.y)

    def with_changes(self, **changes: Any) -> "LayerBase":
        """生成带修改的新实例（会重新校验）.

        Args:
            **changes: 要修改的字段

        Returns:
            新的图层实例

        Raises:
            pydantic.ValidationError: 修改后的值不合法
        """
        data = self.model_dump()
        data.update(changes)
        return self.__class__.model_validate(data)


# ===================
# 文字图层
# ===================


class TextLayer(LayerBase):
    """文字图层.

    字号是文字尺寸的唯一来源，没有单独的缩放字段。

    Attributes:
        text: 文字内容
        font_family: 字体名称
        font_size: 字号
        font_style: 字体样式
        fill: 填充颜色
        stroke: 描边颜色
        stroke_width: 描边宽度
        align: 对齐方式
        uppercase: 渲染时是否转为大写（不修改存储的文字）

    Example:
        >>> layer = TextLayer(text="Hello", font_size=96)
        >>> layer.display_text
        'HELLO'
    """

    type: Literal[LayerType.TEXT] = Field(default=LayerType.TEXT, description="图层类型")

    text: str = Field(default="New Hook", description="文字内容")
    font_family: str = Field(default=FONT_FAMILIES[0].value, description="字体名称")
    font_size: float = Field(default=FONT_FAMILIES[0].default_size, gt=0, description="字号")
    font_style: FontStyle = Field(default=FontStyle.BOLD, description="字体样式")
    fill: str = Field(default="#ffffff", description="填充颜色")
    stroke: str = Field(default="#000000", description="描边颜色")
    stroke_width: float = Field(default=4, ge=0, description="描边宽度")
    align: TextAlign = Field(default=TextAlign.LEFT, description="对齐方式")
    uppercase: bool = Field(default=True, description="大写显示")

    @field_validator("fill", "stroke")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return normalize_hex_color(v)

    @property
    def display_text(self) -> str:
        """实际渲染的文字."""
        return self.text.upper() if self.uppercase else self.text

    @property
    def is_bold(self) -> bool:
        """是否粗体."""
        return self.font_style == FontStyle.BOLD


# ===================
# 图片图层
# ===================


class ImageLayer(LayerBase):
    """图片图层.

    Attributes:
        src: 图片来源 (Data URL)
        scale: 统一缩放比例
        opacity: 不透明度 (0-1)
    """

    type: Literal[LayerType.IMAGE] = Field(default=LayerType.IMAGE, description="图层类型")

    src: str = Field(min_length=1, description="图片来源")
    scale: float = Field(default=DEFAULT_IMAGE_SCALE, gt=0, description="缩放比例")
    opacity: float = Field(default=1.0, ge=0, le=1, description="不透明度")

    @field_validator("src")
    @classmethod
    def validate_src(cls, v: str) -> str:
        """验证图片来源为可解码的 base64 Data URL."""
        try:
            load_source_image(v)
        except (ValueError, OSError, Image.DecompressionBombError) as e:
            raise ValueError(f"图片来源无法解码: {e}") from e
        return v


# ===================
# 图层联合类型与引用
# ===================

AnyLayer = Annotated[Union[TextLayer, ImageLayer], Field(discriminator="type")]

_layer_adapter: TypeAdapter[AnyLayer] = TypeAdapter(AnyLayer)


def layer_from_dict(data: dict[str, Any]) -> Union[TextLayer, ImageLayer]:
    """按 ``type`` 字段反序列化图层.

    Args:
        data: 图层字典数据

    Returns:
        TextLayer 或 ImageLayer 实例
    """
    return _layer_adapter.validate_python(data)


class LayerRef(NamedTuple):
    """图层引用：图层类型 + 图层ID，不持有图层本身."""

    layer_type: LayerType
    id: str

    @classmethod
    def text(cls, layer_id: str) -> "LayerRef":
        """文字图层引用."""
        return cls(LayerType.TEXT, layer_id)

    @classmethod
    def image(cls, layer_id: str) -> "LayerRef":
        """图片图层引用."""
        return cls(LayerType.IMAGE, layer_id)
