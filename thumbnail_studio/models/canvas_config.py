"""画布配置模型.

定义画布尺寸、背景填充（纯色/渐变）与编辑辅助线开关。
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from thumbnail_studio.utils.constants import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    MAX_CANVAS_HEIGHT,
    MAX_CANVAS_WIDTH,
    MIN_CANVAS_HEIGHT,
    MIN_CANVAS_WIDTH,
)
from thumbnail_studio.utils.helpers import normalize_hex_color


class BackgroundMode(str, Enum):
    """背景填充模式."""

    SOLID = "solid"
    GRADIENT = "gradient"


class GradientPalette(NamedTuple):
    """预设渐变配色."""

    name: str
    start: str
    end: str


GRADIENT_PALETTES: tuple[GradientPalette, ...] = (
    GradientPalette("Energy", "#ff0033", "#ffb347"),
    GradientPalette("Tech", "#0ea5e9", "#22d3ee"),
    GradientPalette("Mystery", "#6366f1", "#0f172a"),
    GradientPalette("Success", "#22c55e", "#facc15"),
)


def get_palette(name: str) -> GradientPalette:
    """按名称查找预设配色（不区分大小写）.

    Raises:
        KeyError: 配色不存在
    """
    for palette in GRADIENT_PALETTES:
        if palette.name.lower() == name.lower():
            return palette
    raise KeyError(name)


class CanvasConfig(BaseModel):
    """画布配置.

    Attributes:
        width: 画布宽度（像素）
        height: 画布高度（像素）
        background_mode: 背景填充模式
        solid_color: 纯色背景颜色
        gradient_start: 渐变起始颜色
        gradient_end: 渐变结束颜色
        gradient_angle: 渐变角度（度，按 360 取模解释）
        show_grid: 是否显示网格
        show_safe_zone: 是否显示安全区

    Example:
        >>> config = CanvasConfig()
        >>> config.size
        (1280, 720)
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False, allow_inf_nan=False)

    width: int = Field(
        default=DEFAULT_CANVAS_WIDTH,
        ge=MIN_CANVAS_WIDTH,
        le=MAX_CANVAS_WIDTH,
        description="画布宽度",
    )
    height: int = Field(
        default=DEFAULT_CANVAS_HEIGHT,
        ge=MIN_CANVAS_HEIGHT,
        le=MAX_CANVAS_HEIGHT,
        description="画布高度",
    )
    background_mode: BackgroundMode = Field(
        default=BackgroundMode.GRADIENT,
        description="背景填充模式",
    )
    solid_color: str = Field(default="#111827", description="纯色背景")
    gradient_start: str = Field(default="#ff0033", description="渐变起始色")
    gradient_end: str = Field(default="#ffd300", description="渐变结束色")
    gradient_angle: float = Field(default=32, description="渐变角度")
    show_grid: bool = Field(default=True, description="显示网格")
    show_safe_zone: bool = Field(default=True, description="显示安全区")

    @field_validator("solid_color", "gradient_start", "gradient_end")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return normalize_hex_color(v)

    @property
    def size(self) -> tuple[int, int]:
        """画布尺寸."""
        return (self.width, self.height)

    @property
    def normalized_angle(self) -> float:
        """取模后的渐变角度 [0, 360)."""
        return self.gradient_angle % 360

    @property
    def is_gradient(self) -> bool:
        """是否为渐变背景."""
        return self.background_mode == BackgroundMode.GRADIENT

    def with_changes(self, **changes: Any) -> "CanvasConfig":
        """生成带修改的新配置（会重新校验）."""
        data = self.model_dump()
        data.update(changes)
        return CanvasConfig.model_validate(data)

    def with_palette(self, palette: GradientPalette) -> "CanvasConfig":
        """应用预设配色：切换到渐变模式并设置起止颜色."""
        return self.with_changes(
            background_mode=BackgroundMode.GRADIENT,
            gradient_start=palette.start,
            gradient_end=palette.end,
        )
