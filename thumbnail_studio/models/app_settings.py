"""应用设置模型."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from thumbnail_studio.utils.constants import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_PREVIEW_ZOOM,
    MAX_CANVAS_HEIGHT,
    MAX_CANVAS_WIDTH,
    MAX_PREVIEW_ZOOM,
    MIN_CANVAS_HEIGHT,
    MIN_CANVAS_WIDTH,
    MIN_PREVIEW_ZOOM,
)


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量（前缀 ``THUMBNAIL_STUDIO_``）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        default_canvas_width: 新文档画布宽度
        default_canvas_height: 新文档画布高度
        preview_zoom: 默认预览缩放
        font_dirs: 额外的字体搜索目录
    """

    model_config = SettingsConfigDict(
        env_prefix="THUMBNAIL_STUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="日志级别",
    )

    default_canvas_width: int = Field(
        default=DEFAULT_CANVAS_WIDTH,
        ge=MIN_CANVAS_WIDTH,
        le=MAX_CANVAS_WIDTH,
        description="默认画布宽度",
    )

    default_canvas_height: int = Field(
        default=DEFAULT_CANVAS_HEIGHT,
        ge=MIN_CANVAS_HEIGHT,
        le=MAX_CANVAS_HEIGHT,
        description="默认画布高度",
    )

    preview_zoom: float = Field(
        default=DEFAULT_PREVIEW_ZOOM,
        ge=MIN_PREVIEW_ZOOM,
        le=MAX_PREVIEW_ZOOM,
        description="默认预览缩放",
    )

    font_dirs: list[Path] = Field(
        default_factory=list,
        description="额外字体目录",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def canvas_size(self) -> tuple[int, int]:
        """获取默认画布尺寸."""
        return (self.default_canvas_width, self.default_canvas_height)


# 单例实例
_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """获取应用设置单例."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """重置应用设置单例（重新读取环境变量）."""
    global _settings_instance
    _settings_instance = None
