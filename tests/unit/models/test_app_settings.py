"""应用设置单元测试."""

import pytest
from pydantic import ValidationError

from thumbnail_studio.models.app_settings import Settings, get_settings, reset_settings


class TestSettings:
    """应用设置测试."""

    def test_defaults(self):
        """测试默认设置."""
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.canvas_size == (1280, 720)
        assert settings.preview_zoom == 0.45
        assert settings.font_dirs == []

    def test_env_override(self, monkeypatch):
        """测试环境变量覆盖."""
        monkeypatch.setenv("THUMBNAIL_STUDIO_DEFAULT_CANVAS_WIDTH", "1920")
        monkeypatch.setenv("THUMBNAIL_STUDIO_LOG_LEVEL", "debug")
        settings = Settings(_env_file=None)
        assert settings.default_canvas_width == 1920
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        """测试非法日志级别."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_zoom_range(self):
        """测试预览缩放范围."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, preview_zoom=5)

    def test_singleton(self):
        """测试单例与重置."""
        first = get_settings()
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
