"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

import io
from typing import Callable, Union

import pytest
from PIL import Image

from thumbnail_studio.core.layer_store import LayerStore
from thumbnail_studio.core.selection import SelectionController
from thumbnail_studio.core.transform import TransformResolver
from thumbnail_studio.models.app_settings import reset_settings
from thumbnail_studio.models.canvas_config import BackgroundMode, CanvasConfig
from thumbnail_studio.models.layers import ImageLayer, TextLayer
from thumbnail_studio.utils.image_utils import bytes_to_data_url, clear_source_cache

# 测试中文字/图片图层的固定尺寸，避免依赖系统字体
TEXT_BOX_SIZE = (200.0, 100.0)
IMAGE_BOX_SIZE = (120.0, 80.0)


def make_png_bytes(
    size: tuple[int, int] = (40, 30),
    color: tuple[int, int, int, int] = (255, 0, 0, 255),
    format: str = "PNG",
) -> bytes:
    """生成内存中的图片字节."""
    mode = "RGBA" if format.upper() == "PNG" else "RGB"
    image = Image.new(mode, size, color[:len(mode)])
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    return buffer.getvalue()


def make_data_url(
    size: tuple[int, int] = (40, 30),
    color: tuple[int, int, int, int] = (255, 0, 0, 255),
) -> str:
    """生成图片图层可用的 Data URL."""
    return bytes_to_data_url(make_png_bytes(size, color), "image/png")


def fixed_measure(layer: Union[TextLayer, ImageLayer]) -> tuple[float, float]:
    """按图层类型返回固定尺寸的测量函数."""
    if isinstance(layer, TextLayer):
        return TEXT_BOX_SIZE
    return IMAGE_BOX_SIZE


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch):
    """每个测试前后重置设置单例与图片缓存，并屏蔽外部环境变量."""
    for key in (
        "THUMBNAIL_STUDIO_DEFAULT_CANVAS_WIDTH",
        "THUMBNAIL_STUDIO_DEFAULT_CANVAS_HEIGHT",
        "THUMBNAIL_STUDIO_PREVIEW_ZOOM",
        "THUMBNAIL_STUDIO_LOG_LEVEL",
        "THUMBNAIL_STUDIO_FONT_DIRS",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    clear_source_cache()
    yield
    reset_settings()
    clear_source_cache()


@pytest.fixture
def png_bytes() -> bytes:
    """红色 40x30 PNG 字节."""
    return make_png_bytes()


@pytest.fixture
def data_url() -> str:
    """红色 40x30 PNG 的 Data URL."""
    return make_data_url()


@pytest.fixture
def solid_config() -> CanvasConfig:
    """纯色背景、关闭辅助元素的画布配置."""
    return CanvasConfig(
        width=640,
        height=360,
        background_mode=BackgroundMode.SOLID,
        solid_color="#102030",
        show_grid=False,
        show_safe_zone=False,
    )


@pytest.fixture
def store() -> LayerStore:
    """空图层存储."""
    return LayerStore()


@pytest.fixture
def selection(store: LayerStore) -> SelectionController:
    """绑定到 store 的选择控制器."""
    return SelectionController(store)


@pytest.fixture
def resolver(store: LayerStore, selection: SelectionController) -> TransformResolver:
    """使用固定尺寸测量的变换解析器."""
    return TransformResolver(store, selection, fixed_measure)


@pytest.fixture
def measure() -> Callable[[Union[TextLayer, ImageLayer]], tuple[float, float]]:
    """固定尺寸测量函数."""
    return fixed_measure


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """图片字节工厂."""
    return make_png_bytes


@pytest.fixture
def data_url_factory() -> Callable[..., str]:
    """Data URL 工厂."""
    return make_data_url
