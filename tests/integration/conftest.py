"""集成测试配置和共享 fixtures."""

import io
from typing import Callable

import pytest
from PIL import Image

from thumbnail_studio.editor import ThumbnailEditor


@pytest.fixture
def editor() -> ThumbnailEditor:
    """默认文档的编辑器."""
    return ThumbnailEditor()


@pytest.fixture
def decode_png() -> Callable[[bytes], Image.Image]:
    """把导出的字节解码为 RGBA 图片."""
    def _decode(data: bytes) -> Image.Image:
        return Image.open(io.BytesIO(data)).convert("RGBA")

    return _decode
