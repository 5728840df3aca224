"""图片工具单元测试."""

import pytest
from PIL import Image

from thumbnail_studio.utils.image_utils import (
    apply_opacity,
    bytes_to_data_url,
    bytes_to_image,
    data_url_to_bytes,
    ensure_rgba,
    cached_source_count,
    forget_source_image,
    image_to_data_url,
    load_source_image,
    source_digest,
)


class TestDataUrl:
    """Data URL 转换测试."""

    def test_encode_decode(self, png_bytes):
        """测试编码后可以还原字节."""
        url = bytes_to_data_url(png_bytes, "image/png")
        assert url.startswith("data:image/png;base64,")
        assert data_url_to_bytes(url) == png_bytes

    @pytest.mark.parametrize("value", ["https://example.com/a.png", "data:image/png,raw", "data:"])
    def test_invalid(self, value):
        """测试非法 Data URL."""
        with pytest.raises(ValueError):
            data_url_to_bytes(value)

    def test_image_to_data_url(self):
        """测试图片直接转 Data URL."""
        url = image_to_data_url(Image.new("RGBA", (4, 4)))
        assert url.startswith("data:image/png;base64,")


class TestLoadSourceImage:
    """图片来源解码测试."""

    def test_returns_rgba(self, data_url_factory):
        """测试解码结果为 RGBA."""
        image = load_source_image(data_url_factory((12, 8)))
        assert image.mode == "RGBA"
        assert image.size == (12, 8)

    def test_cached(self, data_url):
        """测试同一来源只解码一次."""
        assert load_source_image(data_url) is load_source_image(data_url)

    def test_forget(self, data_url):
        """测试移除缓存后重新解码."""
        first = load_source_image(data_url)
        forget_source_image(data_url)
        assert cached_source_count() == 0
        assert load_source_image(data_url) is not first

    def test_cache_bounded(self, data_url_factory):
        """测试缓存有上限，最早的来源先被淘汰."""
        urls = [data_url_factory((i + 1, 1)) for i in range(40)]
        for url in urls:
            load_source_image(url)
        assert cached_source_count() == 32

    def test_digest_key(self, data_url):
        """测试缓存键为固定长度摘要."""
        assert len(source_digest(data_url)) == 64
        assert source_digest(data_url) != source_digest(data_url + "=")

    @pytest.mark.parametrize("src", ["not-a-data-url", "data:image/png;base64,AAAA"])
    def test_invalid_source(self, src):
        """测试无效来源抛出异常且不进入缓存."""
        with pytest.raises((ValueError, OSError)):
            load_source_image(src)
        assert cached_source_count() == 0


class TestImageHelpers:
    """图片辅助函数测试."""

    def test_bytes_to_image(self, png_bytes):
        """测试字节转图片."""
        assert bytes_to_image(png_bytes).size == (40, 30)

    def test_ensure_rgba(self):
        """测试模式转换."""
        assert ensure_rgba(Image.new("RGB", (2, 2))).mode == "RGBA"

    def test_apply_opacity(self):
        """测试透明度缩放 alpha."""
        image = Image.new("RGBA", (2, 2), (255, 0, 0, 200))
        result = apply_opacity(image, 0.5)
        assert result.getpixel((0, 0))[3] == 100
        assert image.getpixel((0, 0))[3] == 200

    def test_apply_full_opacity_is_noop(self):
        """测试不透明度为 1 时原样返回."""
        image = Image.new("RGBA", (2, 2))
        assert apply_opacity(image, 1.0) is image
