"""图片上传解码单元测试."""

import pytest

from thumbnail_studio.services import image_loader
from thumbnail_studio.services.image_loader import decode_image_source, load_image_source
from thumbnail_studio.utils.exceptions import ImageDecodeError, ImageTooLargeError
from thumbnail_studio.utils.image_utils import data_url_to_bytes, load_source_image


class TestDecodeImageSource:
    """同步解码测试."""

    def test_png(self, png_bytes):
        """测试 PNG 保留原始字节."""
        source = decode_image_source(png_bytes, "photo.png")
        assert source.label == "photo"
        assert (source.width, source.height) == (40, 30)
        assert source.src.startswith("data:image/png;base64,")
        assert data_url_to_bytes(source.src) == png_bytes

    def test_jpeg(self, png_factory):
        """测试 JPEG 使用对应 MIME 类型."""
        source = decode_image_source(png_factory(format="JPEG"), "shot.jpg")
        assert source.src.startswith("data:image/jpeg;base64,")

    def test_other_format_converted_to_png(self, png_factory):
        """测试其他格式转为 PNG."""
        source = decode_image_source(png_factory(format="TIFF"), "scan.tiff")
        assert source.src.startswith("data:image/png;base64,")
        assert load_source_image(source.src).size == (40, 30)

    def test_empty(self):
        """测试空文件."""
        with pytest.raises(ImageDecodeError):
            decode_image_source(b"", "empty.png")

    def test_garbage(self):
        """测试无法解码的数据."""
        with pytest.raises(ImageDecodeError):
            decode_image_source(b"definitely not an image", "notes.txt")

    def test_too_large(self, png_bytes, monkeypatch):
        """测试超过大小限制."""
        monkeypatch.setattr(image_loader, "MAX_IMAGE_FILE_SIZE", 10)
        with pytest.raises(ImageTooLargeError):
            decode_image_source(png_bytes, "big.png")

    def test_label_without_extension(self, png_bytes):
        """测试无扩展名的文件名."""
        assert decode_image_source(png_bytes, "cover").label == "cover"


class TestLoadImageSource:
    """异步解码测试."""

    @pytest.mark.asyncio
    async def test_async(self, png_bytes):
        """测试异步解码."""
        source = await load_image_source(png_bytes, "logo.png")
        assert source.label == "logo"

    @pytest.mark.asyncio
    async def test_async_error(self):
        """测试异步解码失败."""
        with pytest.raises(ImageDecodeError):
            await load_image_source(b"xxx", "bad.png")
