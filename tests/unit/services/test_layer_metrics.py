"""图层尺寸测量与字体查找单元测试."""

import pytest

from thumbnail_studio.models.layers import ImageLayer, TextLayer
from thumbnail_studio.services.font_resolver import find_font, font_for_text
from thumbnail_studio.services.layer_metrics import (
    measure_image,
    measure_layer,
    measure_text,
    source_image,
    text_lines,
)
from thumbnail_studio.utils.exceptions import ImageDecodeError


class TestFontResolver:
    """字体查找测试."""

    def test_unknown_family_falls_back(self):
        """测试未知字体回退到可用字体."""
        font = find_font("Definitely Not A Font", 32)
        assert font.getlength("ABC") > 0

    def test_cached(self):
        """测试字体查找结果被缓存."""
        assert find_font("Anton", 40, True) is find_font("Anton", 40, True)

    def test_font_for_text(self):
        """测试按文字选择字体."""
        assert font_for_text("Anton", 24, True, "Hello").getlength("Hello") > 0


class TestMeasureText:
    """文字测量测试."""

    def test_height_from_lines(self):
        """测试高度 = 行数 x 字号 + 上下内边距."""
        layer = TextLayer(text="ONE\nTWO\nTHREE", font_size=50)
        assert text_lines(layer) == ["ONE", "TWO", "THREE"]
        assert measure_text(layer)[1] == 50 * 3 + 8

    def test_width_includes_padding(self):
        """测试宽度包含两侧内边距."""
        width, _ = measure_text(TextLayer(text="WIDE TEXT", font_size=60))
        assert width > 8

    def test_empty_text(self):
        """测试空文字只剩内边距."""
        assert measure_text(TextLayer(text="", font_size=40)) == (8, 48)

    def test_uppercase_used(self):
        """测试按大写后的文字测量."""
        assert text_lines(TextLayer(text="abc")) == ["ABC"]


class TestMeasureImage:
    """图片测量测试."""

    def test_scaled_size(self, data_url_factory):
        """测试原始尺寸 x 缩放."""
        layer = ImageLayer(src=data_url_factory((200, 100)), scale=0.6)
        assert measure_image(layer) == pytest.approx((120, 60))
        assert measure_layer(layer) == pytest.approx((120, 60))

    def test_broken_source(self):
        """测试无法解码的来源."""
        with pytest.raises(ImageDecodeError):
            source_image(ImageLayer.model_construct(src="not-a-data-url"))
