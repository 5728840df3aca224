"""图片工具函数模块.

提供图片字节、Data URL 与 PIL Image 之间的转换。
"""

from __future__ import annotations

import base64
import hashlib
import io
import threading
from collections import OrderedDict

from PIL import Image

from thumbnail_studio.utils.constants import EXPORT_FORMAT

DATA_URL_PREFIX = "data:"

# Pillow 格式名 -> MIME 类型
FORMAT_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
}


def bytes_to_image(data: bytes) -> Image.Image:
    """字节数据转图片.

    Args:
        data: 图片字节数据

    Returns:
        已完成加载的 PIL Image 对象
    """
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def image_to_bytes(image: Image.Image, format: str = EXPORT_FORMAT) -> bytes:
    """图片转字节数据.

    Args:
        image: PIL Image 对象
        format: 图片格式

    Returns:
        图片字节数据
    """
    buffer = io.BytesIO()
    image.save(buffer, format=format.upper())
    return buffer.getvalue()


def bytes_to_data_url(data: bytes, mime_type: str) -> str:
    """把图片字节编码为 Data URL.

    Args:
        data: 图片字节数据
        mime_type: MIME 类型

    Returns:
        "data:<mime>;base64,<payload>" 字符串
    """
    payload = base64.b64encode(data).decode("ascii")
    return f"{DATA_URL_PREFIX}{mime_type};base64,{payload}"


def data_url_to_bytes(data_url: str) -> bytes:
    """从 Data URL 中取出图片字节.

    Raises:
        ValueError: 不是 base64 Data URL
    """
    if not data_url.startswith(DATA_URL_PREFIX) or "," not in data_url:
        raise ValueError("图片来源不是有效的 Data URL")
    header, payload = data_url.split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("仅支持 base64 编码的 Data URL")
    return base64.b64decode(payload)


def image_to_data_url(image: Image.Image, format: str = EXPORT_FORMAT) -> str:
    """图片转 Data URL."""
    mime_type = FORMAT_MIME_TYPES.get(format.upper(), "application/octet-stream")
    return bytes_to_data_url(image_to_bytes(image, format), mime_type)


# 已解码图片来源缓存：来源摘要 -> RGBA 图片
SOURCE_CACHE_SIZE = 32
_source_cache: "OrderedDict[str, Image.Image]" = OrderedDict()
_source_cache_lock = threading.Lock()


def source_digest(src: str) -> str:
    """图片来源的摘要，用作缓存键（不持有原始字符串）."""
    return hashlib.sha256(src.encode("utf-8")).hexdigest()


def load_source_image(src: str) -> Image.Image:
    """解码图层的图片来源（带缓存）.

    同一个来源在多次渲染间只解码一次；返回的图片为 RGBA 模式，
    调用方不得原地修改。

    Args:
        src: 图层的图片来源 (Data URL)

    Returns:
        RGBA 模式的 PIL Image 对象

    Raises:
        ValueError: 不是 base64 Data URL
        OSError: 图片无法解码
    """
    key = source_digest(src)
    with _source_cache_lock:
        image = _source_cache.get(key)
        if image is not None:
            _source_cache.move_to_end(key)
            return image

    image = ensure_rgba(bytes_to_image(data_url_to_bytes(src)))

    with _source_cache_lock:
        _source_cache[key] = image
        while len(_source_cache) > SOURCE_CACHE_SIZE:
            _source_cache.popitem(last=False)
    return image


def forget_source_image(src: str) -> None:
    """从缓存中移除某个图片来源."""
    with _source_cache_lock:
        _source_cache.pop(source_digest(src), None)


def cached_source_count() -> int:
    """缓存中的图片来源数量."""
    with _source_cache_lock:
        return len(_source_cache)


def clear_source_cache() -> None:
    """清空图片来源缓存."""
    with _source_cache_lock:
        _source_cache.clear()


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式.

    Args:
        image: PIL Image 对象

    Returns:
        RGBA 模式的图片
    """
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """按比例缩放图片的 alpha 通道.

    Args:
        image: RGBA 图片
        opacity: 不透明度 (0-1)

    Returns:
        新的 RGBA 图片
    """
    if opacity >= 1.0:
        return image
    result = image.copy()
    alpha = result.getchannel("A").point(lambda p: int(p * opacity))
    result.putalpha(alpha)
    return result
