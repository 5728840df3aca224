"""图片上传解码模块.

把上传的图片字节解码为图层可用的图片来源。解码失败时不产生任何图层。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from thumbnail_studio.utils.constants import MAX_IMAGE_FILE_SIZE
from thumbnail_studio.utils.exceptions import ImageDecodeError, ImageTooLargeError
from thumbnail_studio.utils.helpers import strip_extension
from thumbnail_studio.utils.image_utils import (
    FORMAT_MIME_TYPES,
    bytes_to_data_url,
    bytes_to_image,
    image_to_data_url,
)
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ImageSource:
    """解码后的图片来源.

    Attributes:
        src: 图层使用的 Data URL
        width: 原始宽度
        height: 原始高度
        label: 图层默认名称（去掉扩展名的文件名）
    """

    src: str
    width: int
    height: int
    label: str


def decode_image_source(data: bytes, filename: str = "image") -> ImageSource:
    """同步解码上传的图片.

    浏览器可直接显示的格式保留原始字节，其余格式转为 PNG。

    Args:
        data: 图片字节
        filename: 上传的文件名

    Returns:
        图片来源

    Raises:
        ImageTooLargeError: 文件超过大小限制
        ImageDecodeError: 数据为空或无法解码
    """
    if not data:
        raise ImageDecodeError(filename, "文件为空")
    if len(data) > MAX_IMAGE_FILE_SIZE:
        raise ImageTooLargeError(len(data), MAX_IMAGE_FILE_SIZE)

    try:
        image = bytes_to_image(data)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(filename, str(e)) from e

    mime_type = FORMAT_MIME_TYPES.get(image.format or "")
    if mime_type is not None:
        src = bytes_to_data_url(data, mime_type)
    else:
        src = image_to_data_url(image.convert("RGBA"), "PNG")

    label = strip_extension(filename) or filename
    logger.debug(f"图片解码完成: {filename} ({image.width}x{image.height})")
    return ImageSource(src=src, width=image.width, height=image.height, label=label)


async def load_image_source(data: bytes, filename: str = "image") -> ImageSource:
    """异步解码上传的图片（在线程池中执行）.

    Args:
        data: 图片字节
        filename: 上传的文件名

    Returns:
        图片来源
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, decode_image_source, data, filename)
