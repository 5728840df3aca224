"""错误处理工具模块.

提供统一的错误处理机制和用户友好的错误消息。
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar

from thumbnail_studio.utils.exceptions import (
    AppException,
    ConfigError,
    ExportError,
    ImageDecodeError,
    ImageProcessError,
    ImageTooLargeError,
    InvalidLayerPatchError,
    TransformError,
)
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


# 错误消息映射（子类在前）
ERROR_MESSAGES = {
    ImageTooLargeError: "图片文件过大，请选择较小的图片",
    ImageDecodeError: "无法读取该图片，请上传 PNG、JPEG 或 WebP 文件",
    ImageProcessError: "图片处理失败，请检查图片文件",
    ExportError: "导出失败，请稍后重试",
    InvalidLayerPatchError: "图层属性值无效",
    TransformError: "无法执行该变换操作",
    ConfigError: "画布配置无效",
}


def get_user_friendly_message(exception: Exception) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "操作失败，请稍后重试"


def get_error_details(exception: Exception) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code
        details["message"] = exception.message

    return details


async def safe_execute_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    default: Optional[T] = None,
    on_error: Optional[Callable[[Exception], None]] = None,
    **kwargs: Any,
) -> Optional[T]:
    """安全执行异步命令，失败时回调并返回默认值.

    编辑器的 ``upload_image`` / ``try_export`` 通过它调用上传、导出命令：
    失败只影响本次命令，错误通过 on_error 交给调用方展示。

    Args:
        func: 要执行的异步函数
        *args: 位置参数
        default: 发生异常时的默认返回值
        on_error: 错误回调函数
        **kwargs: 关键字参数

    Returns:
        函数返回值或默认值
    """
    try:
        return await func(*args, **kwargs)
    except AppException as e:
        logger.warning(f"异步命令 {func.__name__} 执行失败: {e}")
        if on_error:
            on_error(e)
        return default
