"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


class InvalidConfigValueError(ConfigError):
    """画布配置值无效异常."""

    def __init__(self, key: str, value: object, reason: str = "") -> None:
        msg = f"配置项 '{key}' 的值 '{value}' 无效"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ===================
# 图层相关异常
# ===================
class LayerError(AppException):
    """图层操作错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "LAYER_ERROR")


class InvalidLayerPatchError(LayerError):
    """图层属性补丁无效异常."""

    def __init__(self, layer_id: str, reason: str) -> None:
        self.layer_id = layer_id
        super().__init__(f"图层 '{layer_id}' 的属性更新无效: {reason}")


# ===================
# 变换相关异常
# ===================
class TransformError(AppException):
    """变换手势错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TRANSFORM_ERROR")


class UnsupportedHandleError(TransformError):
    """不支持的缩放手柄异常."""

    def __init__(self, handle: str) -> None:
        self.handle = handle
        super().__init__(f"仅支持四角手柄缩放，收到: {handle}")


# ===================
# 图片处理相关异常
# ===================
class ImageProcessError(AppException):
    """图片处理错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "IMAGE_PROCESS_ERROR")


class ImageDecodeError(ImageProcessError):
    """图片解码失败异常."""

    def __init__(self, name: str, reason: str = "") -> None:
        msg = f"图片无法解码: {name}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class ImageTooLargeError(ImageProcessError):
    """图片文件过大异常."""

    def __init__(self, size: int, max_size: int) -> None:
        size_mb = size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        super().__init__(f"图片文件过大 ({size_mb:.1f}MB)，最大允许 {max_mb:.1f}MB")


# ===================
# 导出相关异常
# ===================
class ExportError(AppException):
    """导出错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "EXPORT_ERROR")
