"""辅助函数模块.

提供各种通用辅助函数。
"""

from __future__ import annotations

import re
import time
import uuid

_HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def generate_short_id(length: int = 8) -> str:
    """生成短 ID.

    Args:
        length: ID 长度

    Returns:
        短 ID 字符串
    """
    return uuid.uuid4().hex[:length]


def get_timestamp_ms() -> int:
    """获取当前毫秒时间戳."""
    return time.time_ns() // 1_000_000


def clamp(value: float, min_val: float, max_val: float) -> float:
    """限制值在指定范围内.

    Args:
        value: 原始值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制后的值
    """
    return max(min_val, min(max_val, value))


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """RGB 转十六进制颜色.

    Args:
        r: 红色分量 (0-255)
        g: 绿色分量 (0-255)
        b: 蓝色分量 (0-255)

    Returns:
        十六进制颜色字符串，如 "#ff0033"
    """
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """十六进制颜色转 RGB.

    支持 "#rgb" 与 "#rrggbb" 两种写法。

    Args:
        hex_color: 十六进制颜色字符串

    Returns:
        RGB 元组

    Raises:
        ValueError: 颜色格式无效
    """
    match = _HEX_COLOR_PATTERN.match(hex_color.strip())
    if not match:
        raise ValueError(f"无效的十六进制颜色: {hex_color}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]


def hex_to_rgba(hex_color: str, alpha: float = 1.0) -> tuple[int, int, int, int]:
    """十六进制颜色加不透明度转 RGBA.

    Args:
        hex_color: 十六进制颜色字符串
        alpha: 不透明度 (0-1)

    Returns:
        RGBA 元组
    """
    r, g, b = hex_to_rgb(hex_color)
    return (r, g, b, int(round(clamp(alpha, 0.0, 1.0) * 255)))


def normalize_hex_color(hex_color: str) -> str:
    """规范化十六进制颜色为小写 "#rrggbb" 形式."""
    return rgb_to_hex(*hex_to_rgb(hex_color))


def strip_extension(filename: str) -> str:
    """去除文件扩展名（只去掉最后一段）."""
    return re.sub(r"\.[^.]+$", "", filename)
