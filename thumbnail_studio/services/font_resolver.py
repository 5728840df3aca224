"""字体查找模块.

按字体名称在系统字体目录中查找字体文件，找不到时回退到通用字体。
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Union

from PIL import ImageFont

from thumbnail_studio.models.app_settings import get_settings
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


# ===================
# 常量定义
# ===================

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "/usr/share/fonts/truetype/dejavu/",
    "~/.fonts/",
    "~/.local/share/fonts/",
]

# 通用回退字体（粗体优先用于粗体文字）
GENERIC_FALLBACKS = [
    "DejaVuSans.ttf",
    "Arial.ttf",
    "arial.ttf",
    "LiberationSans-Regular.ttf",
]
GENERIC_BOLD_FALLBACKS = [
    "DejaVuSans-Bold.ttf",
    "Arial Bold.ttf",
    "arialbd.ttf",
    "LiberationSans-Bold.ttf",
]

# 中日韩字体回退列表
CJK_FONT_FALLBACKS = [
    "PingFang SC.ttc",
    "PingFang.ttc",
    "Hiragino Sans GB.ttc",
    "msyh.ttc",
    "simhei.ttf",
    "wqy-microhei.ttc",
    "NotoSansCJK-Regular.ttc",
]


def _has_cjk_characters(text: str) -> bool:
    """检查文本是否包含中日韩字符."""
    for char in text:
        if "\u4e00" <= char <= "\u9fff" or "\u3400" <= char <= "\u4dbf":
            return True
    return False


def _search_dirs() -> list[Path]:
    dirs = [Path(p) for p in get_settings().font_dirs]
    dirs.extend(Path(os.path.expanduser(p)) for p in FONT_SEARCH_PATHS)
    return [d for d in dirs if d.is_dir()]


def _font_variants(font_family: str, bold: bool) -> list[str]:
    """字体名称可能对应的文件名."""
    compact = font_family.replace(" ", "")
    variants = []
    if bold:
        variants.extend([
            f"{font_family}-Bold.ttf",
            f"{compact}-Bold.ttf",
            f"{font_family} Bold.ttf",
        ])
    variants.extend([
        font_family,
        f"{font_family}.ttf",
        f"{font_family}.otf",
        f"{font_family}.ttc",
        f"{compact}-Regular.ttf",
        f"{compact}.ttf",
    ])
    return variants


def _load_first(names: Iterable[str], size: int) -> Optional[ImageFont.FreeTypeFont]:
    """在搜索目录中加载第一个可用的字体文件."""
    dirs = _search_dirs()
    for name in names:
        for directory in dirs:
            font_path = directory / name
            if font_path.exists():
                try:
                    return ImageFont.truetype(str(font_path), size)
                except OSError:
                    continue
    return None


@lru_cache(maxsize=64)
def find_font(
    font_family: Optional[str],
    font_size: float,
    bold: bool = False,
    cjk: bool = False,
) -> Font:
    """查找字体.

    Args:
        font_family: 字体名称
        font_size: 字号
        bold: 是否粗体
        cjk: 文本是否包含中日韩字符

    Returns:
        ImageFont 对象
    """
    size = max(1, int(round(font_size)))

    if font_family:
        # 先尝试让 FreeType 按名称直接加载
        try:
            return ImageFont.truetype(font_family, size)
        except OSError:
            pass
        font = _load_first(_font_variants(font_family, bold), size)
        if font is not None:
            return font

    if cjk:
        font = _load_first(CJK_FONT_FALLBACKS, size)
        if font is not None:
            logger.warning(f"字体 '{font_family}' 未找到，使用中日韩字体回退")
            return font

    fallbacks = GENERIC_BOLD_FALLBACKS + GENERIC_FALLBACKS if bold else GENERIC_FALLBACKS
    font = _load_first(fallbacks, size)
    if font is not None:
        logger.warning(f"字体 '{font_family}' 未找到，使用 {os.path.basename(font.path)}")
        return font

    logger.warning(f"字体 '{font_family}' 未找到，使用 Pillow 默认字体")
    return ImageFont.load_default(size=size)


def font_for_text(font_family: Optional[str], font_size: float, bold: bool, text: str) -> Font:
    """按文字内容选择字体（包含中日韩字符时启用对应回退）."""
    return find_font(font_family, font_size, bold, _has_cjk_characters(text))
