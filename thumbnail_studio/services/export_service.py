"""导出服务模块.

把当前场景按画布原始尺寸光栅化并编码为 PNG。导出只读场景，
不包含网格、安全区、选中框，也不受预览缩放影响。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from thumbnail_studio.models.scene import Scene
from thumbnail_studio.services.rasterizer import Rasterizer
from thumbnail_studio.services.render_composer import RenderComposer
from thumbnail_studio.utils.constants import (
    EXPORT_EXTENSION,
    EXPORT_FILENAME_PREFIX,
    EXPORT_FORMAT,
    EXPORT_MIME_TYPE,
)
from thumbnail_studio.utils.exceptions import AppException, ExportError
from thumbnail_studio.utils.helpers import get_timestamp_ms
from thumbnail_studio.utils.image_utils import image_to_bytes
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ExportArtifact:
    """导出产物.

    Attributes:
        data: 编码后的图片字节
        filename: 建议的文件名
        mime_type: MIME 类型
        size: 图片尺寸 (宽, 高)
    """

    data: bytes
    filename: str
    mime_type: str
    size: tuple[int, int]


def export_filename(timestamp_ms: Optional[int] = None) -> str:
    """生成导出文件名 ``thumbnail-<毫秒时间戳>.png``."""
    if timestamp_ms is None:
        timestamp_ms = get_timestamp_ms()
    return f"{EXPORT_FILENAME_PREFIX}-{timestamp_ms}.{EXPORT_EXTENSION}"


class ExportService:
    """导出服务.

    Example:
        >>> service = ExportService()
        >>> artifact = await service.export(scene)
        >>> artifact.filename
        'thumbnail-1700000000000.png'
    """

    def __init__(
        self,
        composer: Optional[RenderComposer] = None,
        rasterizer: Optional[Rasterizer] = None,
    ) -> None:
        """初始化导出服务.

        Args:
            composer: 渲染编排器
            rasterizer: 光栅化器
        """
        self._composer = composer or RenderComposer()
        self._rasterizer = rasterizer or Rasterizer()

    def export_sync(self, scene: Scene) -> ExportArtifact:
        """同步导出场景.

        Args:
            scene: 场景快照

        Returns:
            导出产物

        Raises:
            ExportError: 光栅化或编码失败
        """
        try:
            plan = self._composer.compose(scene, include_guides=False)
            image = self._rasterizer.rasterize(plan)
            data = image_to_bytes(image, EXPORT_FORMAT)
        except (AppException, OSError, ValueError) as e:
            logger.exception("导出失败")
            raise ExportError(f"导出失败: {e}") from e

        artifact = ExportArtifact(
            data=data,
            filename=export_filename(),
            mime_type=EXPORT_MIME_TYPE,
            size=image.size,
        )
        logger.info(f"导出完成: {artifact.filename} ({image.width}x{image.height}, {len(data)} 字节)")
        return artifact

    async def export(self, scene: Scene) -> ExportArtifact:
        """异步导出场景（在线程池中光栅化与编码）.

        场景快照不可变，等待期间编辑器可以继续修改图层存储，
        导出结果对应调用时的快照。

        Args:
            scene: 场景快照

        Returns:
            导出产物

        Raises:
            ExportError: 光栅化或编码失败
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.export_sync, scene)
