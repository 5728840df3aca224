"""场景快照模型.

场景 = 画布配置 + 两个有序图层集合 + 当前选中项。快照只读，
渲染与属性面板都从快照取数据。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union

from thumbnail_studio.models.canvas_config import CanvasConfig
from thumbnail_studio.models.layers import (
    ImageLayer,
    LayerRef,
    LayerType,
    TextLayer,
)


@dataclass(frozen=True)
class Scene:
    """某一时刻的完整场景.

    Attributes:
        config: 画布配置
        text_layers: 文字图层（按插入顺序，即组内层级）
        image_layers: 图片图层（按插入顺序）
        selection: 当前选中的图层引用，未选中为 None
    """

    config: CanvasConfig
    text_layers: tuple[TextLayer, ...] = ()
    image_layers: tuple[ImageLayer, ...] = ()
    selection: Optional[LayerRef] = None

    @property
    def layer_count(self) -> int:
        """图层总数."""
        return len(self.text_layers) + len(self.image_layers)

    def iter_layers(self) -> Iterator[Union[TextLayer, ImageLayer]]:
        """按绘制顺序遍历图层：先全部图片，再全部文字."""
        yield from self.image_layers
        yield from self.text_layers

    def find(self, ref: LayerRef) -> Optional[Union[TextLayer, ImageLayer]]:
        """解析图层引用.

        Args:
            ref: 图层引用

        Returns:
            图层对象，不存在返回 None
        """
        layers = self.text_layers if ref.layer_type == LayerType.TEXT else self.image_layers
        for layer in layers:
            if layer.id == ref.id:
                return layer
        return None

    @property
    def selected_layer(self) -> Optional[Union[TextLayer, ImageLayer]]:
        """当前选中的图层."""
        if self.selection is None:
            return None
        return self.find(self.selection)
