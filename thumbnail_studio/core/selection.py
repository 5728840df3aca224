"""选择控制器模块.

两状态状态机：空闲（未选中）与已选中(图层引用)。删除、复制命令只在
已选中状态下生效，并通过图层存储执行。
"""

from __future__ import annotations

from typing import Optional, Union

from thumbnail_studio.core.layer_store import LayerStore
from thumbnail_studio.models.layers import ImageLayer, LayerRef, TextLayer
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


class SelectionController:
    """选择控制器.

    任何时刻最多选中一个图层。选中的图层被删除时（无论经由本控制器还是
    直接调用图层存储），选中项在同一次删除调用中被清除。

    Example:
        >>> store = LayerStore()
        >>> selection = SelectionController(store)
        >>> layer_id = store.add_text()
        >>> selection.select(LayerRef.text(layer_id))
        >>> selection.duplicate() != layer_id
        True
    """

    def __init__(self, store: LayerStore) -> None:
        """初始化选择控制器.

        Args:
            store: 图层存储
        """
        self._store = store
        self._selection: Optional[LayerRef] = None
        store.add_removal_listener(self._on_layer_removed)

    @property
    def selection(self) -> Optional[LayerRef]:
        """当前选中的图层引用."""
        return self._selection

    @property
    def is_idle(self) -> bool:
        """是否处于未选中状态."""
        return self._selection is None

    @property
    def selected_layer(self) -> Optional[Union[TextLayer, ImageLayer]]:
        """当前选中的图层对象."""
        if self._selection is None:
            return None
        return self._store.get(self._selection)

    def is_selected(self, ref: LayerRef) -> bool:
        """图层是否被选中."""
        return self._selection == ref

    def select(self, ref: LayerRef) -> None:
        """选中图层.

        引用指向不存在的图层时忽略。
        """
        if not self._store.contains(ref):
            logger.debug(f"忽略对不存在图层的选择: {ref.id}")
            return
        self._selection = ref

    def clear(self) -> None:
        """取消选中."""
        self._selection = None

    def delete(self) -> Optional[LayerRef]:
        """删除选中的图层并回到未选中状态.

        Returns:
            被删除的图层引用，未选中时返回 None
        """
        ref = self._selection
        if ref is None:
            return None
        self._store.delete_layer(ref.layer_type, ref.id)
        self._selection = None
        logger.info(f"已删除选中图层: {ref.id}")
        return ref

    def duplicate(self) -> Optional[str]:
        """复制选中的图层，选中项转移到副本.

        Returns:
            副本ID，未选中时返回 None
        """
        ref = self._selection
        if ref is None:
            return None
        new_id = self._store.duplicate_layer(ref.layer_type, ref.id)
        if new_id is None:
            self._selection = None
            return None
        self._selection = LayerRef(ref.layer_type, new_id)
        logger.info(f"已复制选中图层: {ref.id} -> {new_id}")
        return new_id

    def _on_layer_removed(self, ref: LayerRef) -> None:
        if self._selection == ref:
            self._selection = None
