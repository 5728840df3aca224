"""图层存储模块.

持有两个有序图层集合（文字、图片）与画布配置，是场景的唯一数据源。

Features:
    - 添加 / 更新 / 删除 / 复制图层
    - 写时复制：每次修改都整体替换对应条目
    - 图层ID在两个集合间唯一
    - 删除监听（供选择控制器在同一次调用中清理选中项）
    - 图片来源不再被引用时释放解码缓存
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from thumbnail_studio.models.canvas_config import CanvasConfig
from thumbnail_studio.models.layers import (
    ImageLayer,
    LayerRef,
    LayerType,
    TextLayer,
    generate_layer_id,
)
from thumbnail_studio.models.scene import Scene
from thumbnail_studio.utils.constants import DUPLICATE_OFFSET
from thumbnail_studio.utils.exceptions import (
    InvalidConfigValueError,
    InvalidLayerPatchError,
    LayerError,
)
from thumbnail_studio.utils.image_utils import forget_source_image
from thumbnail_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

Layer = Union[TextLayer, ImageLayer]
RemovalListener = Callable[[LayerRef], None]

# 不允许通过补丁修改的字段
IMMUTABLE_FIELDS = frozenset({"id", "type"})


def _first_error(error: ValidationError) -> tuple[str, str]:
    """取校验错误中的第一个字段名和原因."""
    detail = error.errors()[0]
    field = ".".join(str(p) for p in detail.get("loc", ())) or "?"
    return field, detail.get("msg", str(error))


class LayerStore:
    """图层存储.

    两个集合各自保持插入顺序；集合内顺序即层级。图片组永远画在文字组之下，
    与跨类型的创建顺序无关。

    Example:
        >>> store = LayerStore()
        >>> layer_id = store.add_text({"text": "Hello"})
        >>> store.get(LayerRef.text(layer_id)).text
        'Hello'
    """

    def __init__(self, config: Optional[CanvasConfig] = None) -> None:
        """初始化图层存储.

        Args:
            config: 初始画布配置，默认使用 CanvasConfig()
        """
        self._config = config or CanvasConfig()
        self._text_layers: list[TextLayer] = []
        self._image_layers: list[ImageLayer] = []
        self._removal_listeners: list[RemovalListener] = []

    # ===================
    # 查询
    # ===================

    @property
    def config(self) -> CanvasConfig:
        """当前画布配置."""
        return self._config

    @property
    def text_layers(self) -> tuple[TextLayer, ...]:
        """文字图层（按层级从下到上）."""
        return tuple(self._text_layers)

    @property
    def image_layers(self) -> tuple[ImageLayer, ...]:
        """图片图层（按层级从下到上）."""
        return tuple(self._image_layers)

    @property
    def layer_count(self) -> int:
        """图层总数."""
        return len(self._text_layers) + len(self._image_layers)

    def _collection(self, layer_type: LayerType) -> list[Any]:
        if layer_type == LayerType.TEXT:
            return self._text_layers
        return self._image_layers

    def _index_of(self, layer_type: LayerType, layer_id: str) -> int:
        for i, layer in enumerate(self._collection(layer_type)):
            if layer.id == layer_id:
                return i
        return -1

    def get(self, ref: LayerRef) -> Optional[Layer]:
        """根据引用获取图层.

        Args:
            ref: 图层引用

        Returns:
            图层对象，不存在返回 None
        """
        index = self._index_of(ref.layer_type, ref.id)
        if index < 0:
            return None
        return self._collection(ref.layer_type)[index]

    def find_ref(self, layer_id: str) -> Optional[LayerRef]:
        """根据ID在两个集合中查找图层引用."""
        for layer_type in (LayerType.TEXT, LayerType.IMAGE):
            if self._index_of(layer_type, layer_id) >= 0:
                return LayerRef(layer_type, layer_id)
        return None

    def contains(self, ref: LayerRef) -> bool:
        """引用是否指向现存图层."""
        return self._index_of(ref.layer_type, ref.id) >= 0

    def snapshot(self, selection: Optional[LayerRef] = None) -> Scene:
        """生成当前场景快照."""
        return Scene(
            config=self._config,
            text_layers=self.text_layers,
            image_layers=self.image_layers,
            selection=selection,
        )

    # ===================
    # 画布配置
    # ===================

    def set_config(self, **patch: Any) -> CanvasConfig:
        """更新画布配置.

        Args:
            **patch: 要修改的配置项

        Returns:
            新的画布配置

        Raises:
            InvalidConfigValueError: 配置值不合法（原配置保持不变）
        """
        unknown = set(patch) - set(CanvasConfig.model_fields)
        if unknown:
            key = sorted(unknown)[0]
            raise InvalidConfigValueError(key, patch[key], "未知配置项")
        try:
            self._config = self._config.with_changes(**patch)
        except ValidationError as e:
            field, reason = _first_error(e)
            raise InvalidConfigValueError(field, patch.get(field), reason) from e
        logger.debug(f"画布配置已更新: {sorted(patch)}")
        return self._config

    def replace_config(self, config: CanvasConfig) -> None:
        """整体替换画布配置."""
        self._config = config

    # ===================
    # 创建
    # ===================

    def _unique_id(self) -> str:
        layer_id = generate_layer_id()
        while self.find_ref(layer_id) is not None:
            layer_id = generate_layer_id()
        return layer_id

    def _build(
        self,
        model: type[Layer],
        init: Union[Layer, Mapping[str, Any], None],
    ) -> Layer:
        if isinstance(init, model):
            layer = init
        else:
            data = dict(init or {})
            data.setdefault("id", self._unique_id())
            layer = model.model_validate(data)
        if self.find_ref(layer.id) is not None:
            raise LayerError(f"图层ID已存在: {layer.id}")
        return layer

    def add_text(self, init: Union[TextLayer, Mapping[str, Any], None] = None) -> str:
        """添加文字图层到文字组顶部.

        Args:
            init: 文字图层或初始字段

        Returns:
            新图层ID
        """
        layer = self._build(TextLayer, init)
        self._text_layers.append(layer)
        logger.debug(f"添加文字图层: {layer.id} ({layer.label})")
        return layer.id

    def add_image(self, init: Union[ImageLayer, Mapping[str, Any]]) -> str:
        """添加图片图层到图片组顶部.

        Args:
            init: 图片图层或初始字段（必须包含 src）

        Returns:
            新图层ID
        """
        layer = self._build(ImageLayer, init)
        self._image_layers.append(layer)
        logger.debug(f"添加图片图层: {layer.id} ({layer.label})")
        return layer.id

    # ===================
    # 修改
    # ===================

    def update_layer(self, layer_id: str, patch: Mapping[str, Any]) -> Optional[Layer]:
        """更新图层属性.

        ID 不存在时静默忽略。

        Args:
            layer_id: 图层ID
            patch: 要修改的字段

        Returns:
            更新后的图层，ID 不存在返回 None

        Raises:
            InvalidLayerPatchError: 补丁试图修改 id/type 或值不合法（图层保持不变）
        """
        ref = self.find_ref(layer_id)
        if ref is None:
            logger.debug(f"忽略对不存在图层的更新: {layer_id}")
            return None

        forbidden = IMMUTABLE_FIELDS & set(patch)
        if forbidden:
            raise InvalidLayerPatchError(layer_id, f"字段不可修改: {sorted(forbidden)}")

        collection = self._collection(ref.layer_type)
        index = self._index_of(ref.layer_type, layer_id)
        current = collection[index]

        unknown = set(patch) - set(type(current).model_fields)
        if unknown:
            raise InvalidLayerPatchError(layer_id, f"未知字段: {sorted(unknown)}")

        try:
            updated = current.with_changes(**patch)
        except ValidationError as e:
            field, reason = _first_error(e)
            raise InvalidLayerPatchError(layer_id, f"{field}: {reason}") from e

        collection[index] = updated
        if isinstance(current, ImageLayer) and current.src != updated.src:
            self._release_source(current.src)
        return updated

    def delete_layer(self, layer_type: LayerType, layer_id: str) -> bool:
        """删除图层.

        删除监听器在本次调用返回前收到通知。

        Args:
            layer_type: 图层类型
            layer_id: 图层ID

        Returns:
            是否删除（ID 不存在返回 False）
        """
        index = self._index_of(layer_type, layer_id)
        if index < 0:
            return False

        removed = self._collection(layer_type).pop(index)
        logger.debug(f"删除图层: {removed.id} ({removed.label})")
        if isinstance(removed, ImageLayer):
            self._release_source(removed.src)

        ref = LayerRef(layer_type, layer_id)
        for listener in list(self._removal_listeners):
            listener(ref)
        return True

    def _release_source(self, src: str) -> None:
        """没有图片图层再引用某个来源时，释放其解码缓存."""
        if any(layer.src == src for layer in self._image_layers):
            return
        forget_source_image(src)

    def duplicate_layer(self, layer_type: LayerType, layer_id: str) -> Optional[str]:
        """复制图层.

        副本复制除 id、label 之外的全部字段；label 追加 " Copy"，位置向右下偏移，
        追加到同组顶部。

        Args:
            layer_type: 图层类型
            layer_id: 源图层ID

        Returns:
            副本ID，源图层不存在返回 None
        """
        source = self.get(LayerRef(layer_type, layer_id))
        if source is None:
            return None

        clone = source.with_changes(
            id=self._unique_id(),
            label=f"{source.label} Copy",
            x=source.x + DUPLICATE_OFFSET,
            y=source.y + DUPLICATE_OFFSET,
        )
        self._collection(layer_type).append(clone)
        logger.debug(f"复制图层: {source.id} -> {clone.id}")
        return clone.id

    # ===================
    # 监听
    # ===================

    def add_removal_listener(self, listener: RemovalListener) -> None:
        """注册图层删除监听器."""
        self._removal_listeners.append(listener)

    def remove_removal_listener(self, listener: RemovalListener) -> None:
        """注销图层删除监听器."""
        if listener in self._removal_listeners:
            self._removal_listeners.remove(listener)
