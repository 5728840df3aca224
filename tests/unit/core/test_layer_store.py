"""图层存储单元测试."""

import pytest
from pydantic import ValidationError

from thumbnail_studio.core.layer_store import LayerStore
from thumbnail_studio.models.canvas_config import BackgroundMode
from thumbnail_studio.models.layers import ImageLayer, LayerRef, LayerType, TextLayer
from thumbnail_studio.utils.exceptions import (
    InvalidConfigValueError,
    InvalidLayerPatchError,
    LayerError,
)
from thumbnail_studio.utils.image_utils import cached_source_count


class TestAddLayers:
    """添加图层测试."""

    def test_add_text_defaults(self, store):
        """测试添加默认文字图层."""
        layer_id = store.add_text()
        layer = store.get(LayerRef.text(layer_id))
        assert isinstance(layer, TextLayer)
        assert store.text_layers == (layer,)
        assert store.layer_count == 1

    def test_add_text_with_fields(self, store):
        """测试带初始字段添加."""
        layer_id = store.add_text({"text": "Hello", "x": 12})
        layer = store.get(LayerRef.text(layer_id))
        assert layer.text == "Hello"
        assert layer.x == 12

    def test_add_image(self, store, data_url):
        """测试添加图片图层."""
        layer_id = store.add_image({"src": data_url, "label": "photo"})
        assert store.find_ref(layer_id) == LayerRef.image(layer_id)
        assert store.image_layers[0].label == "photo"

    def test_insertion_order(self, store):
        """测试集合保持插入顺序."""
        ids = [store.add_text({"text": str(i)}) for i in range(3)]
        assert [layer.id for layer in store.text_layers] == ids

    def test_ids_unique_across_collections(self, store, data_url):
        """测试ID在两个集合间唯一."""
        layer_id = store.add_text()
        with pytest.raises(LayerError):
            store.add_image(ImageLayer(id=layer_id, src=data_url))

    def test_add_invalid_layer(self, store):
        """测试非法初始字段不会写入."""
        with pytest.raises(ValidationError):
            store.add_text({"font_size": -1})
        assert store.layer_count == 0


class TestUpdateLayer:
    """更新图层测试."""

    def test_update(self, store):
        """测试整体替换条目."""
        layer_id = store.add_text({"text": "old"})
        before = store.text_layers[0]
        updated = store.update_layer(layer_id, {"text": "new", "rotation": 15})
        assert updated.text == "new"
        assert updated.rotation == 15
        assert store.text_layers[0] is updated
        assert before.text == "old"

    def test_missing_id_is_noop(self, store):
        """测试ID不存在时静默忽略."""
        store.add_text()
        snapshot = store.text_layers
        assert store.update_layer("missing", {"x": 5}) is None
        assert store.text_layers == snapshot

    @pytest.mark.parametrize("patch", [{"id": "other"}, {"type": LayerType.IMAGE}])
    def test_immutable_fields(self, store, patch):
        """测试不允许修改 id 与 type."""
        layer_id = store.add_text()
        with pytest.raises(InvalidLayerPatchError):
            store.update_layer(layer_id, patch)
        assert store.text_layers[0].id == layer_id

    def test_invalid_value_leaves_store_unchanged(self, store):
        """测试非法值不修改存储."""
        layer_id = store.add_text({"font_size": 50})
        with pytest.raises(InvalidLayerPatchError):
            store.update_layer(layer_id, {"font_size": 0})
        assert store.text_layers[0].font_size == 50

    def test_unknown_field(self, store):
        """测试未知字段."""
        layer_id = store.add_text()
        with pytest.raises(InvalidLayerPatchError):
            store.update_layer(layer_id, {"scale": 2})

    def test_update_image_fields(self, store, data_url):
        """测试更新图片专有字段."""
        layer_id = store.add_image({"src": data_url})
        updated = store.update_layer(layer_id, {"scale": 1.5, "opacity": 0.5})
        assert (updated.scale, updated.opacity) == (1.5, 0.5)

    @pytest.mark.parametrize("src", ["not-a-data-url", "data:image/png;base64,AAAA"])
    def test_undecodable_src_rejected(self, store, data_url, src):
        """测试无法解码的图片来源被拒绝，图层保持不变."""
        layer_id = store.add_image({"src": data_url, "x": 10})
        before = store.image_layers[0]
        with pytest.raises(InvalidLayerPatchError):
            store.update_layer(layer_id, {"src": src, "x": 99})
        assert store.image_layers[0] is before

    @pytest.mark.parametrize("field", ["x", "y", "rotation"])
    def test_non_finite_rejected(self, store, field):
        """测试 NaN 坐标被拒绝."""
        layer_id = store.add_text()
        with pytest.raises(InvalidLayerPatchError):
            store.update_layer(layer_id, {field: float("nan")})
        assert getattr(store.text_layers[0], field) == 0

    def test_replaced_src_released(self, store, data_url, data_url_factory):
        """测试替换来源后旧来源的解码缓存被释放."""
        layer_id = store.add_image({"src": data_url})
        store.update_layer(layer_id, {"src": data_url_factory((8, 8))})
        assert cached_source_count() == 1


class TestDeleteLayer:
    """删除图层测试."""

    def test_delete_removes_exactly_one(self, store):
        """测试只删除一个条目."""
        first = store.add_text()
        second = store.add_text()
        assert store.delete_layer(LayerType.TEXT, first) is True
        assert [layer.id for layer in store.text_layers] == [second]

    def test_delete_missing(self, store):
        """测试删除不存在的图层."""
        assert store.delete_layer(LayerType.TEXT, "missing") is False

    def test_delete_wrong_type(self, store):
        """测试类型不匹配时不删除."""
        layer_id = store.add_text()
        assert store.delete_layer(LayerType.IMAGE, layer_id) is False
        assert store.layer_count == 1

    def test_delete_releases_source(self, store, data_url):
        """测试删除最后一个引用来源的图层时释放解码缓存."""
        layer_id = store.add_image({"src": data_url})
        copy_id = store.duplicate_layer(LayerType.IMAGE, layer_id)
        assert cached_source_count() == 1

        store.delete_layer(LayerType.IMAGE, layer_id)
        assert cached_source_count() == 1
        store.delete_layer(LayerType.IMAGE, copy_id)
        assert cached_source_count() == 0

    def test_listener_notified(self, store):
        """测试删除监听器在同一次调用中收到通知."""
        removed = []
        store.add_removal_listener(removed.append)
        layer_id = store.add_text()
        store.delete_layer(LayerType.TEXT, layer_id)
        assert removed == [LayerRef.text(layer_id)]

    def test_listener_removed(self, store):
        """测试注销监听器."""
        removed = []
        store.add_removal_listener(removed.append)
        store.remove_removal_listener(removed.append)
        store.delete_layer(LayerType.TEXT, store.add_text())
        assert removed == []


class TestDuplicateLayer:
    """复制图层测试."""

    def test_duplicate_text(self, store):
        """测试复制：新ID、名称加 Copy、位置偏移 40、其余字段相同."""
        layer_id = store.add_text({"label": "Title", "text": "Hi", "x": 100, "y": 50, "rotation": 12})
        new_id = store.duplicate_layer(LayerType.TEXT, layer_id)
        source, clone = store.text_layers
        assert new_id != layer_id
        assert clone.id == new_id
        assert clone.label == "Title Copy"
        assert (clone.x, clone.y) == (140, 90)
        ignored = {"id", "label", "x", "y"}
        assert clone.model_dump(exclude=ignored) == source.model_dump(exclude=ignored)

    def test_duplicate_appended_to_top(self, store):
        """测试副本追加到同组顶部."""
        first = store.add_text()
        store.add_text()
        new_id = store.duplicate_layer(LayerType.TEXT, first)
        assert store.text_layers[-1].id == new_id

    def test_duplicate_image(self, store, data_url):
        """测试复制图片图层."""
        layer_id = store.add_image({"src": data_url, "scale": 0.3})
        new_id = store.duplicate_layer(LayerType.IMAGE, layer_id)
        clone = store.get(LayerRef.image(new_id))
        assert clone.scale == 0.3
        assert clone.src == data_url

    def test_duplicate_missing(self, store):
        """测试复制不存在的图层."""
        assert store.duplicate_layer(LayerType.TEXT, "missing") is None


class TestCanvasConfig:
    """画布配置测试."""

    def test_set_config(self, store):
        """测试修改配置."""
        config = store.set_config(background_mode=BackgroundMode.SOLID, solid_color="#ABCDEF")
        assert config.background_mode == BackgroundMode.SOLID
        assert store.config.solid_color == "#abcdef"

    def test_invalid_config_keeps_previous(self, store):
        """测试非法配置不生效."""
        before = store.config
        with pytest.raises(InvalidConfigValueError):
            store.set_config(width=100)
        assert store.config is before

    def test_nan_angle_rejected(self, store):
        """测试 NaN 渐变角度被拒绝."""
        before = store.config
        with pytest.raises(InvalidConfigValueError):
            store.set_config(gradient_angle=float("nan"))
        assert store.config is before

    def test_unknown_key(self, store):
        """测试未知配置项."""
        with pytest.raises(InvalidConfigValueError):
            store.set_config(depth=3)

    def test_snapshot(self, store):
        """测试快照."""
        layer_id = store.add_text()
        scene = store.snapshot(LayerRef.text(layer_id))
        assert scene.config is store.config
        assert scene.text_layers == store.text_layers
        assert scene.selection == LayerRef.text(layer_id)
