"""渲染编排单元测试."""

import pytest

from thumbnail_studio.core.geometry import half_diagonal
from thumbnail_studio.core.transform import CORNER_HANDLES
from thumbnail_studio.models.canvas_config import BackgroundMode, CanvasConfig
from thumbnail_studio.models.layers import ImageLayer, LayerRef, TextLayer
from thumbnail_studio.models.scene import Scene
from thumbnail_studio.services.render_composer import RenderComposer


@pytest.fixture
def composer(measure):
    """使用固定尺寸测量的编排器."""
    return RenderComposer(measure)


@pytest.fixture
def scene(data_url):
    """一个文字图层 + 一个图片图层的场景."""
    return Scene(
        config=CanvasConfig(),
        text_layers=(TextLayer(id="t1", x=100, y=100),),
        image_layers=(ImageLayer(id="i1", src=data_url, x=250, y=150),),
        selection=LayerRef.text("t1"),
    )


class TestBackground:
    """背景节点测试."""

    def test_gradient_endpoints(self, composer, scene):
        """测试渐变节点带投影端点."""
        plan = composer.compose(scene)
        background = plan.background
        assert background.mode == BackgroundMode.GRADIENT
        assert background.start.x + background.end.x == pytest.approx(1280)
        d = half_diagonal(1280, 720)
        assert background.end.x - background.start.x == pytest.approx(2 * d * 0.848048, rel=1e-4)

    def test_solid(self, composer, solid_config):
        """测试纯色背景不计算端点."""
        plan = composer.compose(Scene(config=solid_config))
        assert plan.background.mode == BackgroundMode.SOLID
        assert plan.background.start is None
        assert plan.background.color == "#102030"


class TestLayerNodes:
    """图层节点测试."""

    def test_two_tiers(self, composer, scene):
        """测试图片组在文字组之下."""
        plan = composer.compose(scene)
        assert [node.ref for node in plan.layer_nodes] == [LayerRef.image("i1"), LayerRef.text("t1")]

    def test_two_tiers_independent_of_creation_order(self, composer, data_url):
        """测试后添加的图片仍在文字之下."""
        scene = Scene(
            config=CanvasConfig(),
            text_layers=(TextLayer(id="t1"), TextLayer(id="t2")),
            image_layers=(ImageLayer(id="late", src=data_url),),
        )
        refs = [node.ref.id for node in composer.compose(scene).layer_nodes]
        assert refs == ["late", "t1", "t2"]

    def test_box_from_layer(self, composer, scene):
        """测试节点包围盒."""
        node = composer.compose(scene).node_for(LayerRef.text("t1"))
        assert (node.box.x, node.box.y, node.box.width, node.box.height) == (100, 100, 200, 100)

    def test_broken_image_skipped(self):
        """测试无法解码的图片图层被跳过."""
        scene = Scene(
            config=CanvasConfig(),
            image_layers=(ImageLayer.model_construct(id="bad", src="data:image/png;base64,AAAA"),),
        )
        plan = RenderComposer().compose(scene)
        assert plan.image_nodes == ()


class TestGuides:
    """辅助元素测试."""

    def test_guides_included(self, composer, scene):
        """测试编辑模式包含网格、安全区、选中框."""
        plan = composer.compose(scene)
        assert plan.has_guides
        assert plan.grid.vertical[0] == 120
        assert plan.safe_zone.rect.x == pytest.approx(1280 * 0.08)
        assert plan.selection.ref == LayerRef.text("t1")
        assert plan.selection.anchors == CORNER_HANDLES
        assert plan.selection.min_size == (80, 40)

    def test_guides_excluded(self, composer, scene):
        """测试导出模式不含任何辅助元素."""
        plan = composer.compose(scene, include_guides=False)
        assert not plan.has_guides
        assert len(plan.layer_nodes) == 2

    def test_toggles(self, composer, scene):
        """测试网格与安全区开关."""
        config = scene.config.with_changes(show_grid=False, show_safe_zone=False)
        plan = composer.compose(Scene(config=config, text_layers=scene.text_layers))
        assert plan.grid is None
        assert plan.safe_zone is None
        assert plan.selection is None


class TestHitTest:
    """命中测试."""

    def test_topmost_first(self, composer, scene):
        """测试重叠处返回最上层（文字组）."""
        plan = composer.compose(scene)
        assert plan.hit_test(260, 160) == LayerRef.text("t1")

    def test_image_only_region(self, composer, scene):
        """测试只有图片覆盖的位置."""
        plan = composer.compose(scene)
        assert plan.hit_test(350, 220) == LayerRef.image("i1")

    def test_empty(self, composer, scene):
        """测试空白处."""
        assert composer.compose(scene).hit_test(5, 5) is None
