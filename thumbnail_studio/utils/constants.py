"""应用常量定义."""

from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "Thumbnail Studio"
APP_VERSION = "0.1.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".thumbnail-studio"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# ===================
# 画布设置
# ===================
DEFAULT_CANVAS_WIDTH = 1280
DEFAULT_CANVAS_HEIGHT = 720

MIN_CANVAS_WIDTH = 640
MAX_CANVAS_WIDTH = 3840
MIN_CANVAS_HEIGHT = 360
MAX_CANVAS_HEIGHT = 2160

# 网格间距（像素）
GRID_SPACING = 120
GRID_COLOR = (148, 163, 184, 41)  # rgba(148, 163, 184, 0.16)

# 安全区内边距比例
SAFE_ZONE_RATIO = 0.08
SAFE_ZONE_COLOR = (248, 250, 252, 89)  # rgba(248, 250, 252, 0.35)
SAFE_ZONE_DASH = (20, 16)
SAFE_ZONE_STROKE_WIDTH = 4

# 选中框样式
SELECTION_COLOR = (0, 161, 255, 255)
SELECTION_ANCHOR_SIZE = 10

# ===================
# 预览缩放
# ===================
DEFAULT_PREVIEW_ZOOM = 0.45
MIN_PREVIEW_ZOOM = 0.2
MAX_PREVIEW_ZOOM = 1.0

# ===================
# 变换约束
# ===================
# 图片图层最小包围盒 (宽, 高)
IMAGE_MIN_BOX = (50, 50)
# 文字图层最小包围盒 (宽, 高)
TEXT_MIN_BOX = (80, 40)
# 文字缩放后的最小字号
MIN_FONT_SIZE = 10
# 复制图层的位置偏移
DUPLICATE_OFFSET = 40

# 文字节点内边距
TEXT_PADDING = 4

# ===================
# 图片设置
# ===================
# 最大上传图片大小 (50MB)
MAX_IMAGE_FILE_SIZE = 50 * 1024 * 1024

DEFAULT_IMAGE_SCALE = 0.6

# ===================
# 导出设置
# ===================
EXPORT_FORMAT = "PNG"
EXPORT_EXTENSION = "png"
EXPORT_MIME_TYPE = "image/png"
EXPORT_FILENAME_PREFIX = "thumbnail"
