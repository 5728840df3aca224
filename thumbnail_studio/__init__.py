"""缩略图设计器核心包.

提供分层场景模型、交互变换引擎以及光栅化导出能力。
"""

from thumbnail_studio.utils.constants import APP_NAME, APP_VERSION

__version__ = APP_VERSION

__all__ = ["APP_NAME", "APP_VERSION", "__version__"]
