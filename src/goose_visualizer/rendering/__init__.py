"""Drawing backends and sprite handling."""

from .renderer import QtSceneRenderer, Renderer
from .sprites import SpriteConfig, SpriteManager

__all__ = ["QtSceneRenderer", "Renderer", "SpriteConfig", "SpriteManager"]
