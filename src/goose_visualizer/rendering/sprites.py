"""Sprite loading and conversion.

Sprites are loaded with Pillow, optionally cut into animation frames, and
converted to QPixmap on first use. The manager is an ordinary object owned
by the scene synchronizer; every synchronizer gets its own instance.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image
from PySide6.QtGui import QPixmap

SPRITE_EXTENSIONS = (".png", ".gif", ".webp")


@dataclass(frozen=True)
class SpriteConfig:
    """Description of a sprite image.

    Attributes:
        id: Sprite identifier used by theme styles
        src: Image file
        frames: Number of horizontally stacked animation frames
        frame_width: Width of one frame (defaults to image width / frames)
        frame_rate: Frames per second for animated sprites
    """

    id: str
    src: Path
    frames: int = 1
    frame_width: Optional[int] = None
    frame_rate: float = 8.0


class SpriteManager:
    """Loads sprite images and serves cached QPixmaps."""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._configs: dict[str, SpriteConfig] = {}
        self._images: dict[str, Image.Image] = {}

        # (sprite_id, frame) -> QPixmap
        self._pixmap_cache: dict[tuple[str, int], QPixmap] = {}

    # === REGISTRATION AND LOADING ===

    def register_sprites(self, configs: Iterable[SpriteConfig]) -> None:
        """Register sprites for loading. Re-registering an id replaces it."""
        for config in configs:
            self._configs[config.id] = config

    def register_image(self, sprite_id: str, image: Image.Image, frames: int = 1) -> None:
        """Register an already loaded image."""
        self._configs[sprite_id] = SpriteConfig(id=sprite_id, src=Path(), frames=frames)
        self._images[sprite_id] = image.convert("RGBA")
        self._drop_cached(sprite_id)

    def load_sprites(self) -> int:
        """Load every registered sprite that is not loaded yet.

        Missing or unreadable files are logged and skipped.

        Returns:
            Number of sprites loaded by this call
        """
        loaded = 0
        for sprite_id, config in self._configs.items():
            if sprite_id in self._images:
                continue
            try:
                with Image.open(config.src) as image:
                    self._images[sprite_id] = image.convert("RGBA")
                loaded += 1
            except (OSError, ValueError) as e:
                self.logger.warning(f"Failed to load sprite '{sprite_id}' from {config.src}: {e}")

        self.logger.debug(f"Loaded {loaded} sprites ({len(self._images)} total)")
        return loaded

    def load_directory(self, path: Path) -> int:
        """Register and load every image in a directory, keyed by file stem.

        Returns:
            Number of sprites loaded
        """
        if not path.is_dir():
            self.logger.warning(f"Sprites directory not found: {path}")
            return 0

        configs = [
            SpriteConfig(id=file.stem, src=file)
            for file in sorted(path.iterdir())
            if file.suffix.lower() in SPRITE_EXTENSIONS
        ]
        self.register_sprites(configs)
        return self.load_sprites()

    # === ACCESS ===

    def has_sprite(self, sprite_id: str) -> bool:
        return sprite_id in self._images

    def is_loaded(self) -> bool:
        """Whether every registered sprite has an image."""
        return all(sprite_id in self._images for sprite_id in self._configs)

    def frame_at(self, sprite_id: str, elapsed_ms: float) -> int:
        """Animation frame index for a sprite after ``elapsed_ms``."""
        config = self._configs.get(sprite_id)
        if config is None or config.frames <= 1:
            return 0
        return int(elapsed_ms / 1000 * config.frame_rate) % config.frames

    def get_pixmap(self, sprite_id: str, frame: int = 0) -> Optional[QPixmap]:
        """Get a sprite frame as QPixmap.

        Returns:
            The pixmap, or None if the sprite is not loaded
        """
        image = self._images.get(sprite_id)
        if image is None:
            return None

        config = self._configs[sprite_id]
        frame = frame % max(1, config.frames)
        cache_key = (sprite_id, frame)
        if cache_key in self._pixmap_cache:
            return self._pixmap_cache[cache_key]

        if config.frames > 1:
            frame_width = config.frame_width or image.width // config.frames
            left = frame * frame_width
            image = image.crop((left, 0, left + frame_width, image.height))

        from PIL.ImageQt import ImageQt

        pixmap = QPixmap.fromImage(ImageQt(image))
        self._pixmap_cache[cache_key] = pixmap
        return pixmap

    # === CACHE ===

    def _drop_cached(self, sprite_id: str) -> None:
        for key in [key for key in self._pixmap_cache if key[0] == sprite_id]:
            del self._pixmap_cache[key]

    def clear(self) -> None:
        """Forget all sprites and cached pixmaps."""
        count = len(self._images)
        self._configs.clear()
        self._images.clear()
        self._pixmap_cache.clear()
        if count > 0:
            self.logger.debug(f"Sprite cache cleared ({count} sprites)")
