"""Draw contract and its QGraphicsScene implementation.

The scene synchronizer and themes only talk to the `Renderer` protocol.
`QtSceneRenderer` paints onto a QGraphicsScene, rebuilding the items on
every frame. Entity positions are anchor points: the centre of a tile's
top face, or the point an agent or task stands on.
"""

import logging
from typing import Optional, Protocol

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QPainterPath, QPen, QPolygonF
from PySide6.QtWidgets import (
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsLineItem,
    QGraphicsPathItem,
    QGraphicsPixmapItem,
    QGraphicsPolygonItem,
    QGraphicsRectItem,
    QGraphicsScene,
    QGraphicsSimpleTextItem,
)

from ..core.entities import VisualEntity
from ..core.types import Position
from ..themes.contract import EntityStyle
from .sprites import SpriteManager

# Side faces of blocks are drawn darker than the top face
SIDE_SHADE_LEFT = 130
SIDE_SHADE_RIGHT = 160


class Renderer(Protocol):
    """Drawing surface used by themes."""

    def begin_frame(self) -> None: ...

    def draw_tile(self, position: Position, style: EntityStyle, z_index: float) -> None: ...

    def draw_block(self, position: Position, style: EntityStyle, z_index: float) -> None: ...

    def draw_entity(self, entity: VisualEntity, style: EntityStyle) -> None: ...

    def draw_link(self, start: Position, end: Position, color: str, z_index: float) -> None: ...

    def end_frame(self) -> None: ...


def _pen(color: Optional[str]) -> QPen:
    if color is None:
        return QPen(Qt.PenStyle.NoPen)
    return QPen(QColor(color))


def _diamond(x: float, y: float, width: float, height: float) -> QPolygonF:
    half_w = width / 2
    half_h = height / 2
    return QPolygonF(
        [
            QPointF(x, y - half_h),  # Top corner
            QPointF(x + half_w, y),  # Right corner
            QPointF(x, y + half_h),  # Bottom corner
            QPointF(x - half_w, y),  # Left corner
        ]
    )


class QtSceneRenderer:
    """Renders frames as QGraphicsItems on a QGraphicsScene."""

    LABEL_OFFSET = 4

    def __init__(
        self,
        scene: Optional[QGraphicsScene] = None,
        sprites: Optional[SpriteManager] = None,
    ):
        """Initialize the renderer.

        Args:
            scene: Scene to draw on (a new one is created if omitted)
            sprites: Sprite source for styles with a sprite id
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.scene = scene if scene is not None else QGraphicsScene()
        self.sprites = sprites
        self.frames_rendered = 0
        self.items_drawn = 0

    def set_sprites(self, sprites: Optional[SpriteManager]) -> None:
        self.sprites = sprites

    # === FRAME ===

    def begin_frame(self) -> None:
        """Drop the previous frame's items."""
        self.scene.clear()
        self.items_drawn = 0

    def end_frame(self) -> None:
        self.frames_rendered += 1
        self.scene.update()

    # === PRIMITIVES ===

    def draw_tile(self, position: Position, style: EntityStyle, z_index: float) -> None:
        """Draw a flat floor tile centred on ``position``."""
        if style.shape == "diamond":
            item: QGraphicsItem = QGraphicsPolygonItem(
                _diamond(position.x, position.y, style.width, style.height)
            )
        else:
            item = QGraphicsRectItem(
                QRectF(
                    position.x - style.width / 2,
                    position.y - style.height / 2,
                    style.width,
                    style.height,
                )
            )
        item.setBrush(QBrush(QColor(style.fill)))  # type: ignore[attr-defined]
        item.setPen(_pen(style.outline))  # type: ignore[attr-defined]
        self._add(item, z_index)

    def draw_block(self, position: Position, style: EntityStyle, z_index: float) -> None:
        """Draw an extruded tile (wall, desk) standing on ``position``."""
        half_w = style.width / 2
        half_h = style.height / 2
        lift = style.elevation
        x, y = position.x, position.y
        fill = QColor(style.fill)
        pen = _pen(style.outline)

        if style.shape != "diamond":
            item = QGraphicsRectItem(QRectF(x - half_w, y - half_h - lift, style.width, style.height + lift))
            item.setBrush(QBrush(fill))
            item.setPen(pen)
            self._add(item, z_index)
            return

        left_face = QPolygonF(
            [
                QPointF(x - half_w, y - lift),
                QPointF(x, y + half_h - lift),
                QPointF(x, y + half_h),
                QPointF(x - half_w, y),
            ]
        )
        right_face = QPolygonF(
            [
                QPointF(x, y + half_h - lift),
                QPointF(x + half_w, y - lift),
                QPointF(x + half_w, y),
                QPointF(x, y + half_h),
            ]
        )
        for face, shade in ((left_face, SIDE_SHADE_LEFT), (right_face, SIDE_SHADE_RIGHT)):
            side = QGraphicsPolygonItem(face)
            side.setBrush(QBrush(fill.darker(shade)))
            side.setPen(pen)
            self._add(side, z_index)

        top = QGraphicsPolygonItem(_diamond(x, y - lift, style.width, style.height))
        top.setBrush(QBrush(fill))
        top.setPen(pen)
        self._add(top, z_index)

    def draw_link(self, start: Position, end: Position, color: str, z_index: float) -> None:
        """Draw a dashed line between two anchor points."""
        pen = QPen(QColor(color))
        pen.setStyle(Qt.PenStyle.DashLine)
        item = QGraphicsLineItem(start.x, start.y, end.x, end.y)
        item.setPen(pen)
        self._add(item, z_index)

    # === ENTITIES ===

    def draw_entity(self, entity: VisualEntity, style: EntityStyle) -> None:
        """Draw an entity as its sprite, or as the style's shape."""
        if not entity.visible:
            return

        x, y = entity.position.x, entity.position.y
        item = self._sprite_item(entity, style) or self._shape_item(x, y, style)

        item.setOpacity(entity.opacity)
        item.setTransformOriginPoint(QPointF(x, y))
        item.setScale(entity.scale)
        item.setRotation(entity.rotation)
        self._add(item, entity.z_index)

        if style.label:
            label = QGraphicsSimpleTextItem(style.label)
            bounds = label.boundingRect()
            label.setPos(x - bounds.width() / 2, y - style.height - bounds.height() - self.LABEL_OFFSET)
            label.setOpacity(entity.opacity)
            self._add(label, entity.z_index)

    def _sprite_item(self, entity: VisualEntity, style: EntityStyle) -> Optional[QGraphicsItem]:
        if style.sprite_id is None or self.sprites is None:
            return None

        frame = self.sprites.frame_at(style.sprite_id, entity.data.get("elapsed_ms", 0))
        pixmap = self.sprites.get_pixmap(style.sprite_id, frame)
        if pixmap is None:
            return None

        # Sprites stand on the anchor point
        item = QGraphicsPixmapItem(pixmap)
        item.setPos(entity.position.x - pixmap.width() / 2, entity.position.y - pixmap.height())
        return item

    def _shape_item(self, x: float, y: float, style: EntityStyle) -> QGraphicsItem:
        width, height = style.width, style.height
        brush = QBrush(QColor(style.fill))
        pen = _pen(style.outline)

        if style.shape == "circle":
            item: QGraphicsItem = QGraphicsEllipseItem(QRectF(x - width / 2, y - height, width, height))
        elif style.shape == "diamond":
            item = QGraphicsPolygonItem(_diamond(x, y, width, height))
        elif style.shape == "bubble":
            path = QPainterPath()
            path.addRoundedRect(QRectF(x - width / 2, y - height, width, height), 6, 6)
            item = QGraphicsPathItem(path)
        else:
            item = QGraphicsRectItem(QRectF(x - width / 2, y - height, width, height))

        item.setBrush(brush)  # type: ignore[attr-defined]
        item.setPen(pen)  # type: ignore[attr-defined]
        return item

    def _add(self, item: QGraphicsItem, z_index: float) -> None:
        item.setZValue(z_index)
        self.scene.addItem(item)
        self.items_drawn += 1
