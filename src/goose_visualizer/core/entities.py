"""
Visual entity model.

A VisualEntity is the presentation-side projection of an agent, task or
message. It carries only rendering-relevant state; the canonical records
stay with the protocol adapter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .types import Position, Size

if TYPE_CHECKING:
    from .animation import Animation


class EntityKind(str, Enum):
    """Kinds of visual entities placed in a scene."""

    AGENT = "agent"
    TASK = "task"
    MESSAGE = "message"
    FURNITURE = "furniture"
    ENVIRONMENT = "environment"


@dataclass(eq=False)
class VisualEntity:
    """Rendering-agnostic view of a domain object.

    Attributes:
        id: Unique entity identifier (derived from the domain id)
        kind: What the entity represents
        position: Current screen position
        size: Optional size in screen units
        rotation: Rotation in degrees
        scale: Uniform scale factor
        opacity: 0.0 (transparent) .. 1.0 (opaque)
        visible: Hidden entities are kept but not drawn
        z_index: Depth key assigned by the grid on placement
        grid_position: Logical cell (x, y, z) the entity is anchored to
        data: Theme-specific payload (domain record, colours, sprite id...)
        animation: Currently running animation, if any
    """

    id: str
    kind: EntityKind
    position: Position = field(default_factory=lambda: Position(0.0, 0.0))
    size: Optional[Size] = None
    rotation: float = 0.0
    scale: float = 1.0
    opacity: float = 1.0
    visible: bool = True
    z_index: float = 0.0
    grid_position: Position = field(default_factory=lambda: Position(0, 0, 0))
    data: dict[str, Any] = field(default_factory=lambda: {})
    animation: Optional["Animation"] = None

    @property
    def is_animating(self) -> bool:
        """Whether an animation is currently active on this entity."""
        return self.animation is not None and self.animation.active
