"""Time-driven property interpolation for visual entities.

An Animation moves named properties of one entity from a start value to an
end value over a duration. Positions interpolate per component; any other
property is treated as a plain number. Interpolation is linear.

Each entity runs at most one Animation. Starting a new one replaces the
previous without firing its completion callback.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from .entities import VisualEntity
from .types import Position

logger = logging.getLogger(__name__)

PropertyValue = float | Position


@dataclass
class AnimationProperty:
    """Start, end and last interpolated value of one animated property."""

    start: PropertyValue
    end: PropertyValue
    current: PropertyValue


@dataclass
class Animation:
    """Interpolation state attached to a single entity.

    Attributes:
        duration: Total duration in milliseconds (<= 0 completes on first advance)
        properties: Property name -> interpolation triple
        on_complete: Called once after the animation deactivates
        elapsed: Accumulated time in milliseconds
        active: False once completed
    """

    duration: float
    properties: dict[str, AnimationProperty] = field(default_factory=lambda: {})
    on_complete: Optional[Callable[[], None]] = None
    elapsed: float = 0.0
    active: bool = True

    @property
    def progress(self) -> float:
        """Completion ratio clamped to 0..1."""
        if self.duration <= 0:
            return 1.0
        return max(0.0, min(1.0, self.elapsed / self.duration))


def _lerp(start: float, end: float, progress: float) -> float:
    return start + (end - start) * progress


def _interpolate(start: PropertyValue, end: PropertyValue, progress: float) -> PropertyValue:
    if isinstance(start, Position) and isinstance(end, Position):
        if start.z is not None and end.z is not None:
            z: Optional[float] = _lerp(start.z, end.z, progress)
        else:
            z = end.z if progress >= 1 else start.z
        return Position(
            _lerp(start.x, end.x, progress),
            _lerp(start.y, end.y, progress),
            z,
        )
    return _lerp(float(start), float(end), progress)  # type: ignore[arg-type]


def _read_property(entity: VisualEntity, name: str) -> Any:
    if hasattr(entity, name):
        value = getattr(entity, name)
        return value.copy() if isinstance(value, Position) else value
    return entity.data.get(name, 0.0)


def _write_property(entity: VisualEntity, name: str, value: PropertyValue) -> None:
    if name == "position" and isinstance(value, Position):
        entity.position = value
    elif hasattr(entity, name):
        setattr(entity, name, value)
    else:
        # Theme-specific numeric values live in the payload
        entity.data[name] = value


def start_animation(
    entity: VisualEntity,
    properties: Mapping[str, tuple[Optional[PropertyValue], PropertyValue]],
    duration: float,
    on_complete: Optional[Callable[[], None]] = None,
) -> Animation:
    """Attach a new animation to an entity.

    Any animation already running on the entity is discarded without
    calling its completion callback.

    Args:
        entity: Entity to animate
        properties: Property name -> (start, end). A None start reads the
            entity's current value.
        duration: Duration in milliseconds
        on_complete: Called once when the animation finishes

    Returns:
        The animation now attached to the entity
    """
    tracked: dict[str, AnimationProperty] = {}
    for name, (start, end) in properties.items():
        if start is None:
            start = _read_property(entity, name)
        tracked[name] = AnimationProperty(start=start, end=end, current=start)

    animation = Animation(duration=duration, properties=tracked, on_complete=on_complete)
    entity.animation = animation
    return animation


def advance(entity: VisualEntity, delta_ms: float) -> bool:
    """Advance the entity's animation by a frame delta.

    Args:
        entity: Entity whose animation to advance
        delta_ms: Time since the previous frame; negative values count as 0

    Returns:
        True if the animation completed during this call
    """
    animation = entity.animation
    if animation is None or not animation.active:
        return False

    animation.elapsed += max(0.0, delta_ms)
    progress = animation.progress

    for name, prop in animation.properties.items():
        prop.current = _interpolate(prop.start, prop.end, progress)
        _write_property(entity, name, prop.current)

    if progress < 1:
        return False

    animation.active = False
    if animation.on_complete is not None:
        try:
            animation.on_complete()
        except Exception as e:
            logger.error(f"Animation callback failed for {entity.id}: {e}", exc_info=True)
    return True
