"""
Data models for the canonical multi-agent state.

Contains the dataclasses and enums describing agents, tasks and messages as
tracked by the protocol adapter. Models carry no service logic.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class AgentState(str, Enum):
    """Lifecycle states of an agent."""

    IDLE = "idle"
    ACTIVE = "active"
    THINKING = "thinking"
    WORKING = "working"
    WAITING = "waiting"
    DISCONNECTED = "disconnected"


class TaskState(str, Enum):
    """Lifecycle states of a task."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed from this state."""
        return self in (TaskState.COMPLETED, TaskState.CANCELLED)


@dataclass
class Position:
    """Position in 2D/3D space.

    Used both for logical grid coordinates and for screen coordinates,
    depending on context. ``z`` is the elevation layer when present.
    """

    x: float
    y: float
    z: Optional[float] = None

    def copy(self) -> "Position":
        return Position(self.x, self.y, self.z)

    def to_dict(self) -> dict[str, float]:
        data = {"x": self.x, "y": self.y}
        if self.z is not None:
            data["z"] = self.z
        return data


@dataclass
class Size:
    """Size in 2D/3D space."""

    width: float
    height: float
    depth: Optional[float] = None


@dataclass
class Agent:
    """A participant of the multi-agent system."""

    id: str
    name: str
    color: str
    state: AgentState = AgentState.IDLE
    position: Optional[Position] = None
    created_at: int = field(default_factory=now_ms)
    last_active: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "state": self.state.value,
            "createdAt": self.created_at,
            "lastActive": self.last_active,
        }
        if self.position is not None:
            data["position"] = self.position.to_dict()
        return data


@dataclass
class Task:
    """A unit of work tracked through its lifecycle.

    ``assigned_to`` is set once the task reaches ``assigned`` and kept
    afterwards, including when an assigned task is cancelled.
    """

    id: str
    description: str
    state: TaskState = TaskState.PENDING
    assigned_to: Optional[str] = None
    created_at: int = field(default_factory=now_ms)
    completed_at: Optional[int] = None
    position: Optional[Position] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "state": self.state.value,
            "createdAt": self.created_at,
        }
        if self.assigned_to is not None:
            data["assignedTo"] = self.assigned_to
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        if self.position is not None:
            data["position"] = self.position.to_dict()
        return data


@dataclass(frozen=True)
class Message:
    """A message sent by an agent. Immutable once created."""

    id: str
    sender_id: str
    content: str
    timestamp: int
    receiver_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "senderId": self.sender_id,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.receiver_id is not None:
            data["receiverId"] = self.receiver_id
        return data
