"""
Domain events emitted by the protocol adapter and the theme manager.

Each event is an immutable record with a type tag and a millisecond
timestamp. Records that embed agents, tasks or messages carry snapshots
taken after the state change, so later mutations of the canonical state
do not leak into already delivered events.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Optional

from ..core.types import Agent, AgentState, Message, Position, Task, now_ms


class DomainEventType(str, Enum):
    """Type tags of outbound domain events."""

    # Connection
    MCP_CONNECTED = "mcp:connected"
    MCP_DISCONNECTED = "mcp:disconnected"
    MCP_ERROR = "mcp:error"

    # Agents
    AGENT_REGISTERED = "agent:registered"
    AGENT_UPDATED = "agent:updated"
    AGENT_LEFT = "agent:left"
    AGENT_STATE_CHANGED = "agent:state_changed"
    AGENT_MOVED = "agent:moved"

    # Messages
    MESSAGE_ADDED = "message:added"
    MESSAGE_CLEARED = "message:cleared"

    # Tasks
    TASK_ADDED = "task:added"
    TASK_ASSIGNED = "task:assigned"
    TASK_STARTED = "task:started"
    TASK_COMPLETED = "task:completed"
    TASK_CANCELLED = "task:cancelled"
    TASK_UPDATED = "task:updated"
    TASK_MOVED = "task:moved"

    SYSTEM_RESET = "system:reset"

    # Themes
    THEME_LOADED = "theme:loaded"
    THEME_CHANGED = "theme:changed"
    THEME_ERROR = "theme:error"
    THEME_REGISTERED = "theme:registered"
    THEME_UNREGISTERED = "theme:unregistered"
    THEME_CONFIG_CHANGED = "theme:config-changed"


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _serialize(value: Any) -> Any:
    if isinstance(value, (Agent, Task, Message, Position)):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class of all domain events."""

    TYPE: ClassVar[DomainEventType]

    timestamp: int = field(default_factory=now_ms)

    @property
    def type(self) -> str:
        return self.TYPE.value

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, matching the wire vocabulary."""
        data: dict[str, Any] = {"type": self.type}
        for f in fields(self):
            data[_camel(f.name)] = _serialize(getattr(self, f.name))
        return data


# === CONNECTION ===


@dataclass(frozen=True, kw_only=True)
class McpConnectedEvent(DomainEvent):
    TYPE = DomainEventType.MCP_CONNECTED
    url: str


@dataclass(frozen=True, kw_only=True)
class McpDisconnectedEvent(DomainEvent):
    TYPE = DomainEventType.MCP_DISCONNECTED
    reason: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class McpErrorEvent(DomainEvent):
    TYPE = DomainEventType.MCP_ERROR
    error: str


# === AGENTS ===


@dataclass(frozen=True, kw_only=True)
class AgentRegisteredEvent(DomainEvent):
    TYPE = DomainEventType.AGENT_REGISTERED
    agent: Agent


@dataclass(frozen=True, kw_only=True)
class AgentUpdatedEvent(DomainEvent):
    TYPE = DomainEventType.AGENT_UPDATED
    agent: Agent
    changes: dict[str, Any]


@dataclass(frozen=True, kw_only=True)
class AgentLeftEvent(DomainEvent):
    TYPE = DomainEventType.AGENT_LEFT
    agent_id: str


@dataclass(frozen=True, kw_only=True)
class AgentStateChangedEvent(DomainEvent):
    TYPE = DomainEventType.AGENT_STATE_CHANGED
    agent_id: str
    old_state: AgentState
    new_state: AgentState


@dataclass(frozen=True, kw_only=True)
class AgentMovedEvent(DomainEvent):
    TYPE = DomainEventType.AGENT_MOVED
    agent_id: str
    position: Position


# === MESSAGES ===


@dataclass(frozen=True, kw_only=True)
class MessageAddedEvent(DomainEvent):
    TYPE = DomainEventType.MESSAGE_ADDED
    message: Message


@dataclass(frozen=True, kw_only=True)
class MessagesClearedEvent(DomainEvent):
    TYPE = DomainEventType.MESSAGE_CLEARED


# === TASKS ===


@dataclass(frozen=True, kw_only=True)
class TaskAddedEvent(DomainEvent):
    TYPE = DomainEventType.TASK_ADDED
    task: Task


@dataclass(frozen=True, kw_only=True)
class TaskAssignedEvent(DomainEvent):
    TYPE = DomainEventType.TASK_ASSIGNED
    task_id: str
    agent_id: str


@dataclass(frozen=True, kw_only=True)
class TaskStartedEvent(DomainEvent):
    TYPE = DomainEventType.TASK_STARTED
    task_id: str


@dataclass(frozen=True, kw_only=True)
class TaskCompletedEvent(DomainEvent):
    TYPE = DomainEventType.TASK_COMPLETED
    task_id: str


@dataclass(frozen=True, kw_only=True)
class TaskCancelledEvent(DomainEvent):
    TYPE = DomainEventType.TASK_CANCELLED
    task_id: str


@dataclass(frozen=True, kw_only=True)
class TaskUpdatedEvent(DomainEvent):
    TYPE = DomainEventType.TASK_UPDATED
    task: Task
    changes: dict[str, Any]


@dataclass(frozen=True, kw_only=True)
class TaskMovedEvent(DomainEvent):
    TYPE = DomainEventType.TASK_MOVED
    task_id: str
    position: Position


@dataclass(frozen=True, kw_only=True)
class SystemResetEvent(DomainEvent):
    TYPE = DomainEventType.SYSTEM_RESET


# === OPEN-ENDED EVENTS ===


@dataclass(frozen=True, kw_only=True)
class PassthroughEvent(DomainEvent):
    """Unknown inbound type forwarded with its raw payload."""

    event_type: str
    payload: dict[str, Any] = field(default_factory=lambda: {})

    @property
    def type(self) -> str:
        return self.event_type

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.payload)
        data["type"] = self.event_type
        data["timestamp"] = self.timestamp
        return data


@dataclass(frozen=True, kw_only=True)
class ThemeEvent(DomainEvent):
    """Theme manager notification (loaded, changed, registered...)."""

    event_type: DomainEventType
    theme_name: str
    details: dict[str, Any] = field(default_factory=lambda: {})

    @property
    def type(self) -> str:
        return self.event_type.value

    def to_dict(self) -> dict[str, Any]:
        data = {key: _serialize(value) for key, value in self.details.items()}
        data.update({"type": self.type, "themeName": self.theme_name, "timestamp": self.timestamp})
        return data
