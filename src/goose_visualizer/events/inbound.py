"""
Inbound protocol messages.

Every message on the event stream is a JSON object with a ``type`` tag and
a type-specific payload. Known types decode into a closed discriminated
union of pydantic models; any other tag decodes into PassthroughMessage so
extensions reach subscribers without adapter changes.

Field names follow the wire format (camelCase). The snake_case spelling is
accepted as well.
"""

from typing import Annotated, Any, Literal, Optional, Union

import orjson
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError


class MalformedMessageError(Exception):
    """Raised when an inbound message cannot be parsed or validated."""
    pass


def _coerce_id(value: Any) -> Any:
    # Numeric ids are common on the wire
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


Identifier = Annotated[str, BeforeValidator(_coerce_id)]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# === PAYLOADS ===


class AgentPayload(WireModel):
    id: Identifier
    name: Optional[str] = None
    color: Optional[str] = None


class TaskPayload(WireModel):
    id: Identifier
    description: str = ""


class MessagePayload(WireModel):
    sender_id: Identifier = Field(alias="senderId")
    content: str = ""
    receiver_id: Optional[Identifier] = Field(default=None, alias="receiverId")


class PositionPayload(WireModel):
    x: float
    y: float
    z: Optional[float] = None


# === MESSAGES ===


class AgentRegistered(WireModel):
    type: Literal["agent:registered"]
    agent: AgentPayload


class AgentLeft(WireModel):
    type: Literal["agent:left"]
    agent: AgentPayload


class AgentWait(WireModel):
    type: Literal["agent:wait"]
    agent: AgentPayload


class AgentMoved(WireModel):
    type: Literal["agent:moved"]
    agent_id: Identifier = Field(alias="agentId")
    position: PositionPayload


class MessageAdded(WireModel):
    type: Literal["message:added"]
    message: MessagePayload


class MessageCleared(WireModel):
    type: Literal["message:cleared"]


class TaskAdded(WireModel):
    type: Literal["task:added"]
    task: TaskPayload


class TaskAssigned(WireModel):
    type: Literal["task:assigned"]
    task_id: Identifier = Field(alias="taskId")
    agent_id: Identifier = Field(alias="agentId")


class TaskStarted(WireModel):
    type: Literal["task:started"]
    task_id: Identifier = Field(alias="taskId")


class TaskCompleted(WireModel):
    type: Literal["task:completed"]
    task_id: Identifier = Field(alias="taskId")


class TaskCancelled(WireModel):
    type: Literal["task:cancelled"]
    task_id: Identifier = Field(alias="taskId")


class TaskMoved(WireModel):
    type: Literal["task:moved"]
    task_id: Identifier = Field(alias="taskId")
    position: PositionPayload


class SystemReset(WireModel):
    type: Literal["system:reset"]


class PassthroughMessage(WireModel):
    """Message of a type the adapter does not interpret."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


KnownMessage = Annotated[
    Union[
        AgentRegistered,
        AgentLeft,
        AgentWait,
        AgentMoved,
        MessageAdded,
        MessageCleared,
        TaskAdded,
        TaskAssigned,
        TaskStarted,
        TaskCompleted,
        TaskCancelled,
        TaskMoved,
        SystemReset,
    ],
    Field(discriminator="type"),
]

InboundMessage = Union[
    AgentRegistered,
    AgentLeft,
    AgentWait,
    AgentMoved,
    MessageAdded,
    MessageCleared,
    TaskAdded,
    TaskAssigned,
    TaskStarted,
    TaskCompleted,
    TaskCancelled,
    TaskMoved,
    SystemReset,
    PassthroughMessage,
]

KNOWN_TYPES = frozenset(
    {
        "agent:registered",
        "agent:left",
        "agent:wait",
        "agent:moved",
        "message:added",
        "message:cleared",
        "task:added",
        "task:assigned",
        "task:started",
        "task:completed",
        "task:cancelled",
        "task:moved",
        "system:reset",
    }
)

_known_adapter: TypeAdapter[Any] = TypeAdapter(KnownMessage)


def parse_raw(raw: bytes | str | dict[str, Any]) -> dict[str, Any]:
    """Parse a wire message into a JSON object.

    Raises:
        MalformedMessageError: If the input is not a JSON object
    """
    if isinstance(raw, dict):
        return raw

    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedMessageError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def decode_message(raw: bytes | str | dict[str, Any]) -> InboundMessage:
    """Decode a wire message into a typed inbound message.

    Args:
        raw: JSON text, bytes or an already parsed object

    Returns:
        A known message model, or PassthroughMessage for unknown types

    Raises:
        MalformedMessageError: If the message is unparsable, has no string
            ``type`` or violates the schema of a known type
    """
    data = parse_raw(raw)

    message_type = data.get("type")
    if not isinstance(message_type, str) or not message_type:
        raise MalformedMessageError("Message has no 'type' tag")

    if message_type not in KNOWN_TYPES:
        payload = {key: value for key, value in data.items() if key != "type"}
        return PassthroughMessage(type=message_type, payload=payload)

    try:
        return _known_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedMessageError(
            f"Invalid '{message_type}' message: {e.error_count()} error(s): "
            f"{e.errors()[0]['msg']}"
        ) from e
