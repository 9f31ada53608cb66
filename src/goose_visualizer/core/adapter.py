"""Protocol adapter.

Turns the inbound event stream into canonical agent, task and message
state and announces every change as a domain event. The adapter is the
only writer of the canonical state.

Events of one inbound message are collected while the state is mutated
and delivered only after the mutation has completed, so subscribers never
observe a half-applied message.
"""

import logging
import uuid
from dataclasses import replace
from typing import Any, Callable, Optional, assert_never

from PySide6.QtCore import QObject, Signal

from ..events.domain import (
    AgentLeftEvent,
    AgentMovedEvent,
    AgentRegisteredEvent,
    AgentStateChangedEvent,
    AgentUpdatedEvent,
    DomainEvent,
    DomainEventType,
    MessageAddedEvent,
    MessagesClearedEvent,
    PassthroughEvent,
    SystemResetEvent,
    TaskAddedEvent,
    TaskAssignedEvent,
    TaskCancelledEvent,
    TaskCompletedEvent,
    TaskMovedEvent,
    TaskStartedEvent,
    TaskUpdatedEvent,
)
from ..events.inbound import (
    AgentLeft,
    AgentMoved,
    AgentRegistered,
    AgentWait,
    InboundMessage,
    MalformedMessageError,
    MessageAdded,
    MessageCleared,
    PassthroughMessage,
    PositionPayload,
    SystemReset,
    TaskAdded,
    TaskAssigned,
    TaskCancelled,
    TaskCompleted,
    TaskMoved,
    TaskStarted,
    decode_message,
)
from .types import Agent, AgentState, Message, Position, Task, TaskState, now_ms

DEFAULT_AGENT_COLOR = "#007bff"

# Subscribe to this key to receive every event
ALL_EVENTS = "*"

EventHandler = Callable[[DomainEvent], None]


def _generate_message_id() -> str:
    return f"msg-{now_ms()}-{uuid.uuid4().hex[:7]}"


def _to_position(payload: PositionPayload) -> Position:
    return Position(payload.x, payload.y, payload.z)


class ProtocolAdapter(QObject):
    """Canonical multi-agent state fed by inbound protocol messages.

    Domain events are delivered to handlers registered with `subscribe`
    and through the `domain_event` Qt signal.
    """

    domain_event = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._agents: dict[str, Agent] = {}
        self._tasks: dict[str, Task] = {}
        self._messages: list[Message] = []

        # event type (or ALL_EVENTS) -> handlers in subscription order
        self._handlers: dict[str, list[EventHandler]] = {}

    # === SUBSCRIPTIONS ===

    def subscribe(self, event_type: str | DomainEventType, handler: EventHandler) -> None:
        """Register a handler for one event type, or "*" for all events."""
        key = event_type.value if isinstance(event_type, DomainEventType) else event_type
        self._handlers.setdefault(key, []).append(handler)

    def unsubscribe(self, event_type: str | DomainEventType, handler: EventHandler) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        key = event_type.value if isinstance(event_type, DomainEventType) else event_type
        handlers = self._handlers.get(key, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def publish(self, event: DomainEvent) -> None:
        """Deliver an event to subscribers.

        A failing handler is logged and does not stop delivery to the others.
        """
        targets = list(self._handlers.get(event.type, [])) + list(
            self._handlers.get(ALL_EVENTS, [])
        )
        for handler in targets:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(
                    f"Subscriber failed on '{event.type}': {e}", exc_info=True
                )
        self.domain_event.emit(event)

    # === CANONICAL STATE ===

    def get_agents(self) -> list[Agent]:
        return list(self._agents.values())

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def get_messages(self) -> list[Message]:
        """Get a copy of the message history."""
        return list(self._messages)

    # === INBOUND ===

    def handle_message(self, raw: bytes | str | dict[str, Any]) -> bool:
        """Apply one inbound message.

        Never raises: malformed input and internal failures are logged and
        the message is dropped.

        Returns:
            True if the message was applied
        """
        try:
            message = decode_message(raw)
        except MalformedMessageError as e:
            self.logger.warning(f"Dropping malformed message: {e}")
            return False

        try:
            events = self._apply(message)
        except Exception as e:
            self.logger.error(f"Error processing '{message.type}' message: {e}", exc_info=True)
            return False

        for event in events:
            self.publish(event)
        return True

    def _apply(self, message: InboundMessage) -> list[DomainEvent]:
        """Mutate canonical state and return the resulting events in order."""
        match message:
            case AgentRegistered():
                return self._on_agent_registered(message)
            case AgentLeft():
                return self._on_agent_left(message)
            case AgentWait():
                return self._on_agent_wait(message)
            case AgentMoved():
                return self._on_agent_moved(message)
            case MessageAdded():
                return self._on_message_added(message)
            case MessageCleared():
                self._messages = []
                return [MessagesClearedEvent()]
            case TaskAdded():
                return self._on_task_added(message)
            case TaskAssigned():
                return self._on_task_assigned(message)
            case TaskStarted():
                return self._on_task_started(message)
            case TaskCompleted():
                return self._on_task_completed(message)
            case TaskCancelled():
                return self._on_task_cancelled(message)
            case TaskMoved():
                return self._on_task_moved(message)
            case SystemReset():
                return self._on_system_reset()
            case PassthroughMessage():
                self.logger.debug(f"Forwarding custom event: {message.type}")
                return [PassthroughEvent(event_type=message.type, payload=dict(message.payload))]
            case _:
                assert_never(message)

    # === AGENT HANDLERS ===

    def _set_agent_state(self, agent: Agent, state: AgentState) -> list[DomainEvent]:
        """Transition an agent and build its state-changed/updated pair."""
        old_state = agent.state
        agent.state = state
        agent.last_active = now_ms()
        return [
            AgentStateChangedEvent(agent_id=agent.id, old_state=old_state, new_state=state),
            AgentUpdatedEvent(
                agent=replace(agent),
                changes={"state": state, "lastActive": agent.last_active},
            ),
        ]

    def _on_agent_registered(self, message: AgentRegistered) -> list[DomainEvent]:
        payload = message.agent
        agent = Agent(
            id=payload.id,
            name=payload.name or f"Agent {payload.id}",
            color=payload.color or DEFAULT_AGENT_COLOR,
        )
        if payload.id in self._agents:
            self.logger.debug(f"Agent {payload.id} re-registered, replacing record")
        self._agents[agent.id] = agent
        return [AgentRegisteredEvent(agent=replace(agent))]

    def _on_agent_left(self, message: AgentLeft) -> list[DomainEvent]:
        agent_id = message.agent.id
        if self._agents.pop(agent_id, None) is None:
            return []
        return [AgentLeftEvent(agent_id=agent_id)]

    def _on_agent_wait(self, message: AgentWait) -> list[DomainEvent]:
        agent = self._agents.get(message.agent.id)
        if agent is None:
            return []
        return self._set_agent_state(agent, AgentState.WAITING)

    def _on_agent_moved(self, message: AgentMoved) -> list[DomainEvent]:
        position = _to_position(message.position)
        events: list[DomainEvent] = []

        agent = self._agents.get(message.agent_id)
        if agent is not None:
            agent.position = position
            agent.last_active = now_ms()
            events.append(
                AgentUpdatedEvent(
                    agent=replace(agent),
                    changes={"position": position.copy(), "lastActive": agent.last_active},
                )
            )

        # Forwarded even for unknown agents
        events.append(AgentMovedEvent(agent_id=message.agent_id, position=position.copy()))
        return events

    # === MESSAGE HANDLERS ===

    def _on_message_added(self, message: MessageAdded) -> list[DomainEvent]:
        payload = message.message
        record = Message(
            id=_generate_message_id(),
            sender_id=payload.sender_id,
            content=payload.content,
            timestamp=now_ms(),
            receiver_id=payload.receiver_id,
        )
        self._messages.append(record)

        events: list[DomainEvent] = []
        sender = self._agents.get(record.sender_id)
        if sender is not None:
            events.extend(self._set_agent_state(sender, AgentState.ACTIVE))
        events.append(MessageAddedEvent(message=record))
        return events

    # === TASK HANDLERS ===

    def _on_task_added(self, message: TaskAdded) -> list[DomainEvent]:
        task = Task(id=message.task.id, description=message.task.description)
        self._tasks[task.id] = task
        return [TaskAddedEvent(task=replace(task))]

    def _on_task_assigned(self, message: TaskAssigned) -> list[DomainEvent]:
        task = self._tasks.get(message.task_id)
        if task is None:
            self.logger.debug(f"Ignoring assignment of unknown task {message.task_id}")
            return []

        task.state = TaskState.ASSIGNED
        task.assigned_to = message.agent_id

        events: list[DomainEvent] = [
            TaskAssignedEvent(task_id=task.id, agent_id=message.agent_id),
            TaskUpdatedEvent(
                task=replace(task),
                changes={"state": TaskState.ASSIGNED, "assignedTo": message.agent_id},
            ),
        ]
        # The assignee may not be registered yet; the task still records it
        agent = self._agents.get(message.agent_id)
        if agent is not None:
            events.extend(self._set_agent_state(agent, AgentState.WORKING))
        return events

    def _on_task_started(self, message: TaskStarted) -> list[DomainEvent]:
        task = self._tasks.get(message.task_id)
        if task is None:
            return []
        if task.state != TaskState.ASSIGNED:
            self.logger.warning(
                f"Ignoring start of task {task.id} in state '{task.state.value}'"
            )
            return []

        task.state = TaskState.IN_PROGRESS
        return [
            TaskStartedEvent(task_id=task.id),
            TaskUpdatedEvent(task=replace(task), changes={"state": TaskState.IN_PROGRESS}),
        ]

    def _on_task_completed(self, message: TaskCompleted) -> list[DomainEvent]:
        task = self._tasks.get(message.task_id)
        if task is None:
            return []

        task.state = TaskState.COMPLETED
        task.completed_at = max(now_ms(), task.created_at)

        events: list[DomainEvent] = [
            TaskCompletedEvent(task_id=task.id),
            TaskUpdatedEvent(
                task=replace(task),
                changes={"state": TaskState.COMPLETED, "completedAt": task.completed_at},
            ),
        ]
        events.extend(self._release_assignee(task))
        return events

    def _on_task_cancelled(self, message: TaskCancelled) -> list[DomainEvent]:
        task = self._tasks.get(message.task_id)
        if task is None:
            return []
        if task.state not in (TaskState.PENDING, TaskState.ASSIGNED):
            self.logger.warning(
                f"Ignoring cancellation of task {task.id} in state '{task.state.value}'"
            )
            return []

        was_assigned = task.state == TaskState.ASSIGNED
        task.state = TaskState.CANCELLED

        events: list[DomainEvent] = [
            TaskCancelledEvent(task_id=task.id),
            TaskUpdatedEvent(task=replace(task), changes={"state": TaskState.CANCELLED}),
        ]
        if was_assigned:
            events.extend(self._release_assignee(task))
        return events

    def _release_assignee(self, task: Task) -> list[DomainEvent]:
        """Return the task's assignee, if registered, to idle."""
        if task.assigned_to is None:
            return []
        agent = self._agents.get(task.assigned_to)
        if agent is None:
            return []
        return self._set_agent_state(agent, AgentState.IDLE)

    def _on_task_moved(self, message: TaskMoved) -> list[DomainEvent]:
        task = self._tasks.get(message.task_id)
        if task is None:
            return []

        position = _to_position(message.position)
        task.position = position
        return [
            TaskUpdatedEvent(task=replace(task), changes={"position": position.copy()}),
            TaskMovedEvent(task_id=task.id, position=position.copy()),
        ]

    # === SYSTEM ===

    def _on_system_reset(self) -> list[DomainEvent]:
        self._agents.clear()
        self._tasks.clear()
        self._messages = []
        self.logger.info("System reset: canonical state cleared")
        return [SystemResetEvent()]
