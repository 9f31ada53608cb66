"""
goose-visualizer: live visualization of multi-agent activity

Turns a stream of protocol messages about agents, tasks and messages into
an animated isometric or flat scene.
"""

__version__ = "0.1.0"
__author__ = "goose-visualizer Contributors"

from .core.adapter import ProtocolAdapter
from .core.types import Agent, AgentState, Message, Position, Task, TaskState
from .events import DomainEvent, DomainEventType
from .settings import AppSettings
from .theme_manager import ThemeInfo, ThemeManager, ThemePlugin
from .utils.logging_config import setup_logging
from .visualizer import GooseVisualizer

__all__ = [
    # Facade
    'GooseVisualizer',

    # Core
    'ProtocolAdapter',
    'AppSettings',
    'ThemeManager',
    'ThemeInfo',
    'ThemePlugin',

    # Logging
    'setup_logging',

    # Data model
    'Agent',
    'AgentState',
    'Task',
    'TaskState',
    'Message',
    'Position',
    'DomainEvent',
    'DomainEventType',
]
