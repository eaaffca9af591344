# blog-analytics - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.dispatch import TaskDispatcherPort
from src.core.ports.time import TimePort

__all__ = [
    "TaskDispatcherPort",
    "TimePort",
]
