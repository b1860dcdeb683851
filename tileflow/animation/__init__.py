"""
Animation Module - Surfaces and the two-phase scheduler.
"""

from .surface import NullSurface, RecordingSurface, RenderSurface, status_message
from .scheduler import AnimationScheduler, SchedulerBusyError

__all__ = [
    "NullSurface",
    "RecordingSurface",
    "RenderSurface",
    "status_message",
    "AnimationScheduler",
    "SchedulerBusyError",
]
