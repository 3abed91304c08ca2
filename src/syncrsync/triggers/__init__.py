"""Trigger sources: file watch, editor events and their HTTP receiver"""

from .base import TriggerSource
from .editor import EDITOR_EVENTS, EditorTriggerSource
from .receiver import EditorEventReceiver, EditorEventRequest, EditorEventResponse
from .watch import WatchTriggerSource

__all__ = [
    "TriggerSource",
    "EDITOR_EVENTS",
    "EditorTriggerSource",
    "EditorEventReceiver",
    "EditorEventRequest",
    "EditorEventResponse",
    "WatchTriggerSource",
]
