"""Sync session - request types, state machine, hook sequencing

Module layout:
- types: SyncRequest, SessionState, SessionEvent, CommandResult, SyncOutcome
- transitions: pure transition rule table
- state_machine: SyncSession (the single sync slot)
- sequencer: HookSequencer, HookStage
- manager: SyncManager orchestration (import from ``syncrsync.session.manager``)
"""

from .sequencer import HookSequencer, HookStage, SequenceResult
from .state_machine import SyncSession
from .transitions import next_state, terminal_event
from .types import (
    CommandResult,
    SessionEvent,
    SessionEventKind,
    SessionState,
    SyncDirection,
    SyncMode,
    SyncOutcome,
    SyncRequest,
)

__all__ = [
    "CommandResult",
    "HookSequencer",
    "HookStage",
    "SequenceResult",
    "SessionEvent",
    "SessionEventKind",
    "SessionState",
    "SyncDirection",
    "SyncMode",
    "SyncOutcome",
    "SyncRequest",
    "SyncSession",
    "next_state",
    "terminal_event",
]
