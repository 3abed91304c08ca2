"""Session transition rules

| # | from | event | to |
|---|------|-------|----|
| T1 | IDLE | started | RUNNING |
| T2 | RUNNING | skipped | SUCCEEDED |
| T3 | RUNNING | succeeded | SUCCEEDED |
| T4 | RUNNING | failed | FAILED |
| T5 | RUNNING | killed | KILLED |
| T6 | SUCCEEDED / FAILED / KILLED | reset | IDLE |

Pure functions only; ``SyncSession`` owns the mutable state.
"""

from dataclasses import dataclass

from .types import SessionEventKind, SessionState


@dataclass(frozen=True)
class TransitionRule:
    from_states: frozenset[SessionState]
    event: SessionEventKind
    to_state: SessionState


_TERMINAL = frozenset({SessionState.SUCCEEDED, SessionState.FAILED, SessionState.KILLED})
_RUNNING = frozenset({SessionState.RUNNING})

TRANSITION_RULES: tuple[TransitionRule, ...] = (
    TransitionRule(frozenset({SessionState.IDLE}), SessionEventKind.STARTED, SessionState.RUNNING),
    TransitionRule(_RUNNING, SessionEventKind.SKIPPED, SessionState.SUCCEEDED),
    TransitionRule(_RUNNING, SessionEventKind.SUCCEEDED, SessionState.SUCCEEDED),
    TransitionRule(_RUNNING, SessionEventKind.FAILED, SessionState.FAILED),
    TransitionRule(_RUNNING, SessionEventKind.KILLED, SessionState.KILLED),
    TransitionRule(_TERMINAL, SessionEventKind.RESET, SessionState.IDLE),
)


def next_state(current: SessionState, event: SessionEventKind) -> SessionState | None:
    """Target state for an event, or None if the event is not allowed."""
    for rule in TRANSITION_RULES:
        if rule.event is event and current in rule.from_states:
            return rule.to_state
    return None


def terminal_event(success: bool, kill_requested: bool, skipped: bool = False) -> SessionEventKind:
    """Event that ends a running session.

    A kill request always wins, whatever the process reported.
    """
    if kill_requested:
        return SessionEventKind.KILLED
    if skipped:
        return SessionEventKind.SKIPPED
    return SessionEventKind.SUCCEEDED if success else SessionEventKind.FAILED
