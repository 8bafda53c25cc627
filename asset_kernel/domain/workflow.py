"""
Canonical workflow types (``asset_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for request state machines.  Both request variants
declare their allowed (state, action) pairs as a ``Workflow`` so the
lifecycle engine gates every operation on data rather than on scattered
status comparisons.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* ``terminal_states`` have no outgoing transitions.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen.  The lifecycle engine evaluates guards by ``name``
    when choosing the target of a transition.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``from_state == to_state`` marks an edit that keeps the request in
    place (adding items or documents to a draft).
    ``requires_approval=True`` marks transitions driven by approval actions.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    requires_approval: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a request lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def allows(self, state: str, action: str) -> bool:
        """True if ``action`` has at least one transition out of ``state``."""
        return any(
            t.from_state == state and t.action == action
            for t in self.transitions
        )

    def targets(self, state: str, action: str) -> tuple[str, ...]:
        """States reachable from ``state`` via ``action``."""
        return tuple(
            t.to_state for t in self.transitions
            if t.from_state == state and t.action == action
        )

    def target(
        self, state: str, action: str, passes: Callable[[Guard], bool],
    ) -> str | None:
        """First state reachable via ``action`` whose guard passes, if any."""
        for t in self.transitions:
            if t.from_state != state or t.action != action:
                continue
            if t.guard is None or passes(t.guard):
                return t.to_state
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        seen: list[str] = []
        for t in self.transitions:
            if t.from_state == state and t.action not in seen:
                seen.append(t.action)
        return tuple(seen)
