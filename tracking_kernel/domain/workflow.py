"""
Canonical workflow types (``tracking_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for state machines.  The per-step status machine is
declared with these types so Transition and Workflow are defined once.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Transition:
    """A declared state transition.

    Contract: frozen.  ``correction=True`` marks a transition that undoes
    or sidesteps progress (a regression an operator is allowed to make but
    which is logged as a correction event).
    """
    from_state: str
    to_state: str
    action: str
    correction: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                f"is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action!r} references "
                    f"undeclared state ({t.from_state} -> {t.to_state})"
                )

    def find(self, from_state: str, to_state: str) -> Transition | None:
        """Return the declared transition between two states, if any."""
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        return None
