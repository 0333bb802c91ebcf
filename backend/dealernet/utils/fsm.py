from __future__ import annotations
"""Small finite state machine helper for enforcing allowed state transitions.

Drives the assignment form lifecycle (Editing -> Validating -> Submitting -> Success/Failed).
Usage:
    from dealernet.utils.fsm import TransitionValidator
    FORM_FSM = TransitionValidator({
        'EDITING': {'EDITING', 'VALIDATING'},
        'VALIDATING': {'EDITING', 'SUBMITTING'},
        'SUBMITTING': {'SUCCESS', 'FAILED'},
        'SUCCESS': set(),
    }, field_name='form state')
    FORM_FSM.assert_can_transition(current_state, target_state)

Raises InvalidTransition if the edge is not in the graph.
"""
from typing import Dict, Set
from dealernet.errors import InvalidTransition


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'state'):
        self.graph = graph
        self.field_name = field_name

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidTransition(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def is_terminal(self, state: str) -> bool:
        return not self.graph.get(state)

__all__ = ['TransitionValidator']
