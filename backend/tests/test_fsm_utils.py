from dealernet.errors import InvalidTransition
from dealernet.services.assignment_form import FORM_FSM, EDITING, VALIDATING, SUBMITTING, SUCCESS, FAILED
from dealernet.utils.fsm import TransitionValidator
import pytest


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.assert_can_transition('A', 'B') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()}, field_name='status')
    with pytest.raises(InvalidTransition) as exc:
        fsm.assert_can_transition('A', 'C')
    assert 'status' in str(exc.value)


def test_form_lifecycle_edges():
    assert FORM_FSM.can_transition(EDITING, VALIDATING)
    assert FORM_FSM.can_transition(VALIDATING, EDITING)
    assert FORM_FSM.can_transition(SUBMITTING, FAILED)
    assert FORM_FSM.can_transition(FAILED, EDITING)
    assert not FORM_FSM.can_transition(EDITING, SUBMITTING)
    assert not FORM_FSM.can_transition(SUBMITTING, EDITING)
    assert FORM_FSM.is_terminal(SUCCESS)
    assert not FORM_FSM.is_terminal(FAILED)
