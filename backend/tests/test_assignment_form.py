import asyncio

import pytest

from dealernet.errors import InvalidTransition
from dealernet.services.assignment_form import (
    EDITING, FAILED, FORM_ERROR, NO_MANAGERS, SUBMITTING, SUCCESS, AssignmentFormController, map_submission_error,
)
from dealernet.services.drafts import FORM_DEALER
from tests.test_utils_org import FakeGateway, ids

CREDENTIALS = {'username': 'alice', 'email': 'alice@example.com', 'password': 'secret1'}


async def mounted(gateway, **kw):
    ctrl = await AssignmentFormController.mount(gateway, **kw)
    for name, value in CREDENTIALS.items():
        await ctrl.change(name, value)
    return ctrl


def test_mount_loads_lists_and_starts_editing():
    async def scenario():
        ctrl = await AssignmentFormController.mount(FakeGateway())
        assert ctrl.state == EDITING
        assert len(ctrl.hierarchy.regions) == 2
        assert ctrl.catalog.get('area_manager') is not None
        assert ctrl.manager_options == []
        assert ctrl.warnings == []
    asyncio.run(scenario())


def test_mount_survives_failed_list():
    async def scenario():
        ctrl = await AssignmentFormController.mount(FakeGateway(fail={'territories'}))
        assert ctrl.warnings == ['Failed to load territories']
        assert ctrl.hierarchy.territories == ()
        await ctrl.change('role_id', 'area_manager')
        assert ctrl.manager_options
    asyncio.run(scenario())


def test_role_change_loads_managers_and_cascade():
    async def scenario():
        ctrl = await mounted(FakeGateway())
        await ctrl.change('role_id', 'area_manager')
        await ctrl.change('region_id', 'r1')
        assert ids(ctrl.cascade.area_options) == ['a1', 'a2']
        assert ids([o for o in ctrl.manager_options if o.eligible]) == ['rm1', 'ra1']
        assert ctrl.errors == {}
        await ctrl.change('manager_id', 'rm1')
        await ctrl.change('region_id', 'r2')
        assert ctrl.draft.manager_id is None
        assert ids([o for o in ctrl.manager_options if o.eligible]) == ['rm2', 'ra2']
    asyncio.run(scenario())


def test_latest_manager_request_wins():
    async def scenario():
        gateway = FakeGateway(gate_managers=True)
        ctrl = await AssignmentFormController.mount(gateway)
        # A: area_manager -> fetches regional_manager/regional_admin, parked
        first = asyncio.create_task(ctrl.change('role_id', 'area_manager'))
        await asyncio.sleep(0.01)
        # B: territory_manager -> fetches area_manager/regional_manager, parked
        second = asyncio.create_task(ctrl.change('role_id', 'territory_manager'))
        await asyncio.sleep(0.01)
        gateway.release('area_manager')
        await second
        gateway.release('regional_manager')
        await first
        roles = {o.candidate.role_name for o in ctrl.manager_options}
        assert roles <= {'area_manager', 'regional_manager'}
        assert 'area_manager' in roles
        assert ctrl.draft.role_id == 'territory_manager'
    asyncio.run(scenario())


def test_previous_role_managers_cleared_while_reload_pending():
    async def scenario():
        gateway = FakeGateway(gate_managers=True)
        ctrl = await mounted(gateway)
        gateway.release('regional_manager')
        await ctrl.change('role_id', 'area_manager')
        assert {o.candidate.role_name for o in ctrl.manager_options} == {'regional_manager', 'regional_admin'}
        pending = asyncio.create_task(ctrl.change('role_id', 'dealer_staff'))
        await asyncio.sleep(0.01)
        assert not pending.done()
        assert ctrl.manager_options == []
        assert ctrl.view()['manager_options'] == []
        gateway.release('dealer_admin')
        await pending
        await ctrl.change('dealer_id', 'd1')
        assert {o.candidate.role_name for o in ctrl.manager_options} == {'dealer_admin'}
    asyncio.run(scenario())


def test_change_while_submitting_is_ignored():
    async def scenario():
        gateway = FakeGateway(hold_writes=True)
        ctrl = await mounted(gateway)
        await ctrl.change('role_id', 'regional_admin')
        await ctrl.change('region_id', 'r1')
        sending = asyncio.create_task(ctrl.submit())
        await asyncio.sleep(0.01)
        assert ctrl.state == SUBMITTING
        draft = await ctrl.change('username', 'bobby')
        assert draft.fields['username'] == 'alice'
        assert ctrl.state == SUBMITTING
        gateway.release_writes()
        record = await sending
        assert ctrl.state == SUCCESS
        assert record['username'] == 'alice'
        assert gateway.sent[0]['payload']['username'] == 'alice'
    asyncio.run(scenario())


def test_manager_fetch_failure_is_a_warning():
    async def scenario():
        ctrl = await mounted(FakeGateway(fail={'managers'}))
        await ctrl.change('role_id', 'regional_manager')
        assert ctrl.manager_options == []
        assert NO_MANAGERS in ctrl.warnings
        await ctrl.change('region_id', 'r1')
        assert ctrl.state == EDITING
        # picked manager cannot be cross-checked, so only the server decides
        await ctrl.change('manager_id', 'ra1')
        assert 'manager_id' not in ctrl.errors
    asyncio.run(scenario())


def test_submit_validation_errors_return_to_editing():
    async def scenario():
        gateway = FakeGateway()
        ctrl = await mounted(gateway)
        await ctrl.change('role_id', 'territory_manager')
        await ctrl.change('region_id', 'r1')
        await ctrl.change('area_id', 'a1')
        assert await ctrl.submit() is None
        assert ctrl.state == EDITING
        assert ctrl.errors == {'territory_id': 'Territory is required for this role'}
        assert gateway.sent == []
    asyncio.run(scenario())


def test_submit_success_sends_null_scopes():
    async def scenario():
        gateway = FakeGateway()
        ctrl = await mounted(gateway)
        await ctrl.change('role_id', 'regional_admin')
        await ctrl.change('region_id', 'r1')
        record = await ctrl.submit()
        assert ctrl.state == SUCCESS
        assert record['id'] == 'new'
        payload = gateway.sent[0]['payload']
        assert payload['region_id'] == 'r1'
        assert payload['area_id'] is None and payload['dealer_id'] is None and payload['manager_id'] is None
        assert 'confirm_password' not in payload
        with pytest.raises(InvalidTransition):
            await ctrl.change('region_id', 'r2')
    asyncio.run(scenario())


def test_out_of_scope_rejection_maps_to_dealer_field():
    async def scenario():
        gateway = FakeGateway(reject='dealerId is outside your allowed scope')
        ctrl = await mounted(gateway)
        await ctrl.change('role_id', 'dealer_staff')
        await ctrl.change('dealer_id', 'd1')
        assert await ctrl.submit() is None
        assert ctrl.state == FAILED
        assert ctrl.errors == {'dealer_id': 'Selected dealer is outside your allowed scope'}
        # editing again is allowed after a failure
        await ctrl.change('dealer_id', 'd3')
        assert ctrl.state == EDITING
    asyncio.run(scenario())


def test_dealer_staff_managers_follow_dealer():
    async def scenario():
        ctrl = await mounted(FakeGateway())
        await ctrl.change('role_id', 'dealer_staff')
        assert ctrl.manager_options == []
        await ctrl.change('dealer_id', 'd1')
        assert [(o.id, o.eligible) for o in ctrl.manager_options] == [('da1', True), ('da3', False)]
    asyncio.run(scenario())


def test_dealer_form_update():
    async def scenario():
        gateway = FakeGateway()
        initial = {'id': 'd2', 'dealer_code': 'PB-001', 'business_name': 'Five Rivers', 'region_id': 'r1', 'area_id': 'a2'}
        ctrl = await AssignmentFormController.mount(gateway, kind=FORM_DEALER, initial=initial, entity_id='d2')
        assert ctrl.target_role == 'dealer'
        assert ctrl.manager_options
        await ctrl.change('manager_id', 'am2')
        record = await ctrl.submit()
        assert ctrl.state == SUCCESS
        assert gateway.sent[0]['kind'] == 'dealer' and gateway.sent[0]['id'] == 'd2'
        assert record['manager_id'] == 'am2'
    asyncio.run(scenario())


def test_errors_only_for_touched_fields_until_submit():
    async def scenario():
        ctrl = await AssignmentFormController.mount(FakeGateway())
        await ctrl.change('role_id', 'area_manager')
        assert ctrl.errors == {}
        await ctrl.change('username', 'al')
        assert set(ctrl.errors) == {'username'}
    asyncio.run(scenario())


@pytest.mark.parametrize('message, expected', [
    ('dealer_id is required for dealer roles', {'dealer_id': 'Dealer is required for this role'}),
    ('dealerId is required', {'dealer_id': 'Dealer is required for this role'}),
    ('manager_id is not an eligible manager for this role', {'manager_id': 'Selected manager is not eligible for this role'}),
    ('username already exists', {'username': 'Username already exists'}),
    ('database on fire', {FORM_ERROR: 'database on fire'}),
    ('', {FORM_ERROR: 'Request failed'}),
])
def test_map_submission_error(message, expected):
    assert map_submission_error(message) == expected
