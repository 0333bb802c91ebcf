import pytest

from dealernet.services.cascade import apply_change, clear_stale, compute_cascade, reset_fields_for
from dealernet.services.drafts import AssignmentDraft
from tests.test_utils_org import sample_store, ids

FULL = AssignmentDraft(role_id='dealer_admin', region_id='r1', area_id='a1', territory_id='t1',
                       dealer_id='d1', manager_id='am1', fields={'username': 'alice'})

DOWNSTREAM = {
    'role_id': ('region_id', 'area_id', 'territory_id', 'dealer_id', 'manager_id'),
    'region_id': ('area_id', 'territory_id', 'dealer_id', 'manager_id'),
    'area_id': ('territory_id', 'dealer_id', 'manager_id'),
    'territory_id': ('dealer_id', 'manager_id'),
    'dealer_id': ('manager_id',),
}

NEW_VALUES = {'role_id': 'dealer_staff', 'region_id': 'r2', 'area_id': 'a2', 'territory_id': 't2', 'dealer_id': 'd2'}


@pytest.mark.parametrize('field', list(DOWNSTREAM))
def test_change_nulls_every_downstream_field(field):
    draft, cascade = apply_change(FULL, field, NEW_VALUES[field], sample_store())
    for name in DOWNSTREAM[field]:
        assert getattr(draft, name) is None, name
    assert cascade.reset_fields == DOWNSTREAM[field]


def test_upstream_fields_untouched():
    draft, _ = apply_change(FULL, 'territory_id', 't2', sample_store())
    assert (draft.role_id, draft.region_id, draft.area_id, draft.territory_id) == ('dealer_admin', 'r1', 'a1', 't2')
    assert draft.fields == {'username': 'alice'}


def test_region_switch_clears_area_territory_manager():
    start = AssignmentDraft(role_id='territory_manager', region_id='r1', area_id='a1', territory_id='t1', manager_id='m1')
    draft, cascade = apply_change(start, 'region_id', 'r2', sample_store())
    assert draft.region_id == 'r2'
    assert (draft.area_id, draft.territory_id, draft.manager_id) == (None, None, None)
    assert ids(cascade.area_options) == ['a3']
    assert start.area_id == 'a1'


def test_manager_and_plain_fields_reset_nothing():
    assert reset_fields_for('manager_id') == ()
    assert reset_fields_for('username') == ()
    assert reset_fields_for(None) == ()
    draft, _ = apply_change(FULL, 'email', 'a@example.com', sample_store())
    assert draft.dealer_id == 'd1'
    assert draft.fields['email'] == 'a@example.com'


def test_blank_selection_is_stored_as_none():
    draft, cascade = apply_change(FULL, 'region_id', '', sample_store())
    assert draft.region_id is None
    assert len(cascade.area_options) == 3


def test_area_outside_region_is_cleared_as_stale():
    draft, _ = apply_change(AssignmentDraft(region_id='r1'), 'area_id', 'a3', sample_store())
    assert draft.region_id == 'r1'
    assert draft.area_id is None


def test_clear_stale_walks_top_down():
    stale = AssignmentDraft(region_id='r2', area_id='a1', territory_id='t1', dealer_id='d1', manager_id='tm1')
    draft = clear_stale(stale, sample_store())
    assert draft.region_id == 'r2'
    assert (draft.area_id, draft.territory_id, draft.dealer_id, draft.manager_id) == (None, None, None, None)


def test_clear_stale_keeps_consistent_draft():
    assert clear_stale(FULL, sample_store()) == FULL


def test_compute_cascade_option_sets():
    cascade = compute_cascade(AssignmentDraft(region_id='r1', area_id='a2'), sample_store())
    assert ids(cascade.area_options) == ['a1', 'a2']
    assert ids(cascade.territory_options) == ['t3']
    assert ids(cascade.dealer_options) == ['d2']
    assert cascade.reset_fields == ()
