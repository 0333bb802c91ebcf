import pytest

from dealernet.constants.roles import ROLE_RULES
from dealernet.services.drafts import AssignmentDraft, Candidate
from dealernet.services.eligibility import (
    ELIGIBLE, EXCLUDED, MISMATCH, MANAGER_RULES, classify, eligible_only, generic_rule, resolve_managers,
)
from tests.test_utils_org import POOL, sample_catalog, ids


def cand(**kw):
    return Candidate.from_record(kw)


def test_area_manager_prefers_same_region_and_flags_other():
    pool = [
        {'id': 'm1', 'roleName': 'regional_manager', 'regionId': 'r1'},
        {'id': 'm2', 'roleName': 'regional_manager', 'regionId': 'r2'},
    ]
    options = resolve_managers('area_manager', AssignmentDraft(region_id='r1'), pool, sample_catalog())
    assert ids(eligible_only(options)) == ['m1']
    flagged = [o for o in options if not o.eligible]
    assert ids(flagged) == ['m2']
    assert flagged[0].warning == 'different region'


def test_dealer_staff_without_dealer_is_empty():
    assert resolve_managers('dealer_staff', AssignmentDraft(), POOL, sample_catalog()) == []


def test_dealer_staff_matches_dealer():
    options = resolve_managers('dealer_staff', AssignmentDraft(dealer_id='d1'), POOL, sample_catalog())
    assert [(o.id, o.eligible, o.warning) for o in options] == [
        ('da1', True, None),
        ('da3', False, 'different dealer'),
    ]


@pytest.mark.parametrize('role', sorted(ROLE_RULES))
@pytest.mark.parametrize('draft', [
    AssignmentDraft(),
    AssignmentDraft(region_id='r1', area_id='a1', territory_id='t1', dealer_id='d1'),
    AssignmentDraft(region_id='r2'),
])
def test_never_returns_role_outside_eligible_set(role, draft):
    catalog = sample_catalog()
    allowed = catalog.eligible_manager_roles(role)
    for option in resolve_managers(role, draft, POOL, catalog):
        assert option.candidate.role_name in allowed


def test_roles_without_managers_get_nothing():
    catalog = sample_catalog()
    for role in ('super_admin', 'finance_admin', 'regional_admin'):
        assert resolve_managers(role, AssignmentDraft(region_id='r1'), POOL, catalog) == []
    assert resolve_managers('no_such_role', AssignmentDraft(), POOL, catalog) == []


def test_same_inputs_same_output():
    draft = AssignmentDraft(region_id='r1', area_id='a1')
    first = resolve_managers('territory_manager', draft, POOL, sample_catalog())
    second = resolve_managers('territory_manager', draft, POOL, sample_catalog())
    assert first == second


def test_eligible_first_then_catalog_order():
    options = resolve_managers('territory_manager', AssignmentDraft(region_id='r1', area_id='a1'), POOL, sample_catalog())
    assert [(o.id, o.eligible) for o in options] == [
        ('am1', True), ('rm1', True),
        ('am2', False), ('am3', False), ('rm2', False),
    ]
    assert options[2].warning == 'different area'


def test_territory_manager_falls_back_to_region_without_area():
    options = resolve_managers('territory_manager', {'region_id': 'r2'}, POOL, sample_catalog())
    assert ids(eligible_only(options)) == ['am3', 'rm2']


def test_regional_manager_checks_admin_region():
    options = resolve_managers('regional_manager', {'region_id': 'r2'}, POOL, sample_catalog())
    assert [(o.id, o.eligible) for o in options] == [('ra2', True), ('ra1', False)]


def test_sales_executive_uses_most_specific_field_for_territory_managers():
    scope = {'region_id': 'r1', 'area_id': 'a1', 'territory_id': 't2'}
    assert classify('sales_executive', scope, cand(id='tm2', role_name='territory_manager', territory_id='t2')).status == ELIGIBLE
    verdict = classify('sales_executive', scope, cand(id='tm1', role_name='territory_manager', region_id='r1', territory_id='t1'))
    assert (verdict.status, verdict.warning) == (MISMATCH, 'different territory')
    # area managers fall through to the generic rule
    assert classify('sales_executive', scope, cand(id='am1', role_name='area_manager', region_id='r1', area_id='a1')).status == ELIGIBLE


def test_sales_executive_without_scope_accepts_all():
    options = resolve_managers('sales_executive', {}, POOL, sample_catalog())
    assert all(o.eligible for o in options)
    assert ids(options)[:3] == ['tm1', 'tm2', 'tm4']


def test_dealer_admin_dealer_then_geography():
    scope = {'region_id': 'r1', 'area_id': 'a1', 'territory_id': 't1', 'dealer_id': 'd1'}
    assert classify('dealer_admin', scope, cand(id='x', role_name='area_manager', dealer_id='d3')).warning == 'different dealer'
    assert classify('dealer_admin', scope, cand(id='y', role_name='area_manager', region_id='r2')).warning == 'different region'
    assert classify('dealer_admin', {}, cand(id='z', role_name='area_manager', dealer_id='d3')).status == ELIGIBLE


def test_generic_rule_missing_side_is_dont_care():
    assert generic_rule({'region_id': 'r1'}, cand(id='a', role_name='x')).status == ELIGIBLE
    assert generic_rule({}, cand(id='a', role_name='x', region_id='r2')).status == ELIGIBLE
    assert generic_rule({'area_id': 'a1'}, cand(id='a', role_name='x', area_id='a2')).warning == 'different area'


def test_dealer_form_uses_dealer_entry():
    options = resolve_managers('dealer', {'region_id': 'r1', 'area_id': 'a1', 'territory_id': 't1'}, POOL, sample_catalog())
    roles = {o.candidate.role_name for o in options}
    assert roles <= {'sales_executive', 'territory_manager', 'area_manager', 'regional_manager'}
    assert 'se1' in ids(eligible_only(options))
    assert 'tm4' not in ids(eligible_only(options))


def test_excluded_verdict_only_from_dealer_staff():
    assert MANAGER_RULES['dealer_staff']({}, cand(id='a', role_name='dealer_admin')).status == EXCLUDED


def test_option_json_carries_flag_and_warning():
    option = resolve_managers('area_manager', {'region_id': 'r1'}, POOL, sample_catalog())[-1]
    body = option.to_json()
    assert body['eligible'] is False
    assert body['warning'] == 'different region'
    assert body['role_name'] in ('regional_manager', 'regional_admin')
