import logging

from dealernet.constants.roles import (
    DEALER_DEFINITION, DEALER_MANAGER_ROLES, ROLE_RULES, RoleCatalog, build_definition,
)


def test_default_catalog_covers_every_role():
    catalog = RoleCatalog.default()
    assert len(catalog) == len(ROLE_RULES)
    assert {d.name for d in catalog} == set(ROLE_RULES)


def test_required_scopes_and_managers():
    catalog = RoleCatalog.default()
    tm = catalog.get('territory_manager')
    assert tm.ordered_scopes() == ['region', 'area', 'territory']
    assert tm.eligible_manager_roles == ('area_manager', 'regional_manager')
    staff = catalog.get('dealer_staff')
    assert staff.required_scopes == frozenset({'dealer'})
    assert staff.eligible_manager_roles == ('dealer_admin',)
    assert catalog.get('super_admin').has_managers is False
    assert catalog.get('area_manager').eligible_manager_roles == ('regional_manager', 'regional_admin')


def test_manager_required_is_separate_from_scopes():
    catalog = RoleCatalog.default()
    se = catalog.get('sales_executive')
    assert se.manager_required is True
    assert se.required_scopes == frozenset()
    assert catalog.get('territory_manager').manager_required is False


def test_from_roles_indexes_by_id_and_name():
    catalog = RoleCatalog.from_roles([{'id': 7, 'name': 'area_manager'}, {'id': 8, 'name': 'dealer_staff'}])
    assert catalog.get(7).name == 'area_manager'
    assert catalog.get('7').name == 'area_manager'
    assert catalog.by_name('dealer_staff').id == 8
    assert catalog.eligible_manager_roles(8) == ('dealer_admin',)
    assert catalog.get(None) is None
    assert catalog.get('') is None
    assert catalog.get(99) is None


def test_from_roles_skips_nameless_rows():
    catalog = RoleCatalog.from_roles([{'id': 1, 'name': ''}, {'id': 2, 'name': 'finance_admin'}])
    assert [d.name for d in catalog] == ['finance_admin']


def test_unknown_role_is_unscoped_and_logged(caplog):
    with caplog.at_level(logging.WARNING):
        definition = build_definition(42, 'warehouse_clerk')
    assert definition.required_scopes == frozenset()
    assert definition.eligible_manager_roles == ()
    assert 'warehouse_clerk' in caplog.text


def test_dealer_entry_always_available_but_not_listed():
    catalog = RoleCatalog.from_roles([])
    assert catalog.get('dealer') is DEALER_DEFINITION
    assert catalog.get('dealer').eligible_manager_roles == DEALER_MANAGER_ROLES
    assert list(catalog) == []
    assert catalog.to_json() == []


def test_to_json_shape():
    body = RoleCatalog.default().get('area_manager').to_json()
    assert body == {
        'id': 'area_manager',
        'name': 'area_manager',
        'required_scopes': ['region', 'area'],
        'eligible_manager_roles': ['regional_manager', 'regional_admin'],
        'manager_required': False,
    }
