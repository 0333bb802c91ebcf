from dealernet.services.hierarchy import OrgHierarchyStore, same_id
from tests.test_utils_org import sample_store, ids


def test_same_id_tolerates_int_str_mix():
    assert same_id(3, '3')
    assert not same_id(None, None)
    assert not same_id('', '')
    assert not same_id(3, 4)


def test_areas_and_territories_follow_parent():
    store = sample_store()
    assert ids(store.areas_in_region('r1')) == ['a1', 'a2']
    assert ids(store.areas_in_region('r2')) == ['a3']
    assert ids(store.territories_in_area('a1')) == ['t1', 't2']


def test_blank_parent_returns_everything():
    store = sample_store()
    assert len(store.areas_in_region(None)) == 3
    assert len(store.areas_in_region('')) == 3
    assert len(store.territories_in_area(None)) == 4


def test_unknown_parent_matches_nothing():
    store = sample_store()
    assert store.areas_in_region('r9') == []
    assert store.region_of_area('nope') is None


def test_dealers_use_most_specific_field_and_derived_ancestors():
    store = sample_store()
    # d1 only carries a territory; its area and region are derived
    assert ids(store.dealers_matching(territory_id='t1')) == ['d1']
    assert ids(store.dealers_matching(area_id='a1')) == ['d1']
    assert ids(store.dealers_matching(region_id='r1')) == ['d1', 'd2']
    assert ids(store.dealers_matching(region_id='r1', area_id='a2')) == ['d2']
    assert len(store.dealers_matching()) == 4


def test_expand_scope_fills_only_blanks():
    store = sample_store()
    assert store.expand_scope(territory_id='t4') == {
        'region_id': 'r2', 'area_id': 'a3', 'territory_id': 't4', 'dealer_id': None,
    }
    assert store.expand_scope(dealer_id='d1')['region_id'] == 'r1'
    # explicit values win even when inconsistent
    assert store.expand_scope(region_id='r2', territory_id='t1')['region_id'] == 'r2'


def test_scope_conflicts():
    store = sample_store()
    assert store.scope_conflicts('r1', 'a1', 't1') == []
    assert store.scope_conflicts('r2', 'a1') == ['area_id']
    assert store.scope_conflicts('r1', 'a1', 't4') == ['territory_id']
    # territory checked against the region when no area is given
    assert store.scope_conflicts('r2', None, 't1') == ['territory_id']
    assert store.scope_conflicts('r9') == ['region_id']
    assert store.scope_conflicts(None, None, None) == []


def test_from_records_accepts_camel_case_keys():
    store = OrgHierarchyStore.from_records(
        regions=[{'id': 1, 'name': 'North'}],
        areas=[{'id': 10, 'name': 'NCR', 'regionId': 1}],
        dealers=[{'id': 5, 'businessName': 'Capital', 'areaId': 10}],
    )
    assert store.area(10).region_id == 1
    assert store.dealer(5).business_name == 'Capital'
    assert store.dealer_scope(store.dealer(5))['region_id'] == 1
