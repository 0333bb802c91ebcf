import pytest

from dealernet.constants.roles import SCOPE_FIELDS
from dealernet.errors import ValidationError
from dealernet.services.assignment_validation import MODE_UPDATE, ensure_valid, validate
from dealernet.services.drafts import FORM_DEALER, AssignmentDraft
from dealernet.services.eligibility import resolve_managers
from tests.test_utils_org import POOL, sample_catalog

CREDENTIALS = {'username': 'alice', 'email': 'alice@example.com', 'password': 'secret1', 'confirm_password': 'secret1'}
FULL_SCOPE = {'region_id': 'r1', 'area_id': 'a1', 'territory_id': 't1', 'dealer_id': 'd1'}


def user_draft(role_id, **values):
    return AssignmentDraft(role_id=role_id, fields=dict(CREDENTIALS)).with_values(**values)


def test_territory_manager_missing_territory():
    draft = user_draft('territory_manager', region_id='r1', area_id='a1')
    result = validate(draft, sample_catalog())
    assert result.errors == {'territory_id': 'Territory is required for this role'}
    assert not result.is_valid


@pytest.mark.parametrize('role', [d.name for d in sample_catalog()])
def test_required_scopes_complete_iff_filled(role):
    catalog = sample_catalog()
    definition = catalog.get(role)
    manager = {'manager_id': 'tm1'} if definition.manager_required else {}
    filled = user_draft(role, **{SCOPE_FIELDS[s]: FULL_SCOPE[SCOPE_FIELDS[s]] for s in definition.required_scopes}, **manager)
    assert validate(filled, catalog).is_valid
    for scope in definition.required_scopes:
        field = SCOPE_FIELDS[scope]
        missing = filled.with_values(**{field: None})
        assert field in validate(missing, catalog).errors
        blank = filled.with_values(**{field: ''})
        assert field in validate(blank, catalog).errors


def test_manager_required_for_sales_executive():
    errors = validate(user_draft('sales_executive'), sample_catalog()).errors
    assert errors == {'manager_id': 'Manager is required for this role'}


def test_role_checks():
    assert validate(user_draft(None), sample_catalog()).errors == {'role_id': 'Role is required'}
    assert validate(user_draft('astronaut'), sample_catalog()).errors == {'role_id': 'Select a valid role'}


def test_credentials_checked_on_create_only():
    draft = AssignmentDraft(role_id='finance_admin', fields={'username': 'al', 'email': 'not-an-email', 'password': '123'})
    errors = validate(draft, sample_catalog()).errors
    assert set(errors) == {'username', 'email', 'password'}
    assert validate(draft, sample_catalog(), mode=MODE_UPDATE).is_valid


def test_confirm_password_mismatch():
    draft = user_draft('finance_admin').with_values(confirm_password='other')
    assert validate(draft, sample_catalog()).errors == {'confirm_password': 'Passwords do not match'}


def test_manager_outside_offered_options_rejected():
    catalog = sample_catalog()
    draft = user_draft('area_manager', region_id='r1', area_id='a1')
    options = resolve_managers('area_manager', draft, POOL, catalog)
    # flagged option (different region) is still an allowed override
    assert validate(draft.with_values(manager_id='rm2'), catalog, manager_options=options).is_valid
    # a candidate with a role that is never offered is not
    errors = validate(draft.with_values(manager_id='tm1'), catalog, manager_options=options).errors
    assert errors == {'manager_id': 'Selected manager is not eligible for this role'}
    # without loaded options the check is skipped
    assert validate(draft.with_values(manager_id='tm1'), catalog).is_valid


def test_dealer_form_rules():
    catalog = sample_catalog()
    errors = validate(AssignmentDraft(fields={'email': 'bad'}), catalog, kind=FORM_DEALER).errors
    assert errors == {
        'dealer_code': 'Dealer code is required',
        'business_name': 'Business name is required',
        'email': 'Enter a valid email address',
    }
    ok = AssignmentDraft(fields={'dealer_code': 'DL-9', 'business_name': 'Nine Motors'})
    assert validate(ok, catalog, kind=FORM_DEALER).is_valid


def test_validate_is_repeatable_and_pure():
    draft = user_draft('territory_manager', region_id='r1')
    before = draft.to_dict()
    first = validate(draft, sample_catalog())
    second = validate(draft, sample_catalog())
    assert first == second
    assert draft.to_dict() == before


def test_ensure_valid_raises_with_field_map():
    with pytest.raises(ValidationError) as exc:
        ensure_valid(user_draft('dealer_staff'), sample_catalog())
    assert exc.value.errors == {'dealer_id': 'Dealer is required for this role'}
