from __future__ import annotations
"""Field-level validation of an assignment draft against the role catalog.

Rule order: credential formats (create only), role, required scopes, required
manager, manager role eligibility. The result is a complete error map; the draft
is never modified.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from dealernet.constants.roles import DEALER_ENTITY, SCOPE_FIELDS, SCOPE_LABELS, RoleCatalog
from dealernet.errors import ValidationError
from dealernet.services.drafts import FORM_DEALER, FORM_USER, AssignmentDraft
from dealernet.services.hierarchy import is_blank
from dealernet.utils.validation import email_error, password_error, username_error

MODE_CREATE = 'create'
MODE_UPDATE = 'update'

MANAGER_REQUIRED = 'Manager is required for this role'
MANAGER_NOT_ELIGIBLE = 'Selected manager is not eligible for this role'


@dataclass(frozen=True)
class ValidationResult:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def scope_required_message(scope: str) -> str:
    return f'{SCOPE_LABELS[scope]} is required for this role'


def _credential_errors(draft: AssignmentDraft) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for name, message in (
        ('username', username_error(draft.fields.get('username'))),
        ('email', email_error(draft.fields.get('email'))),
        ('password', password_error(draft.fields.get('password'))),
    ):
        if message:
            errors[name] = message
    if 'confirm_password' in draft.fields and 'password' not in errors \
            and draft.fields.get('confirm_password') != draft.fields.get('password'):
        errors['confirm_password'] = 'Passwords do not match'
    return errors


def _dealer_errors(draft: AssignmentDraft) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if is_blank(draft.fields.get('dealer_code')):
        errors['dealer_code'] = 'Dealer code is required'
    if is_blank(draft.fields.get('business_name')):
        errors['business_name'] = 'Business name is required'
    message = email_error(draft.fields.get('email'), required=False)
    if message:
        errors['email'] = message
    return errors


def validate(draft: AssignmentDraft, catalog: RoleCatalog, mode: str = MODE_CREATE,
             kind: str = FORM_USER, manager_options: Optional[Iterable[Any]] = None) -> ValidationResult:
    """Validate ``draft``.

    ``kind`` selects the user or dealer form. ``manager_options`` (ManagerOption
    objects from the eligibility resolver) enables the manager eligibility check;
    omit it when candidates have not been loaded.
    """
    errors: Dict[str, str] = {}
    if kind == FORM_DEALER:
        errors.update(_dealer_errors(draft))
        definition = catalog.get(DEALER_ENTITY)
    else:
        if mode == MODE_CREATE:
            errors.update(_credential_errors(draft))
        definition = catalog.get(draft.role_id)
        if is_blank(draft.role_id):
            errors['role_id'] = 'Role is required'
        elif definition is None:
            errors['role_id'] = 'Select a valid role'
    if definition is None:
        return ValidationResult(errors)

    for scope in definition.ordered_scopes():
        name = SCOPE_FIELDS[scope]
        if is_blank(getattr(draft, name)):
            errors[name] = scope_required_message(scope)

    if definition.manager_required and is_blank(draft.manager_id):
        errors['manager_id'] = MANAGER_REQUIRED
    elif manager_options is not None and not is_blank(draft.manager_id):
        # flagged (mismatched) options stay selectable as an admin override
        offered_ids = {str(o.id) for o in manager_options}
        if str(draft.manager_id) not in offered_ids:
            errors['manager_id'] = MANAGER_NOT_ELIGIBLE
    return ValidationResult(errors)


def ensure_valid(draft: AssignmentDraft, catalog: RoleCatalog, **kwargs: Any) -> ValidationResult:
    """``validate`` that raises ValidationError (carrying the field map) when invalid."""
    result = validate(draft, catalog, **kwargs)
    if not result.is_valid:
        raise ValidationError(result.errors)
    return result


__all__ = [
    'ValidationResult', 'validate', 'ensure_valid', 'scope_required_message', 'MODE_CREATE', 'MODE_UPDATE',
    'MANAGER_REQUIRED', 'MANAGER_NOT_ELIGIBLE',
]
