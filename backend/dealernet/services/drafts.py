from __future__ import annotations
"""Draft and candidate value objects shared by the user and dealer forms."""
from dataclasses import dataclass, field, fields as dc_fields, replace
from typing import Any, Dict, Mapping, Optional

from dealernet.services.hierarchy import is_blank

FORM_USER = 'user'
FORM_DEALER = 'dealer'
FORM_KINDS = (FORM_USER, FORM_DEALER)

SCOPE_ID_FIELDS = ('region_id', 'area_id', 'territory_id', 'dealer_id')
HIERARCHY_FIELDS = ('role_id',) + SCOPE_ID_FIELDS + ('manager_id',)

# camelCase aliases accepted when pre-populating from API records
_ALIASES = {
    'roleId': 'role_id', 'regionId': 'region_id', 'areaId': 'area_id', 'territoryId': 'territory_id',
    'dealerId': 'dealer_id', 'managerId': 'manager_id', 'businessName': 'business_name',
    'dealerCode': 'dealer_code', 'isActive': 'is_active', 'confirmPassword': 'confirm_password',
    'contactPerson': 'contact_person', 'phoneNumber': 'phone_number',
}


@dataclass(frozen=True)
class AssignmentDraft:
    role_id: Any = None
    region_id: Any = None
    area_id: Any = None
    territory_id: Any = None
    dealer_id: Any = None
    manager_id: Any = None
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]] = None) -> 'AssignmentDraft':
        """Pre-populate from an existing user/dealer record (edit flow)."""
        hierarchy: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in (record or {}).items():
            key = _ALIASES.get(key, key)
            if key in HIERARCHY_FIELDS:
                hierarchy[key] = None if is_blank(value) else value
            elif key == 'role' and isinstance(value, Mapping):
                hierarchy.setdefault('role_id', value.get('id'))
            elif key not in ('id',):
                extra[key] = value
        return cls(fields=extra, **hierarchy)

    def get(self, name: str, default: Any = None) -> Any:
        if name in HIERARCHY_FIELDS:
            return getattr(self, name)
        return self.fields.get(name, default)

    def with_values(self, **values: Any) -> 'AssignmentDraft':
        hierarchy = {k: v for k, v in values.items() if k in HIERARCHY_FIELDS}
        extra = {k: v for k, v in values.items() if k not in HIERARCHY_FIELDS}
        new_fields = dict(self.fields)
        new_fields.update(extra)
        return replace(self, fields=new_fields, **hierarchy)

    def scope(self) -> Dict[str, Any]:
        return {f: getattr(self, f) for f in SCOPE_ID_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.fields)
        for f in dc_fields(self):
            if f.name != 'fields':
                out[f.name] = getattr(self, f.name)
        return out


def _role_name_of(row: Mapping[str, Any]) -> str:
    for key in ('role_name', 'roleName'):
        if row.get(key):
            return str(row[key])
    role = row.get('role') or row.get('roleDetails')
    if isinstance(role, Mapping):
        return str(role.get('name') or '')
    return str(role or '')


@dataclass(frozen=True)
class Candidate:
    """A prospective manager annotated with its own scope assignment."""
    id: Any
    username: str
    role_name: str
    region_id: Any = None
    area_id: Any = None
    territory_id: Any = None
    dealer_id: Any = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> 'Candidate':
        def val(*keys):
            for k in keys:
                v = row.get(k)
                if not is_blank(v):
                    return v
            return None
        return cls(
            id=row.get('id'),
            username=str(row.get('username') or row.get('name') or ''),
            role_name=_role_name_of(row),
            region_id=val('region_id', 'regionId'),
            area_id=val('area_id', 'areaId'),
            territory_id=val('territory_id', 'territoryId'),
            dealer_id=val('dealer_id', 'dealerId'),
        )

    def scope_value(self, field_name: str) -> Any:
        return getattr(self, field_name)

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id, 'username': self.username, 'role_name': self.role_name,
            'region_id': self.region_id, 'area_id': self.area_id,
            'territory_id': self.territory_id, 'dealer_id': self.dealer_id,
        }


USER_PAYLOAD_FIELDS = ('username', 'email', 'password', 'is_active')
DEALER_PAYLOAD_FIELDS = (
    'dealer_code', 'business_name', 'contact_person', 'email', 'phone_number',
    'address', 'city', 'state', 'pincode', 'gst_number', 'lat', 'lng',
)


def to_payload(draft: AssignmentDraft, kind: str = FORM_USER) -> Dict[str, Any]:
    """Map a draft to its wire shape. Blank scope fields become ``None``, never ``""``."""
    payload: Dict[str, Any] = {}
    if kind == FORM_DEALER:
        for name in DEALER_PAYLOAD_FIELDS:
            value = draft.fields.get(name)
            if isinstance(value, str):
                value = value.strip()
            payload[name] = None if is_blank(value) else value
        for name in ('region_id', 'area_id', 'territory_id', 'manager_id'):
            value = getattr(draft, name)
            payload[name] = None if is_blank(value) else value
        return payload
    for name in USER_PAYLOAD_FIELDS:
        if name in draft.fields:
            payload[name] = draft.fields[name]
    if is_blank(payload.get('password')):
        payload.pop('password', None)
    for name in HIERARCHY_FIELDS:
        value = getattr(draft, name)
        payload[name] = None if is_blank(value) else value
    return payload


__all__ = [
    'FORM_USER', 'FORM_DEALER', 'SCOPE_ID_FIELDS', 'HIERARCHY_FIELDS',
    'AssignmentDraft', 'Candidate', 'to_payload',
]
