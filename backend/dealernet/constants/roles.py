"""Role catalog: one table keyed by canonical role name, shared by the user and dealer forms.

Each entry states which scope fields the role must carry and which roles may be
its manager (in display order). ``manager_required`` is a separate reporting
rule and is deliberately not part of ``required_scopes``.
Role names are canonical snake_case identifiers; never match on display names.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

log = logging.getLogger(__name__)

SCOPE_REGION = 'region'
SCOPE_AREA = 'area'
SCOPE_TERRITORY = 'territory'
SCOPE_DEALER = 'dealer'
SCOPES = (SCOPE_REGION, SCOPE_AREA, SCOPE_TERRITORY, SCOPE_DEALER)
SCOPE_FIELDS = {scope: f'{scope}_id' for scope in SCOPES}
SCOPE_LABELS = {scope: scope.capitalize() for scope in SCOPES}

SUPER_ADMIN = 'super_admin'
FINANCE_ADMIN = 'finance_admin'
REGIONAL_ADMIN = 'regional_admin'
REGIONAL_MANAGER = 'regional_manager'
AREA_MANAGER = 'area_manager'
TERRITORY_MANAGER = 'territory_manager'
SALES_EXECUTIVE = 'sales_executive'
DEALER_ADMIN = 'dealer_admin'
DEALER_STAFF = 'dealer_staff'

# Not a user role: the catalog entry used by the dealer form to pick a dealer's manager.
DEALER_ENTITY = 'dealer'

DEALER_ROLES = (DEALER_ADMIN, DEALER_STAFF)

ROLE_RULES: Dict[str, Dict[str, Any]] = {
    SUPER_ADMIN: {'scopes': (), 'managers': ()},
    FINANCE_ADMIN: {'scopes': (), 'managers': ()},
    REGIONAL_ADMIN: {'scopes': (SCOPE_REGION,), 'managers': ()},
    REGIONAL_MANAGER: {'scopes': (SCOPE_REGION,), 'managers': (REGIONAL_ADMIN,)},
    AREA_MANAGER: {'scopes': (SCOPE_REGION, SCOPE_AREA), 'managers': (REGIONAL_MANAGER, REGIONAL_ADMIN)},
    TERRITORY_MANAGER: {
        'scopes': (SCOPE_REGION, SCOPE_AREA, SCOPE_TERRITORY),
        'managers': (AREA_MANAGER, REGIONAL_MANAGER),
    },
    SALES_EXECUTIVE: {
        'scopes': (),
        'managers': (TERRITORY_MANAGER, AREA_MANAGER, REGIONAL_MANAGER),
        'manager_required': True,
    },
    DEALER_ADMIN: {'scopes': (SCOPE_DEALER,), 'managers': (AREA_MANAGER, TERRITORY_MANAGER, REGIONAL_MANAGER)},
    DEALER_STAFF: {'scopes': (SCOPE_DEALER,), 'managers': (DEALER_ADMIN,)},
}

DEALER_MANAGER_ROLES = (SALES_EXECUTIVE, TERRITORY_MANAGER, AREA_MANAGER, REGIONAL_MANAGER)


@dataclass(frozen=True)
class RoleDefinition:
    id: Any
    name: str
    required_scopes: FrozenSet[str] = frozenset()
    eligible_manager_roles: Tuple[str, ...] = ()
    manager_required: bool = False
    is_user_role: bool = True

    def requires(self, scope: str) -> bool:
        return scope in self.required_scopes

    @property
    def has_managers(self) -> bool:
        return bool(self.eligible_manager_roles)

    def ordered_scopes(self) -> List[str]:
        return [s for s in SCOPES if s in self.required_scopes]

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'required_scopes': self.ordered_scopes(),
            'eligible_manager_roles': list(self.eligible_manager_roles),
            'manager_required': self.manager_required,
        }


def build_definition(role_id: Any, name: str) -> RoleDefinition:
    rules = ROLE_RULES.get(name)
    if rules is None:
        log.warning('Role %r has no catalog rules; treating it as unscoped with no manager', name)
        rules = {}
    return RoleDefinition(
        id=role_id,
        name=name,
        required_scopes=frozenset(rules.get('scopes', ())),
        eligible_manager_roles=tuple(rules.get('managers', ())),
        manager_required=bool(rules.get('manager_required', False)),
    )


DEALER_DEFINITION = RoleDefinition(
    id=DEALER_ENTITY,
    name=DEALER_ENTITY,
    eligible_manager_roles=DEALER_MANAGER_ROLES,
    is_user_role=False,
)


class RoleCatalog:
    """Immutable lookup over role definitions, by id or canonical name."""

    def __init__(self, definitions: Iterable[RoleDefinition]):
        self._definitions: Tuple[RoleDefinition, ...] = tuple(definitions)
        self._by_key: Dict[str, RoleDefinition] = {}
        for d in self._definitions:
            self._by_key.setdefault(str(d.id), d)
            self._by_key.setdefault(d.name, d)
        self._by_key.setdefault(DEALER_ENTITY, DEALER_DEFINITION)

    @classmethod
    def default(cls) -> 'RoleCatalog':
        """Catalog whose role ids are the canonical names (no database needed)."""
        return cls(build_definition(name, name) for name in ROLE_RULES)

    @classmethod
    def from_roles(cls, rows: Iterable[Any]) -> 'RoleCatalog':
        """Build from role rows: ORM objects or dicts carrying ``id`` and ``name``."""
        defs = []
        for row in rows:
            if isinstance(row, dict):
                role_id, name = row.get('id'), row.get('name')
            else:
                role_id, name = row.id, row.name
            if not name:
                continue
            defs.append(build_definition(role_id, str(name)))
        return cls(defs)

    def get(self, role_id: Any) -> Optional[RoleDefinition]:
        if role_id is None or role_id == '':
            return None
        return self._by_key.get(str(role_id))

    def by_name(self, name: str) -> Optional[RoleDefinition]:
        d = self._by_key.get(name)
        return d if d is not None and d.name == name else None

    def eligible_manager_roles(self, role_id: Any) -> Tuple[str, ...]:
        d = self.get(role_id)
        return d.eligible_manager_roles if d else ()

    def __iter__(self) -> Iterator[RoleDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def to_json(self) -> List[Dict[str, Any]]:
        return [d.to_json() for d in self._definitions]


__all__ = [
    'SCOPES', 'SCOPE_FIELDS', 'SCOPE_LABELS', 'ROLE_RULES', 'DEALER_ROLES', 'DEALER_ENTITY',
    'DEALER_MANAGER_ROLES', 'DEALER_DEFINITION', 'RoleDefinition', 'RoleCatalog', 'build_definition',
]
