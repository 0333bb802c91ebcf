from __future__ import annotations
"""Manager eligibility: which candidates may be assigned as manager for a role + scope.

Two layers:
  1. hard role filter - a candidate whose role is not in the target role's
     eligible_manager_roles is never returned;
  2. a geographic predicate chosen from MANAGER_RULES by target role. The rule
     may look at the candidate's role too; pairs it does not cover fall through
     to ``generic_rule``.

A predicate yields one of three verdicts. EXCLUDED drops the candidate,
MISMATCH keeps it flagged (eligible=False plus a ``different <scope>`` label)
so an admin can still see why it is not a fit, ELIGIBLE keeps it clean.

Every call recomputes from its arguments; nothing is cached between calls.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from dealernet.constants import roles as R
from dealernet.constants.roles import RoleCatalog
from dealernet.services.drafts import Candidate
from dealernet.services.hierarchy import is_blank, same_id

ELIGIBLE = 'eligible'
MISMATCH = 'warning'
EXCLUDED = 'excluded'

GEO_FIELDS = ('region_id', 'area_id', 'territory_id')
_LABELS = {'region_id': 'region', 'area_id': 'area', 'territory_id': 'territory', 'dealer_id': 'dealer'}

Scope = Mapping[str, Any]


@dataclass(frozen=True)
class Verdict:
    status: str
    warning: Optional[str] = None


OK = Verdict(ELIGIBLE)
DROP = Verdict(EXCLUDED)


def mismatch(field_name: str) -> Verdict:
    return Verdict(MISMATCH, f'different {_LABELS[field_name]}')


@dataclass(frozen=True)
class ManagerOption:
    candidate: Candidate
    eligible: bool
    warning: Optional[str] = None

    @property
    def id(self) -> Any:
        return self.candidate.id

    def to_json(self) -> Dict[str, Any]:
        body = self.candidate.to_json()
        body['eligible'] = self.eligible
        body['warning'] = self.warning
        return body


def _scope_value(scope: Scope, field_name: str) -> Any:
    value = scope.get(field_name)
    return None if is_blank(value) else value


def must_share(field_name: str, scope: Scope, candidate: Candidate) -> Verdict:
    """Mismatch only when both sides carry a value and they differ."""
    mine = _scope_value(scope, field_name)
    theirs = candidate.scope_value(field_name)
    if mine is None or is_blank(theirs) or same_id(mine, theirs):
        return OK
    return mismatch(field_name)


def generic_rule(scope: Scope, candidate: Candidate) -> Verdict:
    for field_name in GEO_FIELDS:
        verdict = must_share(field_name, scope, candidate)
        if verdict.status != ELIGIBLE:
            return verdict
    return OK


def most_specific_field(scope: Scope) -> Optional[str]:
    for field_name in ('territory_id', 'area_id', 'region_id'):
        if _scope_value(scope, field_name) is not None:
            return field_name
    return None


# --- per target role ---

def dealer_staff_rule(scope: Scope, candidate: Candidate) -> Verdict:
    dealer_id = _scope_value(scope, 'dealer_id')
    if dealer_id is None:
        return DROP
    if same_id(candidate.dealer_id, dealer_id):
        return OK
    return mismatch('dealer_id')


def dealer_admin_rule(scope: Scope, candidate: Candidate) -> Verdict:
    verdict = must_share('dealer_id', scope, candidate)
    if verdict.status != ELIGIBLE:
        return verdict
    return generic_rule(scope, candidate)


def regional_manager_rule(scope: Scope, candidate: Candidate) -> Verdict:
    if candidate.role_name == R.REGIONAL_ADMIN:
        return must_share('region_id', scope, candidate)
    return OK


def area_manager_rule(scope: Scope, candidate: Candidate) -> Verdict:
    if candidate.role_name in (R.REGIONAL_MANAGER, R.REGIONAL_ADMIN):
        return must_share('region_id', scope, candidate)
    return generic_rule(scope, candidate)


def territory_manager_rule(scope: Scope, candidate: Candidate) -> Verdict:
    if candidate.role_name == R.AREA_MANAGER:
        key = 'area_id' if _scope_value(scope, 'area_id') is not None else 'region_id'
        return must_share(key, scope, candidate)
    return generic_rule(scope, candidate)


def sales_executive_rule(scope: Scope, candidate: Candidate) -> Verdict:
    if candidate.role_name == R.TERRITORY_MANAGER:
        key = most_specific_field(scope)
        return must_share(key, scope, candidate) if key else OK
    return generic_rule(scope, candidate)


Rule = Callable[[Scope, Candidate], Verdict]

MANAGER_RULES: Dict[str, Rule] = {
    R.DEALER_STAFF: dealer_staff_rule,
    R.DEALER_ADMIN: dealer_admin_rule,
    R.REGIONAL_MANAGER: regional_manager_rule,
    R.AREA_MANAGER: area_manager_rule,
    R.TERRITORY_MANAGER: territory_manager_rule,
    R.SALES_EXECUTIVE: sales_executive_rule,
}


def rule_for(role_name: str) -> Rule:
    return MANAGER_RULES.get(role_name, generic_rule)


def classify(role_name: str, scope: Scope, candidate: Candidate) -> Verdict:
    return rule_for(role_name)(scope, candidate)


def resolve_managers(role_id: Any, draft: Any, candidate_pool: Iterable[Any], catalog: RoleCatalog) -> List[ManagerOption]:
    """Filter and annotate ``candidate_pool`` for the target role.

    ``draft`` may be an AssignmentDraft or a plain scope mapping. Pool entries may be
    Candidate objects or raw user records. Eligible options come first, each group
    ordered by the role's eligible_manager_roles order.
    """
    definition = catalog.get(role_id)
    if definition is None or not definition.eligible_manager_roles:
        return []
    allowed = definition.eligible_manager_roles
    scope = draft.scope() if hasattr(draft, 'scope') else dict(draft or {})
    rule = rule_for(definition.name)
    options: List[Tuple[Tuple[int, int], ManagerOption]] = []
    for position, raw in enumerate(candidate_pool or ()):
        candidate = raw if isinstance(raw, Candidate) else Candidate.from_record(raw)
        if candidate.role_name not in allowed:
            continue
        verdict = rule(scope, candidate)
        if verdict.status == EXCLUDED:
            continue
        eligible = verdict.status == ELIGIBLE
        option = ManagerOption(candidate=candidate, eligible=eligible, warning=verdict.warning)
        options.append(((0 if eligible else 1, allowed.index(candidate.role_name)), option))
    options.sort(key=lambda pair: pair[0])
    return [o for _, o in options]


def eligible_only(options: Iterable[ManagerOption]) -> List[ManagerOption]:
    return [o for o in options if o.eligible]


__all__ = [
    'ELIGIBLE', 'MISMATCH', 'EXCLUDED', 'Verdict', 'ManagerOption', 'MANAGER_RULES',
    'generic_rule', 'classify', 'resolve_managers', 'eligible_only', 'rule_for',
]
