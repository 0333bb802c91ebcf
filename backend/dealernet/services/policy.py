from __future__ import annotations
"""Token-claim based authorization helpers.

Access tokens are issued by the identity service and carry:
  perms        list of permission codes ('*' grants everything)
  role         canonical role name of the actor
  region_ids   regions the actor may write into (empty = unscoped)
  dealer_ids   dealers the actor may write into (empty = unscoped)
"""
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Set
from flask import abort, current_app
from flask_jwt_extended import get_jwt, get_jwt_identity

OUTSIDE_SCOPE = 'dealer_id is outside your allowed scope'
REGION_OUTSIDE_SCOPE = 'region_id is outside your allowed scope'


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    if '*' in perms:
        return True
    return all(c in perms for c in codes)


def _int_set(values) -> FrozenSet[int]:
    out = set()
    for v in values or []:
        try:
            out.add(int(v))
        except (TypeError, ValueError):
            continue
    return frozenset(out)


@dataclass(frozen=True)
class ActorScope:
    user_id: Optional[int] = None
    role: Optional[str] = None
    region_ids: FrozenSet[int] = field(default_factory=frozenset)
    dealer_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def unscoped(self) -> bool:
        return not self.region_ids and not self.dealer_ids

    def allows_region(self, region_id: Any) -> bool:
        if not self.region_ids or region_id is None:
            return True
        return int(region_id) in self.region_ids

    def allows_dealer(self, dealer_id: Any, dealer_region_id: Any = None) -> bool:
        if dealer_id is None:
            return True
        if self.dealer_ids and int(dealer_id) not in self.dealer_ids:
            return False
        if self.region_ids and not self.dealer_ids:
            return dealer_region_id is not None and int(dealer_region_id) in self.region_ids
        return True


def actor_scope() -> ActorScope:
    """Build the acting user's scope from the verified JWT of the current request."""
    claims = get_jwt()
    ident = get_jwt_identity()
    return ActorScope(
        user_id=int(ident) if ident is not None else None,
        role=claims.get('role'),
        region_ids=_int_set(claims.get('region_ids')),
        dealer_ids=_int_set(claims.get('dealer_ids')),
    )


def token_claims(user) -> dict:
    """Additional JWT claims for ``user`` in the shape ``actor_scope`` reads back.

    Regional roles are scoped to their region, dealer roles to their dealer;
    everyone else is unscoped.
    """
    from dealernet.constants.permissions import permissions_for_role
    from dealernet.constants.roles import DEALER_ROLES, REGIONAL_ADMIN, REGIONAL_MANAGER
    role = user.role_name
    claims = {'perms': permissions_for_role(role or ''), 'role': role, 'region_ids': [], 'dealer_ids': []}
    if role in DEALER_ROLES and user.dealer_id is not None:
        claims['dealer_ids'] = [user.dealer_id]
    elif role in (REGIONAL_ADMIN, REGIONAL_MANAGER) and user.region_id is not None:
        claims['region_ids'] = [user.region_id]
    return claims


def enforce_actor_scope_enabled() -> bool:
    return bool(current_app.config.get('ORG_ENFORCE_ACTOR_SCOPE', True))


def assert_dealer_access(actor: ActorScope, dealer_id: Any, dealer_region_id: Any = None):
    if not enforce_actor_scope_enabled():
        return
    if not actor.allows_dealer(dealer_id, dealer_region_id):
        abort(403, description=OUTSIDE_SCOPE)


def assert_region_access(actor: ActorScope, region_id: Any):
    if not enforce_actor_scope_enabled():
        return
    if not actor.allows_region(region_id):
        abort(403, description=REGION_OUTSIDE_SCOPE)
