from __future__ import annotations
"""Directory service: hierarchy / role / user / dealer reads and assignment writes.

Route handlers and the in-process gateway both go through here. Write helpers
re-check the same catalog rules the form validator applies (the server stays the
authority) and abort with the messages the form maps onto fields:
  'dealer_id is required for dealer roles'
  'dealer_id is outside your allowed scope'
  'manager_id is not an eligible manager for this role'
  'username already exists' / 'email already exists'
"""
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from flask import abort
from sqlalchemy import select

from dealernet import get_db
from dealernet.constants.roles import DEALER_DEFINITION, DEALER_ROLES, SCOPE_FIELDS, RoleCatalog, RoleDefinition
from dealernet.models.authz import Role, User
from dealernet.models.org import Area, Dealer, Region, Territory
from dealernet.services import hierarchy as h
from dealernet.services.audit import add_audit, diff_fields
from dealernet.services.policy import ActorScope, assert_dealer_access, assert_region_access
from dealernet.utils.validation import email_error, password_error, require_valid, username_error

log = logging.getLogger(__name__)

DEALER_REQUIRED = 'dealer_id is required for dealer roles'
MANAGER_NOT_ELIGIBLE = 'manager_id is not an eligible manager for this role'
GEO_FIELDS = ('region_id', 'area_id', 'territory_id')
DEALER_TEXT_FIELDS = (
    'contact_person', 'email', 'phone_number', 'address', 'city', 'state', 'pincode', 'gst_number',
)


# ---------------- serializers ---------------- #
def region_json(r: Region) -> Dict[str, Any]:
    return {'id': r.id, 'name': r.name}


def area_json(a: Area) -> Dict[str, Any]:
    return {'id': a.id, 'name': a.name, 'region_id': a.region_id}


def territory_json(t: Territory) -> Dict[str, Any]:
    return {'id': t.id, 'name': t.name, 'area_id': t.area_id}


def dealer_json(d: Dealer) -> Dict[str, Any]:
    body = {
        'id': d.id,
        'dealer_code': d.dealer_code,
        'business_name': d.business_name,
        'region_id': d.region_id,
        'area_id': d.area_id,
        'territory_id': d.territory_id,
        'manager_id': d.manager_id,
        'lat': d.lat,
        'lng': d.lng,
    }
    for name in DEALER_TEXT_FIELDS:
        body[name] = getattr(d, name)
    return body


def user_json(u: User) -> Dict[str, Any]:
    return {
        'id': u.id,
        'username': u.username,
        'email': u.email,
        'is_active': u.is_active,
        'role_id': u.role_id,
        'role_name': u.role_name,
        'region_id': u.region_id,
        'area_id': u.area_id,
        'territory_id': u.territory_id,
        'dealer_id': u.dealer_id,
        'manager_id': u.manager_id,
    }


# ---------------- reads ---------------- #
def regions_query(session=None):
    session = session or get_db()
    return session.query(Region).order_by(Region.name.asc(), Region.id.asc())


def areas_query(session=None, region_id: Optional[int] = None):
    session = session or get_db()
    q = session.query(Area)
    if region_id is not None:
        q = q.filter(Area.region_id == region_id)
    return q.order_by(Area.name.asc(), Area.id.asc())


def territories_query(session=None, area_id: Optional[int] = None):
    session = session or get_db()
    q = session.query(Territory)
    if area_id is not None:
        q = q.filter(Territory.area_id == area_id)
    return q.order_by(Territory.name.asc(), Territory.id.asc())


def dealers_query(session=None, actor: Optional[ActorScope] = None):
    session = session or get_db()
    q = session.query(Dealer)
    if actor is not None and actor.dealer_ids:
        q = q.filter(Dealer.id.in_(sorted(actor.dealer_ids)))
    elif actor is not None and actor.region_ids:
        q = q.filter(Dealer.region_id.in_(sorted(actor.region_ids)))
    return q.order_by(Dealer.business_name.asc(), Dealer.id.asc())


def users_query(session=None, role_names: Optional[Sequence[str]] = None,
                scope_filter: Optional[Mapping[str, Any]] = None):
    """Users joined to their role; ``scope_filter`` narrows on any non-blank scope id."""
    session = session or get_db()
    q = session.query(User).join(Role, User.role_id == Role.id)
    if role_names:
        q = q.filter(Role.name.in_(list(role_names)))
    for name, value in (scope_filter or {}).items():
        if name in SCOPE_FIELDS.values() and not h.is_blank(value):
            q = q.filter(getattr(User, name) == coerce_id(value, name))
    return q.order_by(User.username.asc(), User.id.asc())


def load_hierarchy(session=None) -> h.OrgHierarchyStore:
    session = session or get_db()
    return h.OrgHierarchyStore(
        regions=[h.Region(r.id, r.name) for r in session.execute(select(Region)).scalars()],
        areas=[h.Area(a.id, a.name, a.region_id) for a in session.execute(select(Area)).scalars()],
        territories=[h.Territory(t.id, t.name, t.area_id) for t in session.execute(select(Territory)).scalars()],
        dealers=[h.Dealer.from_record(dealer_json(d)) for d in session.execute(select(Dealer)).scalars()],
    )


def load_role_catalog(session=None) -> RoleCatalog:
    session = session or get_db()
    return RoleCatalog.from_roles(session.execute(select(Role).order_by(Role.id.asc())).scalars())


# ---------------- write helpers ---------------- #
def coerce_id(value: Any, name: str) -> Optional[int]:
    if h.is_blank(value):
        return None
    if isinstance(value, bool):
        abort(400, description=f'{name} must be int')
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f'{name} must be int')


def _check_geography(store: h.OrgHierarchyStore, values: Mapping[str, Any]):
    conflicts = store.scope_conflicts(values.get('region_id'), values.get('area_id'), values.get('territory_id'))
    if conflicts:
        abort(400, description=f'{conflicts[0]} does not match the selected hierarchy')


def _derive_geography(store: h.OrgHierarchyStore, values: Dict[str, Any]):
    """Fill blank ancestors from the most specific selection (territory -> area -> region)."""
    expanded = store.expand_scope(values.get('region_id'), values.get('area_id'), values.get('territory_id'))
    for name in GEO_FIELDS:
        if values.get(name) is None and expanded.get(name) is not None:
            values[name] = expanded[name]


def _check_dealer_geography(store: h.OrgHierarchyStore, dealer, values: Mapping[str, Any]):
    dealer_scope = store.dealer_scope(dealer)
    for name in GEO_FIELDS:
        if values.get(name) is not None and dealer_scope.get(name) is not None and values[name] != dealer_scope[name]:
            abort(400, description='dealer_id does not match the selected hierarchy')


def _check_manager(session, definition: RoleDefinition, manager_id: Optional[int], self_id: Optional[int] = None):
    if manager_id is None:
        if definition.manager_required:
            abort(400, description='manager_id is required for this role')
        return
    if self_id is not None and manager_id == self_id:
        abort(400, description='manager_id cannot reference the same user')
    manager = session.execute(select(User).where(User.id == manager_id)).scalar_one_or_none()
    if not manager:
        abort(400, description='manager_id invalid')
    if manager.role_name not in definition.eligible_manager_roles:
        abort(400, description=MANAGER_NOT_ELIGIBLE)


def _check_unique_user(session, username: str, email: str, self_id: Optional[int] = None):
    q = select(User).where(User.username == username)
    if self_id is not None:
        q = q.where(User.id != self_id)
    if session.execute(q).scalar_one_or_none():
        abort(400, description='username already exists')
    q = select(User).where(User.email == email)
    if self_id is not None:
        q = q.where(User.id != self_id)
    if session.execute(q).scalar_one_or_none():
        abort(400, description='email already exists')


def _user_assignment(session, data: Mapping[str, Any], base: Mapping[str, Any], actor: ActorScope,
                     self_id: Optional[int] = None) -> Dict[str, Any]:
    """Merge ``data`` over ``base`` and enforce the role's scope / manager rules."""
    values: Dict[str, Any] = {}
    for name in ('role_id',) + tuple(SCOPE_FIELDS.values()) + ('manager_id',):
        raw = data[name] if name in data else base.get(name)
        values[name] = coerce_id(raw, name)
    if values['role_id'] is None:
        abort(400, description='role_id required')
    role = session.execute(select(Role).where(Role.id == values['role_id'])).scalar_one_or_none()
    if not role:
        abort(400, description='role_id invalid')
    definition = load_role_catalog(session).get(role.id)
    store = load_hierarchy(session)

    dealer = None
    if role.name in DEALER_ROLES and values['dealer_id'] is None:
        abort(400, description=DEALER_REQUIRED)
    if values['dealer_id'] is not None:
        dealer = store.dealer(values['dealer_id'])
        if dealer is None:
            abort(400, description='dealer_id invalid')
        assert_dealer_access(actor, dealer.id, store.dealer_scope(dealer)['region_id'])
        if role.name in DEALER_ROLES:
            # dealer users inherit the dealer's geography
            for name, value in store.dealer_scope(dealer).items():
                if name in GEO_FIELDS and value is not None:
                    values[name] = value
    _check_geography(store, values)
    _derive_geography(store, values)
    if dealer is not None and role.name not in DEALER_ROLES:
        _check_dealer_geography(store, dealer, values)
    assert_region_access(actor, values['region_id'])
    for scope in definition.ordered_scopes():
        name = SCOPE_FIELDS[scope]
        if values[name] is None:
            abort(400, description=f'{name} is required for role {role.name}')
    _check_manager(session, definition, values['manager_id'], self_id)
    return values


# ---------------- user writes ---------------- #
def create_user(data: Mapping[str, Any], actor: ActorScope) -> User:
    session = get_db()
    require_valid(username_error(data.get('username')))
    require_valid(email_error(data.get('email')))
    require_valid(password_error(data.get('password')))
    username = data['username'].strip()
    email = data['email'].strip()
    _check_unique_user(session, username, email)
    values = _user_assignment(session, data, {}, actor)
    user = User(username=username, email=email, password_hash='', is_active=bool(data.get('is_active', True)), **values)
    user.set_password(data['password'])
    session.add(user)
    session.flush()
    add_audit('USER.CREATE', actor.user_id, 'User', user.id, {'changes': diff_fields({}, values)})
    session.commit()
    log.info('user %s created with role_id=%s', user.id, user.role_id)
    return user


def update_user(user_id: int, data: Mapping[str, Any], actor: ActorScope) -> User:
    session = get_db()
    user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    before = user_json(user)
    if before['dealer_id'] is not None:
        # the actor must already be allowed to touch the user's current dealer
        dealer = session.get(Dealer, before['dealer_id'])
        assert_dealer_access(actor, before['dealer_id'], dealer.region_id if dealer else None)
    username = data['username'].strip() if 'username' in data and isinstance(data['username'], str) else user.username
    email = data['email'].strip() if 'email' in data and isinstance(data['email'], str) else user.email
    if 'username' in data:
        require_valid(username_error(username))
    if 'email' in data:
        require_valid(email_error(email))
    _check_unique_user(session, username, email, self_id=user.id)
    values = _user_assignment(session, data, before, actor, self_id=user.id)
    user.username, user.email = username, email
    for name, value in values.items():
        setattr(user, name, value)
    if 'is_active' in data:
        user.is_active = bool(data['is_active'])
    if data.get('password'):
        require_valid(password_error(data['password']))
        user.set_password(data['password'])
    changes = diff_fields(before, values)
    add_audit('USER.UPDATE', actor.user_id, 'User', user.id, {'changes': changes} if changes else {})
    session.commit()
    return user


# ---------------- dealer writes ---------------- #
def _dealer_values(session, data: Mapping[str, Any], base: Mapping[str, Any], actor: ActorScope) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in GEO_FIELDS + ('manager_id',):
        raw = data[name] if name in data else base.get(name)
        values[name] = coerce_id(raw, name)
    store = load_hierarchy(session)
    _check_geography(store, values)
    _derive_geography(store, values)
    assert_region_access(actor, values['region_id'])
    _check_manager(session, DEALER_DEFINITION, values['manager_id'])
    return values


def _dealer_text(data: Mapping[str, Any], base: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in ('dealer_code', 'business_name') + DEALER_TEXT_FIELDS:
        raw = data[name] if name in data else base.get(name)
        out[name] = raw.strip() if isinstance(raw, str) else raw
        if h.is_blank(out[name]):
            out[name] = None
    if not out['dealer_code'] or not out['business_name']:
        abort(400, description='dealer_code and business_name required')
    if out['email']:
        require_valid(email_error(out['email']))
    for name in ('lat', 'lng'):
        raw = data[name] if name in data else base.get(name)
        try:
            out[name] = None if h.is_blank(raw) else float(raw)
        except (TypeError, ValueError):
            abort(400, description=f'{name} must be a number')
    return out


def create_dealer(data: Mapping[str, Any], actor: ActorScope) -> Dealer:
    session = get_db()
    text = _dealer_text(data, {})
    if session.execute(select(Dealer).where(Dealer.dealer_code == text['dealer_code'])).scalar_one_or_none():
        abort(400, description='dealer_code already exists')
    values = _dealer_values(session, data, {}, actor)
    dealer = Dealer(**text, **values)
    session.add(dealer)
    session.flush()
    add_audit('DEALER.CREATE', actor.user_id, 'Dealer', dealer.id, {'changes': diff_fields({}, values, GEO_FIELDS + ('manager_id',))})
    session.commit()
    log.info('dealer %s (%s) created', dealer.id, dealer.dealer_code)
    return dealer


def update_dealer(dealer_id: int, data: Mapping[str, Any], actor: ActorScope) -> Dealer:
    session = get_db()
    dealer = session.execute(select(Dealer).where(Dealer.id == dealer_id)).scalar_one_or_none()
    if not dealer:
        abort(404)
    assert_dealer_access(actor, dealer.id, dealer.region_id)
    before = dealer_json(dealer)
    text = _dealer_text(data, before)
    dup = session.execute(select(Dealer).where(Dealer.dealer_code == text['dealer_code'], Dealer.id != dealer.id)).scalar_one_or_none()
    if dup:
        abort(400, description='dealer_code already exists')
    values = _dealer_values(session, data, before, actor)
    for name, value in list(text.items()) + list(values.items()):
        setattr(dealer, name, value)
    changes = diff_fields(before, values, GEO_FIELDS + ('manager_id',))
    add_audit('DEALER.UPDATE', actor.user_id, 'Dealer', dealer.id, {'changes': changes} if changes else {})
    session.commit()
    return dealer


def records(query, serializer) -> list:
    return [serializer(row) for row in query.all()]


__all__ = [
    'region_json', 'area_json', 'territory_json', 'dealer_json', 'user_json',
    'regions_query', 'areas_query', 'territories_query', 'dealers_query', 'users_query',
    'load_hierarchy', 'load_role_catalog', 'coerce_id', 'records',
    'create_user', 'update_user', 'create_dealer', 'update_dealer',
]
