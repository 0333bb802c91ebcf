from __future__ import annotations
from flask import Blueprint, request, g, abort
from dealernet import get_db
from dealernet.decorators.auth import require_permissions
from dealernet.models.authz import User
from dealernet.models.org import Dealer
from dealernet.services import directory
from dealernet.services.policy import assert_dealer_access
from dealernet.utils.filters import split_csv
from dealernet.utils.listing import paginated_list

users_bp = Blueprint('users', __name__)


@users_bp.get('/users')
@require_permissions('USER.READ')
def list_users():
    """List users, optionally narrowed to role names (?role=a,b) and scope ids.

    Manager pickers call this with the target role's eligible manager roles.
    """
    scope_filter = {k: request.args.get(k) for k in ('region_id', 'area_id', 'territory_id', 'dealer_id')}
    q = directory.users_query(role_names=split_csv(request.args.get('role')), scope_filter=scope_filter)
    if g.actor.dealer_ids:
        q = q.filter(User.dealer_id.in_(sorted(g.actor.dealer_ids)))
    return paginated_list(q, directory.user_json)


@users_bp.get('/users/<int:user_id>')
@require_permissions('USER.READ')
def get_user(user_id: int):
    user = get_db().get(User, user_id)
    if not user:
        abort(404)
    if user.dealer_id is not None:
        dealer = get_db().get(Dealer, user.dealer_id)
        assert_dealer_access(g.actor, user.dealer_id, dealer.region_id if dealer else None)
    return directory.user_json(user)


@users_bp.post('/users')
@require_permissions('USER.MANAGE')
def create_user():
    user = directory.create_user(request.json or {}, g.actor)
    return directory.user_json(user), 201


@users_bp.put('/users/<int:user_id>')
@require_permissions('USER.MANAGE')
def update_user(user_id: int):
    user = directory.update_user(user_id, request.json or {}, g.actor)
    return directory.user_json(user)
