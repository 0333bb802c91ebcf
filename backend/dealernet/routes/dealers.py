from __future__ import annotations
from flask import Blueprint, request, g, abort
from dealernet import get_db
from dealernet.decorators.auth import require_permissions
from dealernet.models.org import Dealer
from dealernet.services import directory
from dealernet.services.policy import assert_dealer_access
from dealernet.utils.filters import apply_filters
from dealernet.utils.listing import paginated_list

dealers_bp = Blueprint('dealers', __name__)


@dealers_bp.get('')
@require_permissions('DEALER.READ')
def list_dealers():
    q = directory.dealers_query(actor=g.actor)
    filter_specs = {
        'region_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Dealer.region_id == v)},
        'area_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Dealer.area_id == v)},
        'territory_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Dealer.territory_id == v)},
        'manager_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Dealer.manager_id == v)},
        'q': {'op': lambda qu, v: qu.filter(Dealer.business_name.ilike(f'%{v}%') | Dealer.dealer_code.ilike(f'%{v}%'))},
    }
    q = apply_filters(q, filter_specs, request.args)
    return paginated_list(q, directory.dealer_json)


@dealers_bp.get('/<int:dealer_id>')
@require_permissions('DEALER.READ')
def get_dealer(dealer_id: int):
    dealer = get_db().get(Dealer, dealer_id)
    if not dealer:
        abort(404)
    assert_dealer_access(g.actor, dealer.id, dealer.region_id)
    return directory.dealer_json(dealer)


@dealers_bp.post('')
@require_permissions('DEALER.MANAGE')
def create_dealer():
    dealer = directory.create_dealer(request.json or {}, g.actor)
    return directory.dealer_json(dealer), 201


@dealers_bp.put('/<int:dealer_id>')
@require_permissions('DEALER.MANAGE')
def update_dealer(dealer_id: int):
    dealer = directory.update_dealer(dealer_id, request.json or {}, g.actor)
    return directory.dealer_json(dealer)
