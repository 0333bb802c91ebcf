from __future__ import annotations
from flask import Blueprint, request
from dealernet.constants.roles import DEALER_DEFINITION
from dealernet.decorators.auth import require_permissions
from dealernet.services import directory
from dealernet.utils.listing import paginated_list

org_bp = Blueprint('org', __name__)


@org_bp.get('/regions')
@require_permissions('ORG.READ')
def list_regions():
    return paginated_list(directory.regions_query(), directory.region_json)


@org_bp.get('/areas')
@require_permissions('ORG.READ')
def list_areas():
    region_id = directory.coerce_id(request.args.get('region_id'), 'region_id')
    return paginated_list(directory.areas_query(region_id=region_id), directory.area_json)


@org_bp.get('/territories')
@require_permissions('ORG.READ')
def list_territories():
    area_id = directory.coerce_id(request.args.get('area_id'), 'area_id')
    return paginated_list(directory.territories_query(area_id=area_id), directory.territory_json)


@org_bp.get('/roles')
@require_permissions('ORG.READ')
def list_roles():
    """Role catalog: required scopes, eligible manager roles and manager_required per role."""
    catalog = directory.load_role_catalog()
    return {'data': catalog.to_json(), 'dealer': DEALER_DEFINITION.to_json()}
