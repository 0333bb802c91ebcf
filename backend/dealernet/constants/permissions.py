"""Central enum-like definitions to avoid typos in permission/service strings.
Extend cautiously; never rename codes silently, add new ones and deprecate old ones instead.
"""
from __future__ import annotations
from typing import List, Dict

SERVICES = ['ORG', 'USER', 'DEALER']

SERVICE_ACTIONS = {
    'ORG': ['READ'],
    'USER': ['READ', 'MANAGE'],
    'DEALER': ['READ', 'MANAGE'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

# Role name -> permission codes carried in the access token 'perms' claim.
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    'super_admin': ['*'],
    'regional_admin': ['ORG.READ', 'USER.READ', 'USER.MANAGE', 'DEALER.READ', 'DEALER.MANAGE'],
    'regional_manager': ['ORG.READ', 'USER.READ', 'DEALER.READ'],
    'area_manager': ['ORG.READ', 'USER.READ', 'DEALER.READ'],
    'territory_manager': ['ORG.READ', 'USER.READ', 'DEALER.READ'],
    'sales_executive': ['ORG.READ', 'DEALER.READ'],
    'dealer_admin': ['ORG.READ', 'USER.READ', 'USER.MANAGE'],
    'dealer_staff': ['ORG.READ'],
    'finance_admin': ['ORG.READ', 'DEALER.READ'],
}


def permissions_for_role(role_name: str) -> List[str]:
    codes = ROLE_PERMISSIONS.get(role_name, [])
    if '*' in codes:
        return list(ALL_PERMISSION_CODES)
    return list(codes)
