from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Optional
from dealernet import get_db
from dealernet.models.audit import AuditLog

ASSIGNMENT_AUDIT_FIELDS = ('role_id', 'region_id', 'area_id', 'territory_id', 'dealer_id', 'manager_id')


def diff_fields(before: Mapping[str, Any], after: Mapping[str, Any], keys: Iterable[str] = ASSIGNMENT_AUDIT_FIELDS) -> Dict[str, Dict[str, Any]]:
    """Return {field: {'before', 'after'}} for keys whose value changed."""
    changes: Dict[str, Dict[str, Any]] = {}
    for k in keys:
        if before.get(k) != after.get(k):
            changes[k] = {'before': before.get(k), 'after': after.get(k)}
    return changes


def add_audit(action: str, actor_user_id: Optional[int], entity: Optional[str] = None,
              entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit log entry in the current DB session.

    Parameters:
      action: short action code e.g. USER.CREATE, USER.UPDATE, DEALER.CREATE
      actor_user_id: id of the acting user (0 when unknown)
      entity: entity name (User, Dealer)
      entity_id: primary key, stored as string
      meta: JSON-safe dictionary, shallow copied
    No commit here; the caller's transaction boundary controls durability.
    """
    log = AuditLog(
        actor_user_id=actor_user_id or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    get_db().add(log)
    return log
