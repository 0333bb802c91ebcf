from __future__ import annotations
"""Scope cascade: option sets for each subordinate field and the resets a change triggers.

Level order is role > region > area > territory > dealer > manager. A change at
one level nulls every field strictly below it in the same step, so a draft can
never point at a stale ancestor.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from dealernet.services.drafts import AssignmentDraft
from dealernet.services.hierarchy import Area, Dealer, OrgHierarchyStore, Territory, is_blank

LEVELS = ('role', 'region', 'area', 'territory', 'dealer', 'manager')
FIELD_LEVELS = {
    'role_id': 'role',
    'region_id': 'region',
    'area_id': 'area',
    'territory_id': 'territory',
    'dealer_id': 'dealer',
    'manager_id': 'manager',
}
RESETTABLE_FIELDS = ('region_id', 'area_id', 'territory_id', 'dealer_id', 'manager_id')


def reset_fields_for(field_name: Optional[str]) -> Tuple[str, ...]:
    """Fields strictly below ``field_name``; non-hierarchy fields reset nothing."""
    level = FIELD_LEVELS.get(field_name or '')
    if level is None:
        return ()
    depth = LEVELS.index(level)
    return tuple(f for f in RESETTABLE_FIELDS if LEVELS.index(FIELD_LEVELS[f]) > depth)


@dataclass(frozen=True)
class CascadeResult:
    area_options: Tuple[Area, ...]
    territory_options: Tuple[Territory, ...]
    dealer_options: Tuple[Dealer, ...]
    reset_fields: Tuple[str, ...] = ()


def compute_cascade(draft: AssignmentDraft, hierarchy: OrgHierarchyStore, changed: Optional[str] = None) -> CascadeResult:
    return CascadeResult(
        area_options=tuple(hierarchy.areas_in_region(draft.region_id)),
        territory_options=tuple(hierarchy.territories_in_area(draft.area_id)),
        dealer_options=tuple(hierarchy.dealers_matching(draft.region_id, draft.area_id, draft.territory_id)),
        reset_fields=reset_fields_for(changed),
    )


def _contains(options, value: Any) -> bool:
    return any(str(o.id) == str(value) for o in options)


def clear_stale(draft: AssignmentDraft, hierarchy: OrgHierarchyStore) -> AssignmentDraft:
    """Clear dependent selections missing from their recomputed option set, top-down."""
    for field_name, options_of in (
        ('area_id', lambda d: hierarchy.areas_in_region(d.region_id)),
        ('territory_id', lambda d: hierarchy.territories_in_area(d.area_id)),
        ('dealer_id', lambda d: hierarchy.dealers_matching(d.region_id, d.area_id, d.territory_id)),
    ):
        value = getattr(draft, field_name)
        if is_blank(value) or _contains(options_of(draft), value):
            continue
        cleared = {field_name: None}
        cleared.update({f: None for f in reset_fields_for(field_name)})
        draft = draft.with_values(**cleared)
    return draft


def apply_change(draft: AssignmentDraft, field_name: str, value: Any,
                 hierarchy: OrgHierarchyStore) -> Tuple[AssignmentDraft, CascadeResult]:
    """Set ``field_name`` and null its dependents atomically; returns the new draft and cascade."""
    updates = {field_name: None if is_blank(value) and field_name in FIELD_LEVELS else value}
    updates.update({f: None for f in reset_fields_for(field_name)})
    updated = draft.with_values(**updates)
    if field_name in FIELD_LEVELS:
        updated = clear_stale(updated, hierarchy)
    return updated, compute_cascade(updated, hierarchy, changed=field_name)


__all__ = ['LEVELS', 'CascadeResult', 'compute_cascade', 'apply_change', 'clear_stale', 'reset_fields_for']
