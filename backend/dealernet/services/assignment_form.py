"""Assignment form controller shared by the user and dealer forms.

Owns one draft plus the derived view state (cascade option sets, manager
options, errors, warnings) and drives the lifecycle

    EDITING -> VALIDATING -> SUBMITTING -> SUCCESS | FAILED

Every collaborator call goes through an injected ``DirectoryGateway``.
Manager candidates are reloaded after each hierarchy change; every reload
takes a sequence number and a response is only applied while its number is
still the latest one.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from dealernet.constants.roles import DEALER_ENTITY, RoleCatalog
from dealernet.errors import FetchError, SubmissionError, ValidationError
from dealernet.services.assignment_validation import (
    MANAGER_NOT_ELIGIBLE, MODE_CREATE, MODE_UPDATE, ValidationResult, ensure_valid, validate,
)
from dealernet.services.cascade import CascadeResult, apply_change, compute_cascade
from dealernet.services.drafts import FORM_DEALER, FORM_KINDS, FORM_USER, HIERARCHY_FIELDS, AssignmentDraft, to_payload
from dealernet.services.eligibility import ManagerOption, resolve_managers
from dealernet.services.hierarchy import OrgHierarchyStore
from dealernet.utils.fsm import TransitionValidator

log = logging.getLogger(__name__)

EDITING = 'EDITING'
VALIDATING = 'VALIDATING'
SUBMITTING = 'SUBMITTING'
SUCCESS = 'SUCCESS'
FAILED = 'FAILED'

FORM_FSM = TransitionValidator({
    EDITING: {EDITING, VALIDATING},
    VALIDATING: {EDITING, SUBMITTING},
    SUBMITTING: {SUCCESS, FAILED},
    FAILED: {EDITING, VALIDATING},
    SUCCESS: set(),
}, field_name='form state')

FORM_ERROR = '_form'
NO_MANAGERS = 'No managers available'

# server message pattern -> (field, message shown next to it)
KNOWN_SUBMISSION_ERRORS: Tuple[Tuple[re.Pattern, str, str], ...] = (
    (re.compile(r'\b(dealerId|dealer_id) is required', re.I), 'dealer_id', 'Dealer is required for this role'),
    (re.compile(r'outside your allowed scope', re.I), 'dealer_id', 'Selected dealer is outside your allowed scope'),
    (re.compile(r'not an eligible manager', re.I), 'manager_id', MANAGER_NOT_ELIGIBLE),
    (re.compile(r'username already exists', re.I), 'username', 'Username already exists'),
    (re.compile(r'email already exists', re.I), 'email', 'Email already exists'),
    (re.compile(r'dealer_code already exists', re.I), 'dealer_code', 'Dealer code already exists'),
)

_MOUNT_RESOURCES = ('regions', 'areas', 'territories', 'dealers', 'roles')


def map_submission_error(message: Optional[str]) -> Dict[str, str]:
    text = message or ''
    for pattern, field_name, shown in KNOWN_SUBMISSION_ERRORS:
        if pattern.search(text):
            return {field_name: shown}
    return {FORM_ERROR: text or 'Request failed'}


class AssignmentFormController:
    def __init__(self, gateway, hierarchy: OrgHierarchyStore, catalog: RoleCatalog,
                 kind: str = FORM_USER, draft: Optional[AssignmentDraft] = None,
                 entity_id: Any = None, warnings: Optional[List[str]] = None):
        if kind not in FORM_KINDS:
            raise ValueError(f'unknown form kind {kind!r}')
        self.gateway = gateway
        self.hierarchy = hierarchy
        self.catalog = catalog
        self.kind = kind
        self.entity_id = entity_id
        self.draft = draft or AssignmentDraft()
        self.cascade: CascadeResult = compute_cascade(self.draft, hierarchy)
        self.state = EDITING
        self.manager_options: List[ManagerOption] = []
        self.errors: Dict[str, str] = {}
        self.warnings: List[str] = list(warnings or [])
        self.touched: Set[str] = set()
        self.result: Optional[Dict[str, Any]] = None
        self._manager_seq = 0
        self._managers_loaded = False

    @classmethod
    async def mount(cls, gateway, kind: str = FORM_USER, initial: Optional[Mapping[str, Any]] = None,
                    entity_id: Any = None) -> 'AssignmentFormController':
        """Load hierarchy and role lists concurrently, then the first manager list.

        A failed list falls back to empty and adds a warning; the form still opens.
        """
        results = await asyncio.gather(
            gateway.list_regions(),
            gateway.list_areas(),
            gateway.list_territories(),
            gateway.list_dealers(),
            gateway.list_roles(),
            return_exceptions=True,
        )
        loaded: Dict[str, List[Any]] = {}
        warnings: List[str] = []
        for resource, result in zip(_MOUNT_RESOURCES, results):
            if isinstance(result, FetchError):
                log.warning('mount: %s', result)
                warnings.append(f'Failed to load {resource}')
                loaded[resource] = []
            elif isinstance(result, BaseException):
                raise result
            else:
                loaded[resource] = list(result or [])
        hierarchy = OrgHierarchyStore.from_records(
            loaded['regions'], loaded['areas'], loaded['territories'], loaded['dealers'],
        )
        controller = cls(
            gateway, hierarchy, RoleCatalog.from_roles(loaded['roles']), kind=kind,
            draft=AssignmentDraft.from_record(initial), entity_id=entity_id, warnings=warnings,
        )
        await controller.refresh_managers()
        return controller

    @property
    def mode(self) -> str:
        return MODE_UPDATE if self.entity_id is not None else MODE_CREATE

    @property
    def target_role(self) -> Any:
        """Catalog key whose manager rules apply: the draft role, or the dealer entry."""
        return DEALER_ENTITY if self.kind == FORM_DEALER else self.draft.role_id

    def _set_state(self, target: str):
        FORM_FSM.assert_can_transition(self.state, target)
        self.state = target

    def _warn(self, message: str):
        if message not in self.warnings:
            self.warnings.append(message)

    def _unwarn(self, message: str):
        if message in self.warnings:
            self.warnings.remove(message)

    def check(self) -> ValidationResult:
        return validate(
            self.draft, self.catalog, mode=self.mode, kind=self.kind,
            manager_options=self.manager_options if self._managers_loaded else None,
        )

    def _revalidate(self):
        errors = self.check().errors
        self.errors = {k: v for k, v in errors.items() if k in self.touched}

    async def change(self, field_name: str, value: Any):
        """Set one field: cascade resets, manager reload for hierarchy fields, re-validation."""
        if self.state == SUBMITTING:
            log.info('ignoring change to %s while submitting', field_name)
            return self.draft
        self._set_state(EDITING)
        self.draft, self.cascade = apply_change(self.draft, field_name, value, self.hierarchy)
        self.touched.add(field_name)
        if field_name in HIERARCHY_FIELDS and field_name != 'manager_id':
            await self.refresh_managers()
        self._revalidate()
        return self.draft

    async def refresh_managers(self) -> List[ManagerOption]:
        self._manager_seq += 1
        seq = self._manager_seq
        # options for the previous role or scope are void until this fetch lands
        self.manager_options = []
        self._managers_loaded = False
        allowed = self.catalog.eligible_manager_roles(self.target_role)
        if not allowed:
            self._managers_loaded = True
            self._unwarn(NO_MANAGERS)
            return self.manager_options
        try:
            pool = await self.gateway.list_users_by_role(list(allowed))
        except FetchError as e:
            if seq != self._manager_seq:
                log.debug('ignoring failed manager fetch #%s, #%s is newer', seq, self._manager_seq)
                return self.manager_options
            log.warning('manager candidates unavailable: %s', e)
            self.manager_options = []
            self._managers_loaded = False
            self._warn(NO_MANAGERS)
            return self.manager_options
        if seq != self._manager_seq:
            log.debug('discarding stale manager response #%s, #%s is newer', seq, self._manager_seq)
            return self.manager_options
        # match on ancestors implied by the selected dealer / territory as well
        scope = self.hierarchy.expand_scope(**self.draft.scope())
        self.manager_options = resolve_managers(self.target_role, scope, pool, self.catalog)
        self._managers_loaded = True
        self._unwarn(NO_MANAGERS)
        return self.manager_options

    async def _send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.kind == FORM_DEALER:
            if self.mode == MODE_UPDATE:
                return await self.gateway.update_dealer(self.entity_id, payload)
            return await self.gateway.create_dealer(payload)
        if self.mode == MODE_UPDATE:
            return await self.gateway.update_user(self.entity_id, payload)
        return await self.gateway.create_user(payload)

    async def submit(self) -> Optional[Dict[str, Any]]:
        """Validate the latest draft and send it.

        Returns the saved record (SUCCESS) or ``None``: local errors go back to
        EDITING, server rejections to FAILED, with ``errors`` holding the field map.
        """
        self._set_state(VALIDATING)
        try:
            ensure_valid(
                self.draft, self.catalog, mode=self.mode, kind=self.kind,
                manager_options=self.manager_options if self._managers_loaded else None,
            )
        except ValidationError as e:
            self.errors = dict(e.errors)
            self.touched.update(e.errors)
            self._set_state(EDITING)
            return None
        self._set_state(SUBMITTING)
        self.errors = {}
        try:
            record = await self._send(to_payload(self.draft, self.kind))
        except SubmissionError as e:
            self.errors = map_submission_error(e.message)
            log.info('%s %s rejected (%s): %s', self.kind, self.mode, e.status, e.message)
            self._set_state(FAILED)
            return None
        self.result = record
        self._set_state(SUCCESS)
        return record

    def view(self) -> Dict[str, Any]:
        return {
            'state': self.state,
            'draft': self.draft.to_dict(),
            'area_options': [a.id for a in self.cascade.area_options],
            'territory_options': [t.id for t in self.cascade.territory_options],
            'dealer_options': [d.id for d in self.cascade.dealer_options],
            'manager_options': [o.to_json() for o in self.manager_options],
            'errors': dict(self.errors),
            'warnings': list(self.warnings),
        }


__all__ = [
    'AssignmentFormController', 'FORM_FSM', 'KNOWN_SUBMISSION_ERRORS', 'map_submission_error',
    'EDITING', 'VALIDATING', 'SUBMITTING', 'SUCCESS', 'FAILED', 'FORM_ERROR', 'NO_MANAGERS',
]
