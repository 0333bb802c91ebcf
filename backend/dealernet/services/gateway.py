"""Collaborator API used by the assignment form controller.

``DirectoryGateway`` is the async contract; ``InProcessGateway`` fulfils it against
the Flask app directly (same rules as the HTTP endpoints, no network hop).

``InProcessGateway`` is a synchronous adapter: each coroutine runs its query to
completion on the caller's thread before returning, so the event loop is held
for the duration of the query and a ``gather`` over several reads runs them one
after another. Work stays on the caller's thread because ``SessionLocal`` is a
thread-local ``scoped_session``. Callers that need overlapping I/O should supply
a gateway backed by a real client.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from dealernet import get_db
from dealernet.errors import FetchError, SubmissionError
from dealernet.services import directory
from dealernet.services.policy import ActorScope

log = logging.getLogger(__name__)

Record = Dict[str, Any]


class DirectoryGateway(Protocol):
    async def list_regions(self) -> List[Record]: ...

    async def list_areas(self, region_id: Any = None) -> List[Record]: ...

    async def list_territories(self, area_id: Any = None) -> List[Record]: ...

    async def list_dealers(self) -> List[Record]: ...

    async def list_roles(self) -> List[Record]: ...

    async def list_users_by_role(self, role_names: Sequence[str],
                                 scope_filter: Optional[Mapping[str, Any]] = None) -> List[Record]: ...

    async def create_user(self, payload: Mapping[str, Any]) -> Record: ...

    async def update_user(self, user_id: Any, payload: Mapping[str, Any]) -> Record: ...

    async def create_dealer(self, payload: Mapping[str, Any]) -> Record: ...

    async def update_dealer(self, dealer_id: Any, payload: Mapping[str, Any]) -> Record: ...


class InProcessGateway:
    """Runs directory calls inside ``app``'s context on behalf of ``actor``, synchronously."""

    def __init__(self, app: Flask, actor: Optional[ActorScope] = None):
        self.app = app
        self.actor = actor or ActorScope()

    def _read(self, resource: str, fn, *args, **kwargs):
        with self.app.app_context():
            try:
                return fn(*args, **kwargs)
            except HTTPException as e:
                raise FetchError(resource, str(e.description)) from e
            except SQLAlchemyError as e:
                get_db().rollback()
                log.exception('loading %s failed', resource)
                raise FetchError(resource, 'database error') from e

    def _write(self, fn, *args):
        with self.app.app_context():
            try:
                return fn(*args)
            except HTTPException as e:
                get_db().rollback()
                raise SubmissionError(str(e.description), e.code) from e
            except SQLAlchemyError as e:
                get_db().rollback()
                log.exception('write rejected by database')
                raise SubmissionError('Unexpected error', 500) from e

    # --- reads ---
    async def list_regions(self) -> List[Record]:
        return self._read('regions', lambda: directory.records(directory.regions_query(), directory.region_json))

    async def list_areas(self, region_id: Any = None) -> List[Record]:
        def load():
            q = directory.areas_query(region_id=directory.coerce_id(region_id, 'region_id'))
            return directory.records(q, directory.area_json)
        return self._read('areas', load)

    async def list_territories(self, area_id: Any = None) -> List[Record]:
        def load():
            q = directory.territories_query(area_id=directory.coerce_id(area_id, 'area_id'))
            return directory.records(q, directory.territory_json)
        return self._read('territories', load)

    async def list_dealers(self) -> List[Record]:
        return self._read('dealers', lambda: directory.records(directory.dealers_query(actor=self.actor), directory.dealer_json))

    async def list_roles(self) -> List[Record]:
        return self._read('roles', lambda: directory.load_role_catalog().to_json())

    async def list_users_by_role(self, role_names: Sequence[str],
                                 scope_filter: Optional[Mapping[str, Any]] = None) -> List[Record]:
        def load():
            q = directory.users_query(role_names=list(role_names), scope_filter=scope_filter)
            return directory.records(q, directory.user_json)
        return self._read('managers', load)

    # --- writes ---
    async def create_user(self, payload: Mapping[str, Any]) -> Record:
        return self._write(lambda: directory.user_json(directory.create_user(payload, self.actor)))

    async def update_user(self, user_id: Any, payload: Mapping[str, Any]) -> Record:
        def save():
            # coerced inside _write so a bad id comes back as a SubmissionError
            return directory.user_json(directory.update_user(directory.coerce_id(user_id, 'user_id'), payload, self.actor))
        return self._write(save)

    async def create_dealer(self, payload: Mapping[str, Any]) -> Record:
        return self._write(lambda: directory.dealer_json(directory.create_dealer(payload, self.actor)))

    async def update_dealer(self, dealer_id: Any, payload: Mapping[str, Any]) -> Record:
        def save():
            return directory.dealer_json(directory.update_dealer(directory.coerce_id(dealer_id, 'dealer_id'), payload, self.actor))
        return self._write(save)


__all__ = ['DirectoryGateway', 'InProcessGateway']
