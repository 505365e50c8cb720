"""Instance store implementations for tracker state.

Provides a collection-like interface for reading and replacing the state of
one scope. Both implementations serialize on write so callers never share a
mutable object with the store.
"""

from abc import ABC, abstractmethod
from typing import Dict

import structlog
from sqlalchemy import select

from playerwatch.core.database import DatabaseManager
from .models import InstanceState
from .orm_models import InstanceStateORM

logger = structlog.get_logger(__name__)


class InstanceStoreInterface(ABC):
    """Interface for per-scope state persistence."""

    @abstractmethod
    async def get(self, scope: str) -> InstanceState:
        """Get the state of a scope.

        :param scope: Scope key
        :returns: Stored state, or an empty state when nothing is stored
        """
        pass

    @abstractmethod
    async def put(self, scope: str, state: InstanceState) -> None:
        """Replace the state of a scope.

        :param scope: Scope key
        :param state: State to store
        """
        pass


class InMemoryInstanceStore(InstanceStoreInterface):
    """Process-local store keeping serialized snapshots."""

    def __init__(self):
        self._states: Dict[str, str] = {}

    async def get(self, scope: str) -> InstanceState:
        raw = self._states.get(scope)
        if raw is None:
            return InstanceState()
        return InstanceState.model_validate_json(raw)

    async def put(self, scope: str, state: InstanceState) -> None:
        self._states[scope] = state.model_dump_json()


class SQLAlchemyInstanceStore(InstanceStoreInterface):
    """Store backed by the ``instance_states`` table."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize store with a database manager.

        :param db_manager: Manager providing async sessions
        """
        self.db_manager = db_manager

    async def get(self, scope: str) -> InstanceState:
        async with self.db_manager.get_session() as session:
            result = await session.execute(
                select(InstanceStateORM).where(InstanceStateORM.scope_key == scope)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return InstanceState()
        return InstanceState.model_validate_json(row.state_json)

    async def put(self, scope: str, state: InstanceState) -> None:
        payload = state.model_dump_json()
        async with self.db_manager.get_session() as session:
            row = await session.get(InstanceStateORM, scope)
            if row is None:
                session.add(InstanceStateORM(scope_key=scope, state_json=payload))
            else:
                row.state_json = payload
            await session.commit()

        logger.debug("Instance state saved", scope=scope, trackers=len(state.trackers))
