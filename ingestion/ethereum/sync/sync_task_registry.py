import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple

from pydantic import BaseModel

from utils.logger_utils import get_logger

logger = get_logger("Sync Task Registry")

SyncKey = Tuple[str, int]

DEFAULT_MAX_FINISHED_STATES = 1024


class SyncStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class SyncTaskState(BaseModel):
    address: str
    chain_id: int
    status: SyncStatus = SyncStatus.PENDING
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    synced: Optional[int] = None
    error: Optional[str] = None


class SyncTaskRegistry(object):
    """
    Tracks background syncs keyed by (address, chain_id).
    At most one sync runs per key; starting a key that is already in flight
    returns the existing task.
    """

    def __init__(self, max_finished_states: int = DEFAULT_MAX_FINISHED_STATES):
        self._max_finished_states = max_finished_states
        self._tasks: Dict[SyncKey, asyncio.Task] = {}
        self._states: Dict[SyncKey, SyncTaskState] = {}

    @staticmethod
    def _key(address: str, chain_id: int) -> SyncKey:
        return address.lower(), chain_id

    def start(self, address: str, chain_id: int, factory: Callable[[], Awaitable[int]]) -> asyncio.Task:
        key = self._key(address, chain_id)
        task = self._tasks.get(key)
        if task is not None and not task.done():
            logger.debug(f"Sync already in flight for {key[0]} on chain id {chain_id}")
            return task

        state = SyncTaskState(address=key[0], chain_id=chain_id)
        # Re-insert so eviction order follows the latest start
        self._states.pop(key, None)
        self._states[key] = state
        task = asyncio.create_task(self._run(state, factory), name=f"sync-{key[0]}-{chain_id}")
        self._tasks[key] = task
        task.add_done_callback(lambda finished: self._on_task_done(key, finished))
        return task

    def _on_task_done(self, key: SyncKey, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        self._prune_finished_states()

    def _prune_finished_states(self) -> None:
        """Drops the oldest finished states once more than `max_finished_states` are kept."""
        finished = [key for key, state in self._states.items() if state.status in (SyncStatus.DONE, SyncStatus.FAILED)]
        for key in finished[: max(0, len(finished) - self._max_finished_states)]:
            del self._states[key]

    async def _run(self, state: SyncTaskState, factory: Callable[[], Awaitable[int]]) -> Optional[int]:
        state.status = SyncStatus.RUNNING
        state.started_at = datetime.now(timezone.utc)
        try:
            synced = await factory()
        except asyncio.CancelledError:
            state.status = SyncStatus.FAILED
            state.error = "cancelled"
            state.finished_at = datetime.now(timezone.utc)
            raise
        except Exception as e:
            state.status = SyncStatus.FAILED
            state.error = f"{type(e).__name__}: {e}"
            state.finished_at = datetime.now(timezone.utc)
            logger.error(f"Background sync failed for {state.address} on chain id {state.chain_id}: {e}", exc_info=True)
            return None

        state.status = SyncStatus.DONE
        state.synced = synced
        state.finished_at = datetime.now(timezone.utc)
        return synced

    def get(self, address: str, chain_id: int) -> Optional[SyncTaskState]:
        state = self._states.get(self._key(address, chain_id))
        return state.model_copy() if state is not None else None

    async def wait(self, address: str, chain_id: int, timeout: Optional[float] = None) -> Optional[SyncTaskState]:
        """Waits for the in-flight sync of a key, if any, and returns its final state."""
        key = self._key(address, chain_id)
        task = self._tasks.get(key)
        if task is not None:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        return self.get(address, chain_id)

    async def aclose(self) -> None:
        """Cancels outstanding syncs and waits for them to unwind."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Cancelling {len(pending)} background syncs")
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
