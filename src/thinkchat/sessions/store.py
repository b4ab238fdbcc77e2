"""Session store: the canonical in-memory session collection plus persistence.

Hidden design decisions:
- Copy-on-write updates (sessions are frozen, the collection is a tuple)
- Which session is active and how activation heals after deletion
- When and how the collection reaches durable storage (coalesced,
  fire-and-forget writes on the running event loop)
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..config import STORAGE_KEY
from ..errors import PersistenceError, PersistenceReadError, PersistenceWriteError
from .base import SessionStorage
from .models import ChatSession, dump_collection, load_collection

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    """Outcome of SessionStore.load()."""

    RESTORED = "restored"  # Persisted sessions were loaded
    FRESH = "fresh"        # Nothing was stored, a new session was created
    DEGRADED = "degraded"  # Stored data was unreadable, a new session was created


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable view of the store handed to subscribers."""

    sessions: tuple[ChatSession, ...]
    active_id: str | None

    @property
    def active_session(self) -> ChatSession | None:
        for session in self.sessions:
            if session.id == self.active_id:
                return session
        return None


Subscriber = Callable[[StoreSnapshot], None]


class SessionHandle:
    """Read/update access to exactly one session of a store.

    Handed to collaborators that must not touch any other session.
    """

    def __init__(self, store: "SessionStore", session_id: str):
        self._store = store
        self._session_id = session_id

    @property
    def session_id(self) -> str:
        return self._session_id

    def get(self) -> ChatSession | None:
        """Current snapshot of the session, or None if it was deleted."""
        return self._store.get(self._session_id)

    def update(self, transform: Callable[[ChatSession], ChatSession]) -> ChatSession | None:
        return self._store.update_session(self._session_id, transform)


class SessionStore:
    """Owns the session collection and the active session id.

    The collection is never empty once load() or create_session() has run:
    deleting the last session creates a fresh one in the same step.

    Usage:
        store = SessionStore(create_session_storage("json", path=data_dir))
        await store.load()
        session = store.create_session()
        store.update_session(session.id, lambda s: s.with_title("Notes"))
        await store.close()
    """

    def __init__(self, storage: SessionStorage, key: str = STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._sessions: tuple[ChatSession, ...] = ()
        self._active_id: str | None = None
        self._subscribers: list[Subscriber] = []
        self._dirty = False
        self._writer: asyncio.Task | None = None
        self._connected = False
        self.last_write_error: PersistenceWriteError | None = None

    # Read access

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return self._sessions

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active_session(self) -> ChatSession | None:
        return self.get(self._active_id) if self._active_id else None

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(sessions=self._sessions, active_id=self._active_id)

    def get(self, session_id: str) -> ChatSession | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def handle(self, session_id: str) -> SessionHandle:
        return SessionHandle(self, session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return any(s.id == session_id for s in self._sessions)

    # Observation

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with a snapshot after every change.

        Returns:
            A function that removes the callback
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # Lifecycle

    async def load(self, persist_fresh: bool = True) -> LoadStatus:
        """Connect storage and restore the persisted collection.

        Missing data starts a fresh session. Unreadable or corrupt data is
        logged and treated as a degraded start, which also begins with a
        fresh session. If storage cannot be opened at all, the store runs
        in memory only for this process. Never raises for bad stored data.

        Args:
            persist_fresh: Write the fresh session created when nothing
                usable was stored. Read-only callers pass False so that
                inspecting history never creates it on disk.
        """
        try:
            await self._storage.connect()
        except PersistenceError as e:
            logger.warning(f"Chat history storage unavailable, running in memory: {e}")
            self._start_fresh(persist=False)
            return LoadStatus.DEGRADED
        self._connected = True

        try:
            blob = await self._storage.read(self._key)
            if blob is None:
                logger.info("No stored chat history, starting fresh")
                self._start_fresh(persist_fresh)
                return LoadStatus.FRESH
            sessions = load_collection(blob)
        except PersistenceReadError as e:
            logger.warning(f"Ignoring unreadable chat history: {e}")
            self._start_fresh(persist_fresh)
            return LoadStatus.DEGRADED

        # No turn survives a restart; keep partial content but stop streaming
        sessions = [s.settle() for s in sessions]
        if not sessions:
            self._start_fresh(persist_fresh)
            return LoadStatus.FRESH

        self._commit(tuple(sessions), sessions[0].id, persist=False)
        logger.info(f"Restored {len(sessions)} chat session(s)")
        return LoadStatus.RESTORED

    async def close(self) -> None:
        """Flush pending writes and disconnect storage."""
        await self.flush()
        if self._connected:
            await self._storage.disconnect()
            self._connected = False

    # Mutation

    def create_session(self) -> ChatSession:
        """Create an empty session at the front of the collection and activate it."""
        return self._start_fresh(persist=True)

    def select(self, session_id: str) -> bool:
        """Make a session active. Unknown ids are ignored.

        Returns:
            True if the session exists and is now active
        """
        if session_id not in self:
            return False
        if session_id != self._active_id:
            self._active_id = session_id
            self._notify()
        return True

    def update_session(
        self,
        session_id: str,
        transform: Callable[[ChatSession], ChatSession],
    ) -> ChatSession | None:
        """Replace one session with transform(session).

        Args:
            session_id: Session to update; a missing id is a no-op
            transform: Pure function returning the new session value

        Returns:
            The updated session, or None if session_id is not present

        Raises:
            ValueError: If transform changes the session id
        """
        current = self.get(session_id)
        if current is None:
            return None

        updated = transform(current)
        if updated.id != session_id:
            raise ValueError(f"Session transform changed id {session_id!r} to {updated.id!r}")
        if updated is current:
            return current

        sessions = tuple(updated if s.id == session_id else s for s in self._sessions)
        self._commit(sessions, self._active_id)
        return updated

    def delete_session(self, session_id: str) -> bool:
        """Remove a session.

        If it was active, the first remaining session becomes active. Deleting
        the only session replaces it with a fresh one in the same change, so
        no observer ever sees an empty collection.

        Returns:
            True if a session was removed
        """
        if session_id not in self:
            return False

        remaining = tuple(s for s in self._sessions if s.id != session_id)
        active_id = self._active_id
        if not remaining:
            fresh = ChatSession.new()
            remaining = (fresh,)
            active_id = fresh.id
            logger.info(f"Deleted last session {session_id}, created {fresh.id}")
        elif active_id == session_id or active_id not in {s.id for s in remaining}:
            active_id = remaining[0].id
            logger.info(f"Deleted session {session_id}")
        else:
            logger.info(f"Deleted session {session_id}")

        self._commit(remaining, active_id)
        return True

    def clear_all(self) -> ChatSession:
        """Delete every session, leaving a single fresh one."""
        fresh = ChatSession.new()
        self._commit((fresh,), fresh.id)
        logger.info("Cleared all sessions")
        return fresh

    # Persistence

    def persist(self) -> None:
        """Schedule a write of the whole collection.

        Best effort and fire-and-forget: this only marks the collection
        dirty. The writer task serializes the newest collection just before
        each write, so a burst of changes costs one serialization per write,
        not one per change. Without a running loop the write waits for the
        next flush(). An empty collection is never written, and nothing is
        written before load() has opened the storage.
        """
        if not self._sessions or not self._connected:
            return
        self._dirty = True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        if self._writer is None or self._writer.done():
            self._writer = loop.create_task(self._drain())

    async def flush(self) -> None:
        """Wait until every scheduled write has reached storage."""
        if self._writer is not None and not self._writer.done():
            await self._writer
        if self._dirty:
            await self._drain()

    async def _drain(self) -> None:
        while self._dirty:
            self._dirty = False
            blob = dump_collection(self._sessions)
            try:
                await self._storage.write(self._key, blob)
                self.last_write_error = None
            except PersistenceWriteError as e:
                # In-memory state stays authoritative; the next change retries
                self.last_write_error = e
                logger.warning(f"Failed to persist chat history: {e}")

    # Internals

    def _start_fresh(self, persist: bool) -> ChatSession:
        session = ChatSession.new()
        self._commit((session, *self._sessions), session.id, persist=persist)
        logger.info(f"Created session {session.id}")
        return session

    def _commit(
        self,
        sessions: tuple[ChatSession, ...],
        active_id: str | None,
        persist: bool = True,
    ) -> None:
        self._sessions = sessions
        self._active_id = active_id
        self._notify()
        if persist:
            self.persist()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            callback(snapshot)
