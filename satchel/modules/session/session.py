import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional

from .errors import ConfigurationOrderError, SessionNotStartedError
from .expiration import ExpirationValue, to_duration
from .section import Section

logger = logging.getLogger(__name__)


class AutoStart(str, Enum):
    """When the session is started without an explicit start() call."""

    ALWAYS = "always"
    SMART = "smart"
    NEVER = "never"


def _empty_snapshot() -> Dict[str, Any]:
    return {"data": {}, "meta": {}, "visit": None, "accessed": None}


class SessionManager:
    """
    Request-scoped session state machine.

    States are not-started and started. load() fetches the stored snapshot
    for the identifier supplied by the transport; activation then sweeps
    expired data and hands out sections that operate on the in-memory
    snapshot. close() writes the snapshot back to storage.
    """

    def __init__(
        self,
        storage,
        session_id: Optional[str] = None,
        visit_key: Optional[str] = None,
        expiration: ExpirationValue = None,
        auto_start: AutoStart = AutoStart.SMART,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize session manager.

        Args:
            storage: Session storage (read/write/destroy/generate_id)
            session_id: Identifier supplied by the transport, if any
            visit_key: Visit key supplied by the transport, if any
            expiration: Session-level lifetime; None means until the visit ends
            auto_start: Auto-start policy
            clock: Source of the current Unix time
        """
        self.storage = storage
        self._clock = clock
        self._incoming_id = session_id
        self._incoming_visit = visit_key
        self._expiration = to_duration(expiration, clock())
        self._auto_start = AutoStart(auto_start)

        self._id: Optional[str] = None
        self._visit_key: Optional[str] = None
        self._new_visit = False
        self._loaded = False
        self._started = False
        self._stored: Optional[Dict[str, Any]] = None
        self._snapshot = _empty_snapshot()
        self._sections: Dict[str, Section] = {}

    # Configuration

    def _check_configurable(self, option: str) -> None:
        if self._started:
            raise ConfigurationOrderError(option)

    def set_expiration(self, expiration: ExpirationValue) -> None:
        """Set the session-level lifetime; None or 0 means until the visit ends."""
        self._check_configurable("expiration")
        self._expiration = to_duration(expiration, self._now())

    def set_auto_start(self, mode: AutoStart) -> None:
        self._check_configurable("auto_start")
        self._auto_start = AutoStart(mode)

    def configure(self, config) -> None:
        """Apply a SessionConfig (expiration and auto_start)."""
        self.set_expiration(config.expiration)
        self.set_auto_start(config.auto_start)

    @property
    def expiration(self) -> Optional[int]:
        """Session-level lifetime in seconds, or None for end of visit."""
        return self._expiration

    @property
    def auto_start(self) -> AutoStart:
        return self._auto_start

    # Lifecycle

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def visit_key(self) -> Optional[str]:
        return self._visit_key

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_new_visit(self) -> bool:
        """Whether the last activation detected that the previous visit ended."""
        return self._new_visit

    def exists(self) -> bool:
        """Check if the transport supplied an identifier with stored data (after load())."""
        return self._stored is not None

    async def load(self) -> None:
        """Fetch the stored snapshot for the incoming identifier. Runs once."""
        if self._loaded:
            return
        if self._incoming_id:
            self._stored = await self.storage.read(self._incoming_id)
        self._loaded = True

    async def start(self) -> None:
        """Start or resume the session. Calling it again has no effect."""
        if self._started:
            return
        await self.load()
        self._activate()

    def _activate(self) -> None:
        now = self._now()

        if self._stored is not None:
            self._id = self._incoming_id
            snapshot = self._stored
        else:
            self._id = self.storage.generate_id()
            snapshot = _empty_snapshot()

        for key, default in _empty_snapshot().items():
            snapshot.setdefault(key, default)

        self._visit_key = self._incoming_visit or self.storage.generate_id()
        self._new_visit = snapshot["visit"] != self._visit_key

        accessed = snapshot["accessed"]
        if self._expiration and accessed is not None and now - accessed > self._expiration:
            logger.debug(f"Session {self._id} expired after {self._expiration} seconds")
            snapshot["data"], snapshot["meta"] = {}, {}
        elif self._new_visit:
            if self._expiration is None:
                snapshot["data"], snapshot["meta"] = {}, {}
            else:
                self._drop_visit_bound(snapshot)

        snapshot["visit"] = self._visit_key
        snapshot["accessed"] = now
        self._snapshot = snapshot
        self._started = True

        self.clean()
        logger.debug(f"Session {self._id} started (new visit: {self._new_visit})")

    def _drop_visit_bound(self, snapshot: Dict[str, Any]) -> None:
        for section, metadata in list(snapshot["meta"].items()):
            if metadata.get("section", {}).get("B"):
                snapshot["data"].pop(section, None)
                snapshot["meta"].pop(section, None)
                continue
            variables = metadata.get("vars", {})
            for key, entry in list(variables.items()):
                if entry.get("B"):
                    snapshot["data"].get(section, {}).pop(key, None)
                    variables.pop(key, None)

    def _ensure_started(self, for_write: bool) -> bool:
        """
        Apply the auto-start policy before section access.

        Returns False when a read finds no session to resume (smart mode).
        """
        if self._started:
            return True
        if self._auto_start is AutoStart.NEVER:
            raise SessionNotStartedError(
                "Session is not started; call start() first (auto_start is 'never')."
            )
        if not self._loaded:
            raise SessionNotStartedError(
                "Session storage is not loaded; await load() or start() first."
            )
        if self._auto_start is AutoStart.SMART and not for_write and not self.exists():
            return False
        self._activate()
        return True

    async def close(self) -> None:
        """Persist the session and return to the not-started state."""
        if not self._started:
            return
        await self.storage.write(self._id, self._snapshot, ttl=self._expiration)
        self._stored = self._snapshot
        self._incoming_id = self._id
        self._incoming_visit = self._visit_key
        self._started = False
        logger.debug(f"Session {self._id} written and closed")

    async def destroy(self) -> None:
        """Delete the stored session and forget its identifier and sections."""
        if self._id or self._incoming_id:
            await self.storage.destroy(self._id or self._incoming_id)
            logger.info(f"Session {self._id or self._incoming_id} destroyed")
        self._id = None
        self._incoming_id = None
        self._stored = None
        self._snapshot = _empty_snapshot()
        self._sections.clear()
        self._started = False
        self._loaded = True

    # Sections

    @property
    def _data(self) -> Dict[str, dict]:
        return self._snapshot["data"]

    @property
    def _meta(self) -> Dict[str, dict]:
        return self._snapshot["meta"]

    def _now(self) -> float:
        return self._clock()

    def get_section(self, name: str) -> Section:
        """
        Get the section with the given name, creating its handle on first use.

        The section is stored once something is written to it.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Section name must be a non-empty string")
        section = self._sections.get(name)
        if section is None:
            section = self._sections[name] = Section(self, name)
        return section

    def has_section(self, name: str) -> bool:
        """Check if a section exists and has not expired."""
        if not self._ensure_started(for_write=False):
            return False
        self._expire_section(name)
        return name in self._data

    def section_names(self) -> Iterator[str]:
        """Iterate names of the current sections."""
        if not self._ensure_started(for_write=False):
            return iter(())
        self.clean()
        return iter(list(self._data))

    def clean(self) -> None:
        """Remove every expired variable and section now."""
        if not self._started:
            return
        for name in list(self._meta):
            self._expire_section(name)

    def _expire_section(self, name: str) -> None:
        metadata = self._meta.get(name)
        if not metadata:
            return
        now = self._now()
        whole = metadata.get("section")
        if whole and whole.get("T") is not None and now > whole["T"]:
            self._data.pop(name, None)
            self._meta.pop(name, None)
            return
        data = self._data.get(name, {})
        variables = metadata.get("vars", {})
        for key, entry in list(variables.items()):
            if entry.get("T") is not None and now > entry["T"]:
                data.pop(key, None)
                variables.pop(key, None)
