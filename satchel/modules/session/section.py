import logging
import warnings
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional, Tuple, Union

from .errors import UndefinedVariableWarning
from .expiration import ExpirationValue, to_timestamp

if TYPE_CHECKING:
    from .session import SessionManager

logger = logging.getLogger(__name__)

_MISSING = object()


class Section:
    """
    Named partition of a session's variables.

    Sections never share variables with each other. Expiration metadata is
    checked lazily whenever the section is read. Iterating a section yields
    (key, value) pairs; mutating the section while iterating it has
    unspecified effects on what the iteration sees.
    """

    def __init__(self, session: "SessionManager", name: str):
        self.session = session
        self.name = name
        self.warn_on_undefined = False

    def _read(self) -> Optional[dict]:
        """Get the live variable mapping for reading, or None if absent."""
        if not self.session._ensure_started(for_write=False):
            return None
        self.session._expire_section(self.name)
        return self.session._data.get(self.name)

    def _write(self) -> dict:
        """Get the live variable mapping for writing, creating it if needed."""
        self.session._ensure_started(for_write=True)
        self.session._expire_section(self.name)
        return self.session._data.setdefault(self.name, {})

    def get(self, key: str) -> Any:
        """
        Read a variable.

        Returns None for an undefined variable. When warn_on_undefined is set,
        an UndefinedVariableWarning is emitted first; the caller decides
        whether to escalate it via warning filters.
        """
        data = self._read()
        value = data.get(key, _MISSING) if data is not None else _MISSING
        if value is _MISSING:
            if self.warn_on_undefined:
                warnings.warn(UndefinedVariableWarning(self.name, key), stacklevel=2)
            return None
        return value

    def has(self, key: str) -> bool:
        """Check whether a variable is defined (a stored None counts as defined)."""
        data = self._read()
        return data is not None and key in data

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def set(self, key: str, value: Any, reset_expiration: bool = False) -> None:
        """
        Create or overwrite a variable.

        An expiration previously set for the key is kept unless
        reset_expiration is True. Values must be JSON serializable.
        """
        data = self._write()
        data[key] = value
        if reset_expiration:
            self._variable_meta().pop(key, None)

    def unset(self, key: str) -> None:
        """Remove a variable and its expiration."""
        data = self._read()
        if data is None:
            return
        data.pop(key, None)
        self._variable_meta().pop(key, None)

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Lazily iterate (key, value) pairs present when iteration starts."""
        data = self._read()
        for key, value in list((data or {}).items()):
            yield key, value

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return self.items()

    def set_expiration(
        self, time: ExpirationValue, key: Union[str, Iterable[str], None] = None
    ) -> None:
        """
        Set expiration for the whole section or for selected variables.

        Args:
            time: Relative duration, absolute timestamp, or 0 for end of visit
            key: Variable name or names; the whole section when omitted

        An expiration beyond the session-level expiration is clamped to it.
        """
        self._write()
        now = self.session._now()
        timestamp = to_timestamp(time, now)

        limit = self.session.expiration
        if timestamp is not None and limit and timestamp > now + limit:
            logger.warning(
                f"Expiration for section '{self.name}' exceeds the session expiration "
                f"of {limit} seconds; clamping to the session limit"
            )
            timestamp = now + limit

        entry = {"T": timestamp, "B": timestamp is None}
        meta = self.session._meta.setdefault(self.name, {})
        if key is None:
            meta["section"] = entry
            return
        variables = meta.setdefault("vars", {})
        for name in self._keys(key):
            variables[name] = dict(entry)

    def remove_expiration(self, key: Union[str, Iterable[str], None] = None) -> None:
        """Clear expiration for the whole section or for selected variables."""
        if self._read() is None:
            return
        if key is None:
            self.session._meta.get(self.name, {}).pop("section", None)
            return
        variables = self._variable_meta()
        for name in self._keys(key):
            variables.pop(name, None)

    def get_expiration(self, key: Optional[str] = None) -> Optional[float]:
        """
        Get the effective absolute expiration timestamp.

        This is the earliest of the variable, section and session-level
        expirations. The session-level bound slides with activity: it is
        measured from now, so the result moves forward on every call unless
        a variable or section expiration is earlier. Returns None when only
        the end of the visit bounds it.
        """
        if self._read() is None:
            return None
        meta = self.session._meta.get(self.name, {})
        candidates = [meta.get("section", {}).get("T")]
        if key is not None:
            candidates.append(meta.get("vars", {}).get(key, {}).get("T"))
        if self.session.expiration:
            candidates.append(self.session._now() + self.session.expiration)
        timestamps = [t for t in candidates if t is not None]
        return min(timestamps) if timestamps else None

    def remove(self) -> None:
        """Delete the section with all its variables, regardless of expiration."""
        if self._read() is None:
            return
        self.session._data.pop(self.name, None)
        self.session._meta.pop(self.name, None)

    def _variable_meta(self) -> dict:
        """Per-variable expirations; section-wide expiration lives apart under "section"."""
        return self.session._meta.get(self.name, {}).get("vars", {})

    def _keys(self, key: Union[str, Iterable[str]]) -> Iterable[str]:
        if isinstance(key, str):
            return [key]
        return list(key)

    def __repr__(self) -> str:
        return f"Section(name={self.name!r})"
