"""
Session Module - Black Box Interface

Purpose: Partition a client's session into named sections with expiration
Interface: SessionManager.start(), get_section(), has_section(), close(), destroy()
           Section.get(), set(), unset(), set_expiration(), remove_expiration(), remove()
Hidden: Snapshot layout, visit tracking, lazy expiration sweeps

Replaceable storage backend: anything with read(), write(), destroy() and generate_id().
"""

from .errors import (
    ConfigurationOrderError,
    SessionError,
    SessionNotStartedError,
    UndefinedVariableWarning,
)
from .section import Section
from .session import AutoStart, SessionManager

__all__ = [
    "AutoStart",
    "ConfigurationOrderError",
    "Section",
    "SessionError",
    "SessionManager",
    "SessionNotStartedError",
    "UndefinedVariableWarning",
]
