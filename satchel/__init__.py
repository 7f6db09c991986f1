"""
Satchel - Sectioned HTTP Sessions

Server-side sessions partitioned into named sections, with per-section and
per-variable expiration.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- session: Session manager, sections and expiration rules
- storage: Session snapshot persistence (Redis)
- middleware: Binds a session to each HTTP request
- api: Request/response models
- config: Environment configuration
"""

__version__ = "1.0.0"
