"""Session error types."""


class SessionError(Exception):
    """Base class for session lifecycle errors."""


class ConfigurationOrderError(SessionError):
    """Raised when the session is configured after it has been started."""

    def __init__(self, option: str):
        self.option = option
        super().__init__(
            f"Cannot change session option '{option}' after the session has started."
        )


class SessionNotStartedError(SessionError):
    """Raised when a section is used before the session has been started."""


class UndefinedVariableWarning(UserWarning):
    """Emitted when reading an undefined variable from a strict section."""

    def __init__(self, section: str, key: str):
        self.section = section
        self.key = key
        super().__init__(f"The variable '{key}' does not exist in session section '{section}'")
