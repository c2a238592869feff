class UmlscopeError(Exception):
    """Base exception for all umlscope errors."""
    pass

class PreconditionError(UmlscopeError):
    """Raised when an analysis request is rejected before any work starts."""
    pass

class InvalidDepthError(PreconditionError):
    """Raised when the requested traversal depth is out of range."""

    def __init__(self, depth, max_allowed: int):
        self.depth = depth
        self.max_allowed = max_allowed
        super().__init__(f"Depth must be between 1 and {max_allowed}, got {depth!r}")

class StartFileNotFoundError(PreconditionError):
    """Raised when the file a traversal should start from does not exist."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"File not found: {file_path}")

class ProviderError(UmlscopeError):
    """Raised by file providers for I/O and listing failures."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")

class ConfigError(UmlscopeError):
    """Raised for invalid project configuration."""
    pass
