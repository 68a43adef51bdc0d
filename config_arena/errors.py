"""
Error types for config_arena.

Execution failures of individual configurations are never raised; they are
captured on the ExecutionResult. Everything here is a caller or I/O error.
"""


class ArenaError(Exception):
    """Base class for all config_arena errors."""


class SpecificationError(ArenaError, ValueError):
    """A parameter specification cannot be expanded into configurations."""


class UnsupportedCriteriaError(ArenaError, TypeError):
    """An evaluation criteria object is not one of the known variants."""

    def __init__(self, criteria):
        self.criteria = criteria
        super().__init__(
            f"Unsupported evaluation criteria: {type(criteria).__name__}"
        )


class LedgerIOError(ArenaError, RuntimeError):
    """The persisted rating ledger could not be read or written."""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class ConfigurationValidationError(ArenaError, ValueError):
    """A configuration does not match its deployment schema."""
