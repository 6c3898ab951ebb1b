"""
Exception hierarchy for the benchmark.

Every failure that should abort a run is a BenchmarkError. The ``phase``
attribute names the part of the run that failed so the CLI can report it.
"""

from typing import Optional


class BenchmarkError(Exception):
    """Base class for unrecoverable benchmark failures."""

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase

    def with_phase(self, phase: str) -> "BenchmarkError":
        """Attach a phase if none was recorded yet and return self."""
        if self.phase is None:
            self.phase = phase
        return self

    def __str__(self) -> str:
        return self.message


class ConfigurationError(BenchmarkError):
    """Missing connection string or invalid benchmark parameters."""

    def __init__(self, message: str, phase: Optional[str] = "configuration"):
        super().__init__(message, phase)


class ConnectivityError(BenchmarkError):
    """The datastore could not be reached."""

    def __init__(self, message: str, phase: Optional[str] = "connection"):
        super().__init__(message, phase)


class MigrationError(BenchmarkError):
    """Schema bootstrap failed."""

    def __init__(self, message: str, phase: Optional[str] = "migration"):
        super().__init__(message, phase)


class TransactionError(BenchmarkError):
    """
    A chunk transaction failed to begin, execute or commit.

    Raised only after the transaction has been rolled back.
    """

    def __init__(
        self,
        message: str,
        batch_size: Optional[int] = None,
        offset: Optional[int] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message, phase)
        self.batch_size = batch_size
        self.offset = offset


class StatisticalAnomalyError(BenchmarkError):
    """A sample series produced values that cannot come from real inserts."""
