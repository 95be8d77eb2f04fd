# errors.py
from __future__ import annotations

from dataclasses import dataclass


class MatrixError(Exception):
    """Base class for everything matrixci raises or reports."""


class ConfigurationError(MatrixError):
    """A malformed variant or matrix file. Fatal before any step runs."""


@dataclass
class VariantCrashed(MatrixError):
    """A variant stopped on an unexpected exception rather than a step exit code."""
    variant: str
    reason: str

    def __str__(self) -> str:
        return f"[{self.variant}] crashed: {self.reason}"


# ----------------------------------------------------------------------
# Step failures
# ----------------------------------------------------------------------

@dataclass
class StepFailure(MatrixError):
    """
    Non-zero exit from an enabled step.

    Attached to a VariantResult, never raised across variant boundaries.
    """
    variant: str
    step: str
    command: str
    exit_code: int

    kind = "step failed"

    def __str__(self) -> str:
        return f"[{self.variant}] {self.kind}: '{self.step}' (exit={self.exit_code}): {self.command}"


class ToolInstallError(StepFailure):
    kind = "tool install failed"


class LintFailure(StepFailure):
    kind = "lint failed"


class FormatFailure(StepFailure):
    kind = "format check failed"


class BuildFailure(StepFailure):
    kind = "build failed"


class TestFailure(StepFailure):
    __test__ = False  # not a pytest class
    kind = "tests failed"


class BenchFailure(StepFailure):
    kind = "bench failed"
