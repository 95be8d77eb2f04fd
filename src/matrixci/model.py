# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type

from .errors import MatrixError, StepFailure

CHANNELS = ("stable", "nightly")
FEATURES = ("serialize", "unstable")


@dataclass(frozen=True)
class Variant:
    """One row of the build matrix: a toolchain channel plus feature/tooling flags."""
    channel: str
    label: str
    features: Tuple[str, ...] = ()
    fmt_enabled: bool = False
    lint_enabled: bool = False
    bench_enabled: bool = False

    @property
    def features_arg(self) -> str:
        # cargo takes the literal comma-joined form, e.g. "serialize,unstable"
        return ",".join(self.features)


@dataclass(frozen=True)
class Step:
    """
    A single externally invoked validation action.

    `command` is an argv template; `{channel}` and `{features}` are filled in
    per variant. `requires` names the earlier steps that must have succeeded
    (or been skipped) in the same run before this one may execute.
    """
    name: str
    command: Tuple[str, ...]
    guard: Callable[[Variant], bool]
    requires: Tuple[str, ...] = ()
    error: Type[StepFailure] = StepFailure


@dataclass(frozen=True)
class Outcome:
    step: str
    succeeded: bool
    exit_code: int = 0
    skipped: bool = False

    # diagnostics, not part of the result identity
    command: str = field(default="", compare=False)
    duration: float = field(default=0.0, compare=False)
    output: str = field(default="", compare=False, repr=False)

    @classmethod
    def skip(cls, step: str) -> "Outcome":
        """A guard-disabled step: vacuously successful."""
        return cls(step=step, succeeded=True, exit_code=0, skipped=True)


@dataclass
class VariantResult:
    variant: Variant
    outcomes: Tuple[Outcome, ...] = ()
    cancelled: bool = False
    error: Optional[MatrixError] = field(default=None, compare=False)

    @property
    def passed(self) -> bool:
        if self.cancelled or self.error is not None:
            return False
        return all(o.succeeded for o in self.outcomes)

    @property
    def first_failure(self) -> Optional[Outcome]:
        for o in self.outcomes:
            if not o.succeeded:
                return o
        return None

    @property
    def executed(self) -> list[str]:
        """Names of the steps that actually spawned a command."""
        return [o.step for o in self.outcomes if not o.skipped]
