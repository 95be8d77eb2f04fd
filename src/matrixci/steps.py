# steps.py
from __future__ import annotations

import shlex
from typing import List, Sequence, Tuple

from .errors import (
    BenchFailure,
    BuildFailure,
    ConfigurationError,
    FormatFailure,
    LintFailure,
    TestFailure,
    ToolInstallError,
)
from .model import Step, Variant


# ---------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------

def always(variant: Variant) -> bool:
    return True


def lint_enabled(variant: Variant) -> bool:
    return variant.lint_enabled


def fmt_enabled(variant: Variant) -> bool:
    return variant.fmt_enabled


def bench_enabled(variant: Variant) -> bool:
    return variant.bench_enabled


# ---------------------------------------------------------------------
# Canonical step table
# ---------------------------------------------------------------------

INSTALL_LINT_TOOL = "install-lint-tool"
INSTALL_FMT_TOOL = "install-fmt-tool"
LINT = "lint"
FORMAT_CHECK = "format-check"
BUILD = "build"
TEST = "test"
BENCH = "bench"


def validate_steps(steps: Sequence[Step]) -> Tuple[Step, ...]:
    """Every predecessor must be defined earlier in the table."""
    seen: set[str] = set()
    for s in steps:
        if s.name in seen:
            raise ConfigurationError(f"Duplicate step name: {s.name}")
        for dep in s.requires:
            if dep not in seen:
                raise ConfigurationError(f"Step '{s.name}' requires '{dep}', which does not run before it")
        seen.add(s.name)
    return tuple(steps)


STEPS: Tuple[Step, ...] = validate_steps([
    Step(
        INSTALL_LINT_TOOL,
        ("rustup", "component", "add", "clippy", "--toolchain", "{channel}"),
        guard=lint_enabled,
        error=ToolInstallError,
    ),
    Step(
        INSTALL_FMT_TOOL,
        ("rustup", "component", "add", "rustfmt", "--toolchain", "{channel}"),
        guard=fmt_enabled,
        error=ToolInstallError,
    ),
    Step(
        LINT,
        ("cargo", "+{channel}", "clippy", "--features", "{features}", "--all-targets", "--", "-D", "clippy::all"),
        guard=lint_enabled,
        requires=(INSTALL_LINT_TOOL,),
        error=LintFailure,
    ),
    Step(
        FORMAT_CHECK,
        ("cargo", "+{channel}", "fmt", "--all", "--", "--check"),
        guard=fmt_enabled,
        requires=(INSTALL_FMT_TOOL,),
        error=FormatFailure,
    ),
    Step(
        BUILD,
        ("cargo", "+{channel}", "build", "--verbose", "--features", "{features}"),
        guard=always,
        error=BuildFailure,
    ),
    Step(
        TEST,
        ("cargo", "+{channel}", "test", "--verbose", "--features", "{features}"),
        guard=always,
        requires=(BUILD,),
        error=TestFailure,
    ),
    Step(
        BENCH,
        ("cargo", "+{channel}", "bench", "--verbose", "--features", "{features}"),
        guard=bench_enabled,
        requires=(BUILD, TEST),
        error=BenchFailure,
    ),
])


# ---------------------------------------------------------------------
# Guard + rendering
# ---------------------------------------------------------------------

def should_run(step: Step, variant: Variant) -> bool:
    """Whether `step` executes for `variant`. Pure; evaluated fresh every time."""
    return bool(step.guard(variant))


def render_command(step: Step, variant: Variant) -> List[str]:
    """Fill the step's argv template for one variant."""
    return [
        part.format(channel=variant.channel, features=variant.features_arg)
        for part in step.command
    ]


def display_command(argv: Sequence[str]) -> str:
    return shlex.join(argv)
