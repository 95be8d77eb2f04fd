"""Console output formatting utilities for matrixci."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from ..model import Outcome, Variant, VariantResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(self, source: str, variant_count: int, workers: int) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Matrix: {source}")
        print(f"Variants: {variant_count}")
        print(f"Workers: {workers}")
        print()

    def print_variant_start(self, variant: Variant) -> None:
        features = variant.features_arg or "-"
        print(f"[{variant.label}] VARIANT STARTED (channel={variant.channel}, features={features})")

    def print_step(self, variant: Variant, step: str, command: str) -> None:
        print(f"[{variant.label}] ▶ {step}: {command}")

    def print_step_skipped(self, variant: Variant, step: str) -> None:
        print(f"[{variant.label}] ⏭ {step} (disabled)")

    def print_step_failed(self, variant: Variant, outcome: Outcome) -> None:
        """
        Print a failed step, with the tail of its output in debug mode.

        Non-debug mode shows only the last output line.
        """
        print(f"[{variant.label}] STEP FAILED: {outcome.step}")
        print(f"[{variant.label}] Exit code: {outcome.exit_code}")
        if not outcome.output:
            return
        if self.debug:
            for line in outcome.output.splitlines():
                print(f"[{variant.label}]   {line}")
        else:
            lines = [ln for ln in outcome.output.splitlines() if ln.strip()]
            if lines:
                print(f"[{variant.label}] Error: {lines[-1]}")

    def print_variant_cancelled(self, variant: Variant) -> None:
        print(f"[{variant.label}] CANCELLED")

    def print_plan(self, variant: Variant, rows: Sequence[tuple[str, bool, str]]) -> None:
        """Print which steps would run for one variant."""
        self.print_header(f"{variant.label} ({variant.channel})")
        for step, runs, command in rows:
            if runs:
                print(f"  ✓ {step}: {command}")
            else:
                print(f"  ⏭ {step} (disabled)")

    def print_matrix(self, variants: Sequence[Variant]) -> None:
        print(f"{'LABEL':<20} {'CHANNEL':<8} {'FEATURES':<20} LINT  FMT   BENCH")
        for v in variants:
            print(
                f"{v.label:<20} {v.channel:<8} {v.features_arg or '-':<20} "
                f"{_yn(v.lint_enabled):<5} {_yn(v.fmt_enabled):<5} {_yn(v.bench_enabled)}"
            )

    def print_results(self, results: Sequence[VariantResult]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for r in results:
            if r.passed:
                print(f"  {r.variant.label}: SUCCESS")
            elif r.cancelled:
                print(f"  {r.variant.label}: CANCELLED")
            elif r.first_failure is not None:
                failed = r.first_failure
                print(f"  {r.variant.label}: FAILED at {failed.step} (exit={failed.exit_code})")
            else:
                print(f"  {r.variant.label}: FAILED ({r.error})")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


def _yn(flag: bool) -> str:
    return "yes" if flag else "no"


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
