# runner.py
from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence

from .errors import ConfigurationError, VariantCrashed
from .model import Outcome, Step, Variant, VariantResult
from .steps import STEPS
from .executor import execute as execute_step
from .ui.console import get_console

Executor = Callable[..., Outcome]


# ----------------------------------------------------------------------
# Variant runner
# ----------------------------------------------------------------------

def _predecessors_ok(step: Step, outcomes: Dict[str, Outcome]) -> bool:
    # skipped outcomes carry succeeded=True, so a disabled install step
    # never blocks its dependent
    return all(dep in outcomes and outcomes[dep].succeeded for dep in step.requires)


def run_variant(
    variant: Variant,
    *,
    steps: Sequence[Step] = STEPS,
    execute: Executor = execute_step,
    cancel: Optional[threading.Event] = None,
    **exec_kwargs,
) -> VariantResult:
    """
    Run every step for one variant, in table order.

    Stops at the first failed step; steps after it are left out of the
    result entirely (they are not "skipped", that word is reserved for
    guard-disabled steps).
    """
    console = get_console()
    console.print_variant_start(variant)

    done: Dict[str, Outcome] = {}
    outcomes: List[Outcome] = []

    for step in steps:
        if cancel is not None and cancel.is_set():
            console.print_variant_cancelled(variant)
            return VariantResult(variant=variant, outcomes=tuple(outcomes), cancelled=True)

        if not _predecessors_ok(step, done):
            # only reachable with an unvalidated custom step table
            raise ConfigurationError(
                f"Step '{step.name}' requires {', '.join(step.requires)}, which did not run before it"
            )

        outcome = execute(step, variant, **exec_kwargs)
        outcomes.append(outcome)
        done[step.name] = outcome

        if not outcome.succeeded:
            console.print_step_failed(variant, outcome)
            error = step.error(
                variant=variant.label,
                step=step.name,
                command=outcome.command,
                exit_code=outcome.exit_code,
            )
            return VariantResult(variant=variant, outcomes=tuple(outcomes), error=error)

    return VariantResult(variant=variant, outcomes=tuple(outcomes))


# ----------------------------------------------------------------------
# Matrix aggregator
# ----------------------------------------------------------------------

def default_workers() -> int:
    c = os.cpu_count() or 2
    return max(1, c - 1)


def run_matrix(
    variants: Sequence[Variant],
    *,
    workers: int | None = None,
    **runner_kwargs,
) -> List[VariantResult]:
    """
    Run each variant independently. Results come back in matrix order,
    whatever order the variants finished in.
    """
    if workers is None:
        workers = default_workers()

    if runner_kwargs.get("cancel") is None:
        runner_kwargs["cancel"] = threading.Event()
    cancel = runner_kwargs["cancel"]
    results: Dict[int, VariantResult] = {}

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        in_flight = {
            pool.submit(run_variant, v, **runner_kwargs): i
            for i, v in enumerate(variants)
        }
        try:
            for fut in as_completed(in_flight):
                i = in_flight[fut]
                try:
                    results[i] = fut.result()
                except ConfigurationError:
                    raise
                except Exception as e:
                    # one variant's crash is that variant's failure only
                    get_console().print_exception(e)
                    results[i] = VariantResult(
                        variant=variants[i],
                        error=VariantCrashed(variant=variants[i].label, reason=f"{type(e).__name__}: {e}"),
                    )
        except KeyboardInterrupt:
            # let running variants stop at their next step boundary
            cancel.set()
            for fut in in_flight:
                fut.cancel()
            raise

    return [results[i] for i in range(len(variants))]


def run_all(variants: Sequence[Variant], **kwargs) -> bool:
    """Run the whole matrix, print the report and return the AND of all variants."""
    results = run_matrix(variants, **kwargs)
    console = get_console()
    console.print_results(results)
    for r in results:
        if r.error is not None:
            console.print_debug(str(r.error))
    return all(r.passed for r in results)
