from __future__ import annotations

import threading
from typing import Dict, List

import pytest

from matrixci.dsl import variant
from matrixci.errors import BuildFailure, ConfigurationError, TestFailure, ToolInstallError, VariantCrashed
from matrixci.matrix import reference_matrix
from matrixci.model import Outcome, Step
from matrixci.runner import run_all, run_matrix, run_variant
from matrixci.steps import always, render_command, should_run


class FakeExec:
    """Stands in for the step executor; records the commands it would spawn."""

    def __init__(self, exit_codes: Dict[str, int] | None = None) -> None:
        self.exit_codes = exit_codes or {}
        self.calls: List[tuple[str, str, List[str]]] = []
        self._lock = threading.Lock()

    def __call__(self, step, v, **kwargs) -> Outcome:
        if not should_run(step, v):
            return Outcome.skip(step.name)
        with self._lock:
            self.calls.append((v.label, step.name, render_command(step, v)))
        rc = self.exit_codes.get(step.name, 0)
        return Outcome(step=step.name, succeeded=rc == 0, exit_code=rc)

    def executed(self, label: str) -> List[str]:
        return [name for lbl, name, _ in self.calls if lbl == label]


def _by_label(label):
    return next(v for v in reference_matrix() if v.label == label)


def test_scenario_stable_serialize_runs_build_then_test() -> None:
    fake = FakeExec()
    result = run_variant(_by_label("stable,serialize"), execute=fake)

    assert [(name, argv[-1]) for _, name, argv in fake.calls] == [
        ("build", "serialize"),
        ("test", "serialize"),
    ]
    assert result.executed == ["build", "test"]
    assert result.passed is True
    assert all(o.skipped for o in result.outcomes if o.step not in ("build", "test"))


def test_scenario_nightly_serialize_benches_after_test() -> None:
    fake = FakeExec()
    result = run_variant(_by_label("nightly,serialize"), execute=fake)

    assert [(name, argv[-1]) for _, name, argv in fake.calls] == [
        ("build", "serialize,unstable"),
        ("test", "serialize,unstable"),
        ("bench", "serialize,unstable"),
    ]
    assert result.passed is True


@pytest.mark.parametrize("v", reference_matrix(), ids=lambda v: v.label)
def test_format_check_skipped_when_fmt_disabled(v) -> None:
    if v.fmt_enabled:
        pytest.skip("fmt enabled")
    result = run_variant(v, execute=FakeExec({"format-check": 1}))
    fc = next(o for o in result.outcomes if o.step == "format-check")
    assert (fc.succeeded, fc.skipped) == (True, True)
    assert result.passed is True


def test_build_failure_stops_test_and_bench() -> None:
    fake = FakeExec({"build": 101})
    result = run_variant(_by_label("nightly"), execute=fake)

    assert fake.executed("nightly") == ["build"]
    assert result.passed is False
    assert result.first_failure.step == "build"
    assert result.first_failure.exit_code == 101
    assert [o.step for o in result.outcomes][-1] == "build"
    assert isinstance(result.error, BuildFailure)
    assert result.error.exit_code == 101


def test_test_failure_means_bench_is_never_attempted() -> None:
    fake = FakeExec({"test": 1})
    result = run_variant(_by_label("nightly,serialize"), execute=fake)

    assert fake.executed("nightly,serialize") == ["build", "test"]
    assert "bench" not in [o.step for o in result.outcomes]
    assert isinstance(result.error, TestFailure)


def test_bench_not_attempted_when_disabled() -> None:
    fake = FakeExec()
    run_variant(_by_label("stable"), execute=fake)
    assert "bench" not in fake.executed("stable")


def test_install_failure_aborts_variant() -> None:
    fake = FakeExec({"install-fmt-tool": 1})
    result = run_variant(_by_label("stable,fmt"), execute=fake)

    assert fake.executed("stable,fmt") == ["install-fmt-tool"]
    assert result.passed is False
    assert isinstance(result.error, ToolInstallError)
    assert "tool install failed" in str(result.error)


def test_lint_failure_is_reported_with_first_failing_step() -> None:
    fake = FakeExec({"lint": 2, "build": 1})
    result = run_variant(_by_label("stable,clippy"), execute=fake)

    assert fake.executed("stable,clippy") == ["install-lint-tool", "lint"]
    assert result.first_failure.step == "lint"
    assert result.first_failure.exit_code == 2


def test_run_variant_is_idempotent() -> None:
    v = _by_label("nightly,serialize")
    first = run_variant(v, execute=FakeExec({"bench": 3}))
    second = run_variant(v, execute=FakeExec({"bench": 3}))
    assert first == second
    assert first.passed is False


def test_cancel_stops_at_step_boundary() -> None:
    cancel = threading.Event()
    fake = FakeExec()

    def _exec(step, v, **kwargs):
        outcome = fake(step, v, **kwargs)
        if step.name == "build":
            cancel.set()
        return outcome

    result = run_variant(_by_label("nightly"), execute=_exec, cancel=cancel)
    assert fake.executed("nightly") == ["build"]
    assert result.cancelled is True
    assert result.passed is False


def test_predecessor_out_of_order_is_a_configuration_error() -> None:
    steps = [Step("b", ("true",), guard=always, requires=("a",)), Step("a", ("true",), guard=always)]
    with pytest.raises(ConfigurationError, match="requires a"):
        run_variant(variant("x"), steps=steps, execute=FakeExec())


def test_exec_kwargs_are_forwarded() -> None:
    seen = []

    def _exec(step, v, **kwargs):
        seen.append(kwargs)
        return Outcome(step=step.name, succeeded=True)

    run_variant(variant("x"), execute=_exec, repo_root="/src", timeout=5)
    assert seen and all(k == {"repo_root": "/src", "timeout": 5} for k in seen)


def test_run_matrix_returns_results_in_matrix_order() -> None:
    fake = FakeExec()
    results = run_matrix(reference_matrix(), workers=4, execute=fake)
    assert [r.variant.label for r in results] == [v.label for v in reference_matrix()]
    assert all(r.passed for r in results)


def test_failures_do_not_cross_variant_boundaries() -> None:
    fake = FakeExec({"bench": 1})
    results = run_matrix(reference_matrix(), workers=2, execute=fake)
    passed = {r.variant.label: r.passed for r in results}
    assert passed == {
        "stable": True,
        "stable,fmt": True,
        "stable,clippy": True,
        "nightly": False,
        "stable,serialize": True,
        "nightly,serialize": False,
    }


def test_run_all_is_and_of_variants(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_all(reference_matrix(), workers=1, execute=FakeExec()) is True

    assert run_all(reference_matrix(), workers=3, execute=FakeExec({"format-check": 7})) is False
    out = capsys.readouterr().out
    assert "stable,fmt: FAILED at format-check (exit=7)" in out
    assert "stable: SUCCESS" in out


def test_variant_crash_is_isolated_to_that_variant(capsys: pytest.CaptureFixture[str]) -> None:
    fake = FakeExec()

    def _exec(step, v, **kwargs):
        if v.label == "bad":
            raise OSError("spawn failed")
        return fake(step, v, **kwargs)

    results = run_matrix([variant("good"), variant("bad")], workers=2, execute=_exec)
    assert [r.passed for r in results] == [True, False]
    assert isinstance(results[1].error, VariantCrashed)
    assert "spawn failed" in str(results[1].error)
    assert fake.executed("good") == ["build", "test"]

    assert run_all([variant("good"), variant("bad")], workers=1, execute=_exec) is False
    out = capsys.readouterr().out
    assert "good: SUCCESS" in out
    assert "bad: FAILED ([bad] crashed: OSError: spawn failed)" in out


def test_configuration_error_still_aborts_the_matrix() -> None:
    steps = [Step("b", ("true",), guard=always, requires=("a",))]
    with pytest.raises(ConfigurationError):
        run_matrix([variant("x")], workers=1, steps=steps, execute=FakeExec())
