# executor.py
from __future__ import annotations

import os
import subprocess
import time
from pathlib import Path
from typing import Dict, Optional

from .errors import ConfigurationError
from .model import Outcome, Step, Variant
from .steps import display_command, render_command, should_run
from .ui.console import get_console

# shell conventions, so reports read the same as the CI log would
EXIT_NOT_FOUND = 127
EXIT_CANNOT_EXECUTE = 126
EXIT_TIMEOUT = 124

TOOL_HINTS = {
    "cargo": "Install Rust via rustup (https://rustup.rs) or fix PATH.",
    "rustup": "Install rustup (https://rustup.rs) or fix PATH.",
}

_OUTPUT_TAIL = 4000


def _tail(*chunks: str | bytes | None) -> str:
    text = ""
    for c in chunks:
        if not c:
            continue
        if isinstance(c, bytes):
            c = c.decode("utf-8", errors="replace")
        text += c
    return text[-_OUTPUT_TAIL:]


def execute(
    step: Step,
    variant: Variant,
    *,
    repo_root: str | Path = ".",
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Outcome:
    """
    Run one step for one variant.

    A step whose guard is off is returned as skipped without spawning anything.
    Otherwise exactly one child process is started; there are no retries.
    """
    console = get_console()

    if not should_run(step, variant):
        console.print_step_skipped(variant, step.name)
        return Outcome.skip(step.name)

    argv = render_command(step, variant)
    cmd = display_command(argv)
    console.print_step(variant, step.name, cmd)

    cwd = Path(repo_root).resolve()
    if not cwd.is_dir():
        raise ConfigurationError(f"[{variant.label}] step '{step.name}' repo root not found: {cwd}")

    full_env = os.environ.copy()
    full_env.update(env or {})

    started = time.monotonic()
    try:
        proc = subprocess.run(
            argv,
            shell=False,
            cwd=str(cwd),
            env=full_env,
            text=True,
            errors="replace",
            capture_output=True,
            timeout=timeout,
        )
        exit_code = proc.returncode
        output = _tail(proc.stdout, proc.stderr)
    except FileNotFoundError:
        tool = argv[0]
        exit_code = EXIT_NOT_FOUND
        output = f"{tool}: command not found. {TOOL_HINTS.get(tool, f'Install {tool} or fix PATH.')}"
    except OSError as e:
        exit_code = EXIT_CANNOT_EXECUTE
        output = f"{argv[0]}: cannot execute: {e.strerror or e}"
    except subprocess.TimeoutExpired as e:
        exit_code = EXIT_TIMEOUT
        output = _tail(e.stdout, e.stderr, f"\ntimed out after {timeout}s")

    duration = time.monotonic() - started
    console.print_debug(f"[{variant.label}] {step.name} exited {exit_code} in {duration:.1f}s")

    return Outcome(
        step=step.name,
        succeeded=exit_code == 0,
        exit_code=exit_code,
        skipped=False,
        command=cmd,
        duration=duration,
        output=output,
    )
