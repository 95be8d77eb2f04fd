# matrix.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from .dsl import matrix, variant
from .errors import ConfigurationError
from .model import CHANNELS, FEATURES, Variant


# ----------------------------------------------------------------------
# Validation (load time only)
# ----------------------------------------------------------------------

def validate_variant(v: Variant) -> Variant:
    if not isinstance(v, Variant):
        raise ConfigurationError(f"Matrix entries must be Variant, got {type(v).__name__}")
    if v.channel not in CHANNELS:
        raise ConfigurationError(
            f"Variant '{v.label}': unknown channel {v.channel!r} (expected one of {', '.join(CHANNELS)})"
        )
    for f in v.features:
        if f not in FEATURES:
            raise ConfigurationError(
                f"Variant '{v.label}': unknown feature {f!r} (expected a subset of {', '.join(FEATURES)})"
            )
    if len(set(v.features)) != len(v.features):
        raise ConfigurationError(f"Variant '{v.label}': duplicate feature in {v.features_arg!r}")
    for name in ("fmt_enabled", "lint_enabled", "bench_enabled"):
        if not isinstance(getattr(v, name), bool):
            raise ConfigurationError(f"Variant '{v.label}': {name} must be a bool, got {getattr(v, name)!r}")
    return v


def validate_matrix(variants: Iterable[Variant]) -> Tuple[Variant, ...]:
    out = tuple(validate_variant(v) for v in variants)
    if not out:
        raise ConfigurationError("Matrix is empty")

    labels: set[str] = set()
    for v in out:
        if v.label in labels:
            raise ConfigurationError(f"Duplicate variant label: {v.label}")
        labels.add(v.label)
    return out


# ----------------------------------------------------------------------
# Reference matrix
# ----------------------------------------------------------------------

_REFERENCE = validate_matrix(matrix(
    variant("stable", "stable", features=""),
    variant("stable,fmt", "stable", features="", fmt=True),
    variant("stable,clippy", "stable", features="", lint=True),
    variant("nightly", "nightly", features="unstable", bench=True),
    variant("stable,serialize", "stable", features="serialize"),
    variant("nightly,serialize", "nightly", features="serialize,unstable", bench=True),
))


def reference_matrix() -> Tuple[Variant, ...]:
    """The six-variant build matrix."""
    return _REFERENCE


# ----------------------------------------------------------------------
# Matrix loading (local file)
# ----------------------------------------------------------------------

def load_matrix(path: str | Path) -> Tuple[Variant, ...]:
    """
    Load a matrix from a python file path.

    The file must define either:
      - build_matrix() -> List[Variant]
      - MATRIX = [Variant, ...]

    Returns the validated variants.
    """
    m_path = Path(path).expanduser().resolve()
    if not m_path.exists():
        raise ConfigurationError(f"Matrix file not found: {m_path}")
    if m_path.suffix != ".py":
        raise ConfigurationError(f"Matrix file must be a .py file, got: {m_path.name}")

    globals_dict = runpy.run_path(str(m_path), run_name=f"matrixci_matrix_{m_path.stem}")

    variants = None
    if callable(globals_dict.get("build_matrix")):
        variants = globals_dict["build_matrix"]()
    elif "MATRIX" in globals_dict:
        variants = globals_dict["MATRIX"]

    if not isinstance(variants, (list, tuple)):
        raise ConfigurationError(
            f"{m_path.name} must define build_matrix() -> List[Variant] or MATRIX = [Variant, ...]"
        )
    return validate_matrix(variants)


def select_variants(variants: Sequence[Variant], labels: Iterable[str] | None) -> List[Variant]:
    """Keep only the labelled variants, in matrix order. No labels keeps everything."""
    wanted = list(labels or [])
    if not wanted:
        return list(variants)

    known = {v.label for v in variants}
    missing = [lbl for lbl in wanted if lbl not in known]
    if missing:
        raise ConfigurationError(f"Unknown variant label(s): {', '.join(missing)}")
    return [v for v in variants if v.label in wanted]
