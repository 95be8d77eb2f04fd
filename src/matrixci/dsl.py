# src/matrixci/dsl.py
from __future__ import annotations

from typing import Iterable, List, Union

from .errors import ConfigurationError
from .model import Variant


# ---------------------------------------------------------------------
# Variant helper
# ---------------------------------------------------------------------

def _split_features(features: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    if features is None:
        return ()
    if isinstance(features, str):
        # CI env style: FEATURES='serialize,unstable' (or '' for none)
        return tuple(f.strip() for f in features.split(",") if f.strip())
    return tuple(features)


_TRUE = {"1", "yes", "true", "on"}
_FALSE = {"0", "no", "false", "off", ""}


def _flag(name: str, value: Union[bool, str]) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        # CI env style: RUSTFMT=yes, BENCH=1
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    raise ConfigurationError(f"{name} must be a bool or yes/no/1/0, got {value!r}")


def variant(
    label: str,
    channel: str = "stable",
    *,
    features: Union[str, Iterable[str], None] = None,
    fmt: Union[bool, str] = False,
    lint: Union[bool, str] = False,
    bench: Union[bool, str] = False,
) -> Variant:
    """
    Create a matrix variant.

        variant("nightly,serialize", "nightly", features="serialize,unstable", bench=True)

    Flags take a bool or an env-style string ("yes", "1", "no", "0").
    Channel and features are not validated here; the matrix is checked as a
    whole when loaded.
    """
    return Variant(
        channel=channel,
        label=label,
        features=_split_features(features),
        fmt_enabled=_flag("fmt", fmt),
        lint_enabled=_flag("lint", lint),
        bench_enabled=_flag("bench", bench),
    )


# ---------------------------------------------------------------------
# Matrix helper (single-file story)
# ---------------------------------------------------------------------

def matrix(*variants: Variant) -> List[Variant]:
    """
    Matrix definition helper for matrix files:

        from matrixci import matrix, variant

        MATRIX = matrix(
            variant("stable"),
            variant("stable,fmt", fmt=True),
        )
    """
    return list(variants)
