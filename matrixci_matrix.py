# matrixci_matrix.py
# Same rows as the built-in matrix, spelled out as a matrix file:
#   matrixci run --matrix matrixci_matrix.py
from __future__ import annotations

from matrixci import matrix, variant


def build_matrix():
    return matrix(
        variant("stable", "stable"),
        variant("stable,fmt", "stable", fmt=True),
        variant("stable,clippy", "stable", lint=True),
        variant("nightly", "nightly", features="unstable", bench=True),
        variant("stable,serialize", "stable", features="serialize"),
        variant("nightly,serialize", "nightly", features="serialize,unstable", bench=True),
    )
