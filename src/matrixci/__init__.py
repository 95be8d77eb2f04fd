from .errors import ConfigurationError, StepFailure
from .matrix import load_matrix, reference_matrix
from .model import Outcome, Step, Variant, VariantResult
from .runner import run_all, run_matrix, run_variant
from .steps import STEPS, should_run
from .executor import execute
# Imported after the submodules: `from .matrix import ...` binds the
# `matrixci.matrix` submodule, which would otherwise shadow the helper.
from .dsl import matrix, variant

__all__ = [
    "matrix", "variant", "ConfigurationError", "StepFailure", "load_matrix", "reference_matrix",
    "Outcome", "Step", "Variant", "VariantResult", "run_all", "run_matrix", "run_variant",
    "STEPS", "should_run", "execute",
]
