"""
Non-fatal conditions raised during separation.

A condition never aborts the computation. It is attached to the result and
also emitted through the warnings machinery so it cannot go unnoticed.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ConvergenceWarning(RuntimeWarning):
    """Fixed-point iteration hit its cap before meeting epsilon."""


class DegenerateCovarianceWarning(RuntimeWarning):
    """Covariance has near-zero eigenvalues (rank-deficient input)."""


@dataclass
class NonConvergenceCondition:
    """
    Iteration limit reached without meeting the epsilon threshold.

    component is None for the symmetric approach (all rows estimated
    jointly) and the row index for the deflation approach.
    """
    approach: str
    max_iterations: int
    epsilon: float
    final_delta: float
    component: Optional[int] = None

    @property
    def message(self) -> str:
        target = "components" if self.component is None else f"component {self.component}"
        return (
            f"{self.approach}: {target} did not converge in {self.max_iterations} "
            f"iterations (delta={self.final_delta:.3g}, epsilon={self.epsilon:.3g})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'condition': 'non_convergence',
            'approach': self.approach,
            'component': self.component,
            'max_iterations': self.max_iterations,
            'epsilon': self.epsilon,
            'final_delta': self.final_delta,
        }


@dataclass
class DegenerateCovarianceCondition:
    """Near-zero covariance eigenvalues were floored during whitening."""
    n_degenerate: int
    eigenvalues: List[float] = field(default_factory=list)
    floor: float = 0.0
    tolerance: float = 0.0

    @property
    def message(self) -> str:
        return (
            f"{self.n_degenerate} near-zero covariance eigenvalue(s) "
            f"(<= {self.tolerance:.3g} x largest); floored at {self.floor:.3g}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'condition': 'degenerate_covariance',
            'n_degenerate': self.n_degenerate,
            'eigenvalues': list(self.eigenvalues),
            'floor': self.floor,
            'tolerance': self.tolerance,
        }


def report_condition(condition, stacklevel: int = 3) -> None:
    """Emit a condition as a warning of the matching category."""
    if isinstance(condition, NonConvergenceCondition):
        category = ConvergenceWarning
    else:
        category = DegenerateCovarianceWarning
    warnings.warn(condition.message, category, stacklevel=stacklevel)
