"""
Sample Ratio Mismatch (SRM) chi-square test.

Detects whether observed group sizes deviate significantly from the
expected split across an experiment's groups.
"""

from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import stats


def srm_chi_square(
    observed: Sequence[int],
    expected_fracs: Optional[Sequence[float]] = None,
) -> Tuple[float, float]:
    """
    Chi-square goodness-of-fit test for sample ratio mismatch.

    H0: observed counts follow the expected fractions
    H1: they do not

    Args:
        observed: Count of users per group
        expected_fracs: Expected fraction per group (default uniform)

    Returns:
        Tuple of (chi2_statistic, p_value)
    """
    observed = np.asarray(observed, dtype=float)
    n_total = observed.sum()
    if len(observed) < 2 or n_total == 0:
        return 0.0, 1.0

    if expected_fracs is None:
        expected_fracs = np.full(len(observed), 1.0 / len(observed))
    expected_fracs = np.asarray(expected_fracs, dtype=float)
    if len(expected_fracs) != len(observed):
        raise ValueError("expected_fracs length must match observed")
    expected = n_total * expected_fracs / expected_fracs.sum()

    # Avoid division by zero
    expected = np.where(expected == 0, 1e-10, expected)

    chi2 = np.sum((observed - expected) ** 2 / expected)
    p_value = 1 - stats.chi2.cdf(chi2, df=len(observed) - 1)

    return float(chi2), float(p_value)


def check_srm(
    observed: Sequence[int],
    expected_fracs: Optional[Sequence[float]] = None,
    alpha: float = 0.01,
) -> Tuple[bool, float, float]:
    """
    Check for sample ratio mismatch.

    Returns:
        Tuple of (srm_passed, chi2_statistic, p_value)
    """
    chi2, p_value = srm_chi_square(observed, expected_fracs)
    srm_passed = p_value >= alpha
    return srm_passed, chi2, p_value
