"""
Aggregate reporting over many users' stored assignments.

Input: mapping of user id -> that user's key-value store, plus the registry.
Output: pandas tables of assignments and per-group counts, and a group
balance check for included users.
"""

import logging
from typing import Any, Dict, Iterable, Mapping

import numpy as np
import pandas as pd

from .experiment import Experiment
from .schema import NONE_SCHEMA_VALUE, NONE_VALUE
from .store import AssignmentStore, DEFAULT_KEY_PREFIX, KeyValueStore
from .stats import check_srm

logger = logging.getLogger(__name__)

ASSIGNMENT_COLUMNS = [
    "user_id",
    "experiment",
    "assigned",
    "value",
    "schema_value",
    "percentage_last_assigned",
]


def assignment_table(
    stores: Mapping[str, KeyValueStore],
    experiments: Iterable[Experiment],
    key_prefix: str = DEFAULT_KEY_PREFIX,
) -> pd.DataFrame:
    """
    One row per (user, experiment) read straight from the stores.

    Args:
        stores: Mapping user id -> KeyValueStore
        experiments: Experiments to report (e.g. an ExperimentRegistry)
        key_prefix: Namespace used when the assignments were written

    Returns:
        DataFrame with ASSIGNMENT_COLUMNS; `assigned` is False for users
        with no stored value, `percentage_last_assigned` NaN when unset
    """
    experiments = list(experiments)
    rows = []
    for user_id, store in stores.items():
        assignments = AssignmentStore(store, prefix=key_prefix)
        for experiment in experiments:
            raw_value = store.get_item(assignments.group_key(experiment.name))
            raw_pct = store.get_item(assignments.percentage_key(experiment.name))
            value = raw_value or NONE_VALUE
            group = experiment.group_for_value(value)
            rows.append({
                "user_id": user_id,
                "experiment": experiment.name,
                "assigned": assignments.has_group_value(experiment.name),
                "value": value,
                "schema_value": group.schema_value if group else NONE_SCHEMA_VALUE,
                "percentage_last_assigned": (
                    assignments.get_percentage_last_assigned(experiment.name)
                    if raw_pct is not None else np.nan
                ),
            })
    return pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS)


def summarize_assignments(table: pd.DataFrame) -> pd.DataFrame:
    """
    Count users per experiment and group value.

    Returns:
        DataFrame with columns experiment, value, n_users, share
    """
    if table.empty:
        return pd.DataFrame(columns=["experiment", "value", "n_users", "share"])

    counts = (
        table.groupby(["experiment", "value"])
        .size()
        .rename("n_users")
        .reset_index()
    )
    totals = table.groupby("experiment").size()
    counts["share"] = counts["n_users"] / counts["experiment"].map(totals)
    logger.info(
        f"Summarized {table['user_id'].nunique()} users across "
        f"{table['experiment'].nunique()} experiments"
    )
    return counts.sort_values(["experiment", "value"]).reset_index(drop=True)


def check_group_balance(
    table: pd.DataFrame,
    experiment: Experiment,
    alpha: float = 0.01,
) -> Dict[str, Any]:
    """
    SRM check that included users are split uniformly across groups.

    Returns:
        Dict with srm_passed, chi2, p_value and per-group counts
    """
    sub = table[(table["experiment"] == experiment.name) & (table["value"] != NONE_VALUE)]
    values = [g.value for g in experiment.assignable_groups]
    counts = {v: int((sub["value"] == v).sum()) for v in values}

    srm_passed, chi2, p_value = check_srm(list(counts.values()), alpha=alpha)
    if not srm_passed:
        logger.warning(
            f"Group imbalance in '{experiment.name}': {counts} (p={p_value:.4g})"
        )
    return {
        "experiment": experiment.name,
        "srm_passed": srm_passed,
        "chi2": chi2,
        "p_value": p_value,
        "counts": counts,
    }
