"""
Percentage ramp simulator.

Runs one assignment session per synthetic user for each target percentage in
a ramp schedule, using in-memory stores, and records how many users end up
included after each step. Under the monotonic reassignment rule the included
fraction should track the target at every step.
"""

import dataclasses
import logging
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from .assignment import NumpyRandomSource, assign_test_group
from .experiment import Experiment
from .schema import NONE_VALUE, UserInfo
from .store import AssignmentStore, InMemoryStore

logger = logging.getLogger(__name__)

SIMULATOR_SEED = 42
SIMULATED_JOIN_DATE = "2017-01-01T00:00:00.000Z"


def simulate_percentage_ramp(
    experiment: Experiment,
    schedule: Sequence[float],
    n_users: int = 1000,
    random_seed: int = SIMULATOR_SEED,
) -> Tuple[pd.DataFrame, Dict[str, InMemoryStore]]:
    """
    Simulate growing an experiment's existing-user percentage over sessions.

    Args:
        experiment: Base experiment; its filters and groups are kept
        schedule: Target percentages, one session per user per step
        n_users: Number of synthetic existing users
        random_seed: Seed for the shared random source

    Returns:
        Tuple of (DataFrame with step, target_percentage, n_included,
        included_fraction; mapping user id -> final store)
    """
    rng = NumpyRandomSource(random_seed)
    users = [
        UserInfo(id=f"user_{i}", joined=SIMULATED_JOIN_DATE, is_new_user=False)
        for i in range(n_users)
    ]
    stores = {u.id: InMemoryStore() for u in users}

    rows: List[dict] = []
    for step, pct in enumerate(schedule):
        stepped = dataclasses.replace(
            experiment,
            percentage_of_existing_users_in_experiment=pct,
            percentage_of_new_users_in_experiment=None,
        )
        n_included = 0
        for user in users:
            assignments = AssignmentStore(stores[user.id])
            assign_test_group(stepped, user, assignments, rng)
            if assignments.get_group_value(stepped.name) != NONE_VALUE:
                n_included += 1
        rows.append({
            "step": step,
            "target_percentage": pct,
            "n_included": n_included,
            "included_fraction": n_included / n_users if n_users else 0.0,
        })

    ramp = pd.DataFrame(rows)
    final = rows[-1] if rows else None
    logger.info(f"Ramp simulation complete for '{experiment.name}': {final}")
    return ramp, stores
