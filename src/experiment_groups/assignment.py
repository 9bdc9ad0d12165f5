"""
Experiment group assignment for a single user.

Inclusion uses a monotonic reassignment rule: a user who was already placed
in a real group stays included whatever the target percentage does, and a
previously excluded user is only swept in at the marginal rate implied by
the target growing since their last assignment. Included users then get a
uniform draw over the experiment's groups.

Randomness comes from an injected RandomSource; each decision makes at most
two independent draws (inclusion, then group).
"""

import logging
from typing import Optional, Protocol, Sequence

import numpy as np

from .experiment import Experiment
from .reporting import Reporter, report_experiment_groups
from .schema import (
    NONE_GROUP,
    NONE_VALUE,
    ExperimentGroup,
    InclusionDecision,
    UserInfo,
    coerce_user_info,
)
from .store import AssignmentStore

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float:
        """Uniform draw in [0, 1)."""
        ...


class NumpyRandomSource:
    """RandomSource backed by a numpy Generator."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def random(self) -> float:
        return float(self._rng.random())


def inclusion_probability(target_percentage: float, prior_percentage: float) -> float:
    """
    Chance (in percent) that a previously excluded user is included now.

    If the target has not grown past the prior percentage, the user gets the
    plain target odds; callers only reach this case for users with no stored
    decision, whose prior defaults to 100. If it has grown, only the newly
    opened share of the previously excluded population is eligible:
    100 * (target - prior) / (100 - prior).
    """
    if target_percentage <= prior_percentage:
        return float(target_percentage)
    denominator = 100.0 - prior_percentage
    if denominator <= 0:
        return 0.0
    return 100.0 * (target_percentage - prior_percentage) / denominator


def select_group(groups: Sequence[ExperimentGroup], draw: float) -> ExperimentGroup:
    """
    Uniform categorical pick over groups in their given order.

    [0, 1) is split into equal segments; the last group absorbs rounding.
    """
    if not groups:
        return NONE_GROUP
    idx = min(int(draw * len(groups)), len(groups) - 1)
    return groups[idx]


def compute_inclusion_decision(
    experiment: Experiment,
    user_info: UserInfo,
    assignments: AssignmentStore,
    random_source: RandomSource,
) -> Optional[InclusionDecision]:
    """
    Decide one user's group for one experiment without writing anything.

    Included users stay included and get a fresh group draw. Users stored
    as "none" stay excluded without a draw unless the target has grown past
    the percentage they were last assigned at.

    Args:
        experiment: Experiment to decide for
        user_info: Current user info
        assignments: Store adapter holding prior assignment state
        random_source: Source of uniform draws

    Returns:
        InclusionDecision, or None when a filter excludes the user (abstain)
    """
    user_info = coerce_user_info(user_info)
    if not experiment.passes_filters(user_info):
        return None

    target = experiment.target_percentage(user_info)
    prior_value = assignments.get_group_value(experiment.name)

    previously_included = prior_value != NONE_VALUE
    if not previously_included:
        prior_percentage = assignments.get_percentage_last_assigned(experiment.name)
        if target <= prior_percentage and assignments.has_group_value(experiment.name):
            # excluded at a target at least this high: stays excluded
            return InclusionDecision(group=NONE_GROUP, target_percentage=target, unchanged=True)
        p = inclusion_probability(target, prior_percentage)
        if not random_source.random() * 100 < p:
            return InclusionDecision(group=NONE_GROUP, target_percentage=target)

    group = select_group(experiment.assignable_groups, random_source.random())
    return InclusionDecision(
        group=group,
        target_percentage=target,
        previously_included=previously_included,
    )


def assign_test_group(
    experiment: Experiment,
    user_info: UserInfo,
    assignments: AssignmentStore,
    random_source: RandomSource,
    reporter: Optional[Reporter] = None,
) -> Optional[ExperimentGroup]:
    """
    Compute, persist and optionally report one user's group.

    An unchanged exclusion is neither written nor reported. Store errors
    propagate; reporter errors are swallowed.

    Returns:
        The assigned group, or None if the user was filtered out
    """
    user_info = coerce_user_info(user_info)
    decision = compute_inclusion_decision(experiment, user_info, assignments, random_source)
    if decision is None:
        logger.debug(f"User {user_info.id} filtered out of '{experiment.name}'")
        return None
    if decision.unchanged:
        logger.debug(f"User {user_info.id} stays excluded from '{experiment.name}'")
        return decision.group

    assignments.save_assignment(
        experiment.name, decision.group.value, decision.target_percentage
    )
    logger.debug(
        f"User {user_info.id} assigned '{decision.group.value}' in '{experiment.name}' "
        f"(target={decision.target_percentage}%)"
    )
    if reporter is not None:
        report_experiment_groups(
            reporter, user_info.id, {experiment.name: decision.group.schema_value}
        )
    return decision.group
