"""
Experiments currently defined for the product.

Retired experiments stay here with disabled=True so their names and groups
remain available for reporting history.
"""

from typing import List

from .experiment import Experiment, create_experiment, create_experiment_group
from .filters import new_users_only
from .registry import ExperimentRegistry

EXPERIMENTS: List[Experiment] = [
    create_experiment(
        name="adExplanation",
        active=True,
        disabled=False,
        percentageOfExistingUsersInExperiment=10,
        percentageOfNewUsersInExperiment=10,
        groups={
            "DEFAULT": create_experiment_group(value="default", schema_value="NO_EXPLANATION"),
            "SHOW_EXPLANATION": create_experiment_group(
                value="explanation", schema_value="SHOW_EXPLANATION"
            ),
        },
    ),
    create_experiment(
        name="oneAdForNewUsers",
        active=True,
        disabled=False,
        percentageOfExistingUsersInExperiment=0,
        percentageOfNewUsersInExperiment=50,
        filters=[new_users_only],
        groups={
            "DEFAULT": create_experiment_group(value="default", schema_value="DEFAULT"),
            "ONE_AD_AT_MOST": create_experiment_group(value="oneAd", schema_value="ONE_AD_AT_MOST"),
        },
    ),
]


def default_registry() -> ExperimentRegistry:
    """Registry holding the product's experiment definitions."""
    return ExperimentRegistry(EXPERIMENTS)
