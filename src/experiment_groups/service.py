"""
Experiment service: the entry points the application calls.

One service instance wraps a user's assignment store together with the
experiment registry, random source and sync reporter. Only
assign_user_to_test_groups writes; everything else is a pure read.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from .assignment import NumpyRandomSource, RandomSource, assign_test_group
from .registry import ExperimentRegistry
from .reporting import Reporter, report_experiment_groups
from .schema import (
    NONE_GROUP_KEY,
    NONE_SCHEMA_VALUE,
    NONE_VALUE,
    ExperimentGroup,
    UserInfo,
    coerce_user_info,
)
from .store import AssignmentStore, DEFAULT_KEY_PREFIX, KeyValueStore

logger = logging.getLogger(__name__)


class ExperimentService:
    """
    Assigns and reads back experiment groups for one user runtime.

    Args:
        registry: ExperimentRegistry (or iterable of Experiment)
        store: The user's persistent key-value store
        random_source: Uniform [0, 1) source, defaults to NumpyRandomSource
        reporter: Optional callable(user_id, {name: schema_value}). It runs on
            the calling thread, so wrap network reporters in
            FireAndForgetReporter to keep assignment from waiting on I/O
        key_prefix: Namespace for store keys
    """

    def __init__(
        self,
        registry: Union[ExperimentRegistry, Iterable],
        store: KeyValueStore,
        random_source: Optional[RandomSource] = None,
        reporter: Optional[Reporter] = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.registry = registry
        self.assignments = AssignmentStore(store, prefix=key_prefix)
        self.random_source = random_source or NumpyRandomSource()
        self.reporter = reporter

    @property
    def registry(self) -> ExperimentRegistry:
        return self._registry

    @registry.setter
    def registry(self, registry: Union[ExperimentRegistry, Iterable]) -> None:
        if not isinstance(registry, ExperimentRegistry):
            registry = ExperimentRegistry(registry)
        self._registry = registry

    def get_user_experiment_group(self, experiment_name: str) -> str:
        """
        Stored group value for an experiment, or "none".

        Unknown, inactive and disabled experiments, and stored values that
        match no group of the experiment, all read as "none".
        """
        experiment = self._registry.get(experiment_name)
        if experiment is None or not experiment.is_live:
            return NONE_VALUE
        value = self.assignments.get_group_value(experiment_name)
        if experiment.group_for_value(value) is None:
            return NONE_VALUE
        return value

    def get_experiment_groups(self, experiment_name: str) -> Dict[str, str]:
        """Mapping group key -> value for an experiment, always with NONE."""
        experiment = self._registry.get(experiment_name)
        if experiment is None:
            return {NONE_GROUP_KEY: NONE_VALUE}
        return experiment.group_values()

    def assign_user_to_test_groups(self, user_info: Union[UserInfo, Dict[str, Any]]) -> Dict[str, ExperimentGroup]:
        """
        Assign the user to every active, non-disabled experiment.

        Expected to run once per session. Inactive and disabled experiments
        are neither read nor written. Experiments touched in this call are
        reported together in a single sync call.

        Returns:
            Dict of experiment name -> assigned ExperimentGroup
        """
        user_info = coerce_user_info(user_info)
        assigned: Dict[str, ExperimentGroup] = {}
        for experiment in self._registry:
            if not experiment.is_live:
                continue
            group = assign_test_group(
                experiment, user_info, self.assignments, self.random_source
            )
            if group is not None:
                assigned[experiment.name] = group

        report_experiment_groups(
            self.reporter,
            user_info.id,
            {name: group.schema_value for name, group in assigned.items()},
        )
        logger.info(
            f"Assigned user {user_info.id} to {len(assigned)} of "
            f"{len(self._registry)} experiments"
        )
        return assigned

    def get_user_test_groups_for_mutation(self) -> Dict[str, str]:
        """Schema value of the stored group for every registered experiment."""
        groups = {}
        for experiment in self._registry:
            value = self.get_user_experiment_group(experiment.name)
            group = experiment.group_for_value(value)
            groups[experiment.name] = group.schema_value if group else NONE_SCHEMA_VALUE
        return groups
