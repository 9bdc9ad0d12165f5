"""
Experiment configuration.

An Experiment owns its groups, filters and target percentages. It is built
once from static configuration and never mutated afterwards; every
experiment carries the implicit NONE group as its fallback bucket.
"""

import logging
from dataclasses import dataclass, field
from numbers import Real
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .schema import (
    NONE_GROUP,
    NONE_GROUP_KEY,
    NONE_VALUE,
    ExperimentGroup,
    UserInfo,
    ValidationError,
)

logger = logging.getLogger(__name__)

UserFilter = Callable[[UserInfo], bool]

# camelCase keys accepted in experiment configs
_CONFIG_ALIASES = {
    "percentageOfExistingUsersInExperiment": "percentage_of_existing_users_in_experiment",
    "percentageOfNewUsersInExperiment": "percentage_of_new_users_in_experiment",
}


def _check_percentage(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not 0 <= value <= 100:
        raise ValidationError(f"{name} must be within [0, 100], got {value}")


@dataclass(frozen=True, eq=False)
class Experiment:
    """Configuration and behaviour unit for one A/B experiment."""
    name: Optional[str] = None
    active: bool = False
    disabled: bool = False
    groups: Mapping[str, ExperimentGroup] = field(default_factory=dict)
    percentage_of_existing_users_in_experiment: float = 0
    percentage_of_new_users_in_experiment: Optional[float] = None
    filters: Sequence[UserFilter] = ()

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValidationError("Experiment requires a non-empty 'name'")

        _check_percentage(
            "percentage_of_existing_users_in_experiment",
            self.percentage_of_existing_users_in_experiment,
        )
        if self.percentage_of_new_users_in_experiment is not None:
            _check_percentage(
                "percentage_of_new_users_in_experiment",
                self.percentage_of_new_users_in_experiment,
            )

        filters = tuple(self.filters or ())
        for f in filters:
            if not callable(f):
                raise ValidationError(f"Experiment '{self.name}': filter {f!r} is not callable")

        groups: Dict[str, ExperimentGroup] = {}
        seen_values = set()
        for key, group in dict(self.groups or {}).items():
            if key == NONE_GROUP_KEY:
                continue
            if isinstance(group, dict):
                group = ExperimentGroup.from_dict(group)
            elif not isinstance(group, ExperimentGroup):
                raise ValidationError(
                    f"Experiment '{self.name}': group '{key}' must be an ExperimentGroup"
                )
            if group.value == NONE_VALUE:
                raise ValidationError(
                    f"Experiment '{self.name}': group value '{NONE_VALUE}' is reserved"
                )
            if group.value in seen_values:
                raise ValidationError(
                    f"Experiment '{self.name}': duplicate group value '{group.value}'"
                )
            seen_values.add(group.value)
            groups[key] = group
        groups[NONE_GROUP_KEY] = NONE_GROUP

        object.__setattr__(self, "groups", MappingProxyType(groups))
        object.__setattr__(self, "filters", filters)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Experiment":
        """Create from a config dict with snake_case or camelCase keys."""
        kwargs = {_CONFIG_ALIASES.get(k, k): v for k, v in config.items()}
        unknown = set(kwargs) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValidationError(f"Unknown experiment config keys: {sorted(unknown)}")
        return cls(**kwargs)

    @property
    def is_live(self) -> bool:
        """Whether assignment runs for this experiment."""
        return self.active and not self.disabled

    @property
    def assignable_groups(self) -> List[ExperimentGroup]:
        """Non-implicit groups in declaration order."""
        return [g for k, g in self.groups.items() if k != NONE_GROUP_KEY]

    def target_percentage(self, user_info: UserInfo) -> float:
        if user_info.is_new_user and self.percentage_of_new_users_in_experiment is not None:
            return self.percentage_of_new_users_in_experiment
        return self.percentage_of_existing_users_in_experiment

    def passes_filters(self, user_info: UserInfo) -> bool:
        """
        Evaluate filters in declared order, stopping at the first failure.

        A filter that raises counts as failing.
        """
        for f in self.filters:
            try:
                if not f(user_info):
                    return False
            except Exception as e:
                logger.warning(f"Filter {f!r} on experiment '{self.name}' raised: {e}")
                return False
        return True

    def group_for_value(self, value: Optional[str]) -> Optional[ExperimentGroup]:
        for group in self.groups.values():
            if group.value == value:
                return group
        return None

    def group_values(self) -> Dict[str, str]:
        """Mapping of group key -> stored value, including NONE."""
        return {key: group.value for key, group in self.groups.items()}


def create_experiment_group(value: str = None, schema_value: str = None) -> ExperimentGroup:
    return ExperimentGroup(value=value, schema_value=schema_value)


def create_experiment(**config) -> Experiment:
    """Build an Experiment from keyword configuration."""
    return Experiment.from_config(config)
