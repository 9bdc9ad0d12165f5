"""Ordered collection of all known experiments."""

from typing import Iterable, Iterator, List, Optional

from .experiment import Experiment
from .schema import ValidationError


class ExperimentRegistry:
    """
    The source of truth for which experiments exist.

    Order is declaration order and is the order assignment runs in.
    """

    def __init__(self, experiments: Iterable[Experiment] = ()):
        self._experiments: List[Experiment] = []
        for experiment in experiments:
            self.add(experiment)

    def add(self, experiment: Experiment) -> None:
        if not isinstance(experiment, Experiment):
            raise ValidationError(f"Registry only accepts Experiment, got {type(experiment).__name__}")
        if self.get(experiment.name) is not None:
            raise ValidationError(f"Duplicate experiment name '{experiment.name}'")
        self._experiments.append(experiment)

    def get(self, name: str) -> Optional[Experiment]:
        for experiment in self._experiments:
            if experiment.name == name:
                return experiment
        return None

    def names(self) -> List[str]:
        return [e.name for e in self._experiments]

    def active_experiments(self) -> List[Experiment]:
        return [e for e in self._experiments if e.is_live]

    def __iter__(self) -> Iterator[Experiment]:
        return iter(list(self._experiments))

    def __len__(self) -> int:
        return len(self._experiments)

    def __contains__(self, name: object) -> bool:
        return self.get(name) is not None
