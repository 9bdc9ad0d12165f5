"""Experiment group assignment: bucketing, monotonic reassignment and reporting."""

from .schema import (
    ValidationError,
    ExperimentGroup,
    UserInfo,
    InclusionDecision,
    NONE_GROUP,
)
from .experiment import Experiment, create_experiment, create_experiment_group
from .registry import ExperimentRegistry
from .store import AssignmentStore, InMemoryStore, JsonFileStore
from .assignment import (
    NumpyRandomSource,
    assign_test_group,
    compute_inclusion_decision,
    inclusion_probability,
    select_group,
)
from .reporting import FireAndForgetReporter, report_experiment_groups
from .service import ExperimentService
from .analyze import assignment_table, summarize_assignments, check_group_balance
from .simulate import simulate_percentage_ramp

__all__ = [
    "ValidationError",
    "ExperimentGroup",
    "UserInfo",
    "InclusionDecision",
    "NONE_GROUP",
    "Experiment",
    "create_experiment",
    "create_experiment_group",
    "ExperimentRegistry",
    "AssignmentStore",
    "InMemoryStore",
    "JsonFileStore",
    "NumpyRandomSource",
    "assign_test_group",
    "compute_inclusion_decision",
    "inclusion_probability",
    "select_group",
    "FireAndForgetReporter",
    "report_experiment_groups",
    "ExperimentService",
    "assignment_table",
    "summarize_assignments",
    "check_group_balance",
    "simulate_percentage_ramp",
]
