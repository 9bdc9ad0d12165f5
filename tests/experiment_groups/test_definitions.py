"""Tests for the experiments we are running."""
from src.experiment_groups.definitions import EXPERIMENTS, default_registry
from src.experiment_groups.schema import ExperimentGroup, UserInfo


def test_experiments_match_expected():
    by_name = sorted(EXPERIMENTS, key=lambda e: e.name)
    assert [(e.name, e.active, e.disabled) for e in by_name] == [
        ("adExplanation", True, False),
        ("oneAdForNewUsers", True, False),
    ]


def test_experiments_have_valid_groups():
    for exp in EXPERIMENTS:
        assert "NONE" in exp.groups
        for group in exp.groups.values():
            assert isinstance(group, ExperimentGroup)
            assert group.value and group.schema_value


def test_one_ad_experiment_only_targets_new_users():
    exp = default_registry().get("oneAdForNewUsers")
    joined = "2017-05-19T13:59:58.000Z"
    assert exp.passes_filters(UserInfo(id="u", joined=joined, is_new_user=True))
    assert not exp.passes_filters(UserInfo(id="u", joined=joined, is_new_user=False))


def test_default_registry():
    registry = default_registry()
    assert registry.names() == ["adExplanation", "oneAdForNewUsers"]
