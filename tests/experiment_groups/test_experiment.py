"""Tests for Experiment and ExperimentGroup construction."""
import dataclasses

import pytest

from src.experiment_groups.experiment import (
    Experiment,
    create_experiment,
    create_experiment_group,
)
from src.experiment_groups.schema import NONE_GROUP, ExperimentGroup, UserInfo, ValidationError


def _groups():
    return {
        "MY_CONTROL_GROUP": create_experiment_group(value="sameOld", schema_value="THE_CONTROL"),
        "FUN_EXPERIMENT": create_experiment_group(value="newThing", schema_value="EXPERIMENT"),
    }


def test_create_experiment_defaults():
    """Unset fields take their defaults and NONE is injected."""
    exp = create_experiment(name="fooTest")
    assert exp.name == "fooTest"
    assert exp.active is False
    assert exp.disabled is False
    assert exp.percentage_of_existing_users_in_experiment == 0
    assert exp.percentage_of_new_users_in_experiment is None
    assert exp.filters == ()
    assert dict(exp.groups) == {"NONE": NONE_GROUP}


def test_experiment_requires_name():
    with pytest.raises(ValidationError):
        create_experiment(active=True)
    with pytest.raises(ValidationError):
        Experiment(name="")


def test_group_requires_value_and_schema_value():
    with pytest.raises(ValidationError):
        create_experiment_group(schema_value="blah")
    with pytest.raises(ValidationError):
        ExperimentGroup(value="blah", schema_value="")


def test_group_is_immutable():
    group = create_experiment_group(value="a", schema_value="A")
    with pytest.raises(dataclasses.FrozenInstanceError):
        group.value = "b"


def test_none_group_is_last_and_shared():
    exp = create_experiment(name="fooTest", groups=_groups())
    assert list(exp.groups) == ["MY_CONTROL_GROUP", "FUN_EXPERIMENT", "NONE"]
    assert exp.groups["NONE"] is NONE_GROUP
    assert [g.value for g in exp.assignable_groups] == ["sameOld", "newThing"]


def test_user_supplied_none_key_is_replaced():
    groups = dict(_groups(), NONE=create_experiment_group(value="other", schema_value="OTHER"))
    exp = create_experiment(name="fooTest", groups=groups)
    assert exp.groups["NONE"] is NONE_GROUP
    assert len(exp.assignable_groups) == 2


def test_groups_are_read_only():
    exp = create_experiment(name="fooTest", groups=_groups())
    with pytest.raises(TypeError):
        exp.groups["NEW"] = create_experiment_group(value="x", schema_value="X")


def test_from_config_accepts_camel_case_and_group_dicts():
    exp = Experiment.from_config({
        "name": "fooTest",
        "active": True,
        "percentageOfExistingUsersInExperiment": 20,
        "percentageOfNewUsersInExperiment": 40,
        "groups": {"A": {"value": "a", "schemaValue": "THE_A"}},
    })
    assert exp.percentage_of_existing_users_in_experiment == 20
    assert exp.percentage_of_new_users_in_experiment == 40
    assert exp.groups["A"] == ExperimentGroup(value="a", schema_value="THE_A")


def test_invalid_group_fails_experiment():
    with pytest.raises(ValidationError):
        create_experiment(name="fooTest", groups={"A": {"schemaValue": "THE_A"}})
    with pytest.raises(ValidationError):
        create_experiment(name="fooTest", groups={"A": "a"})


def test_duplicate_and_reserved_group_values_rejected():
    with pytest.raises(ValidationError, match="duplicate"):
        create_experiment(name="fooTest", groups={
            "A": create_experiment_group(value="a", schema_value="A"),
            "B": create_experiment_group(value="a", schema_value="B"),
        })
    with pytest.raises(ValidationError, match="reserved"):
        create_experiment(name="fooTest", groups={
            "A": create_experiment_group(value="none", schema_value="A"),
        })


@pytest.mark.parametrize("pct", [-1, 101, "50", True])
def test_percentage_validation(pct):
    with pytest.raises(ValidationError):
        create_experiment(name="fooTest", percentage_of_existing_users_in_experiment=pct)
    with pytest.raises(ValidationError):
        create_experiment(name="fooTest", percentage_of_new_users_in_experiment=pct)


def test_non_callable_filter_rejected():
    with pytest.raises(ValidationError):
        create_experiment(name="fooTest", filters=["not a function"])


def test_unknown_config_key_rejected():
    with pytest.raises(ValidationError, match="Unknown"):
        create_experiment(name="fooTest", percentageOfEveryone=5)


def test_target_percentage_for_new_and_existing_users():
    existing = UserInfo(id="u", joined="2017-05-19T13:59:58.000Z", is_new_user=False)
    new = UserInfo(id="u", joined="2017-05-19T13:59:58.000Z", is_new_user=True)

    exp = create_experiment(
        name="fooTest",
        percentage_of_existing_users_in_experiment=20,
        percentage_of_new_users_in_experiment=40,
    )
    assert exp.target_percentage(existing) == 20
    assert exp.target_percentage(new) == 40

    fallback = create_experiment(name="fooTest", percentage_of_existing_users_in_experiment=20)
    assert fallback.target_percentage(new) == 20


def test_passes_filters_short_circuits_and_swallows_errors():
    seen = []

    def first(user_info):
        seen.append("first")
        return False

    def second(user_info):
        seen.append("second")
        return True

    def broken(user_info):
        raise KeyError("missing")

    user = UserInfo(id="u", joined="2017-05-19T13:59:58.000Z")
    assert not create_experiment(name="a", filters=[first, second]).passes_filters(user)
    assert seen == ["first"]
    assert not create_experiment(name="b", filters=[broken]).passes_filters(user)
    assert create_experiment(name="c", filters=[second]).passes_filters(user)


def test_group_values_and_reverse_lookup():
    exp = create_experiment(name="fooTest", groups=_groups())
    assert exp.group_values() == {
        "MY_CONTROL_GROUP": "sameOld",
        "FUN_EXPERIMENT": "newThing",
        "NONE": "none",
    }
    assert exp.group_for_value("newThing").schema_value == "EXPERIMENT"
    assert exp.group_for_value("none") is NONE_GROUP
    assert exp.group_for_value("bogus") is None


def test_is_live():
    assert create_experiment(name="a", active=True).is_live
    assert not create_experiment(name="a", active=True, disabled=True).is_live
    assert not create_experiment(name="a", active=False).is_live
