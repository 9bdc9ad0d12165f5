"""
Data models for experiment group assignment.

Dataclass schemas for experiment groups, the user info passed to an
assignment session, and the inclusion decision computed for one experiment.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import pandas as pd


class ValidationError(ValueError):
    """Raised when an experiment or group configuration is malformed."""


NONE_GROUP_KEY = "NONE"
NONE_VALUE = "none"
NONE_SCHEMA_VALUE = "NONE"


@dataclass(frozen=True)
class ExperimentGroup:
    """A concrete bucket a user can land in."""
    value: str  # stored locally, used by application code to branch
    schema_value: str  # reported to the sync endpoint

    def __post_init__(self):
        for attr in ("value", "schema_value"):
            val = getattr(self, attr)
            if not isinstance(val, str) or not val:
                raise ValidationError(
                    f"ExperimentGroup requires a non-empty '{attr}', got {val!r}"
                )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperimentGroup":
        """Build a group from a config dict (accepts `schemaValue` too)."""
        if not isinstance(data, dict):
            raise ValidationError(f"Group config must be a dict, got {type(data).__name__}")
        schema_value = data.get("schema_value", data.get("schemaValue"))
        return cls(value=data.get("value"), schema_value=schema_value)


NONE_GROUP = ExperimentGroup(value=NONE_VALUE, schema_value=NONE_SCHEMA_VALUE)


@dataclass(frozen=True)
class UserInfo:
    """Per-session user info handed to filters and the assignment pass."""
    id: str
    joined: str  # ISO-8601 account creation timestamp
    is_new_user: bool = False
    # read-only, excluded from the hash
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes or {})))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserInfo":
        """Build from a provider payload; unknown keys go to `attributes`."""
        known = {"id", "joined", "isNewUser", "is_new_user"}
        is_new = data.get("is_new_user", data.get("isNewUser", False))
        return cls(
            id=data.get("id"),
            joined=data.get("joined"),
            is_new_user=bool(is_new),
            attributes={k: v for k, v in data.items() if k not in known},
        )

    @property
    def joined_at(self) -> pd.Timestamp:
        """Account creation time as a UTC timestamp."""
        ts = pd.Timestamp(self.joined)
        if ts.tzinfo is None:
            return ts.tz_localize("UTC")
        return ts.tz_convert("UTC")

    def get(self, key: str, default: Any = None) -> Any:
        if key in ("id", "joined", "is_new_user"):
            return getattr(self, key)
        return self.attributes.get(key, default)


@dataclass(frozen=True)
class InclusionDecision:
    """Outcome of one user's inclusion check for one experiment."""
    group: ExperimentGroup
    target_percentage: float
    previously_included: bool = False
    # stored state already reflects this decision; nothing to write
    unchanged: bool = False

    @property
    def included(self) -> bool:
        return self.group != NONE_GROUP


def coerce_user_info(user_info: Any) -> Optional[UserInfo]:
    """Accept either a UserInfo or a raw provider dict."""
    if user_info is None or isinstance(user_info, UserInfo):
        return user_info
    return UserInfo.from_dict(user_info)
