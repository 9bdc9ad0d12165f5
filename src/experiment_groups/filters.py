"""
Reusable experiment filters.

A filter is a pure predicate over UserInfo; an experiment only assigns a
user when all of its filters pass.
"""

from typing import Any, Callable, Optional

import pandas as pd

from .experiment import UserFilter
from .schema import UserInfo


def joined_at_least_days_ago(
    days: int,
    now: Optional[Callable[[], pd.Timestamp]] = None,
) -> UserFilter:
    """
    Pass users whose account is more than `days` whole days old.

    Args:
        days: Minimum account age in whole days (exclusive)
        now: Optional clock returning a timestamp, defaults to current UTC time
    """
    clock = now or (lambda: pd.Timestamp.now(tz="UTC"))

    def _filter(user_info: UserInfo) -> bool:
        current = pd.Timestamp(clock())
        if current.tzinfo is None:
            current = current.tz_localize("UTC")
        return (current - user_info.joined_at).days > days

    _filter.__name__ = f"joined_at_least_{days}_days_ago"
    return _filter


def new_users_only(user_info: UserInfo) -> bool:
    return user_info.is_new_user


def existing_users_only(user_info: UserInfo) -> bool:
    return not user_info.is_new_user


def attribute_equals(key: str, expected: Any) -> UserFilter:
    """Pass users whose `key` attribute equals `expected`."""

    def _filter(user_info: UserInfo) -> bool:
        return user_info.get(key) == expected

    _filter.__name__ = f"{key}_equals_{expected!r}"
    return _filter
