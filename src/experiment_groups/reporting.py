"""
Reporting assignments to the remote sync endpoint.

A reporter is any callable taking (user_id, {experiment_name: schema_value}).
Reports are fire-and-forget: failures are logged and never affect local
state or the result of an assignment call.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

Reporter = Callable[[str, Dict[str, str]], object]


def report_experiment_groups(
    reporter: Optional[Reporter],
    user_id: str,
    experiment_groups: Mapping[str, str],
) -> bool:
    """
    Send an assignment report, swallowing any error.

    Args:
        reporter: Callable receiving (user_id, experiment_groups), or None
        user_id: Current user identifier
        experiment_groups: Mapping experiment name -> group schema value

    Returns:
        True if the reporter was invoked without raising
    """
    if reporter is None or not experiment_groups:
        return False
    try:
        reporter(user_id, dict(experiment_groups))
    except Exception as e:
        logger.warning(f"Experiment group report for user {user_id} failed: {e}")
        return False
    return True


class FireAndForgetReporter:
    """
    Runs a blocking sync call on a background worker.

    The assignment call returns as soon as the report is queued; failures
    are logged when the worker finishes.
    """

    def __init__(self, send: Reporter, executor: Optional[ThreadPoolExecutor] = None):
        self.send = send
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="experiment-sync"
        )

    def __call__(self, user_id: str, experiment_groups: Dict[str, str]) -> Future:
        future = self._executor.submit(self.send, user_id, experiment_groups)
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(f"Background experiment group sync failed: {exc}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
