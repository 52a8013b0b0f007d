"""
Errors raised by the scenario harness.

Three kinds of failure are kept apart:

- ConfigurationError: the run can't start (missing endpoint, bad config file).
- CollaboratorRejected: a call into the chain reverted.
- InvariantViolation: every call succeeded but an observed value is wrong.

Nothing here is retried. A failed state changing call aborts the scenario.
"""

from contextlib import contextmanager


class ConfigurationError(ValueError):
    """Missing or invalid scenario configuration"""


class ScenarioError(Exception):
    """
    Base for failures that happen while a scenario is running.

    Attributes:
        phase: the last phase the scenario completed (None until set by the harness)
        outcome: the partially filled ScenarioOutcome, for inspection
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.phase = None
        self.outcome = None


class CollaboratorRejected(ScenarioError):
    """
    An external call reverted. `operation` names the call, e.g. 'mint'
    """

    def __init__(self, operation: str, reason: str):
        super().__init__(f"{operation} was rejected: {reason}")
        self.operation = operation
        self.reason = reason


class InvariantViolation(ScenarioError, AssertionError):
    """An observed outcome broke an expected invariant"""


@contextmanager
def reverts_as(operation: str):
    """
    Re-raise a revert (simular raises RuntimeError) as CollaboratorRejected
    """
    try:
        yield
    except RuntimeError as e:
        raise CollaboratorRejected(operation, str(e)) from e
