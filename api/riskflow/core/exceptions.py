"""Domain errors raised by the risk workflow.

The REST layer maps these to HTTP responses in main.py.
"""


class RiskWorkflowError(Exception):
    """Base class for workflow failures. Carries a client-safe message."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class RiskNotFoundError(RiskWorkflowError):
    """Record missing, or present but not in the status an intake operation needs.

    Both cases share one error so callers cannot probe for record state.
    """

    status_code = 404


class InvalidStateError(RiskWorkflowError):
    """Operation does not apply to the current sub-record status."""

    status_code = 400
