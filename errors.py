# errors.py


class FigmaError(Exception):
    """Base class for everything this server raises on purpose."""


class FigmaApiError(FigmaError):
    def __init__(self, status: int, err: str):
        super().__init__(f"Figma API error {status}: {err}")
        self.status = status
        self.err = err


class NodeNotFoundError(FigmaError, LookupError):
    def __init__(self, node_id: str, available=None):
        message = f"Node ID '{node_id}' not found in response."
        if available:
            message += f" Available nodes: {list(available)}"
        super().__init__(message)
        self.node_id = node_id


class InvariantViolation(FigmaError, AssertionError):
    """A simplified design failed its own consistency checks.

    This is a defect in the simplifier, never a property of the input, and
    must not be reported as a recoverable tool error.
    """
