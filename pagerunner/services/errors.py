"""Failure taxonomy for the page-action pipeline.

Request validation is handled by pydantic before a pipeline run starts, so
everything here describes a failure *after* the request was accepted.  Each
error carries the name of the stage that failed plus the underlying message,
which is what the router reports back to the caller.
"""


class PipelineError(Exception):
    """A pipeline stage failed; *stage* names it, *message* carries the cause."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message


class NavigationError(PipelineError):
    """Navigation failed or exceeded its timeout.

    *stage* is ``"initial-load"`` for the first ``goto`` and
    ``"post-interaction"`` for the navigation triggered by a click.
    """


class InteractionError(PipelineError):
    """The requested interaction could not be performed on the page."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__("interaction", message)
        self.reason = reason


class PipelineIOError(PipelineError):
    """Filesystem failure while reading a snapshot or writing an artifact."""


class SnapshotError(PipelineIOError):
    def __init__(self, message: str) -> None:
        super().__init__("session-restore", message)


class ArtifactError(PipelineIOError):
    def __init__(self, message: str) -> None:
        super().__init__("artifact", message)
