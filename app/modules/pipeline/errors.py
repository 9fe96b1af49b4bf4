"""Pipeline errors."""

from infrastructure.resilience.errors import root_cause


class PipelineError(Exception):
    """Base class for pipeline errors."""


class PipelineStageError(PipelineError):
    """A stage exhausted its retries (or failed permanently).

    Attributes:
        stage_index: Zero-based position of the failing stage
        stage_name: Name of the failing stage
        error: The error raised by the resilience layer
    """

    def __init__(self, stage_index: int, stage_name: str, error: BaseException):
        self.stage_index = stage_index
        self.stage_name = stage_name
        self.error = error
        super().__init__(f"Stage '{stage_name}' (#{stage_index}) failed: {error}")

    @property
    def cause(self) -> BaseException:
        """The underlying stage error, unwrapped from RetriesExhaustedError."""
        return root_cause(self.error)


class StageConfigurationError(PipelineError):
    """The stage list is invalid or could not be loaded."""
