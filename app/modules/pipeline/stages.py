"""Pipeline stage definition.

A stage wraps one external call. It may have several alternative
implementations (for example two upload strategies); each attempt made by
the retry executor tries them in order and returns the first success.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple, Union

from infrastructure.logging import get_module_logger
from infrastructure.resilience.retry.config import RetryConfig
from modules.pipeline.contracts import CompensationCallable, StageCallable

logger = get_module_logger()


@dataclass(frozen=True)
class Stage:
    """One step of the fixed stage sequence.

    Args:
        name: Stage name, unique within a pipeline; also used for retry overrides
        implementations: Callable or ordered alternatives, each (input) -> output
        compensate: Undo for a completed stage, called with its output
        retry_config: Stage-specific retry policy (defaults to the process-wide one)
        circuit_name: Guard calls with this circuit breaker when set
        cleanup_on_success: Also run compensate after a successful run
        is_retriable: Failure classifier for retries and the circuit breaker
    """

    name: str
    implementations: Union[StageCallable, Sequence[StageCallable]]
    compensate: Optional[CompensationCallable] = None
    retry_config: Optional[RetryConfig] = None
    circuit_name: Optional[str] = None
    cleanup_on_success: bool = False
    is_retriable: Optional[Callable[[BaseException], bool]] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Stage name must not be empty")
        impls = self.implementations
        impls = (impls,) if callable(impls) else tuple(impls)
        if not impls:
            raise ValueError(f"Stage '{self.name}' has no implementations")
        for impl in impls:
            if not callable(impl):
                raise TypeError(f"Stage '{self.name}' implementation is not callable")
        object.__setattr__(self, "implementations", impls)

    @property
    def alternatives(self) -> Tuple[StageCallable, ...]:
        return self.implementations  # type: ignore[return-value]

    def attempt(self, stage_input: Any) -> Any:
        """Run the alternatives in order and return the first result.

        Raises:
            Exception: The error of the last alternative when all of them fail
        """
        total = len(self.alternatives)
        for position, impl in enumerate(self.alternatives, start=1):
            try:
                return impl(stage_input)
            except Exception as e:
                if position == total:
                    raise
                logger.warning(
                    "stage_alternative_failed",
                    stage=self.name,
                    alternative=getattr(impl, "__name__", repr(impl)),
                    position=position,
                    remaining=total - position,
                    error=str(e),
                )
