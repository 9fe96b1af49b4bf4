"""Pipeline module feature settings."""

import json
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
import structlog

from infrastructure.configuration.base import FeatureSettings

logger = structlog.stdlib.get_logger().bind(component="config.pipeline")

SELECTION_STRATEGIES = ("sequential", "random", "oldest_first")
STAGE_RETRY_KEYS = {
    "max_attempts",
    "base_delay_ms",
    "backoff_multiplier",
    "jitter_fraction",
}


class PipelineFeatureSettings(FeatureSettings):
    """Configuration for the task pipeline and its trigger schedule.

    Environment Variables:
        PIPELINE_STAGES: Dotted 'package.module:function' returning the stage list
        PIPELINE_INBOX_DIR: Directory scanned for candidate tasks
        PIPELINE_SELECTION_STRATEGY: 'sequential', 'random' or 'oldest_first'
        PIPELINE_DAILY_LIMIT: Successful tasks allowed per UTC day (unset = no limit)
        PIPELINE_SCHEDULE_MINUTES: Minutes between scheduled triggers
        PIPELINE_BATCH_MAX_CONCURRENCY: Default parallelism for batch execution
        PIPELINE_STAGE_RETRY: JSON dict of per-stage retry overrides

    Stage Retry Configuration (PIPELINE_STAGE_RETRY):
        Keys are stage names, values override the process-wide retry policy.

        Schema:
            {
                "publish": {"max_attempts": 5, "base_delay_ms": 2000},
                "caption": {"max_attempts": 2, "jitter_fraction": 0.2}
            }

    Example:
        ```python
        from infrastructure.configuration import settings

        overrides = settings.pipeline.stage_retry.get("publish", {})
        ```
    """

    stages: str = Field(
        default="",
        alias="PIPELINE_STAGES",
        description="Dotted path to a callable returning the ordered stage list",
    )
    inbox_dir: str = Field(
        default="./inbox",
        alias="PIPELINE_INBOX_DIR",
        description="Directory scanned for candidate tasks",
    )
    selection_strategy: str = Field(
        default="sequential",
        alias="PIPELINE_SELECTION_STRATEGY",
        description="Candidate selection strategy",
    )
    daily_limit: Optional[int] = Field(
        default=None,
        ge=1,
        alias="PIPELINE_DAILY_LIMIT",
        description="Maximum successful tasks per UTC day",
    )
    schedule_minutes: int = Field(
        default=240,
        ge=1,
        alias="PIPELINE_SCHEDULE_MINUTES",
        description="Minutes between scheduled pipeline triggers",
    )
    batch_max_concurrency: int = Field(
        default=5,
        ge=1,
        alias="PIPELINE_BATCH_MAX_CONCURRENCY",
        description="Default concurrency for parallel batch execution",
    )
    stage_retry: dict[str, dict] = Field(
        default_factory=dict,
        alias="PIPELINE_STAGE_RETRY",
        description="Per-stage retry policy overrides",
    )

    @field_validator("selection_strategy")
    @classmethod
    def _validate_strategy(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in SELECTION_STRATEGIES:
            raise ValueError(
                f"PIPELINE_SELECTION_STRATEGY must be one of {SELECTION_STRATEGIES}, got {v!r}"
            )
        return value

    @field_validator("stage_retry", mode="before")
    @classmethod
    def _parse_stage_retry(cls, v: Optional[Any]) -> Any:
        """Parse PIPELINE_STAGE_RETRY from JSON string or dict."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return v
        if isinstance(v, str):
            s = v.strip()
            if (s.startswith("'") and s.endswith("'")) or (
                s.startswith('"') and s.endswith('"')
            ):
                s = s[1:-1]
            try:
                return json.loads(s) if s else {}
            except (json.JSONDecodeError, ValueError) as e:
                raise ValueError(
                    f"Invalid PIPELINE_STAGE_RETRY JSON: {e} (value: {s[:80]}...)"
                ) from e
        raise ValueError("PIPELINE_STAGE_RETRY must be a JSON string or a mapping")

    @field_validator("stage_retry", mode="after")
    @classmethod
    def _validate_stage_retry(cls, v: Dict[str, dict]) -> Dict[str, dict]:
        for stage_name, overrides in v.items():
            if not isinstance(overrides, dict):
                raise ValueError(
                    f"PIPELINE_STAGE_RETRY entry for '{stage_name}' must be a mapping"
                )
            unknown = set(overrides) - STAGE_RETRY_KEYS
            if unknown:
                logger.warning(
                    "stage_retry_unknown_keys",
                    stage=stage_name,
                    keys=sorted(unknown),
                )
        return v
