"""Structlog configuration for the pipeline service.

Every event carries the run context bound by the orchestrator (run_id,
task_id), the environment and deployed git sha, and the calling file, line
and function. Development renders to the console, production emits one JSON
object per line. Under pytest nothing is emitted.

Usage:
    from infrastructure.logging import get_module_logger

    logger = get_module_logger()
    logger.info("pipeline_stage_started", stage="download")
"""

import inspect
import logging
import sys
from typing import Any, Callable, List, Optional

import structlog
from structlog.stdlib import BoundLogger

from infrastructure.configuration import Settings, settings as default_settings

Processor = Callable[[Any, str, dict], dict]

SUPPRESSED_LEVEL = logging.CRITICAL + 1


def _is_test_environment() -> bool:
    """True when running under pytest."""
    return "pytest" in sys.modules


def resolve_log_level(name: Optional[str]) -> int:
    """Map a level name such as 'debug' to its logging constant (INFO if unknown)."""
    if not name:
        return logging.INFO
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def service_context(settings: Settings) -> Processor:
    """Processor adding environment and git_sha unless the event already has them."""
    environment = getattr(settings, "ENVIRONMENT", None)
    git_sha = getattr(settings, "GIT_SHA", None)

    def _add_service_context(_logger, _method_name, event_dict):
        if environment is not None:
            event_dict.setdefault("environment", environment)
        if git_sha is not None:
            event_dict.setdefault("git_sha", git_sha)
        return event_dict

    return _add_service_context


def build_processors(settings: Settings, prod_mode: bool) -> List[Processor]:
    """Processor chain, ending with the JSON or console renderer."""
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        service_context(settings),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if prod_mode:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def _suppress_output() -> BoundLogger:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=SUPPRESSED_LEVEL, force=True)
    logging.root.setLevel(SUPPRESSED_LEVEL)
    return structlog.stdlib.get_logger()


def configure_logging(
    settings: Optional[Settings] = None,
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
) -> BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Settings instance (the global settings when omitted)
        log_level: Level name overriding settings.LOG_LEVEL
        is_production: Overrides settings.is_production (JSON vs console output)

    Returns:
        Configured logger instance
    """
    if _is_test_environment():
        return _suppress_output()

    settings = settings or default_settings
    prod_mode = settings.is_production if is_production is None else is_production

    structlog.configure(
        processors=build_processors(settings, prod_mode),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        level=resolve_log_level(log_level or settings.LOG_LEVEL),
    )
    return structlog.stdlib.get_logger()


logger: BoundLogger = configure_logging()


def get_module_logger() -> BoundLogger:
    """Logger bound to the calling module.

    The module `modules.pipeline.orchestrator` gets
    component="orchestrator" and module_path="modules.pipeline.orchestrator".
    """
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    module = inspect.getmodule(caller) if caller is not None else None
    if module is None:
        return logger.bind(component="unknown")

    module_name = module.__name__
    return logger.bind(
        component=module_name.rsplit(".", 1)[-1],
        module_path=module_name,
    )
