import signal
import threading
from typing import Optional

from dotenv import load_dotenv

from infrastructure.configuration import settings
from infrastructure.logging import get_module_logger
from jobs import scheduled_tasks
from modules.pipeline import PipelineOrchestrator, build_orchestrator

logger = get_module_logger()

load_dotenv()

SHUTDOWN_TIMEOUT_SECONDS = 30


def main(
    orchestrator: Optional[PipelineOrchestrator] = None,
    shutdown_event: Optional[threading.Event] = None,
    run_on_startup: bool = True,
):
    """Main function to start the application."""
    logger.info(
        "application_startup",
        environment=settings.ENVIRONMENT,
        git_sha=settings.GIT_SHA,
    )
    list_configs()

    if orchestrator is None:
        orchestrator = build_orchestrator(settings)

    scheduled_tasks.init(orchestrator, settings)
    stop_run_continuously = scheduled_tasks.run_continuously()

    shutdown = shutdown_event or threading.Event()
    register_signal_handlers(shutdown)

    if run_on_startup:
        scheduled_tasks.trigger_pipeline(orchestrator)

    shutdown.wait()

    logger.info("application_shutdown_started")
    stop_run_continuously.set()
    if orchestrator.stop():
        logger.info("pipeline_stop_requested_on_shutdown")
    if not orchestrator.wait(timeout=SHUTDOWN_TIMEOUT_SECONDS):
        logger.warning(
            "pipeline_still_running_at_shutdown",
            timeout_seconds=SHUTDOWN_TIMEOUT_SECONDS,
        )
    logger.info("application_shutdown_completed")


def register_signal_handlers(shutdown: threading.Event):
    """Set shutdown on SIGINT and SIGTERM (main thread only)."""
    if threading.current_thread() is not threading.main_thread():
        return

    def handle_signal(signum, _frame):
        logger.info("shutdown_signal_received", signal=signal.Signals(signum).name)
        shutdown.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def list_configs():
    """List all configuration settings keys"""
    config_settings = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


if __name__ == "__main__":
    main()
