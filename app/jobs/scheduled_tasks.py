import threading
import time
from typing import TYPE_CHECKING

import schedule

from infrastructure.logging import get_module_logger

if TYPE_CHECKING:
    from infrastructure.configuration import Settings
    from modules.pipeline import PipelineOrchestrator

logger = get_module_logger()


def safe_run(job):
    def wrapper(*args, **kwargs):
        try:
            return job(*args, **kwargs)
        except Exception as e:
            logger.error(
                "safe_run_error",
                error=str(e),
                module=job.__module__,
                function=job.__name__,
                arguments=kwargs,
                job_args=args,
            )

    return wrapper


def init(orchestrator: "PipelineOrchestrator", settings: "Settings"):
    logger.info(
        "scheduled_tasks_initialized",
        pipeline_interval_minutes=settings.pipeline.schedule_minutes,
    )

    schedule.every(settings.pipeline.schedule_minutes).minutes.do(
        safe_run(trigger_pipeline), orchestrator=orchestrator
    )
    schedule.every(5).minutes.do(safe_run(scheduler_heartbeat))
    schedule.every(5).minutes.do(
        safe_run(report_pipeline_status), orchestrator=orchestrator
    )


def trigger_pipeline(orchestrator: "PipelineOrchestrator"):
    """Scheduled trigger; a busy orchestrator is not an error."""
    result = orchestrator.run_once()
    if result.accepted:
        logger.info("scheduled_pipeline_run_started", run_id=result.run_id)
    else:
        logger.info(
            "scheduled_pipeline_run_skipped",
            reason=result.reason,
            run_id=result.run_id,
        )
    return result


def scheduler_heartbeat():
    logger.info(
        "running_scheduler_heartbeat",
        module="scheduled_tasks",
        time=time.ctime(),
    )


def report_pipeline_status(orchestrator: "PipelineOrchestrator"):
    status = orchestrator.get_status()
    stats = orchestrator.get_stats()
    logger.info(
        "pipeline_status",
        in_flight=status.in_flight,
        phase=status.phase.value,
        current_task_id=status.current_task_id,
        last_status=status.last_outcome.status.value if status.last_outcome else None,
        processed_today=stats.processed_today,
        succeeded=stats.succeeded,
        failed=stats.failed,
    )


def run_continuously(interval=1):
    """Continuously run, while executing pending jobs at each
    elapsed time interval.
    @return cease_continuous_run: threading. Event which can
    be set to cease continuous run. Please note that it is
    *intended behavior that run_continuously() does not run
    missed jobs*. For example, if you've registered a job that
    should run every minute and you set a continuous run
    interval of one hour then your job won't be run 60 times
    at each interval but only once.
    """
    cease_continuous_run = threading.Event()

    class ScheduleThread(threading.Thread):
        @classmethod
        def run(cls):
            while not cease_continuous_run.is_set():
                schedule.run_pending()
                time.sleep(interval)

    continuous_thread = ScheduleThread(daemon=True)
    continuous_thread.start()
    return cease_continuous_run
