import threading
from unittest.mock import MagicMock, patch

import main


@patch("main.register_signal_handlers")
@patch("main.scheduled_tasks")
@patch("main.build_orchestrator")
def test_main_builds_and_schedules_the_pipeline(
    mock_build_orchestrator, mock_scheduled_tasks, mock_register_signal_handlers
):
    shutdown = threading.Event()
    shutdown.set()
    orchestrator = mock_build_orchestrator.return_value
    orchestrator.stop.return_value = False
    orchestrator.wait.return_value = True

    main.main(shutdown_event=shutdown)

    mock_build_orchestrator.assert_called_once_with(main.settings)
    mock_scheduled_tasks.init.assert_called_once_with(orchestrator, main.settings)
    mock_scheduled_tasks.run_continuously.assert_called_once_with()
    mock_scheduled_tasks.trigger_pipeline.assert_called_once_with(orchestrator)
    mock_register_signal_handlers.assert_called_once_with(shutdown)
    mock_scheduled_tasks.run_continuously.return_value.set.assert_called_once_with()
    orchestrator.wait.assert_called_once_with(timeout=main.SHUTDOWN_TIMEOUT_SECONDS)


@patch("main.register_signal_handlers")
@patch("main.scheduled_tasks")
@patch("main.build_orchestrator")
def test_main_uses_given_orchestrator(
    mock_build_orchestrator, mock_scheduled_tasks, _mock_register_signal_handlers
):
    shutdown = threading.Event()
    shutdown.set()
    orchestrator = MagicMock()

    main.main(orchestrator, shutdown_event=shutdown, run_on_startup=False)

    mock_build_orchestrator.assert_not_called()
    mock_scheduled_tasks.trigger_pipeline.assert_not_called()
    orchestrator.stop.assert_called_once_with()


@patch("main.logger")
@patch("main.register_signal_handlers")
@patch("main.scheduled_tasks")
def test_main_warns_when_run_outlives_shutdown(
    _mock_scheduled_tasks, _mock_register_signal_handlers, mock_logger
):
    shutdown = threading.Event()
    shutdown.set()
    orchestrator = MagicMock()
    orchestrator.wait.return_value = False

    main.main(orchestrator, shutdown_event=shutdown)

    mock_logger.warning.assert_called_once_with(
        "pipeline_still_running_at_shutdown",
        timeout_seconds=main.SHUTDOWN_TIMEOUT_SECONDS,
    )


def test_register_signal_handlers_outside_main_thread_is_noop():
    shutdown = threading.Event()

    with patch("main.signal") as mock_signal:
        worker = threading.Thread(target=main.register_signal_handlers, args=(shutdown,))
        worker.start()
        worker.join()

    mock_signal.signal.assert_not_called()


@patch("main.logger")
def test_list_configs_logs_sections(mock_logger):
    main.list_configs()

    sections = [
        c.kwargs["config_setting"]
        for c in mock_logger.info.call_args_list
        if c.args[0] == "configuration_loaded"
    ]
    assert {"pipeline", "retry", "circuit_breaker", "ledger"} <= set(sections)
