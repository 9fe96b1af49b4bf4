"""Infrastructure modules for the pipeline service.

Centralized infrastructure components:
- configuration: Settings management (settings, Settings)
- logging: Structured logging (configure_logging, get_module_logger)
- resilience: Backoff, retry executor, batch executor and circuit breakers
- ledger: Durable record of processed tasks
"""
