"""
Ticket Intake - Main Application
=================================

First-pass analysis of incoming support tickets.

Clean Architecture Layers:
- Interfaces: click CLI
- Application: Pipeline, services and DTOs
- Domain: Entities, rule tables and pure classifiers
- Infrastructure: In-memory stores, YAML rules with hot-reload
"""

from typing import Optional

from config import Settings, get_settings
from intake.application import TicketIntakePipeline
from intake.infrastructure import (
    InMemoryCustomerRepository, InMemoryTicketRepository, RulesConfigManager,
)
from intake.interfaces import cli
from shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_pipeline(settings: Optional[Settings] = None, configure_logging: bool = True) -> TicketIntakePipeline:
    """
    Wire a pipeline from settings.

    STARTUP:
    1. Setup structured logging
    2. Load keyword rules (defaults when the file is absent)
    3. Start the rules watcher when enabled
    4. Create empty ticket and customer stores

    Call dispose() on the result to stop the watcher.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.environment)

    rules_manager = RulesConfigManager()
    rules_manager.load(settings.rules_config_path)
    if settings.watch_rules_config:
        rules_manager.start_watching()

    pipeline = TicketIntakePipeline(
        ticket_repository=InMemoryTicketRepository(),
        customer_repository=InMemoryCustomerRepository(),
        rules_provider=rules_manager,
        settings=settings,
    )
    logger.info("Ticket intake pipeline started", extra={
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "rules_path": str(settings.rules_config_path),
    })
    return pipeline


# === Development Entry Point ===

if __name__ == "__main__":
    cli()
