"""
Pytest configuration and fixtures
"""
import logging

import pytest

from config import Settings
from intake.application import TicketIntakePipeline
from intake.domain import Customer, Ticket
from intake.infrastructure import (
    InMemoryCustomerRepository,
    InMemoryTicketRepository,
    StaticRulesProvider,
)


@pytest.fixture
def rules_provider() -> StaticRulesProvider:
    return StaticRulesProvider()


@pytest.fixture
def make_pipeline(rules_provider):
    """Factory for pipelines with settings overrides; disposes them afterwards."""
    created = []

    def _make(provider=None, **overrides) -> TicketIntakePipeline:
        settings = Settings(environment="testing", **overrides)
        pipeline = TicketIntakePipeline(
            ticket_repository=InMemoryTicketRepository(),
            customer_repository=InMemoryCustomerRepository(),
            rules_provider=provider or rules_provider,
            settings=settings,
        )
        created.append(pipeline)
        return pipeline

    yield _make

    for pipeline in created:
        pipeline.dispose()


@pytest.fixture
def pipeline(make_pipeline) -> TicketIntakePipeline:
    return make_pipeline()


@pytest.fixture
def acme_customer_data() -> dict:
    """Customer payload as sent by the registration collaborator"""
    return {
        "name": "Acme Corp",
        "domain": "acme.com",
        "emails": ["support@acme.com"],
        "contract": "enterprise",
        "priority": "high",
        "location": "Building A",
        "department": "IT",
    }


@pytest.fixture
def acme_customer() -> Customer:
    return Customer(
        id="customer-acme",
        name="Acme Corp",
        domain="acme.com",
        emails=["support@acme.com"],
        contract="enterprise",
        priority="high",
    )


@pytest.fixture
def hardware_ticket() -> Ticket:
    return Ticket(
        id="TICKET-001",
        title="Computer not booting up",
        description="Pressed the power button but there are no lights at all",
        requester_email="jane@acme.com",
    )


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler changes made by setup_logging during a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
