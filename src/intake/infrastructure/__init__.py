"""
Intake Infrastructure Layer
============================

Infrastructure implementations for ticket intake:
- Repositories: in-memory ticket and customer stores
- External: keyword rule providers (static and YAML with hot-reload)
"""

from intake.infrastructure.repositories import (
    InMemoryTicketRepository,
    InMemoryCustomerRepository,
)
from intake.infrastructure.external import (
    StaticRulesProvider,
    RulesConfigManager,
    RulesFileHandler,
)

__all__ = [
    "InMemoryTicketRepository",
    "InMemoryCustomerRepository",
    "StaticRulesProvider",
    "RulesConfigManager",
    "RulesFileHandler",
]
