"""
Intake Infrastructure Repositories
===================================

In-memory implementations of the intake repository interfaces.

Stores live for the lifetime of a pipeline instance. Every mutation and
snapshot happens under the store's lock, so a reader never sees a
half-applied write.
"""

import threading
from typing import Dict, List, Optional

from core import TicketConflictException
from intake.application.services import ICustomerRepository, ITicketRepository
from intake.domain import Customer, DecoratedTicket


class InMemoryTicketRepository(ITicketRepository):
    """
    Dict backed store of processed tickets keyed by ticket id.

    Insertion order is preserved (dicts are ordered), which keeps
    duplicate analysis and search deterministic.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, DecoratedTicket] = {}

    def add(self, record: DecoratedTicket) -> DecoratedTicket:
        with self._lock:
            if record.id in self._records:
                raise TicketConflictException(record.id)
            self._records[record.id] = record
        return record

    def get(self, ticket_id: str) -> Optional[DecoratedTicket]:
        with self._lock:
            return self._records.get(ticket_id)

    def exists(self, ticket_id: str) -> bool:
        with self._lock:
            return ticket_id in self._records

    def snapshot(self) -> List[DecoratedTicket]:
        with self._lock:
            return list(self._records.values())

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class InMemoryCustomerRepository(ICustomerRepository):
    """Customer registry in registration order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._customers: Dict[str, Customer] = {}

    def add(self, customer: Customer) -> Customer:
        with self._lock:
            self._customers[customer.id] = customer
        return customer

    def get(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            return self._customers.get(customer_id)

    def snapshot(self) -> List[Customer]:
        with self._lock:
            return list(self._customers.values())

    def count(self) -> int:
        with self._lock:
            return len(self._customers)

    def clear(self) -> None:
        with self._lock:
            self._customers.clear()
