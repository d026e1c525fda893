"""
Ticket Intake Pipeline
======================

Orchestrates the analysis of incoming tickets.

Per ticket the pipeline runs, in order:
1. Keyword classification
2. Customer resolution
3. Duplicate analysis against stored tickets
4. Suggestion generation

then stores the decorated record and updates trend statistics. Each step is
isolated: a failure degrades that step to its default result and the ticket
is still stored.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, TypeVar, Union
from uuid import uuid4

from pydantic import ValidationError

from config import Settings, get_settings
from core import (
    PipelineDisposedException, ResourceNotFoundException, TicketConflictException,
    ValidationException,
)
from intake.application.dto import CustomerDTO, PipelineStats, TicketDTO
from intake.application.services import (
    ClassificationService, CustomerResolver, ICustomerRepository, IRulesProvider,
    ITicketRepository, SimilarityEngine, SuggestionGenerator, TrendAggregator,
)
from intake.domain import (
    ClassificationResult, Customer, CustomerMatchResult, DecoratedTicket,
    DuplicateAnalysisResult, ProcessingMetadata, SimilarTicket, Ticket, TrendsReport,
)
from shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

T = TypeVar("T")

AUTO_APPLY_CONFIDENCE = 0.7


class TicketIntakePipeline:
    """
    Owns the ticket and customer stores and sequences the analysis steps.

    Safe to call from several threads: the stores serialize their own
    writes and duplicate analysis works on a snapshot of the ticket store
    taken when the step runs.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        customer_repository: ICustomerRepository,
        rules_provider: IRulesProvider,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._tickets = ticket_repository
        self._customers = customer_repository
        self._rules_provider = rules_provider

        self._classifier = ClassificationService(rules_provider)
        self._resolver = CustomerResolver()
        self._similarity = SimilarityEngine(
            rules_provider,
            duplicate_threshold=self._settings.duplicate_threshold,
            similarity_threshold=self._settings.similarity_threshold,
            search_threshold=self._settings.search_threshold,
            max_similar=self._settings.max_similar_tickets,
        )
        self._suggestions = SuggestionGenerator(
            extended=self._settings.enable_extended_suggestions
        )
        self._trends = TrendAggregator(history_limit=self._settings.trend_history_limit)

        self._state_lock = threading.Lock()
        self._in_flight = 0
        self._disposed = False

    # ========== Customers ==========

    def add_customer(self, data: Union[CustomerDTO, Mapping[str, Any]]) -> Customer:
        """
        Register a customer under a freshly generated id.

        Args:
            data: Customer payload (name, domain, emails, contract, priority, metadata)

        Returns:
            The stored Customer
        """
        self._ensure_active("add customer")
        if isinstance(data, CustomerDTO):
            dto = data
        elif isinstance(data, Mapping):
            try:
                dto = CustomerDTO.model_validate(dict(data))
            except ValidationError as e:
                raise ValidationException("Unusable customer payload", {"errors": e.errors()})
        else:
            raise ValidationException(
                f"Customer must be a mapping, got {type(data).__name__}"
            )
        customer = self._customers.add(dto.to_domain(f"customer-{uuid4()}"))
        logger.info("Customer registered", extra={
            "customer_id": customer.id,
            "customer_domain": customer.domain,
        })
        return customer

    # ========== Tickets ==========

    def process_ticket(self, ticket: Union[Ticket, Mapping[str, Any]]) -> DecoratedTicket:
        """
        Analyze and store one ticket.

        Args:
            ticket: A Ticket, or a mapping parsed leniently into one

        Returns:
            The decorated ticket

        Raises:
            ValidationException: ticket is missing or not a record
            TicketConflictException: the ticket id was already processed
            PipelineDisposedException: the pipeline was disposed
        """
        self._ensure_active("process ticket")
        ticket = self._to_ticket(ticket)
        if self._tickets.exists(ticket.id):
            # Checked again atomically on insert
            raise TicketConflictException(ticket.id)

        with self._state_lock:
            self._in_flight += 1
        try:
            with log_latency(logger, "process_ticket", ticket_id=ticket.id):
                decorated = self._analyze(ticket)
                self._commit(decorated)
        finally:
            with self._state_lock:
                self._in_flight -= 1

        logger.info("Ticket processed", extra={
            "ticket_id": ticket.id,
            "category": decorated.classification.category.value,
            "priority": decorated.classification.priority.value,
            "match_type": decorated.customer_match.match_type.value,
            "is_duplicate": decorated.duplicate_analysis.is_duplicate,
            "suggestions": len(decorated.suggestions),
            "degraded_steps": decorated.processing.degraded_steps,
        })
        return decorated

    def get_ticket(self, ticket_id: str) -> DecoratedTicket:
        record = self._tickets.get(ticket_id)
        if record is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return record

    def search_similar_tickets(
        self,
        title: Optional[str],
        description: Optional[str],
        limit: Optional[int] = None,
    ) -> List[SimilarTicket]:
        """Rank stored tickets by similarity to free text. Read-only."""
        limit = self._settings.default_search_limit if limit is None else limit
        corpus = [record.ticket for record in self._tickets.snapshot()]
        return self._similarity.search_similar(title, description, corpus, limit)

    # ========== Statistics ==========

    def get_trends(self) -> TrendsReport:
        return self._trends.get_trends()

    def get_stats(self) -> PipelineStats:
        with self._state_lock:
            processing = self._in_flight > 0
        return PipelineStats(
            tickets_processed=self._tickets.count(),
            queue_length=1 if processing else 0,
            customers=self._customers.count(),
            processing=processing,
            trends=self.get_trends().to_dict(),
        )

    # ========== Lifecycle ==========

    def dispose(self) -> None:
        """Clear all in-memory state. Terminal and idempotent."""
        with self._state_lock:
            if self._disposed:
                return
            self._disposed = True
            # Held while clearing so no in-flight commit can interleave
            self._tickets.clear()
            self._customers.clear()
            self._trends.reset()
        self._rules_provider.close()
        logger.info("Ticket intake pipeline disposed")

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # ========== Internals ==========

    def _ensure_active(self, operation: str) -> None:
        if self._disposed:
            raise PipelineDisposedException(operation)

    def _commit(self, decorated: DecoratedTicket) -> None:
        """Store the record and feed trends, unless the pipeline was disposed meanwhile."""
        with self._state_lock:
            if self._disposed:
                raise PipelineDisposedException("store ticket")
            self._tickets.add(decorated)
            if self._settings.enable_trend_analysis:
                self._trends.record_ticket(
                    decorated.classification if self._settings.enable_classification else None,
                    decorated.ticket.created_at,
                )

    @staticmethod
    def _to_ticket(ticket: Any) -> Ticket:
        if ticket is None:
            raise ValidationException("Ticket is required")
        if isinstance(ticket, Ticket):
            if not ticket.id:
                raise ValidationException("Ticket id is required")
            return ticket
        if not isinstance(ticket, Mapping):
            raise ValidationException(
                f"Ticket must be a Ticket or mapping, got {type(ticket).__name__}"
            )
        try:
            return TicketDTO.model_validate(dict(ticket)).to_domain()
        except ValidationError as e:
            raise ValidationException("Unusable ticket payload", {"errors": e.errors()})

    def _analyze(self, ticket: Ticket) -> DecoratedTicket:
        settings = self._settings
        started = time.perf_counter()
        degraded: List[str] = []

        if settings.enable_classification:
            classification = self._run_step(
                "classification", ticket, degraded,
                lambda: self._classifier.classify(ticket.title, ticket.description),
                ClassificationResult.default,
            )
        else:
            classification = ClassificationResult.default()

        if settings.enable_customer_matching:
            customer_match = self._run_step(
                "customer_resolution", ticket, degraded,
                lambda: self._resolver.match(ticket, self._customers.snapshot()),
                CustomerMatchResult.no_match,
            )
        else:
            customer_match = CustomerMatchResult.no_match()

        if settings.enable_duplicate_detection:
            duplicate_analysis = self._run_step(
                "duplicate_detection", ticket, degraded,
                lambda: self._similarity.analyze_for_duplicates(
                    ticket, [record.ticket for record in self._tickets.snapshot()]
                ),
                DuplicateAnalysisResult,
            )
        else:
            duplicate_analysis = DuplicateAnalysisResult()

        # Escalation follows the ticket's own customer_id, not the e-mail match
        suggestions = self._run_step(
            "suggestions", ticket, degraded,
            lambda: self._suggestions.generate(
                ticket,
                classification,
                self._customers.get(ticket.customer_id) if ticket.customer_id else None,
                duplicate_analysis,
            ),
            list,
        )

        category, priority = ticket.category, ticket.priority
        if settings.auto_apply_classification and classification.category_confidence > AUTO_APPLY_CONFIDENCE:
            category = category or classification.category.value
            priority = priority or classification.priority.value

        processing = ProcessingMetadata(
            processed_at=datetime.now(timezone.utc),
            processing_time_ms=round((time.perf_counter() - started) * 1000, 3),
            version=settings.app_version,
            features={
                "classification": settings.enable_classification,
                "customer_matching": settings.enable_customer_matching,
                "duplicate_detection": settings.enable_duplicate_detection,
                "trend_analysis": settings.enable_trend_analysis,
            },
            degraded_steps=degraded,
        )

        return DecoratedTicket(
            ticket=ticket,
            classification=classification,
            customer_match=customer_match,
            duplicate_analysis=duplicate_analysis,
            suggestions=suggestions,
            processing=processing,
            category=category,
            priority=priority,
        )

    @staticmethod
    def _run_step(
        name: str,
        ticket: Ticket,
        degraded: List[str],
        step: Callable[[], T],
        default: Callable[[], T],
    ) -> T:
        try:
            return step()
        except Exception:
            logger.exception(f"{name} failed, using default result", extra={
                "ticket_id": ticket.id,
                "step": name,
            })
            degraded.append(name)
            return default()
