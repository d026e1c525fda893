"""
Intake Application Services
============================

Application services for ticket analysis.

Each service handles one concern of the intake pipeline. Apart from the
trend aggregator they hold no mutable state and only read the snapshots
handed to them.
"""

import threading
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Deque, Dict, Iterable, List, NamedTuple, Optional

from config import ConfidenceBand, HIGH_PRIORITIES, SuggestionType
from intake.domain import (
    ClassificationResult, Customer, CustomerMatchResult, DecoratedTicket,
    DuplicateAnalysisResult, KeywordClassifier, RulesConfig, SimilarTicket,
    Suggestion, TextSimilarity, Ticket, TrendPrediction, TrendsReport,
    rank_by_similarity,
)


# ========== Repository Interfaces ==========

class ITicketRepository(ABC):
    """Interface for the processed ticket store."""

    @abstractmethod
    def add(self, record: DecoratedTicket) -> DecoratedTicket:
        """Store a decorated ticket; raises TicketConflictException on id reuse."""

    @abstractmethod
    def get(self, ticket_id: str) -> Optional[DecoratedTicket]:
        """Get a stored ticket by id."""

    @abstractmethod
    def exists(self, ticket_id: str) -> bool:
        """Check if a ticket id is already stored."""

    @abstractmethod
    def snapshot(self) -> List[DecoratedTicket]:
        """Point-in-time copy of all stored tickets in insertion order."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored tickets."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all tickets."""


class ICustomerRepository(ABC):
    """Interface for the customer registry."""

    @abstractmethod
    def add(self, customer: Customer) -> Customer:
        """Register a customer."""

    @abstractmethod
    def get(self, customer_id: str) -> Optional[Customer]:
        """Get customer by id."""

    @abstractmethod
    def snapshot(self) -> List[Customer]:
        """Point-in-time copy of all customers in registration order."""

    @abstractmethod
    def count(self) -> int:
        """Number of registered customers."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all customers."""


class IRulesProvider(ABC):
    """Interface for keyword rule configuration access."""

    @abstractmethod
    def get_rules(self) -> RulesConfig:
        """Get current rule tables."""

    def close(self) -> None:
        """Release resources such as file watchers."""


# ========== Application Services ==========

class ClassificationService:
    """
    Service for keyword classification.

    Rules are fetched on every call so a reloaded rules file takes effect
    for the next ticket.
    """

    def __init__(self, rules_provider: IRulesProvider):
        self._rules_provider = rules_provider

    def classify(self, title: Optional[str], description: Optional[str]) -> ClassificationResult:
        """
        Classify ticket text by category and priority.

        Args:
            title: Ticket title
            description: Ticket description

        Returns:
            ClassificationResult, general/medium/0.5 when no rule matches
        """
        return KeywordClassifier(self._rules_provider.get_rules()).classify(title, description)


class CustomerResolver:
    """
    Resolves a ticket's requester e-mail to a registered customer.

    An exact address match always wins over a domain match. Within a pass
    the earliest registered customer wins.
    """

    def match(self, ticket: Ticket, customers: Iterable[Customer]) -> CustomerMatchResult:
        if not ticket.requester_email:
            return CustomerMatchResult.no_match()

        email = ticket.requester_email.strip().lower()
        domain = email.split("@")[1] if "@" in email else ""
        registry = list(customers)

        for customer in registry:
            if customer.has_email(email):
                return CustomerMatchResult.by_email(customer)

        for customer in registry:
            if customer.has_domain(domain):
                return CustomerMatchResult.by_domain(customer)

        return CustomerMatchResult.no_match()


class SimilarityEngine:
    """
    Pairwise ticket similarity, duplicate analysis and free-text search.

    Thresholds are strict: a pairing must score above a threshold, not at it.
    """

    def __init__(
        self,
        rules_provider: IRulesProvider,
        duplicate_threshold: float = 0.9,
        similarity_threshold: float = 0.5,
        search_threshold: float = 0.3,
        max_similar: int = 5,
    ):
        self._rules_provider = rules_provider
        self.duplicate_threshold = duplicate_threshold
        self.similarity_threshold = similarity_threshold
        self.search_threshold = search_threshold
        self.max_similar = max_similar

    def _scorer(self) -> TextSimilarity:
        return TextSimilarity(self._rules_provider.get_rules())

    def similarity(self, a: Ticket, b: Ticket) -> float:
        """Similarity of two tickets in [0, 1]; symmetric."""
        return self._scorer().compare(a, b)

    def analyze_for_duplicates(
        self,
        ticket: Ticket,
        prior_tickets: Iterable[Ticket],
        threshold: Optional[float] = None,
    ) -> DuplicateAnalysisResult:
        """
        Compare a ticket against previously processed tickets.

        Args:
            ticket: Ticket under analysis
            prior_tickets: Tickets already in the store (the ticket itself is skipped)
            threshold: Duplicate cutoff, defaults to the configured one

        Returns:
            DuplicateAnalysisResult with at most max_similar entries, best first
        """
        threshold = self.duplicate_threshold if threshold is None else threshold
        scorer = self._scorer()

        is_duplicate = False
        similar: List[SimilarTicket] = []
        for prior in prior_tickets:
            if prior.id == ticket.id:
                continue
            score = scorer.compare(ticket, prior)
            if score > threshold:
                is_duplicate = True
            if score > self.similarity_threshold:
                similar.append(SimilarTicket(ticket=prior, similarity=score))

        return DuplicateAnalysisResult(
            is_duplicate=is_duplicate,
            similar_tickets=rank_by_similarity(similar, self.max_similar),
        )

    def search_similar(
        self,
        title: Optional[str],
        description: Optional[str],
        corpus: Iterable[Ticket],
        limit: int = 10,
    ) -> List[SimilarTicket]:
        """Rank corpus tickets by similarity to free text."""
        scorer = self._scorer()
        query = Ticket(id="", title=title or "", description=description or "")

        results = []
        for candidate in corpus:
            score = scorer.compare(query, candidate)
            if score > self.search_threshold:
                results.append(SimilarTicket(ticket=candidate, similarity=score))
        return rank_by_similarity(results, max(limit, 0))


class SuggestionGenerator:
    """
    Turns analysis results into recommendations.

    Core suggestions come in the order category, priority, escalation and
    each type appears at most once. Extended suggestions (duplicate,
    knowledge) are appended after them when enabled.
    """

    CATEGORY_CONFIDENCE_THRESHOLD = 0.7
    ESCALATION_CONFIDENCE = 0.9

    def __init__(self, extended: bool = False):
        self.extended = extended

    def generate(
        self,
        ticket: Ticket,
        classification: ClassificationResult,
        resolved_customer: Optional[Customer],
        duplicate_analysis: Optional[DuplicateAnalysisResult] = None,
    ) -> List[Suggestion]:
        """
        Generate suggestions for one ticket.

        Args:
            ticket: The submitted ticket
            classification: Its classification
            resolved_customer: Customer referenced by ticket.customer_id, not
                the e-mail match result
            duplicate_analysis: Used only for extended suggestions

        Returns:
            List of suggestions, possibly empty
        """
        suggestions: List[Suggestion] = []

        if classification.category_confidence > self.CATEGORY_CONFIDENCE_THRESHOLD:
            suggestions.append(Suggestion(
                type=SuggestionType.CATEGORY,
                action="set_category",
                value=classification.category.value,
                confidence=classification.category_confidence,
                reason=(
                    f"Matched {classification.category.value} keywords: "
                    f"{', '.join(classification.matched_keywords)}"
                ),
            ))

        if classification.priority in HIGH_PRIORITIES:
            suggestions.append(Suggestion(
                type=SuggestionType.PRIORITY,
                action="set_priority",
                value=classification.priority.value,
                confidence=classification.priority_confidence,
                reason=f"Priority rule '{classification.priority_reason}' matched",
            ))

        if resolved_customer is not None and resolved_customer.is_high_priority:
            suggestions.append(Suggestion(
                type=SuggestionType.ESCALATION,
                action="escalate_customer",
                value="high_priority_customer",
                confidence=self.ESCALATION_CONFIDENCE,
                reason=f"High priority customer: {resolved_customer.name}",
            ))

        if self.extended and duplicate_analysis is not None:
            suggestions.extend(self._extended(ticket, duplicate_analysis))

        return suggestions

    def _extended(self, ticket: Ticket, analysis: DuplicateAnalysisResult) -> List[Suggestion]:
        extra = []
        best = analysis.most_similar
        if analysis.is_duplicate and best is not None:
            extra.append(Suggestion(
                type=SuggestionType.DUPLICATE,
                action="merge_or_close",
                value=best.ticket_id,
                confidence=best.similarity,
                reason=f"Potential duplicate of ticket {best.ticket_id}",
            ))

        resolved = [s for s in analysis.similar_tickets if s.ticket.is_resolved]
        if resolved:
            extra.append(Suggestion(
                type=SuggestionType.KNOWLEDGE,
                action="suggest_solution",
                value=resolved[0].ticket_id,
                confidence=resolved[0].similarity,
                reason=f"Similar resolved ticket found: {resolved[0].ticket.title}",
            ))
        return extra


class _HistoryEntry(NamedTuple):
    timestamp: datetime
    category: str
    priority: str


class TrendAggregator:
    """
    Running category/priority tallies and frequency based predictions.

    Thread-safe. Counts are kept in first-seen order so ties on the most
    common value resolve to the earliest one.
    """

    WINDOWS = {
        "daily": timedelta(days=1),
        "weekly": timedelta(days=7),
        "monthly": timedelta(days=30),
    }

    def __init__(self, history_limit: int = 1000):
        self._lock = threading.Lock()
        self._categories: Dict[str, int] = {}
        self._priorities: Dict[str, int] = {}
        self._total_processed = 0
        self._history: Deque[_HistoryEntry] = deque(maxlen=history_limit)

    @property
    def total_processed(self) -> int:
        return self._total_processed

    def record_ticket(
        self,
        classification: Optional[ClassificationResult],
        timestamp: Optional[datetime] = None,
    ) -> None:
        """
        Record one processed ticket.

        Args:
            classification: Its classification, or None when the ticket was
                processed without being classified
            timestamp: Ticket time for windowed trends, now when omitted
        """
        with self._lock:
            self._total_processed += 1
            if classification is None:
                return
            category = classification.category.value
            priority = classification.priority.value
            self._categories[category] = self._categories.get(category, 0) + 1
            self._priorities[priority] = self._priorities.get(priority, 0) + 1
            self._history.append(_HistoryEntry(_as_utc(timestamp), category, priority))

    def get_trends(self, now: Optional[datetime] = None) -> TrendsReport:
        now = _as_utc(now)
        with self._lock:
            categories = dict(self._categories)
            priorities = dict(self._priorities)
            total = self._total_processed
            history = list(self._history)

        top_category = _most_common(categories)
        predictions = []
        if top_category is not None:
            count = categories[top_category]
            predictions.append(TrendPrediction(
                category=top_category,
                probability=min(count / total, 1.0) if total else 0.0,
                confidence=_confidence_band(count),
            ))

        windows = self._windows(history, now)
        return TrendsReport(
            periods={"current": {"categories": categories, "priorities": priorities}},
            most_common_category=top_category,
            most_common_priority=_most_common(priorities),
            predictions=predictions,
            windows=windows,
            category_spikes=self._category_spikes(windows),
            peak_hour=self._peak_hour(history, now),
        )

    def reset(self) -> None:
        with self._lock:
            self._categories.clear()
            self._priorities.clear()
            self._history.clear()
            self._total_processed = 0

    def _windows(self, history: List[_HistoryEntry], now: datetime) -> Dict[str, dict]:
        windows = {}
        for name, span in self.WINDOWS.items():
            recent = [entry for entry in history if now - entry.timestamp < span]
            windows[name] = {
                "total_tickets": len(recent),
                "categories": _count(entry.category for entry in recent),
                "priorities": _count(entry.priority for entry in recent),
            }
        return windows

    @staticmethod
    def _category_spikes(windows: Dict[str, dict]) -> List[dict]:
        """Categories whose last-day volume exceeds twice their weekly daily average."""
        spikes = []
        weekly = windows["weekly"]["categories"]
        for category, daily_count in windows["daily"]["categories"].items():
            weekly_avg = weekly.get(category, 0) / 7
            if weekly_avg and daily_count > weekly_avg * 2:
                spikes.append({
                    "category": category,
                    "daily_count": daily_count,
                    "weekly_average": round(weekly_avg, 2),
                    "severity": round(daily_count / weekly_avg, 2),
                })
        return spikes

    def _peak_hour(self, history: List[_HistoryEntry], now: datetime) -> Optional[int]:
        daily = [entry for entry in history if now - entry.timestamp < self.WINDOWS["daily"]]
        by_hour = _count(entry.timestamp.hour for entry in sorted(daily, key=lambda e: e.timestamp.hour))
        return _most_common(by_hour)


# ========== Helpers ==========

def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _count(values: Iterable) -> Dict:
    counts: Dict = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def _most_common(counts: Dict):
    """Key with the highest count; the first inserted wins ties."""
    if not counts:
        return None
    return max(counts.items(), key=lambda item: item[1])[0]


def _confidence_band(count: int) -> ConfidenceBand:
    if count > 2:
        return ConfidenceBand.HIGH
    if count > 1:
        return ConfidenceBand.MEDIUM
    return ConfidenceBand.LOW
