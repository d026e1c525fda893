"""
Intake Domain Entities
======================

Pure Python domain entities for the ticket intake pipeline.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import (
    Category, Priority, MatchType, SuggestionType, ConfidenceBand,
    ContractTier, CustomerPriority,
    EMAIL_MATCH_CONFIDENCE, DOMAIN_MATCH_CONFIDENCE, NO_MATCH_CONFIDENCE
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Ticket:
    """
    Incoming support ticket.

    Only the id is required; every other field may be missing on
    malformed submissions and the pipeline degrades instead of failing.
    """

    id: str
    title: str = ""
    description: str = ""

    # Requester
    requester_email: Optional[str] = None
    requester_name: Optional[str] = None
    customer_id: Optional[str] = None

    # Caller supplied hints
    category: Optional[str] = None
    priority: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None

    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_resolved(self) -> bool:
        """Check if the caller reported this ticket as resolved."""
        return (self.status or "").lower() == "resolved"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "requester_email": self.requester_email,
            "requester_name": self.requester_name,
            "customer_id": self.customer_id,
            "category": self.category,
            "priority": self.priority,
            "location": self.location,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Customer:
    """
    Known customer account.

    Created once through the pipeline's registration operation and
    read-only afterwards.
    """

    id: str
    name: str
    domain: Optional[str] = None
    emails: List[str] = field(default_factory=list)
    contract: str = ContractTier.STANDARD.value
    priority: str = CustomerPriority.MEDIUM.value
    metadata: Dict[str, Any] = field(default_factory=dict)

    def has_email(self, email: str) -> bool:
        """Case-insensitive membership check against registered addresses."""
        target = email.lower()
        return any(
            isinstance(known, str) and known.lower() == target
            for known in self.emails
        )

    def has_domain(self, domain: str) -> bool:
        """Case-insensitive domain equality; customers without a domain never match."""
        if not self.domain or not domain:
            return False
        return self.domain.lower() == domain.lower()

    @property
    def is_high_priority(self) -> bool:
        return self.priority == CustomerPriority.HIGH.value

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "emails": list(self.emails),
            "contract": self.contract,
            "priority": self.priority,
            "metadata": dict(self.metadata),
        }


@dataclass
class ClassificationResult:
    """
    Result of keyword classification.

    Every field traces back to a rule: matched_keywords are the keywords of
    the winning category rule and priority_reason names the priority rule.
    """

    category: Category
    priority: Priority
    category_confidence: float
    priority_confidence: float
    matched_keywords: List[str] = field(default_factory=list)
    priority_reason: str = "default"

    def __post_init__(self):
        """Validate classification result."""
        for name in ("category_confidence", "priority_confidence"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1")

    @classmethod
    def default(cls, confidence: float = 0.5) -> "ClassificationResult":
        """Low-confidence fallback used for empty text or a failed step."""
        return cls(
            category=Category.GENERAL,
            priority=Priority.MEDIUM,
            category_confidence=confidence,
            priority_confidence=confidence,
        )

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "priority": self.priority.value,
            "category_confidence": self.category_confidence,
            "priority_confidence": self.priority_confidence,
            "matched_keywords": list(self.matched_keywords),
            "priority_reason": self.priority_reason,
        }


@dataclass
class CustomerMatchResult:
    """
    Result of resolving a requester to a known customer.

    Confidence is fixed by match type: email 1.0, domain 0.8, none 0.
    """

    customer: Optional[Customer]
    match_type: MatchType
    confidence: float

    def __post_init__(self):
        """Enforce the match type / confidence pairing."""
        expected = {
            MatchType.EMAIL: EMAIL_MATCH_CONFIDENCE,
            MatchType.DOMAIN: DOMAIN_MATCH_CONFIDENCE,
            MatchType.NONE: NO_MATCH_CONFIDENCE,
        }[self.match_type]
        if self.confidence != expected:
            raise ValueError(
                f"{self.match_type.value} match must have confidence {expected}"
            )
        if (self.match_type == MatchType.NONE) != (self.customer is None):
            raise ValueError("customer must be set exactly when a match was found")

    @classmethod
    def no_match(cls) -> "CustomerMatchResult":
        return cls(customer=None, match_type=MatchType.NONE, confidence=NO_MATCH_CONFIDENCE)

    @classmethod
    def by_email(cls, customer: Customer) -> "CustomerMatchResult":
        return cls(customer=customer, match_type=MatchType.EMAIL, confidence=EMAIL_MATCH_CONFIDENCE)

    @classmethod
    def by_domain(cls, customer: Customer) -> "CustomerMatchResult":
        return cls(customer=customer, match_type=MatchType.DOMAIN, confidence=DOMAIN_MATCH_CONFIDENCE)

    @property
    def is_match(self) -> bool:
        return self.customer is not None

    def to_dict(self) -> dict:
        return {
            "customer": self.customer.to_dict() if self.customer else None,
            "match_type": self.match_type.value,
            "confidence": self.confidence,
        }


@dataclass
class SimilarTicket:
    """A prior ticket paired with its similarity to the ticket under analysis."""

    ticket: Ticket
    similarity: float

    # Confidence mirrors similarity (computed field)
    confidence: float = field(init=False)

    def __post_init__(self):
        self.confidence = self.similarity

    @property
    def ticket_id(self) -> str:
        return self.ticket.id

    def to_dict(self) -> dict:
        return {
            "ticket": self.ticket.to_dict(),
            "similarity": self.similarity,
            "confidence": self.confidence,
        }


@dataclass
class DuplicateAnalysisResult:
    """Outcome of comparing a ticket against previously stored tickets."""

    is_duplicate: bool = False
    similar_tickets: List[SimilarTicket] = field(default_factory=list)

    @property
    def most_similar(self) -> Optional[SimilarTicket]:
        """Highest scoring similar ticket, if any."""
        return self.similar_tickets[0] if self.similar_tickets else None

    def to_dict(self) -> dict:
        return {
            "is_duplicate": self.is_duplicate,
            "similar_tickets": [s.to_dict() for s in self.similar_tickets],
        }


@dataclass
class Suggestion:
    """Actionable recommendation derived from the analysis of one ticket."""

    type: SuggestionType
    action: str
    value: str
    confidence: float
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "action": self.action,
            "value": self.value,
            "confidence": self.confidence,
            "reason": self.reason,
        }


@dataclass
class ProcessingMetadata:
    """Bookkeeping attached to every decorated ticket."""

    processed_at: datetime
    processing_time_ms: float
    version: str
    features: Dict[str, bool] = field(default_factory=dict)
    degraded_steps: List[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        """Check if any analysis step fell back to its default result."""
        return len(self.degraded_steps) > 0

    def to_dict(self) -> dict:
        return {
            "processed_at": self.processed_at.isoformat(),
            "processing_time_ms": self.processing_time_ms,
            "version": self.version,
            "features": dict(self.features),
            "degraded_steps": list(self.degraded_steps),
        }


@dataclass
class DecoratedTicket:
    """
    A ticket together with everything the pipeline derived for it.

    This is the record stored by the pipeline and handed to persistence
    collaborators as an opaque structure.
    """

    ticket: Ticket
    classification: ClassificationResult
    customer_match: CustomerMatchResult
    duplicate_analysis: DuplicateAnalysisResult
    suggestions: List[Suggestion]
    processing: ProcessingMetadata

    # Effective fields after optional auto-apply of the classification
    category: Optional[str] = None
    priority: Optional[str] = None

    @property
    def id(self) -> str:
        return self.ticket.id

    def suggestion(self, suggestion_type: SuggestionType) -> Optional[Suggestion]:
        """Get the suggestion of the given type, if one was generated."""
        for item in self.suggestions:
            if item.type == suggestion_type:
                return item
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for collaborators and CLI output."""
        data = self.ticket.to_dict()
        data.update({
            "category": self.category,
            "priority": self.priority,
            "classification": self.classification.to_dict(),
            "customer_match": self.customer_match.to_dict(),
            "duplicate_analysis": self.duplicate_analysis.to_dict(),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "processing": self.processing.to_dict(),
        })
        return data


@dataclass
class TrendPrediction:
    """Frequency based guess at the category of upcoming tickets."""

    category: str
    probability: float
    confidence: ConfidenceBand

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "probability": self.probability,
            "confidence": self.confidence.value,
        }


@dataclass
class TrendsReport:
    """
    Snapshot of aggregate ticket statistics.

    periods holds a single "current" bucket of running counts; windows holds
    time-bounded counts computed from recent history.
    """

    periods: Dict[str, Dict[str, Dict[str, int]]]
    most_common_category: Optional[str]
    most_common_priority: Optional[str]
    predictions: List[TrendPrediction] = field(default_factory=list)
    windows: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    category_spikes: List[Dict[str, Any]] = field(default_factory=list)
    peak_hour: Optional[int] = None

    @property
    def current(self) -> Dict[str, Dict[str, int]]:
        return self.periods.get("current", {"categories": {}, "priorities": {}})

    def to_dict(self) -> dict:
        return {
            "periods": self.periods,
            "patterns": {
                "most_common_category": self.most_common_category,
                "most_common_priority": self.most_common_priority,
                "category_spikes": list(self.category_spikes),
                "peak_hour": self.peak_hour,
            },
            "predictions": [p.to_dict() for p in self.predictions],
            "windows": self.windows,
        }
