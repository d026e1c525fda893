"""
Intake Domain Layer
===================

Domain layer for the ticket intake module.

Contains:
- Entities: Ticket, Customer and the analysis results attached to a ticket
- Value Objects: Rule tables (RulesConfig) and the pure functions that
  evaluate them (KeywordClassifier, TextSimilarity)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from intake.domain.entities import (
    Ticket,
    Customer,
    ClassificationResult,
    CustomerMatchResult,
    SimilarTicket,
    DuplicateAnalysisResult,
    Suggestion,
    ProcessingMetadata,
    DecoratedTicket,
    TrendPrediction,
    TrendsReport,
)
from intake.domain.value_objects import (
    CategoryRule,
    PriorityRule,
    RulesConfig,
    KeywordClassifier,
    TextSimilarity,
    normalize_text,
    rank_by_similarity,
)

__all__ = [
    # Entities
    "Ticket",
    "Customer",
    "ClassificationResult",
    "CustomerMatchResult",
    "SimilarTicket",
    "DuplicateAnalysisResult",
    "Suggestion",
    "ProcessingMetadata",
    "DecoratedTicket",
    "TrendPrediction",
    "TrendsReport",
    # Value Objects & Services
    "CategoryRule",
    "PriorityRule",
    "RulesConfig",
    "KeywordClassifier",
    "TextSimilarity",
    "normalize_text",
    "rank_by_similarity",
]
