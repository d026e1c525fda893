"""
Intake Application Layer
=========================

Application layer for the ticket intake module.

Contains:
- Services: Classification, customer resolution, similarity, suggestions
  and trend aggregation
- Pipeline: Orchestrates the services per ticket
- DTOs: Lenient payload parsing and stats snapshots

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from intake.application.dto import (
    TicketDTO,
    CustomerDTO,
    PipelineStats,
)
from intake.application.services import (
    ClassificationService,
    CustomerResolver,
    SimilarityEngine,
    SuggestionGenerator,
    TrendAggregator,
    ITicketRepository,
    ICustomerRepository,
    IRulesProvider,
)
from intake.application.pipeline import TicketIntakePipeline

__all__ = [
    # DTOs
    "TicketDTO",
    "CustomerDTO",
    "PipelineStats",
    # Services
    "ClassificationService",
    "CustomerResolver",
    "SimilarityEngine",
    "SuggestionGenerator",
    "TrendAggregator",
    "TicketIntakePipeline",
    # Repository Interfaces
    "ITicketRepository",
    "ICustomerRepository",
    "IRulesProvider",
]
