"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="ticket-intake", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Similarity / Duplicate Detection ==========
    duplicate_threshold: float = Field(
        default=0.9,
        description="Similarity above which a prior ticket marks the new one as duplicate",
        ge=0.0,
        le=1.0
    )
    similarity_threshold: float = Field(
        default=0.5,
        description="Similarity above which a prior ticket is listed as similar",
        ge=0.0,
        le=1.0
    )
    search_threshold: float = Field(
        default=0.3,
        description="Minimum similarity for free-text search results",
        ge=0.0,
        le=1.0
    )
    max_similar_tickets: int = Field(
        default=5,
        description="Number of similar tickets kept per duplicate analysis",
        ge=1
    )
    default_search_limit: int = Field(
        default=10,
        description="Default number of results for similar ticket search",
        ge=1
    )

    # ========== Pipeline Features ==========
    enable_classification: bool = Field(default=True, description="Run keyword classification")
    enable_customer_matching: bool = Field(default=True, description="Resolve requester to a customer")
    enable_duplicate_detection: bool = Field(default=True, description="Compare against prior tickets")
    enable_trend_analysis: bool = Field(default=True, description="Feed the trend aggregator")
    enable_extended_suggestions: bool = Field(
        default=False,
        description="Also emit duplicate/knowledge suggestions"
    )
    auto_apply_classification: bool = Field(
        default=False,
        description="Copy confident classification onto empty ticket fields"
    )

    # ========== Trend Analysis ==========
    trend_history_limit: int = Field(
        default=1000,
        description="Tickets kept for windowed trend analysis",
        ge=1
    )

    # ========== Rules Configuration ==========
    rules_config_path: Path = Field(
        default=Path("intake_rules.yaml"),
        description="Path to keyword rules YAML file"
    )
    watch_rules_config: bool = Field(
        default=False,
        description="Hot-reload the rules file when it changes"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "testing", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class Category(str, Enum):
    """Ticket categories produced by the classifier."""
    HARDWARE = "hardware"
    NETWORK = "network"
    SOFTWARE = "software"
    SECURITY = "security"
    GENERAL = "general"


class Priority(str, Enum):
    """Ticket priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MatchType(str, Enum):
    """How a requester was resolved to a customer."""
    EMAIL = "email"
    DOMAIN = "domain"
    NONE = "none"


class SuggestionType(str, Enum):
    """Kinds of suggestions attached to a processed ticket."""
    CATEGORY = "category"
    PRIORITY = "priority"
    ESCALATION = "escalation"
    DUPLICATE = "duplicate"
    KNOWLEDGE = "knowledge"


class ConfidenceBand(str, Enum):
    """Qualitative confidence of a trend prediction."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContractTier(str, Enum):
    """Customer contract tiers."""
    ENTERPRISE = "enterprise"
    PREMIUM = "premium"
    STANDARD = "standard"
    BASIC = "basic"


class CustomerPriority(str, Enum):
    """Customer priority tiers."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Match confidences are fixed by match type
EMAIL_MATCH_CONFIDENCE = 1.0
DOMAIN_MATCH_CONFIDENCE = 0.8
NO_MATCH_CONFIDENCE = 0.0

# ========== Lists ==========

HIGH_PRIORITIES = [Priority.HIGH, Priority.CRITICAL]
