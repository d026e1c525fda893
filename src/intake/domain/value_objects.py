"""
Intake Value Objects
====================

Immutable rule tables and the pure functions that evaluate them.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between threads.
"""

from typing import Iterable, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import Category, Priority
from intake.domain.entities import ClassificationResult


class CategoryRule(BaseModel):
    """Keyword set mapped to a category and its confidence."""
    model_config = ConfigDict(frozen=True)

    category: Category
    keywords: List[str] = Field(min_length=1, description="Substrings that trigger the rule")
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("keywords")
    @classmethod
    def lowercase_keywords(cls, v: List[str]) -> List[str]:
        return [k.lower() for k in v]

    def matches(self, text: str) -> List[str]:
        """Return the keywords of this rule contained in text."""
        return [k for k in self.keywords if k in text]


class PriorityRule(BaseModel):
    """
    Keyword set mapped to a priority.

    A rule is vetoed when any of its excluded phrases appears in the text.
    This is plain substring matching: "not urgent" is the only negation
    understood, there is no real negation parsing.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    priority: Priority
    keywords: List[str] = Field(min_length=1)
    excluded_phrases: List[str] = Field(default_factory=list)

    @field_validator("keywords", "excluded_phrases")
    @classmethod
    def lowercase_phrases(cls, v: List[str]) -> List[str]:
        return [k.lower() for k in v]

    def matches(self, text: str) -> bool:
        if any(phrase in text for phrase in self.excluded_phrases):
            return False
        return any(k in text for k in self.keywords)


def _default_category_rules() -> List[CategoryRule]:
    return [
        CategoryRule(category=Category.HARDWARE,
                     keywords=["computer", "laptop", "hardware", "boot"], confidence=0.8),
        CategoryRule(category=Category.NETWORK,
                     keywords=["network", "vpn", "connection"], confidence=0.8),
        CategoryRule(category=Category.SOFTWARE,
                     keywords=["email", "outlook", "software"], confidence=0.7),
        CategoryRule(category=Category.SECURITY,
                     keywords=["security", "breach", "login"], confidence=0.9),
    ]


def _default_priority_rules() -> List[PriorityRule]:
    return [
        PriorityRule(name="critical_keywords", priority=Priority.CRITICAL,
                     keywords=["critical", "outage"]),
        PriorityRule(name="security_incident", priority=Priority.HIGH,
                     keywords=["security"], excluded_phrases=["not urgent"]),
        PriorityRule(name="urgent_request", priority=Priority.HIGH,
                     keywords=["urgent", "important"], excluded_phrases=["not urgent"]),
        PriorityRule(name="low_impact", priority=Priority.LOW,
                     keywords=["minor", "not urgent", "password", "how to", "forgot"]),
    ]


DEFAULT_BOOST_KEYWORDS = [
    "computer", "laptop", "boot", "network", "vpn", "connection",
    "email", "outlook", "connect", "authentication", "login",
]


class RulesConfig(BaseModel):
    """
    Keyword rule tables loaded from YAML.

    Rule order is precedence: the first matching category rule and the
    first matching priority rule win.
    """
    model_config = ConfigDict(frozen=True)

    category_rules: List[CategoryRule] = Field(default_factory=_default_category_rules)
    default_category: Category = Category.GENERAL
    default_confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    priority_rules: List[PriorityRule] = Field(default_factory=_default_priority_rules)
    default_priority: Priority = Priority.MEDIUM

    boost_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_BOOST_KEYWORDS))
    keyword_boost: float = Field(default=0.3, ge=0.0, le=1.0)
    min_token_length: int = Field(default=3, ge=1, description="Shorter tokens are ignored")

    @field_validator("boost_keywords")
    @classmethod
    def lowercase_boost_keywords(cls, v: List[str]) -> List[str]:
        return [k.lower() for k in v]


class HasText(Protocol):
    title: Optional[str]
    description: Optional[str]


def normalize_text(title: Optional[str], description: Optional[str]) -> str:
    """Lower-cased "title description" with missing parts treated as empty."""
    return f"{title or ''} {description or ''}".lower()


class KeywordClassifier:
    """
    Deterministic rule-based ticket classifier.

    A pure function of its two text inputs; the same text always yields the
    same result and empty text yields the low-confidence default.
    """

    def __init__(self, rules: Optional[RulesConfig] = None):
        self.rules = rules or RulesConfig()

    def classify(self, title: Optional[str], description: Optional[str]) -> ClassificationResult:
        text = normalize_text(title, description)

        category = self.rules.default_category
        confidence = self.rules.default_confidence
        matched: List[str] = []
        for rule in self.rules.category_rules:
            hits = rule.matches(text)
            if hits:
                category, confidence, matched = rule.category, rule.confidence, hits
                break

        priority = self.rules.default_priority
        reason = "default"
        for rule in self.rules.priority_rules:
            if rule.matches(text):
                priority, reason = rule.priority, rule.name
                break

        # Priority confidence mirrors the category rule's confidence
        return ClassificationResult(
            category=category,
            priority=priority,
            category_confidence=confidence,
            priority_confidence=confidence,
            matched_keywords=matched,
            priority_reason=reason,
        )


class TextSimilarity:
    """
    Token Jaccard similarity with a shared-keyword boost.

    Symmetric and bounded to [0, 1].
    """

    def __init__(self, rules: Optional[RulesConfig] = None):
        self.rules = rules or RulesConfig()

    def tokenize(self, text: str) -> set:
        return {t for t in text.split() if len(t) >= self.rules.min_token_length}

    def shared_keywords(self, text_a: str, text_b: str) -> List[str]:
        """Boost keywords contained (as substrings) in both texts."""
        return [k for k in self.rules.boost_keywords if k in text_a and k in text_b]

    def score_texts(self, text_a: str, text_b: str) -> float:
        tokens_a = self.tokenize(text_a)
        tokens_b = self.tokenize(text_b)
        if not tokens_a or not tokens_b:
            return 0.0

        score = len(tokens_a & tokens_b) / len(tokens_a | tokens_b)
        score += self.rules.keyword_boost * len(self.shared_keywords(text_a, text_b))
        return min(score, 1.0)

    def compare(self, a: HasText, b: HasText) -> float:
        return self.score_texts(
            normalize_text(a.title, a.description),
            normalize_text(b.title, b.description),
        )


def rank_by_similarity(items: Iterable, limit: int) -> list:
    """Sort similarity-bearing items descending and keep the first limit."""
    return sorted(items, key=lambda item: item.similarity, reverse=True)[:limit]
