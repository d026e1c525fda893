"""Keyword classification tests"""
import pytest

from config import Category, Priority
from intake.application import ClassificationService
from intake.domain import (
    CategoryRule, ClassificationResult, KeywordClassifier, PriorityRule, RulesConfig,
)
from intake.infrastructure import StaticRulesProvider


@pytest.fixture
def classifier() -> KeywordClassifier:
    return KeywordClassifier()


class TestCategoryRules:
    """Category rule evaluation"""

    def test_hardware_ticket(self, classifier):
        result = classifier.classify(
            "Computer not booting up",
            "Pressed the power button but there are no lights at all",
        )

        assert result.category == Category.HARDWARE
        assert result.category_confidence == 0.8
        assert result.matched_keywords == ["computer", "boot"]

    def test_first_matching_rule_wins(self, classifier):
        """Hardware is checked before network"""
        result = classifier.classify("Laptop cannot join the VPN", "")

        assert result.category == Category.HARDWARE
        assert result.matched_keywords == ["laptop"]

    def test_network_ticket(self, classifier):
        result = classifier.classify("VPN keeps dropping", "connection lost every hour")

        assert result.category == Category.NETWORK
        assert result.category_confidence == 0.8

    def test_software_ticket(self, classifier):
        result = classifier.classify("Outlook crashes", "email client closes on start")

        assert result.category == Category.SOFTWARE
        assert result.category_confidence == 0.7

    def test_security_ticket(self, classifier):
        result = classifier.classify("Security breach suspected", "")

        assert result.category == Category.SECURITY
        assert result.category_confidence == 0.9

    def test_matching_is_case_insensitive(self, classifier):
        assert classifier.classify("LAPTOP", None).category == Category.HARDWARE

    def test_matching_is_substring_based(self, classifier):
        """'reboot' contains 'boot'"""
        assert classifier.classify("Needs a reboot", "").category == Category.HARDWARE

    @pytest.mark.parametrize("title,description", [
        ("", ""),
        (None, None),
        ("Printer is jammed", "paper stuck in tray"),
    ])
    def test_default_when_nothing_matches(self, classifier, title, description):
        result = classifier.classify(title, description)

        assert result.category == Category.GENERAL
        assert result.priority == Priority.MEDIUM
        assert result.category_confidence == 0.5
        assert result.matched_keywords == []
        assert result.priority_reason == "default"


class TestPriorityRules:
    """Priority rule evaluation"""

    def test_password_question_is_low(self, classifier):
        result = classifier.classify(
            "How to reset password",
            "I forgot my password, this is not urgent",
        )

        assert result.priority == Priority.LOW
        assert result.priority_reason == "low_impact"

    def test_outage_is_critical(self, classifier):
        result = classifier.classify("Critical outage of email server", "")

        assert result.priority == Priority.CRITICAL
        assert result.priority_reason == "critical_keywords"

    def test_critical_beats_low_impact(self, classifier):
        result = classifier.classify("Minor outage", "")

        assert result.priority == Priority.CRITICAL

    def test_security_is_high(self, classifier):
        result = classifier.classify("Security alert", "")

        assert result.priority == Priority.HIGH
        assert result.priority_reason == "security_incident"

    def test_urgent_is_high(self, classifier):
        result = classifier.classify("Urgent: printer needed", "")

        assert result.priority == Priority.HIGH
        assert result.priority_reason == "urgent_request"

    def test_not_urgent_vetoes_high(self, classifier):
        """'not urgent' suppresses both high rules and falls through to low"""
        result = classifier.classify("Security training question", "not urgent")

        assert result.priority == Priority.LOW

    def test_priority_confidence_follows_category(self, classifier):
        result = classifier.classify("Security breach", "urgent")

        assert result.priority_confidence == result.category_confidence == 0.9


class TestDeterminism:
    """Classification is a pure function of the text"""

    def test_repeated_calls_are_identical(self, classifier):
        first = classifier.classify("VPN outage", "whole office offline")
        second = classifier.classify("VPN outage", "whole office offline")

        assert first == second


class TestCustomRules:
    """Rules come from configuration"""

    def test_custom_category_rule(self):
        rules = RulesConfig(
            category_rules=[
                CategoryRule(category=Category.SOFTWARE, keywords=["Printer"], confidence=0.95),
            ],
            priority_rules=[
                PriorityRule(name="vip", priority=Priority.HIGH, keywords=["ceo"]),
            ],
        )
        service = ClassificationService(StaticRulesProvider(rules))

        result = service.classify("Printer for the CEO", "")

        assert result.category == Category.SOFTWARE
        assert result.category_confidence == 0.95
        assert result.priority_reason == "vip"


class TestClassificationResult:
    """Result invariants"""

    def test_confidence_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            ClassificationResult(
                category=Category.GENERAL,
                priority=Priority.MEDIUM,
                category_confidence=1.5,
                priority_confidence=0.5,
            )

    def test_to_dict(self):
        data = ClassificationResult.default().to_dict()

        assert data == {
            "category": "general",
            "priority": "medium",
            "category_confidence": 0.5,
            "priority_confidence": 0.5,
            "matched_keywords": [],
            "priority_reason": "default",
        }
