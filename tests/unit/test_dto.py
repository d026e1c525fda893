"""Payload DTO tests"""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from intake.application import CustomerDTO, PipelineStats, TicketDTO


class TestTicketDTO:
    """Lenient ticket parsing"""

    def test_snake_and_camel_case(self):
        snake = TicketDTO.model_validate({"requester_email": "a@acme.com", "customer_id": "c-1"})
        camel = TicketDTO.model_validate({"requesterEmail": "a@acme.com", "customerId": "c-1"})

        assert snake.requester_email == camel.requester_email == "a@acme.com"
        assert snake.customer_id == camel.customer_id == "c-1"

    def test_numbers_become_text(self):
        dto = TicketDTO.model_validate({"id": 17, "title": 404, "description": {"nested": True}})

        assert dto.id == "17"
        assert dto.title == "404"
        assert dto.description == ""

    def test_empty_optional_text_is_none(self):
        dto = TicketDTO.model_validate({"requester_email": "", "category": ""})

        assert dto.requester_email is None
        assert dto.category is None

    @pytest.mark.parametrize("value", [
        "2026-03-10T09:30:00Z",
        "2026-03-10T09:30:00+00:00",
        1773135000,
        1773135000000,
    ])
    def test_timestamp_formats(self, value):
        dto = TicketDTO.model_validate({"timestamp": value})

        assert dto.created_at == datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["not a date", ["2026"], True, 1e20, -5, float("nan"), float("inf")])
    def test_invalid_timestamp_dropped(self, value):
        dto = TicketDTO.model_validate({"createdAt": value})

        assert dto.created_at is None

    def test_to_domain_generates_id(self):
        first = TicketDTO.model_validate({"title": "x"}).to_domain()
        second = TicketDTO.model_validate({"title": "x"}).to_domain()

        assert first.id and second.id and first.id != second.id
        assert first.created_at.tzinfo is not None

    def test_to_domain_keeps_id(self):
        ticket = TicketDTO.model_validate({"id": "T-1", "status": "open"}).to_domain()

        assert ticket.id == "T-1"
        assert ticket.status == "open"


class TestCustomerDTO:
    """Customer registration payloads"""

    def test_defaults(self):
        dto = CustomerDTO.model_validate({"name": "Globex"})

        assert dto.contract == "standard"
        assert dto.priority == "medium"
        assert dto.emails == []
        assert dto.domain is None

    def test_extra_keys_become_metadata(self):
        dto = CustomerDTO.model_validate({
            "id": "ignored",
            "name": "Acme",
            "location": "Building A",
            "metadata": {"tier_note": "vip"},
        })

        assert dto.metadata == {"tier_note": "vip", "location": "Building A"}

    def test_emails_normalised(self):
        dto = CustomerDTO.model_validate({"emails": ["a@acme.com", "a@acme.com", 5, "", "b@acme.com"]})

        assert dto.emails == ["a@acme.com", "b@acme.com"]

    @pytest.mark.parametrize("value", [5, 2.5, {"a": "a@acme.com"}, True])
    def test_non_list_emails_ignored(self, value):
        assert CustomerDTO.model_validate({"emails": value}).emails == []

    def test_single_email_string(self):
        assert CustomerDTO.model_validate({"emails": "a@acme.com"}).emails == ["a@acme.com"]

    def test_priority_lowercased(self):
        assert CustomerDTO.model_validate({"priority": "HIGH"}).priority == "high"

    def test_to_domain(self):
        customer = CustomerDTO.model_validate({"name": "Acme", "domain": "acme.com"}).to_domain("c-1")

        assert customer.id == "c-1"
        assert customer.has_domain("ACME.com")


class TestPipelineStats:
    """Stats snapshot bounds"""

    def test_queue_length_bounded(self):
        with pytest.raises(ValidationError):
            PipelineStats(tickets_processed=0, queue_length=2, customers=0, processing=True, trends={})
