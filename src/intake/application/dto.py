"""
Intake Application DTOs
========================

Data Transfer Objects at the pipeline boundary.

Pydantic models that turn loosely shaped ticket and customer payloads into
domain entities. Parsing is lenient: malformed ticket fields are coerced or
dropped rather than rejected.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from config import ContractTier, CustomerPriority
from intake.domain import Customer, Ticket

# 9999-12-31T23:59:59Z, the last instant a datetime can hold
MAX_EPOCH_SECONDS = 253402300799


def _coerce_text(v: Any) -> Any:
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, (int, float, bool)):
        return str(v)
    # Lists, dicts and other structures carry no usable text
    return None


# ========== Request DTOs ==========

class TicketDTO(BaseModel):
    """Ticket payload as delivered by ingestion collaborators."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(None, description="Caller supplied ticket id")
    title: str = Field("", description="Ticket title")
    description: str = Field("", description="Ticket body")
    requester_email: Optional[str] = Field(
        None, validation_alias=AliasChoices("requester_email", "requesterEmail")
    )
    requester_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("requester_name", "requesterName")
    )
    customer_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("customer_id", "customerId")
    )
    category: Optional[str] = None
    priority: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt", "timestamp")
    )

    @field_validator(
        "id", "requester_email", "requester_name", "customer_id",
        "category", "priority", "location", "status",
        mode="before",
    )
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        v = _coerce_text(v)
        return v or None

    @field_validator("title", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _coerce_text(v) or ""

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_timestamp(cls, v: Any) -> Any:
        """Accept datetimes, ISO strings and epoch numbers; drop anything else."""
        if isinstance(v, datetime) or v is None:
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            # Epoch milliseconds are common from JavaScript collaborators
            seconds = v / 1000 if v > 1e11 else v
            if not 0 <= seconds <= MAX_EPOCH_SECONDS:
                return None
            try:
                return datetime.fromtimestamp(seconds, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    def to_domain(self) -> Ticket:
        """Convert to domain entity, generating an id when none was supplied."""
        kwargs = dict(
            id=self.id or str(uuid4()),
            title=self.title,
            description=self.description,
            requester_email=self.requester_email,
            requester_name=self.requester_name,
            customer_id=self.customer_id,
            category=self.category,
            priority=self.priority,
            location=self.location,
            status=self.status,
        )
        if self.created_at is not None:
            kwargs["created_at"] = self.created_at
        return Ticket(**kwargs)


class CustomerDTO(BaseModel):
    """Customer registration payload."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field("", description="Display name")
    domain: Optional[str] = Field(None, description="E-mail domain owned by the customer")
    emails: List[str] = Field(default_factory=list)
    contract: str = Field(default=ContractTier.STANDARD.value)
    priority: str = Field(default=CustomerPriority.MEDIUM.value)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_metadata(cls, data: Any) -> Any:
        """Fold free-form top level keys (location, department, ...) into metadata."""
        if not isinstance(data, dict):
            return data
        known = set(cls.model_fields)
        raw_metadata = data.get("metadata")
        metadata = dict(raw_metadata) if isinstance(raw_metadata, dict) else {}
        for key, value in data.items():
            if key not in known and key != "id":
                metadata[key] = value
        return {**{k: v for k, v in data.items() if k in known}, "metadata": metadata}

    @field_validator("emails", mode="before")
    @classmethod
    def coerce_emails(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        elif not isinstance(v, (list, tuple, set)):
            return []
        seen: List[str] = []
        for email in v:
            if isinstance(email, str) and email and email not in seen:
                seen.append(email)
        return seen

    @field_validator("name", "contract", "priority", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _coerce_text(v) or ""

    @field_validator("domain", mode="before")
    @classmethod
    def coerce_domain(cls, v: Any) -> Optional[str]:
        return _coerce_text(v) or None

    @field_validator("contract")
    @classmethod
    def default_contract(cls, v: str) -> str:
        return v or ContractTier.STANDARD.value

    @field_validator("priority")
    @classmethod
    def default_priority(cls, v: str) -> str:
        return v.lower() if v else CustomerPriority.MEDIUM.value

    def to_domain(self, customer_id: str) -> Customer:
        return Customer(
            id=customer_id,
            name=self.name,
            domain=self.domain,
            emails=list(self.emails),
            contract=self.contract,
            priority=self.priority,
            metadata=dict(self.metadata),
        )


# ========== Response DTOs ==========

class PipelineStats(BaseModel):
    """Operational snapshot of the pipeline."""
    tickets_processed: int
    queue_length: int = Field(..., ge=0, le=1)
    customers: int
    processing: bool
    trends: Dict[str, Any]
