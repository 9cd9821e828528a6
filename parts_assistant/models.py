"""
Core data models for the parts assistant.

These models define the domain objects used throughout the system:
- Catalog parts and appliance models
- Orders and order items
- Support tickets
- Conversation messages

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models that are read from / written to camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# ENUMS
# =============================================================================

class Category(str, Enum):
    """Appliance categories the store supports."""
    REFRIGERATOR = "refrigerator"
    DISHWASHER = "dishwasher"


class InstallationDifficulty(str, Enum):
    EASY = "Easy"
    MODERATE = "Moderate"
    DIFFICULT = "Difficult"


class OrderStatus(str, Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class TicketIssueType(str, Enum):
    PRODUCT_ISSUE = "product_issue"
    ORDER_ISSUE = "order_issue"
    INSTALLATION_HELP = "installation_help"
    WARRANTY = "warranty"
    REFUND = "refund"
    OTHER = "other"


class TicketPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


# =============================================================================
# CATALOG
# =============================================================================

class PartRecord(WireModel):
    """A catalog entry for one replaceable appliance component."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default="", description="Stable internal key, assigned at load")
    part_number: str = Field(..., description="Human-assigned part number, e.g. 'PS11752778'")
    name: str
    description: str
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(default=None, description="Pre-sale price; set only when on sale")
    image_url: str = ""
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    in_stock: bool = True
    brand: str
    category: Category
    compatible_models: list[str] = Field(default_factory=list)
    installation_difficulty: InstallationDifficulty
    installation_time: str
    symptoms: Optional[list[str]] = Field(
        default=None,
        description="Free-text symptom phrases used only for troubleshooting matching",
    )
    search_text: str = Field(default="", exclude=True, description="Lower-cased search blob, built at load")

    @model_validator(mode="after")
    def _check_sale_price(self) -> "PartRecord":
        if self.original_price is not None and self.original_price <= self.price:
            raise ValueError(
                f"original_price ({self.original_price}) must exceed price ({self.price}) for {self.part_number}"
            )
        return self

    @property
    def on_sale(self) -> bool:
        return self.original_price is not None


class ModelInfo(WireModel):
    """Reference data for one appliance model."""
    model_number: str
    brand: str
    type: Category
    compatible_parts: list[str] = Field(default_factory=list)


# =============================================================================
# ORDERS
# =============================================================================

class OrderItem(WireModel):
    part_number: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price")


class Order(WireModel):
    id: str
    order_number: str = Field(..., description="Format PS-NNNN-NNNNN")
    status: OrderStatus
    items: list[OrderItem]
    shipping_address: str
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[str] = None
    created_at: datetime

    @property
    def total(self) -> float:
        return sum(item.price * item.quantity for item in self.items)


# =============================================================================
# SUPPORT TICKETS
# =============================================================================

class SupportTicket(WireModel):
    """A support ticket; immutable once created."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    ticket_number: str
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.NORMAL
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    issue_type: TicketIssueType
    appliance_type: Optional[Category] = None
    model_number: Optional[str] = None
    part_number: Optional[str] = None
    issue_description: str
    conversation_summary: str = ""
    steps_already_tried: list[str] = Field(default_factory=list)
    created_at: datetime


# =============================================================================
# CONVERSATION
# =============================================================================

class ConversationMessage(BaseModel):
    """A single prior turn of the conversation."""
    role: Literal["user", "assistant"]
    content: str
