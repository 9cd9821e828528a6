"""
Assistant Type Definitions

Core abstractions shared by the decision engines, tools and turn runner:
- Intent: The classified purpose of a user turn
- SupervisorDecision: The structured output of either decision engine
- ToolResult: The uniform envelope every tool returns
- CompletionResult / DecisionParse: Explicit results for the fallible LLM boundary
- AssistantResponse: What a turn hands back to its caller
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import PartRecord, SupportTicket, TicketPriority


# =============================================================================
# ENUMS
# =============================================================================

class Intent(str, Enum):
    """Classified purpose of a user turn."""
    SEARCH = "search"
    COMPATIBILITY = "compatibility"
    INSTALLATION = "installation"
    TROUBLESHOOTING = "troubleshooting"
    ORDER_STATUS = "order_status"
    SUPPORT_TICKET = "support_ticket"
    FIND_MODEL_LOCATION = "find_model_location"
    CLARIFICATION = "clarification"
    OFF_TOPIC = "off_topic"
    GREETING = "greeting"
    FAREWELL = "farewell"
    GENERAL = "general"
    ERROR = "error"                  # Only produced by the turn runner


# Names the LLM sometimes uses instead of the canonical intent values.
_INTENT_ALIASES = {
    "product_search": Intent.SEARCH,
    "compatibility_check": Intent.COMPATIBILITY,
    "installation_help": Intent.INSTALLATION,
    "troubleshoot": Intent.TROUBLESHOOTING,
    "order_tracking": Intent.ORDER_STATUS,
    "general_question": Intent.GENERAL,
}


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    PRICE = "price"
    RATING = "rating"
    REVIEWS = "reviews"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ResponseStyle(str, Enum):
    BRIEF = "brief"
    STANDARD = "standard"
    DETAILED = "detailed"


class DataSource(str, Enum):
    """Where the facts in a reply came from."""
    DATABASE = "database"                    # Catalog / order data
    EXTERNAL_FALLBACK = "external_fallback"  # Tool deferred to external knowledge
    EXTERNAL_ENHANCED = "external_enhanced"  # No catalog products; text only


class CompletionFailure(str, Enum):
    """Why a completion call produced no usable text."""
    UNAVAILABLE = "unavailable"  # No provider configured
    ERROR = "error"              # Provider raised
    TIMEOUT = "timeout"          # Provider exceeded the configured timeout
    EMPTY = "empty"              # Provider returned blank text


class DecisionParseFailure(str, Enum):
    NO_JSON = "no_json"                  # No {...} block in the reply
    INVALID_JSON = "invalid_json"        # Block found but json.loads failed
    SCHEMA_MISMATCH = "schema_mismatch"  # Parsed but not a valid decision


# =============================================================================
# DECISION (engine output)
# =============================================================================

class SupervisorDecision(BaseModel):
    """
    The structured output of the supervisor or the rule-based fallback.

    Immutable: every engine branch builds a complete decision once and returns it.
    Serialized field names are camelCase to match the JSON the LLM is asked for.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    intent: Intent = Field(..., description="Classified purpose of the turn")
    tool_to_use: Optional[str] = Field(default=None, description="Tool to dispatch, or None")
    parameters: dict[str, str] = Field(default_factory=dict, description="Tool parameters, string to string")
    reasoning: str = Field(default="", description="Brief explanation of the decision")
    needs_clarification: bool = False
    clarification_question: Optional[str] = None
    needs_ticket_form: bool = False
    ticket_reason: Optional[str] = None
    suggested_priority: Optional[TicketPriority] = None
    result_limit: Optional[int] = Field(default=None, ge=1, le=50)
    response_style: Optional[ResponseStyle] = None
    sort_by: Optional[SortBy] = None
    sort_order: Optional[SortOrder] = None
    context_depth: Optional[int] = Field(default=None, ge=0)

    @field_validator("intent", mode="before")
    @classmethod
    def _normalize_intent(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _INTENT_ALIASES:
                return _INTENT_ALIASES[lowered]
            return lowered
        return value

    @field_validator("tool_to_use", mode="before")
    @classmethod
    def _normalize_tool(cls, value: Any) -> Any:
        # LLMs write "null" / "none" as strings more often than you'd hope
        if isinstance(value, str) and value.strip().lower() in ("", "null", "none"):
            return None
        return value

    @field_validator("result_limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(1, min(int(value), 50))
        return value

    @field_validator("parameters", mode="before")
    @classmethod
    def _stringify_parameters(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items() if v is not None and v != ""}
        return value


# =============================================================================
# TOOL RESULT
# =============================================================================

class ToolResult(BaseModel):
    """
    The outcome of executing a tool.

    `message` is always a complete user-presentable explanation; on failure it
    carries remediation (suggestions, missing fields, example formats).
    """
    tool_name: str
    success: bool
    data: Any = None
    message: str
    is_from_external_knowledge: bool = False


# =============================================================================
# LLM BOUNDARY RESULTS
# =============================================================================

@dataclass(frozen=True)
class CompletionResult:
    """Result of a text-completion call; never raised, always returned."""
    ok: bool
    text: str = ""
    provider: Optional[str] = None
    failure: Optional[CompletionFailure] = None

    @classmethod
    def failed(cls, failure: CompletionFailure, provider: Optional[str] = None) -> "CompletionResult":
        return cls(ok=False, provider=provider, failure=failure)


@dataclass(frozen=True)
class DecisionParse:
    """Result of parsing a decision out of LLM text."""
    decision: Optional[SupervisorDecision] = None
    failure: Optional[DecisionParseFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.decision is not None


# =============================================================================
# TURN RESPONSE
# =============================================================================

class AssistantResponse(BaseModel):
    """What a single turn returns to the HTTP / CLI layer."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    products: list[PartRecord] = Field(default_factory=list)
    tool_used: Optional[str] = None
    intent: str
    data_source: DataSource = DataSource.EXTERNAL_ENHANCED
    show_ticket_form: Optional[bool] = None
    prefilled_ticket_data: Optional[dict[str, Any]] = None
    ticket_data: Optional[SupportTicket] = None
