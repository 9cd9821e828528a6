"""
FastAPI HTTP server for the parts assistant.

Exposes:
- POST /api/chat                       - One assistant turn
- POST /api/tickets                    - Create a support ticket from the form
- GET  /api/tickets/{ticket_number}    - Look up a ticket
- GET  /api/tickets?ticketNumber=...   - Same lookup, query-string form
- GET  /health                         - Health check

Request bodies use camelCase keys. Invalid requests get a 400 with the same body
shape the endpoint uses for its normal replies.
"""

import logging
import os
import re
import sys
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from .agent_types import Intent
from .models import Category, ConversationMessage, PartRecord, TicketPriority
from .prompts import ERROR_MESSAGE
from .service import AssistantContext, create_context, create_ticket, run_turn

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    stream=sys.stdout,
    force=True
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Parts Assistant API",
    description="Chat assistant for refrigerator and dishwasher parts",
    version="1.0.0",
)

# Configure CORS
origins_env = os.getenv("BACKEND_CORS_ORIGINS")
if origins_env:
    allow_origins = [o.strip() for o in origins_env.split(",") if o.strip()]
else:
    allow_origins = ["*"]

logger.info("CORS allow_origins = %r", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

MAX_MESSAGE_LENGTH = 2000
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PRODUCT_URL_BASE = "https://www.partselect.com"

_context: Optional[AssistantContext] = None


def get_context() -> AssistantContext:
    """Process-wide assistant context, built on first use."""
    global _context
    if _context is None:
        _context = create_context()
    return _context


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(CamelModel):
    """Request body for POST /api/chat."""
    message: str = Field(..., description="The user's message")
    conversation_history: list[ConversationMessage] = Field(
        default_factory=list,
        description="Earlier turns, oldest first",
    )

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message is required")
        if len(value) > MAX_MESSAGE_LENGTH:
            raise ValueError("Message is too long")
        return value

    @field_validator("conversation_history")
    @classmethod
    def _check_history(cls, value: list[ConversationMessage]) -> list[ConversationMessage]:
        if any(len(entry.content) > MAX_MESSAGE_LENGTH for entry in value):
            raise ValueError("Invalid conversation history")
        return value


_REQUIRED_LABELS = {
    "customer_name": "Customer name",
    "issue_type": "Issue type",
    "issue_description": "Issue description",
}


class TicketRequest(CamelModel):
    """Request body for POST /api/tickets."""
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    issue_type: str
    appliance_type: Optional[Category] = None
    model_number: Optional[str] = None
    part_number: Optional[str] = None
    issue_description: str
    conversation_summary: Optional[str] = None
    steps_already_tried: Optional[list[str]] = None
    priority: Optional[TicketPriority] = None

    @field_validator("customer_name", "issue_type", "issue_description")
    @classmethod
    def _check_required(cls, value: str, info: ValidationInfo) -> str:
        if not value.strip():
            raise ValueError(f"{_REQUIRED_LABELS[info.field_name]} is required")
        return value

    @field_validator("customer_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Customer email is required")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value


# Messages for errors pydantic raises itself (missing fields, wrong types).
_CHAT_FIELD_ERRORS = {
    "message": "Message is required",
    "conversationHistory": "Invalid conversation history",
}
_TICKET_FIELD_ERRORS = {
    "customerName": "Customer name is required",
    "customerEmail": "Customer email is required",
    "issueType": "Issue type is required",
    "issueDescription": "Issue description is required",
    "customerPhone": "Invalid phone number",
    "modelNumber": "Invalid model number",
    "partNumber": "Invalid part number",
    "conversationSummary": "Invalid conversation summary",
    "stepsAlreadyTried": "Invalid stepsAlreadyTried",
    "applianceType": "Invalid appliance type",
    "priority": "Invalid priority",
}


def _validation_message(exc: RequestValidationError, field_errors: dict[str, str]) -> str:
    """First validation error, in the same wording the endpoint documents."""
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if error.get("type") == "value_error":
            return error["msg"].removeprefix("Value error, ")
        if not loc:
            return "Invalid request body"
        if loc[0] == "conversationHistory" and error.get("type") == "list_type" and len(loc) == 1:
            return "Conversation history must be an array"
        if loc[0] in field_errors:
            return field_errors[loc[0]]
    return "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if request.url.path.startswith("/api/tickets"):
        error = _validation_message(exc, _TICKET_FIELD_ERRORS)
        logger.info("rejected ticket request: %s", error)
        return JSONResponse(status_code=400, content={"success": False, "error": error})

    error = _validation_message(exc, _CHAT_FIELD_ERRORS)
    logger.info("rejected chat request: %s", error)
    return JSONResponse(
        status_code=400,
        content={"message": error, "products": [], "intent": Intent.ERROR.value},
    )


# =============================================================================
# SERIALIZATION
# =============================================================================

def product_url(part: PartRecord) -> str:
    slug = re.sub(r"[^a-zA-Z0-9-]", "", re.sub(r"\s+", "-", part.name))
    return f"{PRODUCT_URL_BASE}/{part.part_number}-{part.brand}-{slug}.htm"


def serialize_product(part: PartRecord) -> dict:
    data = part.model_dump(mode="json", by_alias=True)
    data["url"] = product_url(part)
    return data


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.post("/api/chat")
async def chat_endpoint(req: ChatRequest, context: AssistantContext = Depends(get_context)):
    """
    Run one assistant turn.

    Returns:
        message, products, intent, toolUsed, dataSource, and the ticket-form fields
        when the assistant wants the user to open a support ticket
    """
    logger.info("POST /api/chat (%d history entries): %s", len(req.conversation_history), req.message[:100])
    try:
        response = await run_turn(context, req.message, req.conversation_history)
    except Exception:
        logger.exception("chat endpoint failed")
        return JSONResponse(
            status_code=500,
            content={"message": ERROR_MESSAGE, "products": [], "intent": Intent.ERROR.value},
        )

    body = response.model_dump(mode="json", by_alias=True, exclude={"products", "ticket_data"})
    body["products"] = [serialize_product(p) for p in response.products]
    if response.ticket_data is not None:
        body["ticketData"] = response.ticket_data.model_dump(mode="json", by_alias=True)
    return body


@app.post("/api/tickets")
async def create_ticket_endpoint(req: TicketRequest, context: AssistantContext = Depends(get_context)):
    """Create a support ticket from the form the chat offered."""
    fields = req.model_dump(by_alias=True, exclude_none=True, mode="json")
    try:
        result = await create_ticket(context, fields)
    except Exception:
        logger.exception("ticket creation failed")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to create support ticket. Please try again."},
        )

    if not result.success:
        return JSONResponse(status_code=400, content={"success": False, "error": result.message})

    ticket = result.data
    return {
        "success": True,
        "ticket": ticket.model_dump(mode="json", by_alias=True),
        "message": (
            f"Support ticket {ticket.ticket_number} created successfully. "
            f"Our team will contact you at {ticket.customer_email} within 24 hours."
        ),
    }


@app.get("/api/tickets/{ticket_number}")
def get_ticket_endpoint(ticket_number: str, context: AssistantContext = Depends(get_context)):
    ticket = context.tickets.find(ticket_number)
    if ticket is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": f"Ticket {ticket_number} not found"},
        )
    return {"success": True, "ticket": ticket.model_dump(mode="json", by_alias=True)}


@app.get("/api/tickets")
def find_ticket_endpoint(
    ticket_number: Optional[str] = Query(default=None, alias="ticketNumber"),
    context: AssistantContext = Depends(get_context),
):
    if not ticket_number:
        return JSONResponse(status_code=400, content={"success": False, "error": "Ticket number is required"})
    return get_ticket_endpoint(ticket_number, context)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}
