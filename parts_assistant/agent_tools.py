"""
Agent Tools Module

Defines the Tool interface and the seven domain tools the decision engines can
dispatch to:
- search_products
- check_compatibility
- get_compatible_parts
- troubleshoot_issue
- get_installation_help
- check_order_status
- create_support_ticket

Every tool declares a pydantic argument model (camelCase on the wire) and returns a
ToolResult whose message is ready to show to the user. Lookups that find nothing
are not errors: they come back with success=False and a message that tells the
user what to try next.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .agent_types import SortBy, SortOrder, ToolResult
from .catalog import CatalogStore
from .external_knowledge import lookup_troubleshooting
from .llm import CompletionClient
from .models import (
    Category,
    Order,
    OrderStatus,
    PartRecord,
    TicketIssueType,
    TicketPriority,
)
from .reference_data import find_order
from .tickets import NewTicket, TicketStore
from .troubleshooting import find_guide

logger = logging.getLogger(__name__)

SEARCH_PRODUCTS = "search_products"
CHECK_COMPATIBILITY = "check_compatibility"
GET_COMPATIBLE_PARTS = "get_compatible_parts"
TROUBLESHOOT_ISSUE = "troubleshoot_issue"
GET_INSTALLATION_HELP = "get_installation_help"
CHECK_ORDER_STATUS = "check_order_status"
CREATE_SUPPORT_TICKET = "create_support_ticket"


# =============================================================================
# TOOL INTERFACE (Abstract Base Class)
# =============================================================================

class Tool(ABC):
    """
    Abstract base class for all tools.

    Each tool must define:
    - name: Unique identifier the decision engines use to call it
    - description: What the tool does (shown to the LLM)
    - args_schema: Pydantic model defining its arguments
    - execute(): The actual implementation, given already-validated arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool identifier."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        pass

    @property
    @abstractmethod
    def args_schema(self) -> Type[BaseModel]:
        """Pydantic model defining the tool's arguments."""
        pass

    @abstractmethod
    async def execute(self, args: BaseModel) -> ToolResult:
        """
        Execute the tool.

        Args:
            args: Instance of args_schema, validated by the registry

        Returns:
            ToolResult with success flag, data payload and user-facing message
        """
        pass

    def accepted_args(self) -> set[str]:
        """Wire (camelCase) names of every argument this tool accepts."""
        return {f.alias or n for n, f in self.args_schema.model_fields.items()}

    def required_args(self) -> list[str]:
        """Wire names of the arguments the tool cannot run without, in schema order."""
        return [f.alias or n for n, f in self.args_schema.model_fields.items() if f.is_required()]

    def to_openai_schema(self) -> dict:
        """Convert tool definition to OpenAI function calling format."""
        schema = self.args_schema.model_json_schema(by_alias=True)
        schema.pop("title", None)

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            }
        }


# =============================================================================
# TOOL ARGUMENT SCHEMAS
# =============================================================================

class ToolArgs(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class SearchProductsArgs(ToolArgs):
    query: str = Field(..., min_length=1, description="Part name, description, or keywords")
    category: Optional[Category] = Field(default=None, description="Filter by appliance category")
    limit: Optional[int] = Field(default=None, ge=1, le=50, description="Maximum results (default 5)")
    sort_by: Optional[SortBy] = None
    sort_order: Optional[SortOrder] = None


class CheckCompatibilityArgs(ToolArgs):
    part_number: str = Field(..., min_length=1, description="The part number to check (e.g., PS11752778)")
    model_number: str = Field(..., min_length=1, description="The appliance model number (e.g., WDT780SAEM1)")


class GetCompatiblePartsArgs(ToolArgs):
    model_number: str = Field(..., min_length=1, description="The appliance model number (e.g., WRS325SDHZ)")
    limit: Optional[int] = Field(default=None, ge=1, le=50)
    sort_by: Optional[SortBy] = None
    sort_order: Optional[SortOrder] = None


class TroubleshootIssueArgs(ToolArgs):
    symptom: str = Field(..., min_length=1, description="The problem, e.g. 'dishwasher won't drain'")
    appliance_type: Optional[Category] = None
    limit: Optional[int] = Field(default=None, ge=1, le=50, description="Maximum parts to suggest (default 3)")


class InstallationHelpArgs(ToolArgs):
    part_number: str = Field(..., min_length=1)


class OrderStatusArgs(ToolArgs):
    order_number: str = Field(..., min_length=1, description="Order number, format PS-XXXX-XXXXX")


class CreateSupportTicketArgs(ToolArgs):
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    issue_type: TicketIssueType
    appliance_type: Optional[Category] = None
    model_number: Optional[str] = None
    part_number: Optional[str] = None
    issue_description: str = Field(..., min_length=1)
    conversation_summary: Optional[str] = None
    steps_already_tried: list[str] = Field(
        default_factory=list,
        description="Steps already attempted; a comma-separated string is split",
    )
    priority: Optional[TicketPriority] = None

    @field_validator("steps_already_tried", mode="before")
    @classmethod
    def _split_steps(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def format_price(amount: float) -> str:
    return f"${amount:.2f}"


def format_part(part: PartRecord) -> str:
    """Multi-line markdown summary of a part, as shown in tool messages."""
    price = format_price(part.price)
    if part.original_price is not None:
        price += f" (was {format_price(part.original_price)})"
    models = ", ".join(part.compatible_models[:5])
    if len(part.compatible_models) > 5:
        models += "..."
    return (
        f"**{part.name}** (Part #{part.part_number})\n"
        f"- Price: {price}\n"
        f"- Brand: {part.brand}\n"
        f"- Rating: {part.rating}/5 ({part.review_count} reviews)\n"
        f"- In Stock: {'Yes' if part.in_stock else 'No'}\n"
        f"- Installation: {part.installation_difficulty.value} ({part.installation_time})\n"
        f"- Compatible Models: {models}"
    )


def suggest_similar_parts(catalog: CatalogStore, part_number: str, limit: int = 3) -> list[PartRecord]:
    """
    Typo-tolerant part-number suggestions.

    Score: +3 for a shared 2-char prefix, +5 more for a shared 4-char prefix, plus
    one per digit that matches position-for-position between the two digit strings.
    Scores must exceed 2.
    """
    wanted = part_number.strip().lower()
    if not wanted:
        return []
    wanted_digits = "".join(ch for ch in wanted if ch.isdigit())

    scored = []
    for part in catalog.load_all():
        candidate = part.part_number.lower()
        score = 0
        if candidate.startswith(wanted[:2]):
            score += 3
        if candidate.startswith(wanted[:4]):
            score += 5
        candidate_digits = "".join(ch for ch in candidate if ch.isdigit())
        score += sum(1 for a, b in zip(wanted_digits, candidate_digits) if a == b)
        if score > 2:
            scored.append((score, part))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [part for _, part in scored[:limit]]


def _title(value: str) -> str:
    return value[:1].upper() + value[1:]


# =============================================================================
# TOOL IMPLEMENTATIONS
# =============================================================================

class SearchProductsTool(Tool):
    """Keyword search over the catalog."""

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return SEARCH_PRODUCTS

    @property
    def description(self) -> str:
        return (
            "Search for refrigerator or dishwasher parts by name, description, or keywords. "
            "Use this when the user is looking for a specific part or browsing parts."
        )

    @property
    def args_schema(self) -> Type[BaseModel]:
        return SearchProductsArgs

    async def execute(self, args: SearchProductsArgs) -> ToolResult:
        hits = self._catalog.search_by_text(
            args.query,
            category=args.category,
            max_results=args.limit or 5,
            sort_by=args.sort_by or SortBy.RELEVANCE,
            sort_order=args.sort_order or SortOrder.DESC,
        )

        if not hits:
            scope = f" in {args.category.value} parts" if args.category else ""
            sample = (
                self._catalog.parts_by_category(args.category)
                if args.category else list(self._catalog.load_all())
            )[:5]
            lines = [f'❌ **No parts found** matching "{args.query}"{scope}.', ""]
            lines.append(f"**Available {args.category.value if args.category else 'popular'} parts:**")
            lines.extend(f"• **{p.name}** ({p.part_number}) - {format_price(p.price)}" for p in sample)
            lines.append("")
            lines.append("**Try:**")
            lines.append('• Searching for: "ice maker", "water filter", "spray arm", "door gasket"')
            lines.append('• Browsing: "Show me all refrigerator parts" or "dishwasher parts"')
            return ToolResult(tool_name=self.name, success=False, data=[], message="\n".join(lines))

        parts = [hit.part for hit in hits]
        formatted = "\n\n".join(format_part(p) for p in parts)
        return ToolResult(
            tool_name=self.name,
            success=True,
            data=parts,
            message=f'Found {len(parts)} parts matching "{args.query}":\n\n{formatted}',
        )


class CheckCompatibilityTool(Tool):
    """Definitive compatible / not-compatible verdict for one part and one model."""

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return CHECK_COMPATIBILITY

    @property
    def description(self) -> str:
        return (
            "Check if a specific part is compatible with a given appliance model number. "
            "Needs BOTH partNumber and modelNumber."
        )

    @property
    def args_schema(self) -> Type[BaseModel]:
        return CheckCompatibilityArgs

    async def execute(self, args: CheckCompatibilityArgs) -> ToolResult:
        check = self._catalog.check_compatibility(args.part_number, args.model_number)

        if check.part is None:
            lines = [f'❌ **Part not found.** Part number "{args.part_number}" is not in our database.', ""]
            similar = suggest_similar_parts(self._catalog, args.part_number)
            if similar:
                lines.append("**Did you mean one of these?**")
                lines.extend(f"• **{p.part_number}** - {p.name} ({format_price(p.price)})" for p in similar)
                lines.append("")
            lines.append("**Tips:**")
            lines.append("• Double-check the part number for typos")
            lines.append("• PartSelect IDs start with **PS** (e.g., PS11752778)")
            lines.append("• Whirlpool OEM numbers start with **W** or **WP** (e.g., W10712395)")
            lines.append("")
            examples = ", ".join(p.part_number for p in self._catalog.load_all()[:10])
            lines.append(f"**Example part numbers:** {examples}")
            return ToolResult(tool_name=self.name, success=False, data=None, message="\n".join(lines))

        part = check.part
        if check.is_compatible:
            return ToolResult(
                tool_name=self.name,
                success=True,
                data={"isCompatible": True, "part": part, "compatibleModels": check.compatible_models},
                message=(
                    f"✅ **Yes, compatible!** Part {args.part_number} ({part.name}) IS compatible "
                    f"with model {args.model_number}.\n\n{format_part(part)}"
                ),
            )

        return ToolResult(
            tool_name=self.name,
            success=True,
            data={"isCompatible": False, "part": part, "compatibleModels": check.compatible_models},
            message=(
                f"❌ **Not compatible.** Part {args.part_number} ({part.name}) is NOT compatible "
                f"with model {args.model_number}.\n\n"
                f"This part is compatible with: {', '.join(check.compatible_models)}\n\n"
                f"Would you like me to find compatible parts for your {args.model_number} model?"
            ),
        )


MODEL_NOT_FOUND_TEMPLATE = """**Model "{model}" was not found** in our database.

**This could mean:**
• The model number may have a typo
• We may not have this specific model in our system yet

**Where to find your model number:**
• Refrigerators: Inside the door, on the side wall, or on the back
• Dishwashers: Inside the door frame or on the side of the door

**Example valid model formats:**
• Whirlpool: WRS325SDHZ, WDT780SAEM1
• KitchenAid: KDTM354ESS, KRSC503ESS
• Maytag: MFI2570FEZ

**What you can do:**
1. Double-check your model number and try again
2. Tell me the **brand** and **appliance type** and I'll show you common parts
3. Describe your **problem** and I'll suggest parts that might help

How would you like to proceed?"""


class GetCompatiblePartsTool(Tool):
    """Every catalog part that lists the given model."""

    DEFAULT_DISPLAY = 6

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return GET_COMPATIBLE_PARTS

    @property
    def description(self) -> str:
        return (
            "Find all parts that are compatible with a specific appliance model number. "
            "Use this when the user wants to see what parts fit their appliance."
        )

    @property
    def args_schema(self) -> Type[BaseModel]:
        return GetCompatiblePartsArgs

    async def execute(self, args: GetCompatiblePartsArgs) -> ToolResult:
        parts = self._catalog.find_compatible(
            args.model_number,
            max_results=args.limit,
            sort_by=args.sort_by or SortBy.RATING,
            sort_order=args.sort_order or SortOrder.DESC,
        )
        if not parts:
            return ToolResult(
                tool_name=self.name,
                success=False,
                data=[],
                message=MODEL_NOT_FOUND_TEMPLATE.format(model=args.model_number),
            )

        shown = parts if args.limit else parts[:self.DEFAULT_DISPLAY]
        formatted = "\n\n".join(format_part(p) for p in shown)
        return ToolResult(
            tool_name=self.name,
            success=True,
            data=parts,
            message=f"Found {len(parts)} compatible parts for model {args.model_number}:\n\n{formatted}",
        )


class TroubleshootIssueTool(Tool):
    """
    Curated diagnostic steps plus symptom-matched parts.

    When neither source knows the symptom, the external-knowledge lookup answers
    instead and the result is flagged as externally sourced.
    """

    DEFAULT_LIMIT = 3

    def __init__(self, catalog: CatalogStore, completion: CompletionClient) -> None:
        self._catalog = catalog
        self._completion = completion

    @property
    def name(self) -> str:
        return TROUBLESHOOT_ISSUE

    @property
    def description(self) -> str:
        return (
            "Help diagnose an appliance problem and recommend parts that might fix it. "
            "Use this when the user describes a symptom with their refrigerator or dishwasher."
        )

    @property
    def args_schema(self) -> Type[BaseModel]:
        return TroubleshootIssueArgs

    async def execute(self, args: TroubleshootIssueArgs) -> ToolResult:
        hits = self._catalog.search_by_symptom(
            args.symptom,
            category=args.appliance_type,
            max_results=args.limit or self.DEFAULT_LIMIT,
        )
        guide = find_guide(args.symptom)

        if not hits and guide is None:
            logger.info("no curated or catalog match for symptom %r; using external knowledge", args.symptom)
            lookup = await lookup_troubleshooting(self._completion, args.symptom, args.appliance_type)
            return ToolResult(
                tool_name=self.name,
                success=lookup.success,
                data=[],
                message=lookup.message,
                is_from_external_knowledge=True,
            )

        sections = [f"## Troubleshooting: {args.symptom}\n"]
        if guide is not None:
            sections.append("### Try These Steps First")
            sections.extend(f"{i}. {step}" for i, step in enumerate(guide.steps, start=1))
            sections.append("\n### Common Causes")
            sections.extend(f"• {cause}" for cause in guide.common_causes)
            sections.append("\n### Parts to Check")
            sections.extend(f"• {_title(name)}" for name in guide.parts_to_check)

        parts = [hit.part for hit in hits]
        if parts:
            sections.append("\n### If Steps Don't Help - These Parts Often Fix This Issue\n")
            blocks = []
            for part in parts:
                block = format_part(part)
                if part.symptoms:
                    block += f"\n- Fixes symptoms: {', '.join(part.symptoms[:3])}"
                blocks.append(block)
            sections.append("\n\n".join(blocks))

        sections.append("\n### Safety Reminders")
        sections.append("⚠️ Always unplug the appliance before any repairs")
        sections.append("📸 Take photos of wire connections before disconnecting")
        sections.append("🔧 If unsure about any step, consult a qualified technician")

        return ToolResult(tool_name=self.name, success=True, data=parts, message="\n".join(sections))


INSTALLATION_GUIDE_TEMPLATE = """## Installation Guide for {name}

**Part Number:** {part_number}
**Difficulty Level:** {difficulty}
**Estimated Time:** {time}

### Before You Begin
1. **Safety First:** Unplug the appliance or turn off the circuit breaker
2. **Gather Tools:** You'll typically need a Phillips screwdriver, flat-head screwdriver, and possibly pliers
3. **Take Photos:** Document wire connections and part positions before removal

### General Installation Steps
1. Locate the existing part in your {category}
2. Disconnect any electrical connections (note wire colors/positions)
3. Remove any mounting screws or clips
4. Carefully remove the old part
5. Install the new part in reverse order
6. Reconnect all wires to their original positions
7. Secure with mounting hardware
8. Restore power and test operation

### Compatible Models
This part fits: {models}

### Need More Help?
- Search YouTube for "{part_number} installation"
- Visit PartSelect.com for detailed repair guides
- Consider hiring a professional for difficult installations

⚠️ **Safety Note:** If you're uncomfortable with any step, please consult a qualified appliance repair technician."""


class GetInstallationHelpTool(Tool):
    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return GET_INSTALLATION_HELP

    @property
    def description(self) -> str:
        return "Get installation information for a specific part. Needs partNumber."

    @property
    def args_schema(self) -> Type[BaseModel]:
        return InstallationHelpArgs

    async def execute(self, args: InstallationHelpArgs) -> ToolResult:
        part = self._catalog.find_by_part_number(args.part_number)
        if part is None:
            lines = [f'❌ **Part not found.** Part number "{args.part_number}" is not in our database.', ""]
            similar = suggest_similar_parts(self._catalog, args.part_number)
            if similar:
                lines.append("**Did you mean one of these?**")
                lines.extend(f"• **{p.part_number}** - {p.name}" for p in similar)
                lines.append("")
            lines.append("**Available parts with installation guides:**")
            sample = self._catalog.load_all()[:5]
            lines.extend(
                f"• **{p.part_number}** - {p.name} ({p.installation_difficulty.value})" for p in sample
            )
            if sample:
                lines.append("")
                lines.append(f'Try asking: "How do I install part {sample[0].part_number}?"')
            return ToolResult(tool_name=self.name, success=False, data=None, message="\n".join(lines))

        message = INSTALLATION_GUIDE_TEMPLATE.format(
            name=part.name,
            part_number=part.part_number,
            difficulty=part.installation_difficulty.value,
            time=part.installation_time,
            category=part.category.value,
            models=", ".join(part.compatible_models),
        )
        return ToolResult(tool_name=self.name, success=True, data={"part": part}, message=message)


ORDER_NOT_FOUND_TEMPLATE = """Order "{order}" was not found in our system.

**Please verify your order number:**
• Format should be: **PS-XXXX-XXXXX** (e.g., PS-2024-78542)
• Check your order confirmation email
• Look for the order number on your receipt

If you can't find your order number, please contact PartSelect customer service."""

STATUS_EMOJI = {
    OrderStatus.PROCESSING: "📦",
    OrderStatus.SHIPPED: "🚚",
    OrderStatus.DELIVERED: "✅",
    OrderStatus.CANCELLED: "❌",
}


class CheckOrderStatusTool(Tool):
    def __init__(self, orders: list[Order]) -> None:
        self._orders = orders

    @property
    def name(self) -> str:
        return CHECK_ORDER_STATUS

    @property
    def description(self) -> str:
        return "Check the status of an order. Needs an order number like PS-2024-78542."

    @property
    def args_schema(self) -> Type[BaseModel]:
        return OrderStatusArgs

    async def execute(self, args: OrderStatusArgs) -> ToolResult:
        order = find_order(self._orders, args.order_number)
        if order is None:
            return ToolResult(
                tool_name=self.name,
                success=False,
                data=None,
                message=ORDER_NOT_FOUND_TEMPLATE.format(order=args.order_number),
            )

        items = "\n".join(
            f"- {item.name} ({item.part_number}) x{item.quantity} - {format_price(item.price)}"
            for item in order.items
        )
        lines = [
            f"## Order Status: {order.order_number}",
            "",
            f"{STATUS_EMOJI[order.status]} **Status:** {_title(order.status.value)}",
            "",
            "### Items Ordered",
            items,
            "",
            f"**Order Total:** {format_price(order.total)}",
        ]
        if order.tracking_number:
            lines.append("")
            lines.append(f"**Tracking Number:** {order.tracking_number}")
        if order.estimated_delivery:
            lines.append(f"**Estimated Delivery:** {order.estimated_delivery}")

        return ToolResult(tool_name=self.name, success=True, data=order, message="\n".join(lines))


PRIORITY_EMOJI = {
    TicketPriority.LOW: "🟢",
    TicketPriority.NORMAL: "🟡",
    TicketPriority.HIGH: "🟠",
    TicketPriority.URGENT: "🔴",
}


class CreateSupportTicketTool(Tool):
    """Creates a ticket; input is assumed validated by the caller (the HTTP layer)."""

    def __init__(self, tickets: TicketStore) -> None:
        self._tickets = tickets

    @property
    def name(self) -> str:
        return CREATE_SUPPORT_TICKET

    @property
    def description(self) -> str:
        return (
            "Create a support ticket for issues that require human assistance: explicit requests "
            "for support, frustration after failed attempts, or issues beyond DIY repair scope."
        )

    @property
    def args_schema(self) -> Type[BaseModel]:
        return CreateSupportTicketArgs

    async def execute(self, args: CreateSupportTicketArgs) -> ToolResult:
        ticket = self._tickets.create(NewTicket(
            customer_name=args.customer_name,
            customer_email=args.customer_email,
            customer_phone=args.customer_phone,
            issue_type=args.issue_type,
            appliance_type=args.appliance_type,
            model_number=args.model_number,
            part_number=args.part_number,
            issue_description=args.issue_description,
            conversation_summary=args.conversation_summary or "",
            steps_already_tried=args.steps_already_tried,
            priority=args.priority or TicketPriority.NORMAL,
        ))

        message = (
            "## Support Ticket Created Successfully!\n\n"
            f"**Ticket Number:** {ticket.ticket_number}\n"
            f"**Status:** {_title(ticket.status.value)}\n"
            f"**Priority:** {PRIORITY_EMOJI[ticket.priority]} {_title(ticket.priority.value)}\n\n"
            "### Issue Summary\n"
            f"{ticket.issue_description}\n\n"
            "### What Happens Next\n"
            f"Our support team will review your ticket and contact you at **{ticket.customer_email}** "
            "within 24 hours.\n\n"
            "If this is an urgent matter, please call our support line at 1-800-PARTSELECT.\n\n"
            "Is there anything else I can help you with?"
        )
        return ToolResult(tool_name=self.name, success=True, data=ticket, message=message)


# =============================================================================
# TOOL REGISTRY
# =============================================================================

def _validate_tool_args(tool: Tool, args: dict[str, Any]) -> tuple[Optional[BaseModel], Optional[str]]:
    """
    Validate tool arguments against the tool's schema BEFORE execution.

    Returns (parsed_args, error_message); exactly one of them is None.
    """
    schema = tool.args_schema.model_json_schema(by_alias=True)
    properties = schema.get("properties", {})
    required = schema.get("required", [])

    missing = [arg for arg in required if args.get(arg) in (None, "")]
    if missing:
        expected = [
            f"{arg_name} (required)" if arg_name in required else f"{arg_name} (optional)"
            for arg_name in properties
        ]
        return None, (
            f"Missing required argument(s): {missing}. "
            f"Expected arguments for {tool.name}: {', '.join(expected)}"
        )

    unknown = [arg for arg in args if arg not in properties]
    if unknown:
        return None, (
            f"Unknown argument(s): {unknown}. "
            f"Valid arguments for {tool.name}: {list(properties.keys())}"
        )

    try:
        return tool.args_schema.model_validate(args), None
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return None, f"Invalid argument(s) for {tool.name}: {problems}"


class ToolRegistry:
    """
    Registry of all available tools.

    Provides lookup by name, argument validation and dispatch.
    """

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool by name."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        """Look up a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        """Return all registered tools."""
        return list(self._tools.values())

    def get_openai_schemas(self) -> list[dict]:
        """Get OpenAI function calling schemas for all tools."""
        return [tool.to_openai_schema() for tool in self._tools.values()]

    def get_tools_description(self) -> str:
        """Get a human-readable description of all tools for the system prompt."""
        lines = ["Available tools:"]
        for tool in self._tools.values():
            lines.append(f"- {tool.name}: {tool.description}")
        return "\n".join(lines)

    async def execute(self, name: str, args: dict[str, Any]) -> ToolResult:
        """
        Validate `args` and run the named tool.

        Unknown tools and invalid arguments come back as ToolResult(success=False);
        exceptions raised inside a tool propagate to the caller.
        """
        tool = self.get(name)
        if tool is None:
            logger.warning("unknown tool requested: %s", name)
            return ToolResult(
                tool_name=name,
                success=False,
                message=f"Unknown tool '{name}'. Available tools: {', '.join(self._tools)}",
            )

        parsed, error = _validate_tool_args(tool, args)
        if parsed is None:
            logger.warning("tool %s argument validation failed: %s", name, error)
            return ToolResult(tool_name=name, success=False, message=error or "Invalid arguments")

        logger.info("executing tool %s with args %s", name, args)
        return await tool.execute(parsed)


def create_default_registry(
    catalog: CatalogStore,
    orders: list[Order],
    tickets: TicketStore,
    completion: CompletionClient,
) -> ToolRegistry:
    """Create and populate the registry with the seven domain tools."""
    registry = ToolRegistry()

    # Catalog tools
    registry.register(SearchProductsTool(catalog))
    registry.register(CheckCompatibilityTool(catalog))
    registry.register(GetCompatiblePartsTool(catalog))
    registry.register(TroubleshootIssueTool(catalog, completion))
    registry.register(GetInstallationHelpTool(catalog))

    # Order and support tools
    registry.register(CheckOrderStatusTool(orders))
    registry.register(CreateSupportTicketTool(tickets))

    return registry
