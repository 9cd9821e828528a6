"""
Assistant Service

Wires the stores, tools and decision engines together and runs one user turn:

    decision = await supervisor.analyze(message, history)
    -> fixed replies (off-topic, greeting, farewell, model location)
    -> support-ticket form prompt
    -> clarification question
    -> tool dispatch + response synthesis

All shared state lives on an explicit AssistantContext built by create_context().
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .agent_tools import (
    CREATE_SUPPORT_TICKET,
    GET_COMPATIBLE_PARTS,
    SEARCH_PRODUCTS,
    TROUBLESHOOT_ISSUE,
    ToolRegistry,
    create_default_registry,
)
from .agent_types import AssistantResponse, DataSource, Intent, SupervisorDecision, ToolResult
from .catalog import CatalogStore
from .config import Settings, load_settings
from .extraction import detect_category, extract_order_number, extract_params, fill_from_history
from .fallback import detect_context_depth, detect_result_limit, detect_sort_preference
from .llm import CompletionClient, build_completion_client
from .models import Category, ConversationMessage, ModelInfo, Order, PartRecord, SupportTicket, TicketPriority
from .prompts import (
    DEFAULT_CLARIFICATION,
    DEFAULT_GREETING,
    DEFAULT_TICKET_REASON,
    ERROR_MESSAGE,
    FAREWELL_MESSAGE,
    FIND_MODEL_RESPONSE,
    MISSING_ARGUMENT_QUESTIONS,
    OFF_TOPIC_MESSAGE,
    TICKET_FORM_PROMPT,
    TICKET_PRIORITY_MESSAGES,
)
from .reference_data import build_model_database, build_seed_orders
from .response_cache import DecisionCache
from .supervisor import Supervisor
from .synthesis import ResponseSynthesizer
from .tickets import TicketStore

logger = logging.getLogger(__name__)

ISSUE_SUMMARY_TURNS = 3
ISSUE_SUMMARY_MAX_CHARS = 500

# Tool arguments that can be recovered from the message or earlier user turns.
IDENTIFIER_ARGS = ("partNumber", "modelNumber", "orderNumber")


@dataclass
class AssistantContext:
    """Everything a turn needs; one instance per process (or per test)."""
    settings: Settings
    catalog: CatalogStore
    models: list[ModelInfo]
    orders: list[Order]
    tickets: TicketStore
    client: CompletionClient
    cache: DecisionCache
    registry: ToolRegistry
    supervisor: Supervisor
    synthesizer: ResponseSynthesizer


def create_context(
    settings: Optional[Settings] = None,
    client: Optional[CompletionClient] = None,
) -> AssistantContext:
    """
    Build a fully wired context.

    Args:
        settings: Runtime settings; read from the environment when omitted
        client: Completion client override (tests pass one with fake providers)
    """
    settings = settings or load_settings()
    catalog = CatalogStore(settings.parts_data_path)
    models = build_model_database()
    orders = build_seed_orders()
    tickets = TicketStore()
    if client is None:
        client = build_completion_client(settings)
    cache = DecisionCache(settings.cache_ttl_seconds, settings.cache_max_entries)
    registry = create_default_registry(catalog, orders, tickets, client)

    return AssistantContext(
        settings=settings,
        catalog=catalog,
        models=models,
        orders=orders,
        tickets=tickets,
        client=client,
        cache=cache,
        registry=registry,
        supervisor=Supervisor(client, cache, models),
        synthesizer=ResponseSynthesizer(client),
    )


# =============================================================================
# TURN HELPERS
# =============================================================================

def _valid_category(value: Optional[str]) -> Optional[str]:
    if value and value.lower() in {c.value for c in Category}:
        return value.lower()
    return None


def identifiers_from_conversation(
    message: str,
    history: Sequence[ConversationMessage],
    depth: int,
) -> dict[str, str]:
    """Part, model and order numbers from the message, then from the last `depth` user turns."""
    found = fill_from_history(extract_params(message), history, depth).as_parameters()
    found.pop("category", None)

    order = extract_order_number(message)
    if order is None and depth > 0:
        for entry in list(reversed(history))[:depth]:
            if entry.role == "user":
                order = extract_order_number(entry.content)
                if order:
                    break
    if order:
        found["orderNumber"] = order
    return found


def build_tool_arguments(
    context: AssistantContext,
    decision: SupervisorDecision,
    message: str,
    history: Sequence[ConversationMessage] = (),
) -> dict[str, Any]:
    """
    Decision parameters plus injected limit/sort/category, narrowed to what the tool accepts.

    Identifier arguments the decision left out are recovered from the message and
    recent user turns.
    """
    tool = context.registry.get(decision.tool_to_use)
    accepted = tool.accepted_args()
    params: dict[str, Any] = dict(decision.parameters)

    limit = str(decision.result_limit or detect_result_limit(message))
    detected_sort_by, detected_sort_order = detect_sort_preference(message)
    sort_by = (decision.sort_by or detected_sort_by).value
    sort_order = (decision.sort_order or detected_sort_order).value

    category = _valid_category(params.pop("category", None))
    if category is None:
        detected = detect_category(message)
        category = detected.value if detected else None

    if tool.name == SEARCH_PRODUCTS:
        params["query"] = params.get("query") or message
        params.update(limit=limit, sortBy=sort_by, sortOrder=sort_order)
        if category:
            params["category"] = category
    elif tool.name == TROUBLESHOOT_ISSUE:
        params["symptom"] = params.get("symptom") or message
        params["limit"] = limit
        if category:
            params["applianceType"] = category
    elif tool.name == GET_COMPATIBLE_PARTS:
        params.update(limit=limit, sortBy=sort_by, sortOrder=sort_order)

    wanted = [name for name in IDENTIFIER_ARGS if name in accepted and not params.get(name)]
    if wanted:
        depth = decision.context_depth or detect_context_depth(message, len(history))
        recovered = identifiers_from_conversation(message, history, depth)
        params.update({name: recovered[name] for name in wanted if name in recovered})

    dropped = sorted(set(params) - accepted)
    if dropped:
        logger.debug("dropping parameters %s not accepted by %s", dropped, tool.name)
    return {k: v for k, v in params.items() if k in accepted}


def missing_argument_question(missing: Sequence[str]) -> str:
    """Plain-language question asking for the required arguments still missing."""
    questions = dict.fromkeys(MISSING_ARGUMENT_QUESTIONS.get(name, DEFAULT_CLARIFICATION) for name in missing)
    return " ".join(questions)


def products_from(result: Optional[ToolResult]) -> list[PartRecord]:
    """Parts carried by a tool result: list data as-is, or the single `part` of a dict."""
    if result is None:
        return []
    if isinstance(result.data, list):
        return [p for p in result.data if isinstance(p, PartRecord)]
    if isinstance(result.data, dict) and isinstance(result.data.get("part"), PartRecord):
        return [result.data["part"]]
    return []


def issue_summary(message: str, history: Sequence[ConversationMessage]) -> Optional[str]:
    """Last few user turns plus the current message, for prefilling the ticket form."""
    user_turns = [m.content for m in history if m.role == "user"]
    if not user_turns:
        return None
    recent = user_turns[-ISSUE_SUMMARY_TURNS:]
    return " | ".join([*recent, message])[:ISSUE_SUMMARY_MAX_CHARS]


def _fixed(message: str, intent: Intent) -> AssistantResponse:
    return AssistantResponse(message=message, intent=intent.value, data_source=DataSource.DATABASE)


def _ticket_form_response(
    decision: SupervisorDecision,
    message: str,
    history: Sequence[ConversationMessage],
) -> AssistantResponse:
    priority = decision.suggested_priority or TicketPriority.NORMAL
    reason = decision.ticket_reason or DEFAULT_TICKET_REASON
    summary = issue_summary(message, history)
    return AssistantResponse(
        message=f"{TICKET_PRIORITY_MESSAGES[priority.value]} {reason}\n\n{TICKET_FORM_PROMPT}",
        intent=Intent.SUPPORT_TICKET.value,
        data_source=DataSource.EXTERNAL_ENHANCED,
        show_ticket_form=True,
        prefilled_ticket_data={"issueDescription": summary} if summary else None,
    )


# =============================================================================
# TURN
# =============================================================================

async def run_turn(
    context: AssistantContext,
    message: str,
    history: Sequence[ConversationMessage] = (),
) -> AssistantResponse:
    """
    Process one user message.

    Unexpected errors never escape: they are logged and turned into a generic
    apology with intent "error". Cancellation propagates.
    """
    try:
        return await _run_turn(context, message, list(history))
    except Exception:
        logger.exception("turn failed for message %r", message[:100])
        return AssistantResponse(message=ERROR_MESSAGE, intent=Intent.ERROR.value)


async def _run_turn(
    context: AssistantContext,
    message: str,
    history: list[ConversationMessage],
) -> AssistantResponse:
    decision = await context.supervisor.analyze(message, history)

    if decision.intent == Intent.OFF_TOPIC:
        return _fixed(OFF_TOPIC_MESSAGE, Intent.OFF_TOPIC)
    if decision.intent == Intent.GREETING:
        return _fixed(decision.clarification_question or DEFAULT_GREETING, Intent.GREETING)
    if decision.intent == Intent.FAREWELL:
        return _fixed(FAREWELL_MESSAGE, Intent.FAREWELL)
    if decision.intent == Intent.FIND_MODEL_LOCATION:
        return _fixed(FIND_MODEL_RESPONSE, Intent.FIND_MODEL_LOCATION)

    if decision.intent == Intent.SUPPORT_TICKET or decision.needs_ticket_form:
        return _ticket_form_response(decision, message, history)

    if decision.needs_clarification:
        return AssistantResponse(
            message=decision.clarification_question or DEFAULT_CLARIFICATION,
            intent=Intent.CLARIFICATION.value,
            data_source=DataSource.EXTERNAL_ENHANCED,
        )

    tool_result: Optional[ToolResult] = None
    tool_used: Optional[str] = None
    tool = context.registry.get(decision.tool_to_use) if decision.tool_to_use else None
    if tool is not None:
        args = build_tool_arguments(context, decision, message, history)
        missing = [name for name in tool.required_args() if not args.get(name)]
        if missing:
            logger.info("%s is missing %s; asking the user", tool.name, missing)
            if tool.name == CREATE_SUPPORT_TICKET:
                return _ticket_form_response(decision, message, history)
            return AssistantResponse(
                message=missing_argument_question(missing),
                intent=Intent.CLARIFICATION.value,
                data_source=DataSource.EXTERNAL_ENHANCED,
            )
        tool_used = tool.name
        tool_result = await context.registry.execute(tool_used, args)
    elif decision.tool_to_use:
        logger.warning("decision named unknown tool %r; answering without a tool", decision.tool_to_use)

    products = products_from(tool_result)
    reply = await context.synthesizer.synthesize(message, decision, tool_result, products)

    if tool_result is not None and tool_result.is_from_external_knowledge:
        data_source = DataSource.EXTERNAL_FALLBACK
    elif products:
        data_source = DataSource.DATABASE
    else:
        data_source = DataSource.EXTERNAL_ENHANCED

    return AssistantResponse(
        message=reply,
        products=products,
        tool_used=tool_used,
        intent=decision.intent.value,
        data_source=data_source,
        ticket_data=tool_result.data if tool_result and isinstance(tool_result.data, SupportTicket) else None,
    )


async def create_ticket(context: AssistantContext, fields: dict[str, Any]) -> ToolResult:
    """Create a support ticket from form fields (camelCase keys) through the ticket tool."""
    return await context.registry.execute(CREATE_SUPPORT_TICKET, fields)
