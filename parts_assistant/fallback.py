"""
Rule-Based Decision Engine

Deterministic stand-in for the LLM supervisor. `analyze_fallback` runs an ordered
cascade of pattern tests over the current message (plus a little conversation
history) and returns the same SupervisorDecision structure the LLM is asked for.

Order matters: earlier rules are the more specific ones. Every branch builds one
complete decision through `make_decision`, so result-shaping preferences (limit, style,
sort, context depth) are always set.

This is the only decision path when no completion provider is configured, and the
safety net whenever the provider fails or replies with something unparseable.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .agent_tools import (
    CHECK_COMPATIBILITY,
    CHECK_ORDER_STATUS,
    GET_COMPATIBLE_PARTS,
    GET_INSTALLATION_HELP,
    SEARCH_PRODUCTS,
    TROUBLESHOOT_ISSUE,
)
from .agent_types import Intent, ResponseStyle, SortBy, SortOrder, SupervisorDecision
from .extraction import (
    ExtractedParams,
    extract_bare_order_answer,
    extract_order_number,
    extract_params,
    fill_from_history,
    normalize_quotes,
)
from .models import Category, ConversationMessage, ModelInfo, TicketPriority
from .prompts import SHORT_GREETING_MENU
from .reference_data import category_for_model

logger = logging.getLogger(__name__)

MAX_RESULT_LIMIT = 50
DEFAULT_RESULT_LIMIT = 5


class PreviousIntent(str, Enum):
    """What the last assistant turn was waiting for, read from its wording."""
    COMPATIBILITY = "compatibility"
    INSTALLATION = "installation"
    TROUBLESHOOTING = "troubleshooting"
    AWAITING_APPLIANCE_TYPE = "awaiting_appliance_type"
    AWAITING_DETAILS = "awaiting_details"
    AWAITING_ORDER_NUMBER = "awaiting_order_number"
    ORDER_STATUS = "order_status"
    OFF_TOPIC_RESPONSE = "off_topic_response"


# =============================================================================
# PATTERNS
# =============================================================================

_SUPPORT_DEPTH = re.compile(r"(support|ticket|help|frustrated|tried everything)", re.IGNORECASE)
_FOLLOW_UP_DEPTH = re.compile(r"(what about|and also|another|also need|in addition)", re.IGNORECASE)
_TROUBLE_DEPTH = re.compile(r"(troubleshoot|not working|problem|issue|broken)", re.IGNORECASE)

_LIMIT_ALL = re.compile(r"\b(all|every|complete|full list|everything|entire|whole)\b", re.IGNORECASE)
_LIMIT_NUMBER = re.compile(r"(?:top|first|show me|give me|need)\s*(\d+)", re.IGNORECASE)
_LIMIT_FEW = re.compile(r"\b(a few|some|recommend|suggest)", re.IGNORECASE)

_STYLE_BRIEF = re.compile(r"(quick|brief|short|just tell me|simple answer|tldr|in short)", re.IGNORECASE)
_STYLE_DETAILED = re.compile(
    r"(explain|detail|step by step|thorough|comprehensive|tell me more|how does|\bwhy\b)", re.IGNORECASE
)
_STYLE_FRUSTRATED = re.compile(r"(tried everything|frustrated|not working again|still broken)", re.IGNORECASE)

_SORT_RULES: tuple[tuple[re.Pattern, SortBy, SortOrder], ...] = (
    (re.compile(r"(cheapest|lowest price|budget|affordable|inexpensive)", re.IGNORECASE), SortBy.PRICE, SortOrder.ASC),
    (re.compile(r"(most expensive|premium|high.?end|best quality)", re.IGNORECASE), SortBy.PRICE, SortOrder.DESC),
    (re.compile(r"(best rated|highest rated|top rated|best reviewed)", re.IGNORECASE), SortBy.RATING, SortOrder.DESC),
    (re.compile(r"(most popular|most reviews|most purchased|best seller)", re.IGNORECASE), SortBy.REVIEWS, SortOrder.DESC),
)

_APPLIANCE_ANSWER = re.compile(r"^(refrigerator|fridge|dishwasher)$", re.IGNORECASE)
_UNSUPPORTED_APPLIANCE = re.compile(
    r"(\bwasher\b|\bdryer\b|\boven\b|\bstove\b|\bmicrowave\b|\brange\b|\bvacuum\b|air conditioner|air\s*con)",
    re.IGNORECASE,
)
_NON_APPLIANCE_TOPIC = re.compile(
    r"\b(weather|sports?|news|recipes?|movies?|jokes?|stock market|stocks|crypto\w*|traffic|what time is it)\b",
    re.IGNORECASE,
)
_TRAP_QUERY = re.compile(
    r"\b(can you (dance|sing|play|tell me a joke|write|code|help me with homework)"
    r"|what is (your name|the meaning of life|love|happiness)"
    r"|how are you|who are you|are you (human|real|ai|a robot)"
    r"|hello|hi there|hey|good morning|good night|thanks|thank you|bye|goodbye)\b",
    re.IGNORECASE,
)
_APPLIANCE_CONTEXT = re.compile(
    r"(part|model|install|fix|repair|troubleshoot|compatible|refrigerator|fridge|dishwasher"
    r"|ice|water|filter|drain|spray|door|motor|pump|gasket|thermostat)",
    re.IGNORECASE,
)
_EXACT_GREETING = re.compile(r"^(hello|hi|hey|good morning|good night|hi there)$", re.IGNORECASE)
_EXACT_THANKS = re.compile(r"^(thanks|thank you|bye|goodbye)$", re.IGNORECASE)

_VAGUE_REFERENCE = re.compile(r"(any of the above|these products|which one)", re.IGNORECASE)
_FIND_MODEL = re.compile(r"(where.*find.*model|locate.*model|find.*my.*model)", re.IGNORECASE)
_ORDER_QUERY = re.compile(r"\b(order\w*|track\w*|shipment|delivery|status)\b", re.IGNORECASE)

_SUPPORT_REQUEST = re.compile(
    r"(support ticket|create (a )?ticket|talk to (a |someone|human|person)|speak to (a |someone|human|person)"
    r"|customer service|contact support|need help from|real person)",
    re.IGNORECASE,
)
_FRUSTRATION = re.compile(
    r"(tried everything|nothing works|i'?m done|this is (ridiculous|frustrating|impossible)|give up"
    r"|can'?t (do|figure|fix) this|waste of time|hours on this|still (not working|broken|doesn'?t work))",
    re.IGNORECASE,
)
_ESCALATION = re.compile(
    r"(refund|warranty|dangerous|fire|smoke|spark|electric|lawyer|\bsue\b|bbb|better business|complain)",
    re.IGNORECASE,
)
_SAFETY = re.compile(r"(fire|smoke|spark|dangerous)", re.IGNORECASE)

_INSTALL = re.compile(
    r"(\binstall\b|\binstallation\b|\binstructions\b|\bsteps\b|\breplace\b|\bremove\b|\bhow\s+to\b|put.+in|set.+up)",
    re.IGNORECASE,
)
_COMPATIBILITY = re.compile(r"(compatib|fit|work.+with|works.+with)", re.IGNORECASE)
_WANTS_COMPATIBLE_PARTS = re.compile(
    r"(what parts fit|compatible parts|parts fit|parts that fit)", re.IGNORECASE
)
_TROUBLE = re.compile(
    r"(not working|broken|problem|issue|won'?t|doesn'?t|isn'?t|fix|repair|leak|leaking|not draining"
    r"|not cleaning|not cooling|noisy|noise|frost|build.?up|not dispensing|not making ice)",
    re.IGNORECASE,
)
_SEARCH = re.compile(
    r"(refrigerator|fridge|dishwasher|parts|filter|ice|door|shelf|spray arm|drain pump"
    r"|rack adjuster|water inlet valve)",
    re.IGNORECASE,
)
_PARTS_WORD = re.compile(r"parts\b", re.IGNORECASE)
_PRICE_FILTER = re.compile(r"(under \$?\d+|\$\d+)", re.IGNORECASE)
_HELP = re.compile(r"(help me|i need help|can you help|need help)", re.IGNORECASE)

_OFF_TOPIC_REDIRECT_PHRASES = (
    "only help with refrigerator and dishwasher",
    "can't help with",
    "outside my expertise",
    "not able to assist",
    "focus on appliance parts",
)


# =============================================================================
# PREFERENCE DETECTION
# =============================================================================

def detect_context_depth(message: str, history_length: int) -> int:
    """How many history entries are worth sending along with this message."""
    text = normalize_quotes(message.lower())
    if _SUPPORT_DEPTH.search(text):
        return min(history_length, 10)
    if _FOLLOW_UP_DEPTH.search(text):
        return min(history_length, 6)
    if _TROUBLE_DEPTH.search(text):
        return min(history_length, 8)
    if history_length <= 2:
        return history_length
    return min(history_length, 4)


def detect_result_limit(message: str) -> int:
    if _LIMIT_ALL.search(message):
        return MAX_RESULT_LIMIT
    match = _LIMIT_NUMBER.search(message)
    if match:
        return max(1, min(int(match.group(1)), MAX_RESULT_LIMIT))
    if _LIMIT_FEW.search(message):
        return DEFAULT_RESULT_LIMIT
    return DEFAULT_RESULT_LIMIT


def detect_response_style(message: str) -> ResponseStyle:
    if _STYLE_BRIEF.search(message):
        return ResponseStyle.BRIEF
    if _STYLE_DETAILED.search(message):
        return ResponseStyle.DETAILED
    if _STYLE_FRUSTRATED.search(message):
        return ResponseStyle.BRIEF
    return ResponseStyle.STANDARD


def detect_sort_preference(message: str) -> tuple[SortBy, SortOrder]:
    for pattern, sort_by, sort_order in _SORT_RULES:
        if pattern.search(message):
            return sort_by, sort_order
    return SortBy.RELEVANCE, SortOrder.DESC


def detect_previous_intent(history: Sequence[ConversationMessage]) -> Optional[PreviousIntent]:
    """Classify the most recent assistant turn by the phrases it used."""
    last_assistant = next((m for m in reversed(history) if m.role == "assistant"), None)
    if last_assistant is None:
        return None

    content = normalize_quotes(last_assistant.content.lower())
    # The off-topic redirect itself mentions compatibility, so it is checked first.
    if any(phrase in content for phrase in _OFF_TOPIC_REDIRECT_PHRASES):
        return PreviousIntent.OFF_TOPIC_RESPONSE
    if "compatibility" in content or "compatible" in content:
        return PreviousIntent.COMPATIBILITY
    if "install" in content:
        return PreviousIntent.INSTALLATION
    if "troubleshoot" in content or "fix" in content or "not working" in content:
        return PreviousIntent.TROUBLESHOOTING
    if (
        "which appliance" in content
        or "refrigerator or dishwasher" in content
        or "refrigerator or a dishwasher" in content
    ):
        return PreviousIntent.AWAITING_APPLIANCE_TYPE
    if "part number" in content or "model number" in content:
        return PreviousIntent.AWAITING_DETAILS
    if "order number" in content or "track your order" in content or "order status" in content:
        return PreviousIntent.AWAITING_ORDER_NUMBER
    if "order" in content and "provide" in content:
        return PreviousIntent.ORDER_STATUS
    return None


def bare_message(message: str) -> str:
    """Lower-cased message without surrounding whitespace or trailing punctuation."""
    return normalize_quotes(message.strip().lower()).rstrip("!.?, ").strip()


# =============================================================================
# DECISION BUILDER
# =============================================================================

@dataclass(frozen=True)
class Preferences:
    result_limit: int
    response_style: ResponseStyle
    sort_by: SortBy
    sort_order: SortOrder
    context_depth: int


def detect_preferences(message: str, history_length: int) -> Preferences:
    sort_by, sort_order = detect_sort_preference(message)
    return Preferences(
        result_limit=detect_result_limit(message),
        response_style=detect_response_style(message),
        sort_by=sort_by,
        sort_order=sort_order,
        context_depth=detect_context_depth(message, history_length),
    )


def make_decision(
    intent: Intent,
    prefs: Preferences,
    reasoning: str,
    tool: Optional[str] = None,
    parameters: Optional[dict[str, str]] = None,
    question: Optional[str] = None,
    ticket_reason: Optional[str] = None,
    priority: Optional[TicketPriority] = None,
) -> SupervisorDecision:
    return SupervisorDecision(
        intent=intent,
        tool_to_use=tool,
        parameters=parameters or {},
        reasoning=reasoning,
        needs_clarification=question is not None,
        clarification_question=question,
        needs_ticket_form=ticket_reason is not None,
        ticket_reason=ticket_reason,
        suggested_priority=priority,
        result_limit=prefs.result_limit,
        response_style=prefs.response_style,
        sort_by=prefs.sort_by,
        sort_order=prefs.sort_order,
        context_depth=prefs.context_depth,
    )


def _appliance_menu(appliance: str) -> str:
    return (
        f"I'd be happy to help with your {appliance}! What do you need?\n\n"
        f"• **Find parts** - \"Show me {appliance} parts\"\n"
        f"• **Troubleshoot** - \"My {appliance} is not working\"\n"
        "• **Check compatibility** - \"Is part X compatible with my model?\"\n"
        "• **Installation help** - \"How do I install part X?\""
    )


def _last_user_message(history: Sequence[ConversationMessage]) -> Optional[str]:
    return next((m.content for m in reversed(history) if m.role == "user"), None)


# =============================================================================
# CASCADE
# =============================================================================

def _resume_after_appliance_answer(
    previous: PreviousIntent,
    category: Category,
    params: ExtractedParams,
    history: Sequence[ConversationMessage],
    prefs: Preferences,
) -> Optional[SupervisorDecision]:
    """A one-word appliance answer continues whatever the assistant was asking about."""
    parameters = params.as_parameters()
    parameters["category"] = category.value

    if previous == PreviousIntent.AWAITING_APPLIANCE_TYPE:
        earlier = _last_user_message(history)
        if earlier and _TROUBLE.search(normalize_quotes(earlier.lower())):
            return make_decision(
                Intent.TROUBLESHOOTING, prefs,
                reasoning="User answered appliance type, continuing troubleshooting",
                tool=TROUBLESHOOT_ISSUE,
                parameters={"symptom": earlier, "category": category.value},
            )

    if previous in (
        PreviousIntent.COMPATIBILITY,
        PreviousIntent.AWAITING_APPLIANCE_TYPE,
        PreviousIntent.AWAITING_DETAILS,
    ):
        if params.part_number and params.model_number:
            return make_decision(
                Intent.COMPATIBILITY, prefs,
                reasoning="User answered appliance type, continuing compatibility check",
                tool=CHECK_COMPATIBILITY,
                parameters=parameters,
            )
        return make_decision(
            Intent.COMPATIBILITY, prefs,
            reasoning="User answered appliance type but missing part/model number",
            parameters=parameters,
            question=(
                f"Great, you want to check compatibility for a {category.value}! I need:\n\n"
                "1. **Part number** (e.g., PS11752778)\n"
                "2. **Model number** (e.g., WRS325SDHZ)\n\n"
                "What are your part and model numbers?"
            ),
        )

    if previous == PreviousIntent.INSTALLATION:
        if params.part_number:
            return make_decision(
                Intent.INSTALLATION, prefs,
                reasoning="User answered appliance type, continuing installation help",
                tool=GET_INSTALLATION_HELP,
                parameters=parameters,
            )
        return make_decision(
            Intent.INSTALLATION, prefs,
            reasoning="User answered appliance type but missing part number",
            parameters=parameters,
            question=(
                f"Great, you need installation help for a {category.value}! "
                "What's the part number you want to install?"
            ),
        )

    return None


def analyze_fallback(
    message: str,
    history: Sequence[ConversationMessage],
    models: Sequence[ModelInfo] = (),
) -> SupervisorDecision:
    """
    Decide how to handle `message` without an LLM.

    Args:
        message: Current user message
        history: Prior turns, oldest first
        models: Known appliance models, used to infer the category from a model number

    Returns:
        A fully populated SupervisorDecision
    """
    decision = _cascade(message, history, models)
    logger.info(
        "rule-based decision: intent=%s tool=%s (%s)",
        decision.intent.value, decision.tool_to_use, decision.reasoning,
    )
    return decision


def _cascade(
    message: str,
    history: Sequence[ConversationMessage],
    models: Sequence[ModelInfo],
) -> SupervisorDecision:
    text = normalize_quotes(message.lower())
    bare = bare_message(message)
    prefs = detect_preferences(message, len(history))

    current = extract_params(message)
    params = fill_from_history(current, history, prefs.context_depth)
    parameters = params.as_parameters()
    previous = detect_previous_intent(history)
    appliance_answer = _APPLIANCE_ANSWER.match(bare)

    # 1-2. One-word appliance answers to our own questions
    if appliance_answer:
        category = Category.DISHWASHER if "dish" in bare else Category.REFRIGERATOR
        if previous == PreviousIntent.OFF_TOPIC_RESPONSE:
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="User said appliance type after off-topic, need to understand what they actually need",
                parameters={"category": category.value},
                question=_appliance_menu(category.value),
            )
        if previous is not None:
            resumed = _resume_after_appliance_answer(previous, category, params, history, prefs)
            if resumed is not None:
                return resumed

    # 3-4. Unsupported appliances and non-appliance topics
    if _UNSUPPORTED_APPLIANCE.search(text) and "dishwasher" not in text:
        return make_decision(Intent.OFF_TOPIC, prefs, reasoning="User asked about non-supported appliance")

    if _NON_APPLIANCE_TOPIC.search(text):
        return make_decision(Intent.OFF_TOPIC, prefs, reasoning="Non-appliance question")

    # 5. Small talk and trap probes with no appliance context at all
    if _TRAP_QUERY.search(text) and not _APPLIANCE_CONTEXT.search(text):
        if _EXACT_GREETING.match(bare):
            return make_decision(
                Intent.GREETING, prefs, reasoning="User greeting", question=SHORT_GREETING_MENU,
            )
        if _EXACT_THANKS.match(bare):
            return make_decision(Intent.FAREWELL, prefs, reasoning="User saying thanks/goodbye")
        return make_decision(
            Intent.OFF_TOPIC, prefs, reasoning="Non-appliance related question - possible trap query",
        )

    # 6-7. Vague back-references and model-number location
    if _VAGUE_REFERENCE.search(text):
        return make_decision(
            Intent.CLARIFICATION, prefs,
            reasoning="User referring to previous products without specifying",
            parameters=parameters,
            question="Which specific product would you like help with? Please mention the part number.",
        )

    if _FIND_MODEL.search(text):
        return make_decision(
            Intent.FIND_MODEL_LOCATION, prefs,
            reasoning="User wants to know where to find model number on appliance",
        )

    # 8. Orders
    order_number = extract_order_number(message)
    if order_number:
        return make_decision(
            Intent.ORDER_STATUS, prefs,
            reasoning="User provided an order number to track",
            tool=CHECK_ORDER_STATUS,
            parameters={"orderNumber": order_number},
        )

    if previous in (PreviousIntent.ORDER_STATUS, PreviousIntent.AWAITING_ORDER_NUMBER):
        answered = extract_bare_order_answer(message)
        if answered:
            return make_decision(
                Intent.ORDER_STATUS, prefs,
                reasoning="User provided order number in response to clarification",
                tool=CHECK_ORDER_STATUS,
                parameters={"orderNumber": answered},
            )

    if _ORDER_QUERY.search(text):
        return make_decision(
            Intent.ORDER_STATUS, prefs,
            reasoning="User asking about order but no order number provided",
            question=(
                "I'd be happy to help track your order! Please provide your order number "
                "(format: PS-XXXX-XXXXX, e.g., PS-2024-78542)."
            ),
        )

    # 9. Support-ticket routing
    direct = _SUPPORT_REQUEST.search(text)
    frustrated = _FRUSTRATION.search(text)
    escalation = _ESCALATION.search(text)
    if direct or frustrated or escalation:
        if escalation:
            priority = TicketPriority.URGENT if _SAFETY.search(text) else TicketPriority.HIGH
            reason = "User has an escalation concern (safety, warranty, or refund)"
        elif frustrated:
            priority = TicketPriority.NORMAL
            reason = "User is frustrated after multiple attempts"
        else:
            priority = TicketPriority.NORMAL
            reason = "User directly requested support"
        return make_decision(
            Intent.SUPPORT_TICKET, prefs,
            reasoning=reason,
            parameters=parameters,
            ticket_reason=reason,
            priority=priority,
        )

    # 10. Installation
    if _INSTALL.search(text):
        if not params.part_number:
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="Installation request without part number",
                parameters=parameters,
                question="What is the part number (PS/WP/W format) or the exact part name you want to install?",
            )
        return make_decision(
            Intent.INSTALLATION, prefs,
            reasoning="User wants installation help for specific part",
            tool=GET_INSTALLATION_HELP,
            parameters={"partNumber": params.part_number},
        )

    # 11. Compatibility
    if _COMPATIBILITY.search(text):
        if _WANTS_COMPATIBLE_PARTS.search(text):
            if params.model_number:
                return make_decision(
                    Intent.COMPATIBILITY, prefs,
                    reasoning="User wants compatible parts for model",
                    tool=GET_COMPATIBLE_PARTS,
                    parameters={"modelNumber": params.model_number},
                )
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="Missing model number for compatible parts",
                parameters=parameters,
                question="What is your appliance model number?",
            )
        if params.part_number and params.model_number:
            return make_decision(
                Intent.COMPATIBILITY, prefs,
                reasoning="Checking specific part compatibility",
                tool=CHECK_COMPATIBILITY,
                parameters=parameters,
            )
        if params.model_number:
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="Compatibility question without part number",
                parameters=parameters,
                question="Which part number are you checking for compatibility with this model?",
            )
        if params.part_number:
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="Compatibility question without model number",
                parameters=parameters,
                question="What is your appliance model number?",
            )

    # 12. Troubleshooting needs a known appliance
    if _TROUBLE.search(text):
        category = params.category
        if category is None and params.model_number:
            category = category_for_model(list(models), params.model_number)
        if category is None:
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="Troubleshooting without appliance type",
                parameters=parameters,
                question="Is this for a refrigerator or a dishwasher?",
            )
        return make_decision(
            Intent.TROUBLESHOOTING, prefs,
            reasoning="User describing a problem",
            tool=TROUBLESHOOT_ISSUE,
            parameters={"symptom": message, "category": category.value},
        )

    # 13. Product search
    if _SEARCH.search(text):
        category = params.category
        if _PARTS_WORD.search(text) and category is None and _PRICE_FILTER.search(text):
            return make_decision(
                Intent.CLARIFICATION, prefs,
                reasoning="Price filter without appliance category",
                parameters=parameters,
                question="Are you looking for refrigerator parts or dishwasher parts?",
            )
        search_params = {
            "query": message,
            "limit": str(prefs.result_limit),
            "sortBy": prefs.sort_by.value,
            "sortOrder": prefs.sort_order.value,
        }
        if category is not None:
            search_params["category"] = category.value
        return make_decision(
            Intent.SEARCH, prefs,
            reasoning="User searching for parts",
            tool=SEARCH_PRODUCTS,
            parameters=search_params,
        )

    # 14-15. Vague help, then general
    if _HELP.search(text):
        return make_decision(
            Intent.CLARIFICATION, prefs,
            reasoning="Vague request for help",
            parameters=parameters,
            question=(
                "Are you looking for a part, compatibility check, troubleshooting help, "
                "or installation instructions?"
            ),
        )

    return make_decision(
        Intent.GENERAL, prefs,
        reasoning="General query, may need AI response",
        parameters=parameters,
    )
