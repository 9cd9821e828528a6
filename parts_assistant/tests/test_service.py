"""
Tests for service.py - end-to-end turns through the assistant context.

Runs in rule-based mode unless a test builds its own context around a
FakeProvider. Verifies:
- Representative conversations (troubleshooting, compatibility, off-topic,
  support escalation, greeting, orders, search, installation)
- Tool arguments are completed and narrowed to each tool's schema
- Data-source labelling and the ticket-form prefill
- Errors inside a turn become the generic apology
"""

import asyncio
import json
from unittest.mock import patch

import pytest

from conftest import FakeProvider, assistant, user
from parts_assistant.agent_tools import (
    CHECK_COMPATIBILITY,
    CHECK_ORDER_STATUS,
    GET_INSTALLATION_HELP,
    SEARCH_PRODUCTS,
    TROUBLESHOOT_ISSUE,
)
from parts_assistant.agent_types import DataSource, Intent, SupervisorDecision, ToolResult
from parts_assistant.catalog import CatalogStore
from parts_assistant.llm import CompletionClient
from parts_assistant.models import Category, TicketPriority
from parts_assistant.prompts import (
    ERROR_MESSAGE,
    FAREWELL_MESSAGE,
    FIND_MODEL_RESPONSE,
    GREETING_MENU,
    MISSING_ARGUMENT_QUESTIONS,
    OFF_TOPIC_MESSAGE,
    TICKET_FORM_PROMPT,
)
from parts_assistant.service import (
    build_tool_arguments,
    create_context,
    create_ticket,
    issue_summary,
    products_from,
    run_turn,
)


def turn(context, message, history=()):
    return asyncio.run(run_turn(context, message, list(history)))


# =============================================================================
# CONVERSATIONS
# =============================================================================

class TestConversations:
    def test_ice_maker_troubleshooting(self, context):
        response = turn(context, "My ice maker is not working")
        assert response.intent == Intent.TROUBLESHOOTING.value
        assert response.tool_used == TROUBLESHOOT_ISSUE
        assert response.data_source == DataSource.DATABASE
        assert response.message.startswith("## Troubleshooting: My ice maker is not working")
        assert response.products
        assert all(p.category == Category.REFRIGERATOR for p in response.products)

    def test_incompatible_part(self, context):
        response = turn(context, "Is PS11752778 compatible with WDT780SAEM1?")
        assert response.intent == Intent.COMPATIBILITY.value
        assert response.tool_used == CHECK_COMPATIBILITY
        assert "is NOT compatible with model WDT780SAEM1" in response.message
        assert [p.part_number for p in response.products] == ["PS11752778"]
        assert response.data_source == DataSource.DATABASE

    def test_weather_is_off_topic(self, context):
        response = turn(context, "What's the weather today?")
        assert response.intent == Intent.OFF_TOPIC.value
        assert response.message == OFF_TOPIC_MESSAGE
        assert response.tool_used is None
        assert response.products == []

    def test_frustration_offers_ticket_form(self, context):
        response = turn(context, "I've tried everything and it's still not working")
        assert response.intent == Intent.SUPPORT_TICKET.value
        assert response.show_ticket_form is True
        assert response.message == (
            "I understand you need additional help. User is frustrated after multiple attempts"
            f"\n\n{TICKET_FORM_PROMPT}"
        )
        assert response.prefilled_ticket_data is None

    def test_ticket_form_prefill_from_history(self, context):
        history = [user("My dishwasher won't drain"), assistant("Try cleaning the filter.")]
        response = turn(context, "I've tried everything", history)
        assert response.show_ticket_form is True
        assert response.prefilled_ticket_data == {
            "issueDescription": "My dishwasher won't drain | I've tried everything",
        }

    def test_urgent_ticket_message(self, context):
        response = turn(context, "There is smoke coming from my fridge")
        assert response.message.startswith("I can see this is an urgent matter.")

    def test_greeting(self, context):
        response = turn(context, "Hello!")
        assert response.intent == Intent.GREETING.value
        assert response.message == GREETING_MENU

    def test_thanks(self, context):
        assert turn(context, "thanks").message == FAREWELL_MESSAGE

    def test_find_model_location(self, context):
        response = turn(context, "Where can I find my model number?")
        assert response.intent == Intent.FIND_MODEL_LOCATION.value
        assert response.message == FIND_MODEL_RESPONSE
        assert response.data_source == DataSource.DATABASE

    def test_clarification(self, context):
        response = turn(context, "It's not working")
        assert response.intent == Intent.CLARIFICATION.value
        assert response.message == "Is this for a refrigerator or a dishwasher?"
        assert response.data_source == DataSource.EXTERNAL_ENHANCED

    def test_clarification_answer_resumes_troubleshooting(self, context):
        history = [user("It's not working"), assistant("Is this for a refrigerator or a dishwasher?")]
        response = turn(context, "dishwasher", history)
        assert response.tool_used == TROUBLESHOOT_ISSUE
        assert response.message.startswith("## Troubleshooting: It's not working")
        assert all(p.category == Category.DISHWASHER for p in response.products)

    def test_order_status(self, context):
        response = turn(context, "Track order PS-2024-78542")
        assert response.intent == Intent.ORDER_STATUS.value
        assert response.tool_used == CHECK_ORDER_STATUS
        assert response.message.startswith("## Order Status: PS-2024-78542")
        assert response.products == []
        assert response.data_source == DataSource.EXTERNAL_ENHANCED

    def test_cheapest_search(self, context):
        response = turn(context, "Show me the cheapest dishwasher parts")
        assert response.tool_used == SEARCH_PRODUCTS
        prices = [p.price for p in response.products]
        assert prices
        assert prices == sorted(prices)
        assert all(p.category == Category.DISHWASHER for p in response.products)

    def test_installation(self, context):
        response = turn(context, "How do I install PS11752778?")
        assert response.tool_used == GET_INSTALLATION_HELP
        assert [p.part_number for p in response.products] == ["PS11752778"]
        assert response.message.startswith("## Installation Guide for Ice Maker Assembly")

    def test_external_fallback_data_source(self, context):
        with patch.object(CatalogStore, "search_by_symptom", return_value=[]):
            response = turn(context, "My fridge has a xyzzy problem")
        assert response.tool_used == TROUBLESHOOT_ISSUE
        assert response.data_source == DataSource.EXTERNAL_FALLBACK
        assert "PartSelect.com" in response.message

    def test_tool_error_becomes_apology(self, context):
        with patch.object(CatalogStore, "check_compatibility", side_effect=RuntimeError("db down")):
            response = turn(context, "Is PS11752778 compatible with WDT780SAEM1?")
        assert response.intent == Intent.ERROR.value
        assert response.message == ERROR_MESSAGE


# =============================================================================
# LLM-BACKED TURNS
# =============================================================================

class TestLLMTurns:
    def test_llm_decision_drives_tool(self, settings):
        reply = json.dumps({
            "intent": "compatibility",
            "toolToUse": "check_compatibility",
            "parameters": {"partNumber": "PS11752778", "modelNumber": "WRS325SDHZ"},
        })
        context = create_context(settings, client=CompletionClient([FakeProvider(reply)]))
        response = turn(context, "does that ice maker fit my whirlpool?")
        assert response.tool_used == CHECK_COMPATIBILITY
        assert response.message.startswith("✅ **Yes, compatible!**")

    def test_missing_model_number_asks_for_it(self, settings):
        reply = json.dumps({
            "intent": "search",
            "toolToUse": "check_compatibility",
            "parameters": {"partNumber": "PS11752778"},
        })
        provider = FakeProvider(reply)
        context = create_context(settings, client=CompletionClient([provider]))
        response = turn(context, "check compat")
        assert response.intent == Intent.CLARIFICATION.value
        assert response.tool_used is None
        assert response.products == []
        assert response.message.startswith("What is your appliance model number?")
        assert "Missing required" not in response.message
        assert len(provider.calls) == 1

    def test_missing_model_number_recovered_from_history(self, settings):
        reply = json.dumps({
            "intent": "compatibility",
            "toolToUse": "check_compatibility",
            "parameters": {"partNumber": "PS11752778"},
        })
        context = create_context(settings, client=CompletionClient([FakeProvider(reply)]))
        history = [user("My fridge is a WRS325SDHZ"), assistant("How can I help with it?")]
        response = turn(context, "does the ice maker fit?", history)
        assert response.tool_used == CHECK_COMPATIBILITY
        assert response.message.startswith("✅ **Yes, compatible!**")

    def test_missing_order_number_asks_for_it(self, settings):
        reply = json.dumps({"intent": "order_status", "toolToUse": "check_order_status", "parameters": {}})
        context = create_context(settings, client=CompletionClient([FakeProvider(reply)]))
        response = turn(context, "where is my stuff")
        assert response.intent == Intent.CLARIFICATION.value
        assert response.message == MISSING_ARGUMENT_QUESTIONS["orderNumber"]

    def test_unknown_tool_answers_without_tool(self, settings):
        provider = FakeProvider([
            json.dumps({"intent": "general", "toolToUse": "teleport", "parameters": {}}),
            "Here is some general help.",
        ])
        context = create_context(settings, client=CompletionClient([provider]))
        response = turn(context, "what brands do you carry")
        assert response.tool_used is None
        assert response.message == "Here is some general help."
        assert response.data_source == DataSource.EXTERNAL_ENHANCED


# =============================================================================
# HELPERS
# =============================================================================

class TestToolArguments:
    def test_troubleshoot_gets_limit_and_appliance_type(self, context):
        decision = SupervisorDecision(
            intent=Intent.TROUBLESHOOTING,
            tool_to_use=TROUBLESHOOT_ISSUE,
            parameters={"symptom": "won't drain", "category": "dishwasher"},
        )
        args = build_tool_arguments(context, decision, "my dishwasher won't drain")
        assert args == {"symptom": "won't drain", "limit": "5", "applianceType": "dishwasher"}

    def test_search_gets_query_sort_and_detected_category(self, context):
        decision = SupervisorDecision(intent=Intent.SEARCH, tool_to_use=SEARCH_PRODUCTS)
        args = build_tool_arguments(context, decision, "cheapest water filter")
        assert args == {
            "query": "cheapest water filter",
            "limit": "5",
            "sortBy": "price",
            "sortOrder": "asc",
            "category": "refrigerator",
        }

    def test_invalid_category_is_dropped(self, context):
        decision = SupervisorDecision(
            intent=Intent.SEARCH, tool_to_use=SEARCH_PRODUCTS,
            parameters={"query": "gasket", "category": "oven"},
        )
        args = build_tool_arguments(context, decision, "gasket")
        assert "category" not in args

    def test_unaccepted_parameters_are_dropped(self, context):
        decision = SupervisorDecision(
            intent=Intent.COMPATIBILITY,
            tool_to_use=CHECK_COMPATIBILITY,
            parameters={"partNumber": "PS11752778", "modelNumber": "WRS325SDHZ", "category": "refrigerator",
                        "query": "ice maker"},
        )
        args = build_tool_arguments(context, decision, "does it fit")
        assert args == {"partNumber": "PS11752778", "modelNumber": "WRS325SDHZ"}

    def test_identifiers_filled_from_message_and_history(self, context):
        decision = SupervisorDecision(
            intent=Intent.COMPATIBILITY, tool_to_use=CHECK_COMPATIBILITY, context_depth=2,
        )
        history = [user("I have a WDT780SAEM1 dishwasher"), assistant("What part?")]
        args = build_tool_arguments(context, decision, "is W10872845 right?", history)
        assert args == {"partNumber": "W10872845", "modelNumber": "WDT780SAEM1"}

    def test_decision_identifiers_are_kept(self, context):
        decision = SupervisorDecision(
            intent=Intent.COMPATIBILITY, tool_to_use=CHECK_COMPATIBILITY, context_depth=2,
            parameters={"partNumber": "PS11752778", "modelNumber": "WRS325SDHZ"},
        )
        history = [user("I have a WDT780SAEM1 dishwasher")]
        args = build_tool_arguments(context, decision, "check W10872845", history)
        assert args == {"partNumber": "PS11752778", "modelNumber": "WRS325SDHZ"}

    def test_decision_limit_wins(self, context):
        decision = SupervisorDecision(
            intent=Intent.TROUBLESHOOTING, tool_to_use=TROUBLESHOOT_ISSUE, result_limit=2,
        )
        args = build_tool_arguments(context, decision, "show me all fixes")
        assert args["limit"] == "2"
        assert args["symptom"] == "show me all fixes"


def test_products_from(catalog):
    part = catalog.find_by_part_number("PS11752778")
    assert products_from(None) == []
    assert products_from(ToolResult(tool_name="t", success=True, data=[part], message="")) == [part]
    assert products_from(ToolResult(tool_name="t", success=True, data={"part": part}, message="")) == [part]
    assert products_from(ToolResult(tool_name="t", success=True, data={"isCompatible": True}, message="")) == []


def test_issue_summary():
    assert issue_summary("help", []) is None
    assert issue_summary("help", [assistant("hi")]) is None

    history = [user("one"), assistant("a"), user("two"), user("three"), user("four")]
    assert issue_summary("five", history) == "two | three | four | five"

    long_history = [user("x" * 600)]
    assert len(issue_summary("y", long_history)) == 500


def test_create_ticket(context):
    result = asyncio.run(create_ticket(context, {
        "customerName": "Alex Kim",
        "customerEmail": "alex@example.com",
        "issueType": "installation_help",
        "issueDescription": "Cannot get the spray arm to click in",
        "priority": "high",
    }))
    assert result.success
    assert result.data.priority == TicketPriority.HIGH
    assert context.tickets.find(result.data.ticket_number) == result.data


@pytest.mark.parametrize("fields", [
    {"customerName": "Alex Kim"},
    {
        "customerName": "Alex Kim", "customerEmail": "alex@example.com",
        "issueType": "installation_help", "issueDescription": "x", "shoeSize": "9",
    },
])
def test_create_ticket_rejects_bad_fields(context, fields):
    result = asyncio.run(create_ticket(context, fields))
    assert not result.success
    assert context.tickets.all() == []
