"""
Tests for synthesis.py - turning decisions and tool results into reply text.
"""

import asyncio

from conftest import FakeProvider
from parts_assistant.agent_types import Intent, ResponseStyle, SupervisorDecision, ToolResult
from parts_assistant.llm import CompletionClient
from parts_assistant.models import Category
from parts_assistant.prompts import RESPONSE_SYSTEM_PROMPT, STYLE_INSTRUCTIONS
from parts_assistant.synthesis import (
    DEFAULT_NO_RESULT,
    NO_RESULT_FALLBACKS,
    ResponseSynthesizer,
    generate_fallback_response,
    summarize_products,
)


def decision(intent, tool=None, style=None):
    return SupervisorDecision(intent=intent, tool_to_use=tool, response_style=style)


def tool_result(message="## Tool output", data=None):
    return ToolResult(tool_name="troubleshoot_issue", success=True, data=data, message=message)


def synthesize(client, message, dec, result=None, products=()):
    return asyncio.run(ResponseSynthesizer(client).synthesize(message, dec, result, list(products)))


# =============================================================================
# TEMPLATED REPLIES
# =============================================================================

def test_fallback_prefers_tool_message(catalog):
    part = catalog.find_by_part_number("PS11752778")
    assert generate_fallback_response(Intent.SEARCH, tool_result("tool says"), [part]) == "tool says"


def test_fallback_lists_first_three_products(catalog):
    parts = catalog.parts_by_category(Category.DISHWASHER)[:5]
    text = generate_fallback_response(Intent.SEARCH, None, parts)
    assert text.startswith("Here are some parts that match your search:")
    assert text.count("• **") == 3
    assert f"({parts[0].part_number})" in text
    assert text.endswith("Check out the details below!")


def test_fallback_without_products():
    assert generate_fallback_response(Intent.INSTALLATION, None, []) == NO_RESULT_FALLBACKS[Intent.INSTALLATION]
    assert generate_fallback_response(Intent.GENERAL, None, []) == DEFAULT_NO_RESULT


def test_summarize_products(catalog):
    assert summarize_products([]) == "No products found in database"
    summary = summarize_products([catalog.find_by_part_number("PS11743427")])
    assert summary == "- Refrigerator Water Filter (PS11743427): $49.99, Easy install"


# =============================================================================
# SYNTHESIZER
# =============================================================================

def test_offline_returns_templated_reply(offline_client):
    text = synthesize(offline_client, "ice maker broken", decision(Intent.TROUBLESHOOTING), tool_result())
    assert text == "## Tool output"


def test_non_troubleshooting_tool_message_skips_provider():
    provider = FakeProvider("rewritten")
    text = synthesize(
        CompletionClient([provider]), "is it compatible", decision(Intent.COMPATIBILITY), tool_result("✅ yes"),
    )
    assert text == "✅ yes"
    assert provider.calls == []


def test_troubleshooting_is_rewritten(catalog):
    provider = FakeProvider("Let me help you fix this...")
    part = catalog.find_by_part_number("PS11752778")
    text = synthesize(
        CompletionClient([provider]),
        "my ice maker is broken",
        decision(Intent.TROUBLESHOOTING, tool="troubleshoot_issue"),
        tool_result("## Troubleshooting: ice maker"),
        [part],
    )
    assert text == "Let me help you fix this..."

    prompt, system = provider.calls[0]
    assert system == RESPONSE_SYSTEM_PROMPT
    assert 'User asked: "my ice maker is broken"' in prompt
    assert "Intent: troubleshooting" in prompt
    assert "Tool used: troubleshoot_issue" in prompt
    assert "## Troubleshooting: ice maker" in prompt
    assert "- Ice Maker Assembly (PS11752778): $89.95, Moderate install" in prompt
    assert "## RESPONSE STYLE: STANDARD" in prompt


def test_style_instruction_in_prompt():
    provider = FakeProvider("short answer")
    synthesize(CompletionClient([provider]), "quick: what is this", decision(Intent.GENERAL, style=ResponseStyle.BRIEF))
    prompt, _ = provider.calls[0]
    assert "## RESPONSE STYLE: BRIEF" in prompt
    assert STYLE_INSTRUCTIONS["brief"] in prompt
    assert "Tool used: none" in prompt
    assert "No specific tool data available" in prompt
    assert "No products found in database" in prompt


def test_provider_failure_uses_templated_reply():
    client = CompletionClient([FakeProvider(error=RuntimeError("down"))])
    text = synthesize(client, "ice", decision(Intent.TROUBLESHOOTING), tool_result("## fallback text"))
    assert text == "## fallback text"


def test_provider_failure_without_tool_result():
    client = CompletionClient([FakeProvider("")])
    text = synthesize(client, "what brands", decision(Intent.GENERAL))
    assert text == DEFAULT_NO_RESULT
