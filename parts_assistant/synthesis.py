"""
Response Synthesizer

Turns a decision plus a tool result into the text the user sees.

- No completion provider: templated text (tool message, else a product list, else
  a per-intent request for more detail).
- Provider available and intent is not troubleshooting: the tool's own message,
  which is already well-formed markdown.
- Otherwise: ask the provider to rewrite the tool result conversationally, falling
  back to the templated text if it produces nothing.
"""

import logging
from typing import Optional, Sequence

from .agent_tools import format_price
from .agent_types import Intent, ResponseStyle, SupervisorDecision, ToolResult
from .llm import CompletionClient
from .models import PartRecord
from .prompts import (
    DEFAULT_INTENT_CONTEXT,
    INTENT_CONTEXT,
    RESPONSE_SYSTEM_PROMPT,
    STYLE_INSTRUCTIONS,
    SYNTHESIS_USER_TEMPLATE,
)

logger = logging.getLogger(__name__)

PRODUCT_INTROS = {
    Intent.TROUBLESHOOTING: "Based on your issue, here are some parts that commonly help:",
    Intent.INSTALLATION: "Here's the part you asked about:",
    Intent.COMPATIBILITY: "Here's what I found for your compatibility check:",
    Intent.SEARCH: "Here are some parts that match your search:",
}
DEFAULT_PRODUCT_INTRO = "Here are some relevant parts:"

NO_RESULT_FALLBACKS = {
    Intent.TROUBLESHOOTING: (
        "I'd like to help troubleshoot your issue. Could you tell me more about the problem "
        "and your appliance model number?"
    ),
    Intent.INSTALLATION: "I can help with installation! Please provide the part number you'd like to install.",
    Intent.COMPATIBILITY: (
        "To check compatibility, I need both the part number and your appliance model number. "
        "Could you provide those?"
    ),
    Intent.SEARCH: (
        "I'd be happy to help you find parts. What type of part are you looking for, "
        "and is it for a refrigerator or dishwasher?"
    ),
}
DEFAULT_NO_RESULT = "I'd be happy to help! Could you provide more details about what you're looking for?"


def generate_fallback_response(
    intent: Intent,
    tool_result: Optional[ToolResult],
    products: Sequence[PartRecord],
) -> str:
    """Templated reply used when no provider is configured or the provider gave nothing."""
    if tool_result is not None and tool_result.message:
        return tool_result.message

    if products:
        product_list = "\n".join(
            f"• **{p.name}** ({p.part_number}) - {format_price(p.price)}" for p in products[:3]
        )
        intro = PRODUCT_INTROS.get(intent, DEFAULT_PRODUCT_INTRO)
        return f"{intro}\n\n{product_list}\n\nCheck out the details below!"

    return NO_RESULT_FALLBACKS.get(intent, DEFAULT_NO_RESULT)


def summarize_products(products: Sequence[PartRecord]) -> str:
    if not products:
        return "No products found in database"
    return "\n".join(
        f"- {p.name} ({p.part_number}): {format_price(p.price)}, {p.installation_difficulty.value} install"
        for p in products
    )


class ResponseSynthesizer:
    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    async def synthesize(
        self,
        message: str,
        decision: SupervisorDecision,
        tool_result: Optional[ToolResult],
        products: Sequence[PartRecord],
    ) -> str:
        if not self._client.available:
            return generate_fallback_response(decision.intent, tool_result, products)

        if tool_result is not None and tool_result.message and decision.intent != Intent.TROUBLESHOOTING:
            return tool_result.message

        style = decision.response_style or ResponseStyle.STANDARD
        prompt = SYNTHESIS_USER_TEMPLATE.format(
            message=message,
            intent=decision.intent.value,
            intent_context=INTENT_CONTEXT.get(decision.intent.value, DEFAULT_INTENT_CONTEXT),
            tool=decision.tool_to_use or "none",
            tool_message=(tool_result.message if tool_result and tool_result.message
                          else "No specific tool data available"),
            products=summarize_products(products),
            style_name=style.value.upper(),
            style_instruction=STYLE_INSTRUCTIONS[style.value],
        )

        result = await self._client.generate(prompt, RESPONSE_SYSTEM_PROMPT)
        if result.ok:
            return result.text

        logger.warning("response synthesis failed (%s); using templated reply", result.failure.value)
        return generate_fallback_response(decision.intent, tool_result, products)
