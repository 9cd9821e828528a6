"""
LLM-Backed Decision Engine (supervisor)

Short-circuit ladder for every user turn:
1. Exact greeting  -> capability menu (needs clarification, no tool)
2. Exact thanks    -> farewell
3. Cache hit       -> cached decision, unchanged
4. No provider     -> rule-based fallback, cached
5. Otherwise       -> ask the completion provider for a JSON decision; anything that
                      is not a valid decision falls back to the rule-based engine.
                      The result is cached either way.

A turn cancelled while waiting on the provider caches nothing.
"""

import json
import logging
import re
from typing import Sequence

from pydantic import ValidationError

from .agent_types import DecisionParse, DecisionParseFailure, Intent, SupervisorDecision
from .fallback import (
    analyze_fallback,
    bare_message,
    detect_context_depth,
    detect_preferences,
    detect_previous_intent,
    make_decision,
)
from .llm import CompletionClient, extract_json_object
from .models import ConversationMessage, ModelInfo
from .prompts import (
    GREETING_MENU,
    PREVIOUS_INTENT_HINT,
    SUPERVISOR_SYSTEM_PROMPT,
    SUPERVISOR_USER_TEMPLATE,
)
from .response_cache import DecisionCache

logger = logging.getLogger(__name__)

GREETING_PATTERN = re.compile(
    r"^(hello|hi|hey|good morning|good afternoon|good evening|good night|hi there|hey there|howdy)$"
)
THANKS_PATTERN = re.compile(r"^(thanks|thank you|thx|ty|bye|goodbye|see you|take care)$")


def parse_decision(text: str) -> DecisionParse:
    """
    Parse the first {...} block of an LLM reply into a SupervisorDecision.

    Never raises; the failure reason says which stage rejected the text.
    """
    block = extract_json_object(text)
    if block is None:
        return DecisionParse(failure=DecisionParseFailure.NO_JSON, detail="no JSON object in reply")

    try:
        data = json.loads(block)
    except json.JSONDecodeError as exc:
        return DecisionParse(failure=DecisionParseFailure.INVALID_JSON, detail=str(exc))

    if not isinstance(data, dict):
        return DecisionParse(failure=DecisionParseFailure.SCHEMA_MISMATCH, detail="decision is not an object")

    try:
        decision = SupervisorDecision.model_validate(data)
    except ValidationError as exc:
        return DecisionParse(failure=DecisionParseFailure.SCHEMA_MISMATCH, detail=str(exc))

    if decision.intent == Intent.ERROR:
        return DecisionParse(failure=DecisionParseFailure.SCHEMA_MISMATCH, detail="intent 'error' is reserved")
    return DecisionParse(decision=decision)


def build_supervisor_prompt(message: str, history: Sequence[ConversationMessage], context_depth: int) -> str:
    """User prompt: the last `context_depth` turns, the previous-intent hint, then the message."""
    window = list(history)[-context_depth:] if context_depth > 0 else []
    history_text = "\n".join(f"{m.role}: {m.content}" for m in window)

    previous = detect_previous_intent(history)
    hint = PREVIOUS_INTENT_HINT.format(intent=previous.value) if previous else ""

    return SUPERVISOR_USER_TEMPLATE.format(
        history=history_text or "No previous messages",
        intent_hint=hint,
        message=message,
    )


class Supervisor:
    """Chooses the SupervisorDecision for a turn, preferring the LLM when one is configured."""

    def __init__(
        self,
        client: CompletionClient,
        cache: DecisionCache,
        models: Sequence[ModelInfo] = (),
    ) -> None:
        self._client = client
        self._cache = cache
        self._models = list(models)

    async def analyze(self, message: str, history: Sequence[ConversationMessage]) -> SupervisorDecision:
        bare = bare_message(message)
        prefs = detect_preferences(message, len(history))

        if GREETING_PATTERN.match(bare):
            return make_decision(Intent.GREETING, prefs, reasoning="User greeting", question=GREETING_MENU)

        if THANKS_PATTERN.match(bare):
            return make_decision(Intent.FAREWELL, prefs, reasoning="User saying thanks/goodbye")

        cached = self._cache.get(message, len(history))
        if cached is not None:
            logger.info("decision cache hit for %r", message[:50])
            return cached

        if not self._client.available:
            decision = analyze_fallback(message, history, self._models)
            self._cache.put(message, len(history), decision)
            return decision

        decision = await self._ask_llm(message, history)
        self._cache.put(message, len(history), decision)
        return decision

    async def _ask_llm(self, message: str, history: Sequence[ConversationMessage]) -> SupervisorDecision:
        context_depth = detect_context_depth(message, len(history))
        prompt = build_supervisor_prompt(message, history, context_depth)

        result = await self._client.generate(prompt, SUPERVISOR_SYSTEM_PROMPT)
        if not result.ok:
            logger.warning("supervisor completion failed (%s); using rule-based engine", result.failure.value)
            return analyze_fallback(message, history, self._models)

        parsed = parse_decision(result.text)
        if not parsed.ok:
            logger.warning(
                "unusable supervisor decision (%s: %s); using rule-based engine",
                parsed.failure.value, parsed.detail[:200],
            )
            return analyze_fallback(message, history, self._models)

        decision = _with_preferences(parsed.decision, message, context_depth)
        logger.info(
            "supervisor decision from %s: intent=%s tool=%s",
            result.provider, decision.intent.value, decision.tool_to_use,
        )
        return decision


def _with_preferences(decision: SupervisorDecision, message: str, context_depth: int) -> SupervisorDecision:
    """Fill result-shaping preferences the LLM left out; context depth is always ours."""
    prefs = detect_preferences(message, context_depth)
    update = {"context_depth": context_depth}
    if decision.result_limit is None:
        update["result_limit"] = prefs.result_limit
    if decision.response_style is None:
        update["response_style"] = prefs.response_style
    if decision.sort_by is None:
        update["sort_by"] = prefs.sort_by
    if decision.sort_order is None:
        update["sort_order"] = prefs.sort_order
    return decision.model_copy(update=update)
