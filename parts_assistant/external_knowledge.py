"""
External-knowledge fallback for troubleshooting.

Used when neither the curated guides nor the catalog know anything about a symptom:
the completion provider is asked for a general diagnosis. Results from here are
always marked as externally sourced.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .llm import CompletionClient
from .models import Category

logger = logging.getLogger(__name__)

RETAILER_URL = "https://www.partselect.com"

VERIFY_FOOTER = (
    "\n\n---\n*This troubleshooting advice is based on general AI knowledge. For parts "
    f"specific to your model, enter your model number on [PartSelect.com]({RETAILER_URL})*"
)

TROUBLESHOOTING_PROMPT = """You are a PartSelect appliance repair expert. A customer has a {appliance} with this problem: "{symptom}"

Provide troubleshooting help:

1. **Problem Analysis**: What could be causing this issue?
2. **Common Causes**: List the most likely causes (ranked by probability)
3. **Parts That Might Need Replacement**: What parts typically fix this issue?
4. **DIY Assessment**: Can this be fixed by a homeowner or needs a professional?
5. **Troubleshooting Steps**: Simple diagnostic steps to narrow down the cause

IMPORTANT RULES:
- Focus only on refrigerators and dishwashers
- Prioritize safety - remind them to unplug before repairs
- Suggest the most common/affordable fixes first
- If the symptom suggests a serious issue (gas leak, electrical problem), recommend professional help immediately
- Mention specific part types but note that exact part numbers depend on their model

Keep the response practical and reassuring."""


@dataclass(frozen=True)
class ExternalLookup:
    success: bool
    message: str
    provider: Optional[str] = None


async def lookup_troubleshooting(
    client: CompletionClient,
    symptom: str,
    appliance_type: Optional[Category] = None,
) -> ExternalLookup:
    if not client.available:
        return ExternalLookup(
            success=False,
            message=f"For troubleshooting help, please visit [PartSelect.com]({RETAILER_URL}).",
        )

    appliance = appliance_type.value if appliance_type else "refrigerator or dishwasher"
    prompt = TROUBLESHOOTING_PROMPT.format(appliance=appliance, symptom=symptom)
    result = await client.generate(prompt)
    if not result.ok:
        logger.warning("external troubleshooting lookup failed: %s", result.failure)
        return ExternalLookup(
            success=False,
            message=(
                f"For troubleshooting help with your {appliance_type.value if appliance_type else 'appliance'}, "
                f"please visit [PartSelect.com]({RETAILER_URL}) or contact a qualified technician."
            ),
            provider=result.provider,
        )

    return ExternalLookup(success=True, message=result.text + VERIFY_FOOTER, provider=result.provider)
