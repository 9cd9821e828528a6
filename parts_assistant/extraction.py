"""
Parameter Extraction

Pure pattern-matching helpers that pull structured identifiers out of free text:
- Part numbers (PartSelect PS########, Whirlpool W/WP/WPW, generic letters+digits)
- Appliance model numbers (brand prefixes, then "model is ..." cue phrases)
- Order numbers (PS-NNNN-NNNNN)
- Appliance category (refrigerator / dishwasher keyword lists)

Every pattern list is an ordered table of ExtractionRule entries; the first rule
that matches wins. New formats are added by appending to a table.
"""

import re
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from .models import Category, ConversationMessage


@dataclass(frozen=True)
class ExtractionRule:
    """One row of an extraction table: a compiled pattern plus how to normalize its match."""
    name: str
    pattern: re.Pattern
    group: int = 0
    normalize: Callable[[str], str] = str.upper
    requires_digit: bool = False

    def apply(self, text: str) -> Optional[str]:
        for match in self.pattern.finditer(text):
            value = match.group(self.group)
            if self.requires_digit and not any(ch.isdigit() for ch in value):
                continue
            return self.normalize(value)
        return None


def _rule(name: str, regex: str, **kwargs) -> ExtractionRule:
    return ExtractionRule(name=name, pattern=re.compile(regex, re.IGNORECASE), **kwargs)


# =============================================================================
# PATTERN TABLES
# =============================================================================

PART_NUMBER_RULES: tuple[ExtractionRule, ...] = (
    _rule("partselect", r"PS\d{8}"),
    _rule("whirlpool_wpw", r"WPW\d{7,}"),
    _rule("whirlpool_wp", r"WP\d{7,}"),
    _rule("whirlpool_w", r"W\d{7,}"),
    _rule("generic_oem", r"[A-Z]{2,3}\d{7,}"),
)

MODEL_NUMBER_RULES: tuple[ExtractionRule, ...] = (
    _rule("whirlpool_wdt", r"WDT\d{3}[A-Z0-9]+"),
    _rule("whirlpool_wrs", r"WRS\d{3}[A-Z0-9]+"),
    _rule("whirlpool_wrf", r"WRF\d{3}[A-Z0-9]+"),
    _rule("whirlpool_wrx", r"WRX\d{3}[A-Z0-9]+"),
    _rule("kitchenaid_kdt", r"KDTM?\d{3}[A-Z0-9]+"),
    _rule("kitchenaid_krsc", r"KRSC\d{3}[A-Z0-9]+"),
    _rule("ge_gss", r"GSS\d{2}[A-Z0-9]+"),
    _rule("ge_gfe", r"GFE\d{2}[A-Z0-9]+"),
    _rule("ge_gdf", r"GDF\d{3}[A-Z0-9]+"),
    _rule("samsung_rf", r"RF\d{2,3}[A-Z0-9]+"),
    _rule("lg_lrmvs", r"LRMVS\d{4}[A-Z0-9]+"),
    _rule("frigidaire_ffcd", r"FFCD\d{4}[A-Z0-9]+"),
    _rule("frigidaire_fgid", r"FGID\d{4}[A-Z0-9]+"),
    _rule("lg_ldf", r"LDF\d{4}[A-Z0-9]+"),
    _rule("bosch_shpm", r"SHPM\d{2}[A-Z0-9]+"),
    _rule("maytag_mfi", r"MFI\d{4}[A-Z0-9]+"),
    _rule("kenmore_ed", r"ED\d[A-Z0-9]+"),
)

# Only consulted when no brand prefix matched; each needs an explicit cue phrase.
MODEL_CUE_RULES: tuple[ExtractionRule, ...] = (
    _rule(
        "model_cue",
        r"(?:model(?:\s+(?:number|#|no\.?)?)?\s*(?:is)?|for\s+model)\s*[:\s]?\s*([A-Z0-9][A-Z0-9-]{4,})",
        group=1,
        requires_digit=True,
    ),
    _rule(
        "my_appliance_cue",
        r"my\s+(?:model(?:\s+number)?|appliance)\s+(?:is\s+)?([A-Z0-9][A-Z0-9-]{4,})",
        group=1,
        requires_digit=True,
    ),
)

# Case-sensitive on purpose: upper-case letters followed by digits.
GENERIC_MODEL_RULE = ExtractionRule(
    name="generic_code",
    pattern=re.compile(r"\b[A-Z]{2,5}\d{3,}[A-Z0-9-]*\b"),
)

ORDER_NUMBER_RULE = _rule("order_number", r"PS-\d{4}-\d{5}(?!\d)")

# A bare reply to "please provide your order number", e.g. "PS-2024-78542" or "2024-78542".
BARE_ORDER_ANSWER = re.compile(r"^[A-Z]{0,3}-?\d{4,}-?\d{4,}$", re.IGNORECASE)

REFRIGERATOR_KEYWORDS: tuple[str, ...] = (
    "water filter", "ice maker", "ice machine", "evaporator", "defrost",
    "crisper", "freezer", "fridge", "refrigerator", "refridgerator",
    "condenser fan", "compressor", "door shelf", "shelf bin",
    "ice dispenser", "ice tray", "cold",
)

DISHWASHER_KEYWORDS: tuple[str, ...] = (
    "spray arm", "upper spray", "lower spray", "rack adjuster",
    "door latch", "drain pump", "pump motor", "detergent dispenser",
    "float switch", "heating element", "silverware basket", "rack assembly",
    "dishwasher", "dishes", "wash cycle", "rinse",
)

# Refrigerator is checked first, so a message hitting both lists resolves to refrigerator.
CATEGORY_KEYWORDS: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (Category.REFRIGERATOR, REFRIGERATOR_KEYWORDS),
    (Category.DISHWASHER, DISHWASHER_KEYWORDS),
)


# =============================================================================
# EXTRACTORS
# =============================================================================

def normalize_quotes(text: str) -> str:
    """Replace typographic apostrophes so "isn’t" matches the same rules as "isn't"."""
    return text.replace("’", "'").replace("‘", "'")


def first_match(rules: Sequence[ExtractionRule], text: str) -> Optional[str]:
    for rule in rules:
        value = rule.apply(text)
        if value:
            return value
    return None


def extract_part_number(text: str) -> Optional[str]:
    return first_match(PART_NUMBER_RULES, text)


def extract_model_number(
    text: str,
    part_number: Optional[str] = None,
    allow_generic: bool = False,
) -> Optional[str]:
    """
    Extract an appliance model number.

    Brand-prefix rules run first, then cue-phrase rules. With allow_generic, a bare
    upper-case code is accepted last, unless it is (or contains) `part_number`.
    """
    model = first_match(MODEL_NUMBER_RULES, text) or first_match(MODEL_CUE_RULES, text)
    if model:
        if part_number and model == part_number.upper():
            return None
        return model

    if not allow_generic:
        return None

    generic = GENERIC_MODEL_RULE.apply(text)
    if generic is None:
        return None
    if part_number and part_number.upper() in generic:
        return None
    return generic


def extract_order_number(text: str) -> Optional[str]:
    return ORDER_NUMBER_RULE.apply(text)


def extract_bare_order_answer(text: str) -> Optional[str]:
    candidate = text.strip()
    if BARE_ORDER_ANSWER.match(candidate):
        return candidate.upper()
    return None


def detect_category(text: str) -> Optional[Category]:
    lower = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return None


# =============================================================================
# MULTI-TURN FILL
# =============================================================================

@dataclass(frozen=True)
class ExtractedParams:
    part_number: Optional[str] = None
    model_number: Optional[str] = None
    category: Optional[Category] = None

    @property
    def complete(self) -> bool:
        return bool(self.part_number and self.model_number and self.category)

    def as_parameters(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.category:
            params["category"] = self.category.value
        if self.part_number:
            params["partNumber"] = self.part_number
        if self.model_number:
            params["modelNumber"] = self.model_number
        return params


def extract_params(text: str) -> ExtractedParams:
    part_number = extract_part_number(text)
    return ExtractedParams(
        part_number=part_number,
        model_number=extract_model_number(text, part_number, allow_generic=True),
        category=detect_category(text),
    )


def fill_from_history(
    current: ExtractedParams,
    history: Sequence[ConversationMessage],
    depth: int,
) -> ExtractedParams:
    """
    Fill fields missing from `current` using the last `depth` history entries.

    Entries are scanned newest-first and only user turns are read; each missing
    field takes the first value found. Stops as soon as everything is filled.
    """
    filled = current
    if depth <= 0:
        return filled

    for message in list(reversed(history))[:depth]:
        if filled.complete:
            break
        if message.role != "user":
            continue
        if not filled.part_number:
            part = extract_part_number(message.content)
            if part:
                filled = replace(filled, part_number=part)
        if not filled.model_number:
            model = extract_model_number(message.content, filled.part_number, allow_generic=True)
            if model:
                filled = replace(filled, model_number=model)
        if not filled.category:
            category = detect_category(message.content)
            if category:
                filled = replace(filled, category=category)
    return filled
