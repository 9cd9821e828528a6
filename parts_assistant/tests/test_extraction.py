"""
Tests for extraction.py - identifiers and categories pulled out of free text.
"""

import pytest

from conftest import assistant, user
from parts_assistant.extraction import (
    MODEL_CUE_RULES,
    MODEL_NUMBER_RULES,
    ExtractedParams,
    detect_category,
    extract_bare_order_answer,
    extract_model_number,
    extract_order_number,
    extract_params,
    extract_part_number,
    fill_from_history,
    normalize_quotes,
)
from parts_assistant.models import Category


# =============================================================================
# PART NUMBERS
# =============================================================================

@pytest.mark.parametrize("text, expected", [
    ("Is PS11752778 compatible?", "PS11752778"),
    ("need ps11743427 asap", "PS11743427"),
    ("pump wpw10195416", "WPW10195416"),
    ("drain pump W10712395 please", "W10712395"),
    ("WP12345678 seal", "WP12345678"),
])
def test_extract_part_number(text, expected):
    assert extract_part_number(text) == expected


def test_extract_part_number_none():
    assert extract_part_number("my fridge is warm") is None


# =============================================================================
# MODEL NUMBERS
# =============================================================================

@pytest.mark.parametrize("text, expected", [
    ("fits WDT780SAEM1?", "WDT780SAEM1"),
    ("my fridge is a wrs325sdhz", "WRS325SDHZ"),
    ("KitchenAid KDTM354ESS", "KDTM354ESS"),
    ("Samsung RF28HMEDBSR", "RF28HMEDBSR"),
    ("GE GSS25GSHSS", "GSS25GSHSS"),
])
def test_brand_prefixed_models(text, expected):
    assert extract_model_number(text) == expected


# One lower-case sample per model rule, keyed by rule name.
MODEL_RULE_SAMPLES = {
    "whirlpool_wdt": ("fits wdt780saem1?", "WDT780SAEM1"),
    "whirlpool_wrs": ("my fridge is a wrs325sdhz", "WRS325SDHZ"),
    "whirlpool_wrf": ("french door wrf535swhz", "WRF535SWHZ"),
    "whirlpool_wrx": ("wrx735sdhz ice maker", "WRX735SDHZ"),
    "kitchenaid_kdt": ("kitchenaid kdt780sss", "KDT780SSS"),
    "kitchenaid_krsc": ("krsc703hps side by side", "KRSC703HPS"),
    "ge_gss": ("ge gss25gshss", "GSS25GSHSS"),
    "ge_gfe": ("gfe26jsmss won't cool", "GFE26JSMSS"),
    "ge_gdf": ("dishwasher gdf630psmss", "GDF630PSMSS"),
    "samsung_rf": ("samsung rf28hmedbsr", "RF28HMEDBSR"),
    "lg_lrmvs": ("lg lrmvs3006s", "LRMVS3006S"),
    "frigidaire_ffcd": ("frigidaire ffcd2418us", "FFCD2418US"),
    "frigidaire_fgid": ("fgid2466qf leaking", "FGID2466QF"),
    "lg_ldf": ("lg ldf5545st", "LDF5545ST"),
    "bosch_shpm": ("bosch shpm65z55n", "SHPM65Z55N"),
    "maytag_mfi": ("maytag mfi2570fez", "MFI2570FEZ"),
    "kenmore_ed": ("whirlpool ed5vhexvq", "ED5VHEXVQ"),
    "model_cue": ("the model number is abc12345", "ABC12345"),
    "my_appliance_cue": ("my appliance is xyz-4410", "XYZ-4410"),
}

MODEL_RULES = {rule.name: rule for rule in (*MODEL_NUMBER_RULES, *MODEL_CUE_RULES)}


def test_every_model_rule_has_a_sample():
    assert len(MODEL_RULES) == len(MODEL_NUMBER_RULES) + len(MODEL_CUE_RULES)
    assert set(MODEL_RULE_SAMPLES) == set(MODEL_RULES)


@pytest.mark.parametrize("rule_name", sorted(MODEL_RULE_SAMPLES))
def test_model_rule_extracts_upper_cased(rule_name):
    text, expected = MODEL_RULE_SAMPLES[rule_name]
    assert MODEL_RULES[rule_name].apply(text) == expected
    assert extract_model_number(text) == expected


def test_cue_phrase_model():
    assert extract_model_number("my model is ABC12345") == "ABC12345"


def test_cue_phrase_requires_digit():
    assert extract_model_number("the model is great") is None


def test_generic_code_only_when_allowed():
    assert extract_model_number("it is a XYZ1234") is None
    assert extract_model_number("it is a XYZ1234", allow_generic=True) == "XYZ1234"


def test_generic_code_is_case_sensitive():
    assert extract_model_number("it is a xyz1234", allow_generic=True) is None


def test_generic_code_never_returns_the_part_number():
    assert extract_model_number("PS11752778", part_number="PS11752778", allow_generic=True) is None


# =============================================================================
# ORDER NUMBERS
# =============================================================================

def test_extract_order_number():
    assert extract_order_number("where is PS-2024-78542?") == "PS-2024-78542"
    assert extract_order_number("track ps-2024-78123") == "PS-2024-78123"


def test_order_number_needs_exact_digit_groups():
    assert extract_order_number("PS-2024-785421") is None
    assert extract_order_number("PS-24-78542") is None


@pytest.mark.parametrize("text, expected", [
    ("2024-78542", "2024-78542"),
    ("  ps-2024-78542 ", "PS-2024-78542"),
    ("hello there", None),
])
def test_bare_order_answer(text, expected):
    assert extract_bare_order_answer(text) == expected


# =============================================================================
# CATEGORY
# =============================================================================

@pytest.mark.parametrize("text, expected", [
    ("my fridge is warm", Category.REFRIGERATOR),
    ("The ICE MAKER stopped", Category.REFRIGERATOR),
    ("dishwasher won't drain", Category.DISHWASHER),
    ("lower spray arm is cracked", Category.DISHWASHER),
    ("washing machine", None),
])
def test_detect_category(text, expected):
    assert detect_category(text) == expected


def test_refrigerator_wins_when_both_match():
    assert detect_category("ice maker parts and a dishwasher rack") == Category.REFRIGERATOR


def test_normalize_quotes():
    assert normalize_quotes("isn’t ‘fine’") == "isn't 'fine'"


# =============================================================================
# COMBINED + HISTORY FILL
# =============================================================================

def test_extract_params():
    params = extract_params("Is PS11752778 compatible with WDT780SAEM1?")
    assert params.part_number == "PS11752778"
    assert params.model_number == "WDT780SAEM1"
    assert params.category is None
    assert params.as_parameters() == {"partNumber": "PS11752778", "modelNumber": "WDT780SAEM1"}


def test_fill_from_history_completes_params():
    history = [
        user("I need part PS11752778 for my fridge"),
        assistant("Sure, what's your model number?"),
    ]
    current = extract_params("is it compatible with WRS325SDHZ?")
    filled = fill_from_history(current, history, depth=2)
    assert filled.part_number == "PS11752778"
    assert filled.model_number == "WRS325SDHZ"
    assert filled.category == Category.REFRIGERATOR
    assert filled.complete


def test_fill_from_history_respects_depth():
    history = [user("part PS11752778"), assistant("ok"), user("hmm")]
    filled = fill_from_history(ExtractedParams(), history, depth=1)
    assert filled.part_number is None

    filled = fill_from_history(ExtractedParams(), history, depth=3)
    assert filled.part_number == "PS11752778"


def test_fill_from_history_zero_depth_is_noop():
    current = ExtractedParams(model_number="WRS325SDHZ")
    assert fill_from_history(current, [user("PS11752778")], depth=0) == current


def test_fill_from_history_reads_user_turns_only():
    history = [assistant("Try PS11743427 for your refrigerator")]
    filled = fill_from_history(ExtractedParams(), history, depth=4)
    assert filled.part_number is None
    assert filled.category is None


def test_fill_from_history_prefers_newest_value():
    history = [user("PS11743427"), user("actually PS11752778")]
    filled = fill_from_history(ExtractedParams(), history, depth=4)
    assert filled.part_number == "PS11752778"


def test_current_values_are_kept():
    current = ExtractedParams(part_number="W10712395")
    filled = fill_from_history(current, [user("PS11752778")], depth=4)
    assert filled.part_number == "W10712395"
