"""
Curated troubleshooting guides.

A small fixed table of canonical symptoms -> diagnostic steps and common causes.
find_guide() does a two-tier lookup: substring containment against the canonical
keys (either direction), then a looser keyword table mapping onto those keys.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TroubleshootingGuide:
    symptom: str
    steps: tuple[str, ...]
    common_causes: tuple[str, ...]
    parts_to_check: tuple[str, ...]


GUIDES: dict[str, TroubleshootingGuide] = {
    guide.symptom: guide
    for guide in (
        TroubleshootingGuide(
            symptom="ice maker not working",
            steps=(
                "Check if the ice maker is turned ON (look for a switch or lever)",
                "Verify the water supply line is connected and turned on",
                "Check if the freezer temperature is cold enough (0°F / -18°C recommended)",
                "Inspect for ice jams in the ice maker or ejector arm",
                "Listen for clicking sounds - this indicates the ice maker is trying to work",
                "Check the water filter - a clogged filter can restrict water flow",
            ),
            common_causes=(
                "Frozen water line (use a hair dryer on low to thaw)",
                "Faulty water inlet valve",
                "Defective ice maker assembly",
                "Clogged or old water filter",
                "Temperature too warm in freezer",
            ),
            parts_to_check=("water filter", "ice maker assembly", "water inlet valve"),
        ),
        TroubleshootingGuide(
            symptom="not making ice",
            steps=(
                "Check if the ice maker is turned ON (look for a switch or lever)",
                "Verify the water supply line is connected and turned on",
                "Check if the freezer temperature is cold enough (0°F / -18°C recommended)",
                "Inspect for ice jams in the ice maker or ejector arm",
                "Check the water filter - a clogged filter can restrict water flow",
            ),
            common_causes=(
                "Frozen water line",
                "Faulty water inlet valve",
                "Defective ice maker assembly",
                "Clogged water filter",
            ),
            parts_to_check=("water filter", "ice maker assembly"),
        ),
        TroubleshootingGuide(
            symptom="fridge not cold",
            steps=(
                "Check if the temperature control is set correctly",
                "Ensure vents inside the fridge aren't blocked by food",
                "Clean the condenser coils (usually at the back or bottom)",
                "Check if the door seals properly - use the dollar bill test",
                "Listen for the compressor running - you should hear a humming sound",
                "Check if the evaporator fan is running (you should feel air flow)",
            ),
            common_causes=(
                "Dirty condenser coils",
                "Faulty evaporator fan motor",
                "Defrost system failure",
                "Worn door gasket letting warm air in",
                "Thermostat issues",
            ),
            parts_to_check=("evaporator fan", "defrost thermostat", "door gasket"),
        ),
        TroubleshootingGuide(
            symptom="dishwasher not draining",
            steps=(
                "Check if the drain hose is kinked or clogged",
                "Clean the filter and trap at the bottom of the dishwasher",
                "Run the garbage disposal if connected (clears shared drain)",
                "Check for food debris blocking the drain pump",
                "Verify the high loop or air gap is properly installed",
            ),
            common_causes=(
                "Clogged drain filter or trap",
                "Blocked drain hose",
                "Faulty drain pump",
                "Food debris in the sump area",
            ),
            parts_to_check=("drain pump", "pump and motor assembly"),
        ),
        TroubleshootingGuide(
            symptom="dishwasher not cleaning",
            steps=(
                "Clean the spray arms - remove and rinse under water, clear clogged holes with a toothpick",
                "Check and clean the filter at the bottom of the dishwasher",
                "Verify you're using the correct amount of detergent",
                "Run hot water at the sink before starting the dishwasher",
                "Check that dishes aren't blocking the spray arms from spinning",
            ),
            common_causes=(
                "Clogged spray arm holes",
                "Dirty filter",
                "Low water temperature",
                "Faulty pump not providing enough pressure",
                "Hard water buildup",
            ),
            parts_to_check=("spray arm", "pump and motor assembly", "water inlet valve"),
        ),
        TroubleshootingGuide(
            symptom="dishwasher won't start",
            steps=(
                "Make sure the door is fully closed and latched",
                "Check if the control panel displays any error codes",
                "Verify the dishwasher is receiving power (check outlet/breaker)",
                "Try pressing and holding the Start button for 3 seconds",
                "Check if the door latch clicks when closed",
            ),
            common_causes=(
                "Door latch not engaging properly",
                "Faulty door switch",
                "Control board issues",
                "Power supply problem",
            ),
            parts_to_check=("door latch assembly", "door switch"),
        ),
        TroubleshootingGuide(
            symptom="frost buildup",
            steps=(
                "Check if the door seals completely (use the dollar bill test)",
                "Verify the defrost timer is working",
                "Check if the defrost heater is functioning",
                "Ensure the evaporator fan is running",
                "Check for blocked air vents in the freezer",
            ),
            common_causes=(
                "Faulty defrost thermostat",
                "Defective defrost heater",
                "Damaged door gasket",
                "Failed defrost timer",
            ),
            parts_to_check=("defrost thermostat", "door gasket"),
        ),
    )
}

# Looser terms -> canonical guide key, checked in order.
KEYWORD_GUIDES: tuple[tuple[str, str], ...] = (
    ("ice", "ice maker not working"),
    ("cold", "fridge not cold"),
    ("warm", "fridge not cold"),
    ("drain", "dishwasher not draining"),
    ("clean", "dishwasher not cleaning"),
    ("dirty dishes", "dishwasher not cleaning"),
    ("won't start", "dishwasher won't start"),
    ("not starting", "dishwasher won't start"),
    ("frost", "frost buildup"),
    ("freezing", "frost buildup"),
)


def find_guide(symptom: str) -> Optional[TroubleshootingGuide]:
    lower = symptom.strip().lower().replace("’", "'")
    if not lower:
        return None

    for key, guide in GUIDES.items():
        if key in lower or lower in key:
            return guide

    for keyword, key in KEYWORD_GUIDES:
        if keyword in lower:
            return GUIDES[key]
    return None
