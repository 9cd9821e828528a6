"""
Tests for cli.py - one-shot mode and response printing.
"""

import sys
from unittest.mock import patch

from parts_assistant import cli
from parts_assistant.agent_types import AssistantResponse


def test_print_response_lists_products(catalog, capsys):
    part = catalog.find_by_part_number("PS11752778")
    response = AssistantResponse(message="Here you go", intent="search", products=[part])
    cli.print_response(response, show_products=True)
    out = capsys.readouterr().out
    assert "[search] Here you go" in out
    assert "  - PS11752778: Ice Maker Assembly ($89.95)" in out


def test_print_response_hides_products_by_default(catalog, capsys):
    part = catalog.find_by_part_number("PS11752778")
    cli.print_response(AssistantResponse(message="ok", intent="search", products=[part]), show_products=False)
    assert "PS11752778" not in capsys.readouterr().out


def test_one_shot_turn(context, capsys):
    argv = ["parts-assistant", "Track", "order", "PS-2024-78542"]
    with patch.object(sys, "argv", argv), patch.object(cli, "create_context", return_value=context):
        assert cli.main() == 0
    assert "## Order Status: PS-2024-78542" in capsys.readouterr().out


def test_configuration_error(capsys):
    with patch.object(sys, "argv", ["parts-assistant", "hi"]), \
            patch.object(cli, "create_context", side_effect=ValueError("LLM_TIMEOUT_SECONDS must be a number")):
        assert cli.main() == 1
    assert "configuration error" in capsys.readouterr().out
