"""
Tests for the macro data model.
"""

import pytest

from web_macro.exceptions import StorageError
from web_macro.recorder.models import MACRO_SCHEMA_VERSION, Action, ActionType, Macro


class TestAction:
    """Test Action serialization."""

    def test_to_dict_omits_unset_fields(self):
        """Test that None fields and empty alternates are left out."""
        action = Action(type=ActionType.CLICK, selector="#go", timestamp=5)
        assert action.to_dict() == {"type": "click", "selector": "#go", "timestamp": 5}

    def test_from_dict(self):
        """Test parsing a stored action."""
        action = Action.from_dict({
            "type": "fill",
            "selector": "#q",
            "selector_alts": ['[placeholder="Search"]'],
            "value": "cats",
            "tag": "input",
            "input_type": "search",
        })
        assert action.type == ActionType.FILL
        assert action.selectors == ["#q", '[placeholder="Search"]']
        assert action.value == "cats"

    def test_unknown_type_rejected(self):
        """Test an unknown action type raises ValueError."""
        with pytest.raises(ValueError):
            Action.from_dict({"type": "hover"})

    def test_breadcrumb(self):
        """Test only navigate actions are breadcrumbs."""
        assert Action(type=ActionType.NAVIGATE, url="https://x").is_breadcrumb
        assert not Action(type=ActionType.CLICK, selector="a").is_breadcrumb


class TestMacro:
    """Test Macro serialization."""

    def test_to_dict(self):
        """Test the stored shape includes count and schema version."""
        macro = Macro(
            name="login",
            actions=[Action(type=ActionType.CLICK, selector="#go")],
            saved_at=1700000000000,
        )
        data = macro.to_dict()
        assert data["name"] == "login"
        assert data["count"] == 1
        assert data["saved_at"] == 1700000000000
        assert data["schema_version"] == MACRO_SCHEMA_VERSION

    def test_json_round_trip(self):
        """Test to_json/from_json preserve the actions."""
        macro = Macro(
            name="search",
            actions=[
                Action(type=ActionType.FILL, selector="#q", value="cats", timestamp=1),
                Action(type=ActionType.NAVIGATE, url="https://example.com/r", timestamp=2),
            ],
        )
        restored = Macro.from_json(macro.to_json())
        assert restored.actions == macro.actions
        assert restored.saved_at == macro.saved_at

    def test_missing_schema_version_read_as_one(self):
        """Test macros stored before versioning load as version 1."""
        macro = Macro.from_dict({"name": "old", "actions": []})
        assert macro.schema_version == 1

    def test_newer_schema_rejected(self):
        """Test a macro from a newer schema raises StorageError."""
        with pytest.raises(StorageError):
            Macro.from_dict({"name": "future", "actions": [], "schema_version": MACRO_SCHEMA_VERSION + 1})
