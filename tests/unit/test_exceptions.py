"""
Tests for custom exceptions.
"""

import pytest


class TestWebMacroError:
    """Test the base WebMacroError exception."""

    def test_create_base_error(self):
        """Test creating a WebMacroError."""
        from web_macro.exceptions import WebMacroError
        error = WebMacroError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.details == {}

    def test_details_in_str(self):
        """Test details are appended to the message."""
        from web_macro.exceptions import WebMacroError
        error = WebMacroError("Failed", {"step": 2})
        assert str(error) == "Failed - Details: {'step': 2}"
        assert error.message == "Failed"

    def test_base_error_is_exception(self):
        """Test that WebMacroError is an exception."""
        from web_macro.exceptions import WebMacroError
        assert issubclass(WebMacroError, Exception)


class TestConfigurationError:
    """Test the ConfigurationError exception."""

    def test_config_error_is_base_error(self):
        """Test that ConfigurationError is subclass of WebMacroError."""
        from web_macro.exceptions import ConfigurationError, WebMacroError
        assert issubclass(ConfigurationError, WebMacroError)


class TestPageErrors:
    """Test page-context exceptions."""

    def test_hierarchy(self):
        """Test every page error derives from PageError."""
        from web_macro.exceptions import (
            BrowserLaunchError,
            ContextGoneError,
            InvalidSelectorError,
            PageError,
            WebMacroError,
        )
        assert issubclass(PageError, WebMacroError)
        for cls in (BrowserLaunchError, ContextGoneError, InvalidSelectorError):
            assert issubclass(cls, PageError)

    def test_invalid_selector_keeps_selector(self):
        """Test InvalidSelectorError carries the offending selector."""
        from web_macro.exceptions import InvalidSelectorError
        error = InvalidSelectorError("Bad selector", selector="div[")
        assert error.selector == "div["
        assert error.details == {"selector": "div["}

    def test_context_gone_keeps_context(self):
        """Test ContextGoneError carries the context id."""
        from web_macro.exceptions import ContextGoneError
        error = ContextGoneError("Gone", context_id="ctx-1")
        assert error.context_id == "ctx-1"

    def test_catch_as_page_error(self):
        """Test a context loss can be caught as PageError."""
        from web_macro.exceptions import ContextGoneError, PageError
        with pytest.raises(PageError):
            raise ContextGoneError("Gone")


class TestStorageErrors:
    """Test storage and replay exceptions."""

    def test_macro_not_found(self):
        """Test MacroNotFoundError is a StorageError with the name."""
        from web_macro.exceptions import MacroNotFoundError, StorageError
        error = MacroNotFoundError("Macro not found: login", name="login")
        assert isinstance(error, StorageError)
        assert error.name == "login"
        assert error.message == "Macro not found: login"

    def test_replay_error(self):
        """Test ReplayError is a WebMacroError but not a StorageError."""
        from web_macro.exceptions import ReplayError, StorageError, WebMacroError
        assert issubclass(ReplayError, WebMacroError)
        assert not issubclass(ReplayError, StorageError)
