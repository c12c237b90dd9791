"""
Settings - Pydantic models for type-safe configuration.

This module defines all configuration settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from web_macro.config import Settings, load_config
    >>> settings = load_config()  # Loads from env, yaml, and defaults
    >>> print(settings.replay.min_delay_ms)
    200
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserSettings(BaseModel):
    """
    Browser automation settings.
    
    Attributes:
        headless: Run browser in headless mode
        browser_type: Playwright browser engine
        timeout_ms: Default timeout for browser operations
        viewport_width: Browser viewport width in pixels
        viewport_height: Browser viewport height in pixels
        slow_mo: Slow down operations by this amount (ms) - useful for debugging
    """
    headless: bool = True
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)
    slow_mo: int = Field(default=0, ge=0, le=5000)


class SelectorSettings(BaseModel):
    """
    Selector generation settings.
    
    Attributes:
        max_alternates: Maximum number of fallback selectors kept per action
        max_path_depth: Maximum number of segments in a structural path
        max_class_count: Class selectors are only emitted up to this many classes
        volatile_class_pattern: Regex for state classes that never go into selectors
        text_max_length: Recorded element text is truncated to this length
    """
    max_alternates: int = Field(default=4, ge=1, le=10)
    max_path_depth: int = Field(default=6, ge=1, le=20)
    max_class_count: int = Field(default=4, ge=1, le=20)
    volatile_class_pattern: str = r"^(active|hover|focus|selected|is-|has-)"
    text_max_length: int = Field(default=100, ge=10, le=1000)


class ReplaySettings(BaseModel):
    """
    Replay pacing and waiting settings.
    
    Attributes:
        default_speed: Speed multiplier applied to recorded gaps (2.0 halves waits)
        min_delay_ms: Lower clamp for the post-action delay
        max_delay_ms: Upper clamp for the post-action delay
        default_delay_ms: Delay used when either timestamp is missing
        element_timeout_ms: How long the element waiter waits for a target
        navigation_settle_ms: Pause after a page load before resuming replay
        navigation_timeout_ms: Resume anyway if no page load follows a navigating click
        scroll_settle_ms: Pause after scrolling the target into view
    """
    default_speed: float = Field(default=1.0, gt=0.0, le=10.0)
    min_delay_ms: int = Field(default=200, ge=0, le=60000)
    max_delay_ms: int = Field(default=15000, ge=0, le=600000)
    default_delay_ms: int = Field(default=400, ge=0, le=60000)
    element_timeout_ms: int = Field(default=15000, ge=0, le=600000)
    navigation_settle_ms: int = Field(default=700, ge=0, le=60000)
    navigation_timeout_ms: int = Field(default=15000, ge=0, le=600000)
    scroll_settle_ms: int = Field(default=150, ge=0, le=5000)
    
    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "ReplaySettings":
        if self.min_delay_ms > self.max_delay_ms:
            raise ValueError("min_delay_ms must not exceed max_delay_ms")
        return self


class StorageSettings(BaseModel):
    """
    Persistence settings.
    
    Attributes:
        backend: 'json' writes files, 'memory' keeps everything in-process
        macros_path: JSON file holding saved macros
        session_path: JSON file holding the in-progress recording
    """
    backend: Literal["json", "memory"] = "json"
    macros_path: str = "macros.json"
    session_path: str = ".web_macro_session.json"


class LoggingSettings(BaseModel):
    """
    Logging configuration.
    
    Attributes:
        level: Log level
        file: Log file path (None for console only)
        json_format: Use JSON format for file logs
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for all configuration.
    
    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with WEB_MACRO__)
    3. Config file (YAML)
    4. Default values
    
    Example:
        >>> settings = Settings()  # Load from env vars
        >>> settings = Settings(replay=ReplaySettings(default_speed=2.0))  # Override
    """
    
    model_config = SettingsConfigDict(
        env_prefix="WEB_MACRO__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    selectors: SelectorSettings = Field(default_factory=SelectorSettings)
    replay: ReplaySettings = Field(default_factory=ReplaySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    
    debug: bool = False
    
    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.
        
        Args:
            overrides: Dictionary of values to override
            
        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()
        
        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base
        
        merged = deep_merge(current, overrides)
        return Settings(**merged)
