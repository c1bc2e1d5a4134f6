"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework for Practical Law.

Components:
    - config_loader: YAML settings with environment overlays and env overrides
    - smart_locator: Element location with ordered fallback chains
    - page_base: Base page object for common operations
    - browser_manager: Browser lifecycle management
    - failure_policy: Transient-failure classification and browser cleanup
    - user_pool: Exclusive test-user leases
    - session_state: Per-class logged-in flag
    - diagnostics: Screenshots, page source and console capture

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, get_config
from .smart_locator import SmartLocator, ElementNotFoundError
from .page_base import PageBase
from .browser_manager import BrowserManager, BrowserSession
from .user_pool import TestUser, TestUserPool, UserPoolError
from .session_state import LoginSession

__all__ = [
    "BrowserManager",
    "BrowserSession",
    "ConfigLoader",
    "ElementNotFoundError",
    "LoginSession",
    "PageBase",
    "SmartLocator",
    "TestUser",
    "TestUserPool",
    "UserPoolError",
    "get_config",
]
