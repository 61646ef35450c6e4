"""PromptForge error hierarchy.

All custom exceptions inherit from PromptForgeError, enabling callers
to catch the base class for blanket error handling or specific
subclasses for targeted recovery.

The lookup, resolver and compiler never raise these for degenerate
metadata; they are reserved for loading data files.
"""


class PromptForgeError(Exception):
    """Base exception for all PromptForge errors."""


class SchemaError(PromptForgeError):
    """Raised when a schema registry data file is missing or malformed."""


class ConfigError(PromptForgeError):
    """Raised when a render-request file cannot be loaded."""
