"""Custom exceptions for configuration management."""

from pathlib import Path
from typing import List, Optional, Union


class ConfigurationError(Exception):
    """
    Exception raised when configuration loading or validation fails.

    Stores the individual problems found in ``config.yaml`` or the
    environment, the file they came from, and hints for fixing them, so the
    CLI can print one readable report before exiting with status 1.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        config_path: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: Specific problems, e.g. ``sources[indigo].path: missing``
            suggestions: Hints for fixing the errors
            config_path: Configuration file the errors were found in, if any
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.config_path = Path(config_path) if config_path is not None else None
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the message, the source file, the errors and the suggestions."""
        parts = [self.message]

        if self.config_path is not None:
            parts.append(f"Configuration file: {self.config_path}")

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)
