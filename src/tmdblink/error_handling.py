"""Error handling for fatal batch conditions."""

import logging
from enum import Enum
from pathlib import Path

from rich.console import Console

logger = logging.getLogger(__name__)
console = Console()


class ErrorCategory(Enum):
    """Categories of fatal errors."""

    CONFIGURATION = "configuration"
    FILESYSTEM = "filesystem"
    NETWORK = "network"
    SYSTEM = "system"


class TmdbLinkError(Exception):
    """Base exception for errors that abort the whole batch."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        solution: str | None = None,
        details: str | None = None,
        recoverable: bool = False,
        log_level: int = logging.ERROR,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.solution = solution
        self.details = details
        self.recoverable = recoverable
        self.log_level = log_level
        self.original_error = original_error

    def display_to_user(self) -> None:
        """Display error to user with helpful context."""
        category_styles = {
            ErrorCategory.CONFIGURATION: ("⚙️", "yellow"),
            ErrorCategory.FILESYSTEM: ("📁", "red"),
            ErrorCategory.NETWORK: ("🌐", "orange1"),
            ErrorCategory.SYSTEM: ("💻", "red"),
        }

        emoji, color = category_styles.get(self.category, ("❌", "red"))

        console.print(
            f"\n{emoji} [{color} bold]{self.category.value.title()} Error[/{color} bold]",
        )
        console.print(f"[{color}]{self.message}[/{color}]")

        if self.details:
            console.print(f"\n[dim]Details:[/dim] {self.details}")

        if self.solution:
            console.print(f"\n[green]💡 Solution:[/green] {self.solution}")

        if self.recoverable:
            console.print(
                "\n[dim]This error may be temporary. You can try again.[/dim]",
            )
        else:
            console.print(
                "\n[dim]This error requires intervention before continuing.[/dim]",
            )

        if self.original_error:
            logger.log(
                self.log_level,
                "%s: %s",
                self.category.value,
                self.message,
                exc_info=self.original_error,
            )
        else:
            logger.log(self.log_level, "%s: %s", self.category.value, self.message)


class ConfigurationError(TmdbLinkError):
    """Configuration-related errors, including a missing API token."""

    def __init__(self, message: str, *, config_path: Path | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and config_path:
            solution = f"Check your configuration file at {config_path}"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


class InputSourceError(TmdbLinkError):
    """The identifier source could not be read."""

    def __init__(self, path: Path, **kwargs):
        solution = kwargs.pop(
            "solution",
            "Check the input file exists and is readable",
        )
        super().__init__(
            f"Cannot open the input file {path}",
            ErrorCategory.FILESYSTEM,
            solution=solution,
            **kwargs,
        )
        self.path = path


class OutputDestinationError(TmdbLinkError):
    """The output document could not be created or written."""

    def __init__(self, path: Path, **kwargs):
        solution = kwargs.pop(
            "solution",
            "Check the output directory exists and is writable",
        )
        super().__init__(
            f"Cannot write the output file {path}",
            ErrorCategory.FILESYSTEM,
            solution=solution,
            **kwargs,
        )
        self.path = path


class WorkerPoolError(TmdbLinkError):
    """The bounded worker pool could not be constructed."""

    def __init__(self, message: str, **kwargs):
        solution = kwargs.pop(
            "solution",
            "Set max_workers to a positive integer",
        )
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


def handle_error(
    error: Exception,
    *,
    category: ErrorCategory | None = None,
    **kwargs,
) -> None:
    """Convert generic exceptions to TmdbLinkError and display to user."""
    if isinstance(error, TmdbLinkError):
        error.display_to_user()
        return

    if category is None:
        if isinstance(error, FileNotFoundError | PermissionError):
            category = ErrorCategory.FILESYSTEM
        elif isinstance(error, ConnectionError | TimeoutError):
            category = ErrorCategory.NETWORK
        else:
            category = ErrorCategory.SYSTEM

    # Only network errors are reported as temporary.
    kwargs.setdefault("recoverable", category is ErrorCategory.NETWORK)

    link_error = TmdbLinkError(
        message=str(error) or "An unexpected error occurred",
        category=category,
        original_error=error,
        **kwargs,
    )
    link_error.display_to_user()
