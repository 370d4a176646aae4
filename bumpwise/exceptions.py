"""
Custom exception hierarchy for bumpwise.

All exceptions inherit from :class:`BumpwiseError` and carry optional
structured metadata via ``details``. Expected "cannot update" outcomes are
never modelled as exceptions; these types cover configuration problems,
I/O failures, and malformed input from collaborators.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence


class BumpwiseError(Exception):
    """Base exception for all bumpwise errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ConfigError(BumpwiseError):
    """Raised when a configuration file is missing, unreadable, or invalid.

    Args:
        message: Error description.
        config_path: Path of the offending configuration file.
        option: Name of the invalid option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class MalformedRequirementError(BumpwiseError):
    """Raised when a collaborator hands over a requirement that breaks the model contract.

    The typical case is a requirement bound to a property whose
    ``property_source`` is missing: property sharing cannot be decided
    without knowing where the property lives.

    Args:
        message: Error description.
        dependency_name: Dependency owning the requirement.
        file: Manifest the requirement was declared in.
        property_name: Property the requirement references.
    """

    __slots__ = ("dependency_name", "file", "property_name")

    def __init__(
        self,
        message: str,
        *,
        dependency_name: Optional[str] = None,
        file: Optional[str] = None,
        property_name: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "dependency", dependency_name)
        _add_if(details, "file", file)
        _add_if(details, "property", property_name)

        super().__init__(message, details)

        self.dependency_name = dependency_name
        self.file = file
        self.property_name = property_name


class ParseError(BumpwiseError):
    """Raised when a request document cannot be parsed.

    Args:
        message: Error description.
        file_path: Path to the document being parsed.
        field: Document field that was missing or malformed.
    """

    __slots__ = ("file_path", "field")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "field", field)

        super().__init__(message, details)

        self.file_path = file_path
        self.field = field


class NetworkError(BumpwiseError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RegistryError(NetworkError):
    """Raised when a version listing cannot be obtained from a registry.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


class HelperSubprocessFailed(BumpwiseError):
    """Raised when a native helper process cannot run or reports an error.

    Args:
        message: Error description.
        command: Command line that was executed.
        function: Helper function requested.
        exit_code: Process exit status, if the process ran.
        stderr: Captured standard error, truncated for safety.
    """

    __slots__ = ("command", "function", "exit_code", "stderr")

    def __init__(
        self,
        message: str,
        *,
        command: Optional[Sequence[str]] = None,
        function: Optional[str] = None,
        exit_code: Optional[int] = None,
        stderr: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "command", " ".join(command) if command else None)
        _add_if(details, "function", function)
        _add_if(details, "exit_code", exit_code)
        if stderr:
            details["stderr"] = _truncate(stderr)

        super().__init__(message, details)

        self.command = list(command) if command else []
        self.function = function
        self.exit_code = exit_code
        self.stderr = stderr


class FileOperationError(BumpwiseError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/materialize).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
