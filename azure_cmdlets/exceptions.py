"""
Custom Exception Hierarchy for Azure Cmdlets

This module provides the exception hierarchy shared by every command, giving
each failure a stable error code, structured context and an optional recovery
suggestion.
"""

from typing import Any, Dict, Optional, Sequence, Tuple

from azure.core.exceptions import ClientAuthenticationError


class AzureCmdletsError(Exception):
    """
    Root of every error raised by the commands.

    Carries a stable error code, a context mapping, the underlying cause and a
    hint the CLI prints next to the message.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Structured form of the error for JSON output and logs."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


class ValidationError(AzureCmdletsError, ValueError):
    """Base class for validation errors."""

    pass


class ParameterValidationError(ValidationError):
    """Raised when a command parameter is missing, empty or malformed."""

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context") or {}
        if parameter:
            context["parameter"] = parameter
        if value is not None:
            context["value"] = value
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_PARAMETER")
        super().__init__(message, **kwargs)
        self.parameter = parameter


class AzureError(AzureCmdletsError):
    """Base class for Azure-related errors."""

    pass


class AzureAuthenticationError(AzureError):
    """Raised when Azure authentication fails."""

    def __init__(
        self, message: str, tenant_id: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context") or {}
        if tenant_id:
            context["tenant_id"] = tenant_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "AZURE_AUTH_FAILED")
        kwargs.setdefault(
            "recovery_suggestion",
            "Try running 'az login' or check your Azure credentials",
        )
        super().__init__(message, **kwargs)


class RemoteOperationError(AzureError):
    """Raised when a management API call fails or reports a failed operation."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        service_error_code: Optional[str] = None,
        request_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context") or {}
        if operation:
            context["operation"] = operation
        if status_code:
            context["status_code"] = status_code
        if service_error_code:
            context["service_error_code"] = service_error_code
        if request_id:
            context["request_id"] = request_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "REMOTE_OPERATION_FAILED")
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.service_error_code = service_error_code
        self.request_id = request_id


class VaultCredentialError(AzureError):
    """Raised when a vault credential cannot be generated or written."""

    def __init__(
        self, message: str, vault_name: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context") or {}
        if vault_name:
            context["vault_name"] = vault_name
        kwargs["context"] = context
        kwargs.setdefault("error_code", "VAULT_CREDENTIAL_FAILED")
        super().__init__(message, **kwargs)


class AggregatedRemoteError(AzureError):
    """
    Raised when several concurrently executed remote calls fail together.

    The causes are kept in submission order. Callers that only surface one
    failure use ``first()`` (or ``reduce_to_first``); the remaining causes are
    dropped.
    """

    def __init__(
        self, message: str, causes: Sequence[BaseException], **kwargs: Any
    ) -> None:
        if not causes:
            raise ValueError("AggregatedRemoteError requires at least one cause")
        kwargs.setdefault("error_code", "AGGREGATED_REMOTE_FAILURE")
        context = kwargs.get("context") or {}
        context["failure_count"] = len(causes)
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.causes: Tuple[BaseException, ...] = tuple(causes)

    def first(self) -> BaseException:
        """Return the first contained failure."""
        return self.causes[0]


class ConfigurationError(AzureCmdletsError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(
        self, message: str, config_section: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context") or {}
        if config_section:
            context["config_section"] = config_section
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion", "Check configuration file and environment variables"
        )
        super().__init__(message, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(
        self, message: str, missing_keys: Optional[list[str]] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context") or {}
        if missing_keys:
            context["missing_keys"] = missing_keys
        kwargs["context"] = context
        kwargs.setdefault("error_code", "MISSING_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion",
            f"Set required configuration: {', '.join(missing_keys)}"
            if missing_keys
            else "Set required configuration",
        )
        super().__init__(message, **kwargs)


def reduce_to_first(exc: BaseException) -> BaseException:
    """
    Reduce an aggregated failure to the first failure it contains.

    Handles ``AggregatedRemoteError`` as well as built-in exception groups,
    descending through nested aggregates. Any other exception is returned
    unchanged.

    Args:
        exc: The exception to reduce

    Returns:
        BaseException: The first leaf failure
    """
    current = exc
    while True:
        if isinstance(current, AggregatedRemoteError):
            current = current.first()
        elif isinstance(current, BaseExceptionGroup) and current.exceptions:
            current = current.exceptions[0]
        else:
            return current


def wrap_azure_exception(
    exc: Exception, context: Optional[Dict[str, Any]] = None
) -> AzureError:
    """
    Map an Azure SDK failure onto the project hierarchy.

    Credential failures, 401/403 responses and authentication messages become
    ``AzureAuthenticationError``; everything else becomes a
    ``RemoteOperationError`` carrying the HTTP status when the SDK exposes one.
    """
    if isinstance(exc, AzureError):
        return exc

    error_message = str(exc)
    status_code = getattr(exc, "status_code", None)

    if (
        isinstance(exc, ClientAuthenticationError)
        or status_code in (401, 403)
        or "authentication" in error_message.lower()
        or "unauthorized" in error_message.lower()
    ):
        return AzureAuthenticationError(
            f"Azure authentication failed: {error_message}", context=context, cause=exc
        )
    return RemoteOperationError(
        f"Azure operation failed: {error_message}",
        status_code=status_code,
        context=context,
        cause=exc,
    )
