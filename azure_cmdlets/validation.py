"""Parameter validation shared by the commands.

Every check runs before any remote call is made.
"""

import re
from typing import Optional

from .exceptions import ParameterValidationError

GUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


def validate_not_empty(value: Optional[str], parameter: str) -> str:
    """Validate that a mandatory string parameter is present.

    Args:
        value: The parameter value
        parameter: Parameter name used in the error message

    Returns:
        The value, unchanged

    Raises:
        ParameterValidationError: If the value is None or empty
    """
    if value is None or value == "":
        raise ParameterValidationError(
            f"{parameter} cannot be empty", parameter=parameter
        )
    return value


def validate_guid(value: Optional[str], parameter: str) -> str:
    """Validate that a mandatory parameter is a GUID string.

    Args:
        value: The parameter value
        parameter: Parameter name used in the error message

    Returns:
        The value, unchanged

    Raises:
        ParameterValidationError: If the value is empty or not a GUID
    """
    value = validate_not_empty(value, parameter)
    if not GUID_PATTERN.fullmatch(value):
        raise ParameterValidationError(
            f"Invalid {parameter} format: {value}. "
            "Must be a valid GUID (e.g., 12345678-1234-1234-1234-123456789012)",
            parameter=parameter,
            value=value,
        )
    return value
