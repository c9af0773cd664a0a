"""
Session Context Module

Holds the subscription, tenant and credential a command runs against. The
context is built once by the CLI and handed to each handler explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from azure.core.credentials import TokenCredential
from azure.identity import DefaultAzureCredential

from .config_manager import CmdletsConfig
from .exceptions import MissingConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """
    Explicit Azure session for a single command invocation.

    Attributes:
        subscription_id: Subscription the command acts on
        credential: Token credential used by the management clients
        tenant_id: Optional tenant the credential is bound to
    """

    subscription_id: str
    credential: TokenCredential
    tenant_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.subscription_id:
            raise MissingConfigurationError(
                "A subscription ID is required for this command",
                missing_keys=["AZURE_SUBSCRIPTION_ID"],
            )

    def get_masked_subscription_id(self) -> str:
        """Subscription ID trimmed for logging."""
        if len(self.subscription_id) > 8:
            return self.subscription_id[:8] + "..."
        return self.subscription_id


def create_session_context(
    config: CmdletsConfig, credential: Optional[TokenCredential] = None
) -> SessionContext:
    """
    Build a session context from configuration.

    Args:
        config: Validated configuration
        credential: Optional credential; DefaultAzureCredential is used otherwise

    Returns:
        SessionContext for the configured subscription
    """
    if credential is None:
        logger.debug("Creating DefaultAzureCredential for session")
        credential = DefaultAzureCredential()

    session = SessionContext(
        subscription_id=config.azure.subscription_id,
        credential=credential,
        tenant_id=config.azure.tenant_id,
    )
    logger.debug(
        f"Session created for subscription {session.get_masked_subscription_id()}"
    )
    return session
