"""
Gateway Management Client

Thin client for the classic Service Management networking API used to
configure virtual network gateway connections addressed by GUID.

Public API:
    GatewayManagementClient: set_ipsec_parameters_v2, set_shared_key_v2

Both operations are asynchronous on the service side: the PUT returns an
operation ID which is polled until it leaves the ``InProgress`` state.

Request bodies are built with ElementTree; service replies are parsed with
defusedxml.
"""

import time
import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, Optional

import requests
import structlog
from azure.core.credentials import TokenCredential
from azure.core.exceptions import ClientAuthenticationError
from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, fromstring

from .config_manager import ServiceManagementConfig
from .exceptions import AzureAuthenticationError, RemoteOperationError
from .models import GatewayOperationStatus, IPsecParameters, SharedKeyContext

logger = structlog.get_logger(__name__)

WINDOWS_AZURE_NAMESPACE = "http://schemas.microsoft.com/windowsazure"
IN_PROGRESS = "InProgress"
SET_SHARED_KEY_DESCRIPTION = "Set-AzureVirtualNetworkGatewayKey"

_NS = {"wa": WINDOWS_AZURE_NAMESPACE}


def _find_text(element: ET.Element, name: str) -> Optional[str]:
    node = element.find(f"wa:{name}", _NS)
    if node is None:
        node = element.find(name)
    if node is None or node.text is None:
        return None
    return node.text.strip()


def _build_document(root_name: str, children: Dict[str, Any]) -> bytes:
    root = ET.Element(root_name, {"xmlns": WINDOWS_AZURE_NAMESPACE})
    for name, value in children.items():
        if value is None:
            continue
        ET.SubElement(root, name).text = str(value)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def parse_operation_status(
    body: bytes, request_id: Optional[str] = None
) -> GatewayOperationStatus:
    """Parse a ``GatewayOperation`` document."""
    try:
        root = fromstring(body)
    except (ParseError, DefusedXmlException) as exc:
        raise RemoteOperationError(
            f"Unreadable operation status: {exc}",
            operation="get_operation_status",
            request_id=request_id,
            cause=exc,
        ) from exc
    error_code = None
    error_message = None
    error = root.find("wa:Error", _NS)
    if error is None:
        error = root.find("Error")
    if error is not None:
        error_code = _find_text(error, "Code")
        error_message = _find_text(error, "Message")

    return GatewayOperationStatus(
        id=_find_text(root, "ID"),
        status=_find_text(root, "Status") or "",
        http_status_code=_find_text(root, "HttpStatusCode"),
        error_code=error_code,
        error_message=error_message,
        request_id=request_id,
    )


class GatewayManagementClient:
    """
    Client for gateway connection operations on the Service Management API.

    Attributes:
        subscription_id: Subscription the gateways belong to
        credential: azure-identity credential used for bearer tokens
        config: Endpoint, API version and polling configuration
    """

    def __init__(
        self,
        subscription_id: str,
        credential: TokenCredential,
        config: ServiceManagementConfig,
        http_session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.subscription_id = subscription_id
        self.credential = credential
        self.config = config
        self._http = http_session or requests.Session()
        self._sleep = sleep

    def set_ipsec_parameters_v2(
        self,
        gateway_id: str,
        connected_entity_id: str,
        encryption_type: Optional[str],
        pfs_group: Optional[str],
        sa_data_size_kilobytes: int,
        sa_lifetime_seconds: int,
    ) -> GatewayOperationStatus:
        """
        Set the IPsec parameters of a gateway connection.

        Values are sent as given; the service validates them.

        Returns:
            Final GatewayOperationStatus of the operation
        """
        parameters = IPsecParameters(
            encryption_type=encryption_type,
            pfs_group=pfs_group,
            sa_data_size_kilobytes=sa_data_size_kilobytes,
            sa_lifetime_seconds=sa_lifetime_seconds,
        )
        body = _build_document(
            "IPsecParameters",
            {
                "EncryptionType": parameters.encryption_type,
                "PfsGroup": parameters.pfs_group,
                "SADataSizeKilobytes": parameters.sa_data_size_kilobytes,
                "SALifeTimeSeconds": parameters.sa_lifetime_seconds,
            },
        )
        return self._put_and_wait(
            self._connection_path(gateway_id, connected_entity_id, "ipsecparameters"),
            body,
            operation="set_ipsec_parameters",
        )

    def set_shared_key_v2(
        self, gateway_id: str, connected_entity_id: str, shared_key: str
    ) -> SharedKeyContext:
        """
        Set the shared key of a gateway connection.

        Returns:
            SharedKeyContext describing the completed operation
        """
        body = _build_document("SharedKey", {"Value": shared_key})
        status = self._put_and_wait(
            self._connection_path(gateway_id, connected_entity_id, "sharedkey"),
            body,
            operation="set_shared_key",
        )
        return SharedKeyContext(
            operation_id=status.request_id or status.id,
            operation_description=SET_SHARED_KEY_DESCRIPTION,
            operation_status=status.status,
            value=shared_key,
        )

    def get_operation_status(self, operation_id: str) -> GatewayOperationStatus:
        """Fetch the status of an asynchronous gateway operation."""
        url = (
            f"{self.config.endpoint}/{self.subscription_id}"
            f"/services/networking/operation/{operation_id}"
        )
        response = self._request("GET", url, operation="get_operation_status")
        return parse_operation_status(response.content, request_id=operation_id)

    def _connection_path(
        self, gateway_id: str, connected_entity_id: str, leaf: str
    ) -> str:
        return (
            f"{self.config.endpoint}/{self.subscription_id}"
            f"/services/networking/virtualnetworkgateways/{gateway_id}"
            f"/connections/{connected_entity_id}/{leaf}"
        )

    def _put_and_wait(
        self, url: str, body: bytes, operation: str
    ) -> GatewayOperationStatus:
        response = self._request("PUT", url, operation=operation, data=body)
        operation_id = self._extract_operation_id(response)
        logger.info("gateway_operation_started", operation=operation, id=operation_id)

        deadline = time.monotonic() + self.config.operation_timeout
        status = self.get_operation_status(operation_id)
        while status.status == IN_PROGRESS:
            if time.monotonic() >= deadline:
                raise RemoteOperationError(
                    f"Timed out waiting for {operation} to complete",
                    operation=operation,
                    request_id=operation_id,
                )
            self._sleep(self.config.poll_interval)
            status = self.get_operation_status(operation_id)

        logger.info(
            "gateway_operation_finished",
            operation=operation,
            id=operation_id,
            status=status.status,
        )
        if not status.succeeded:
            raise RemoteOperationError(
                status.error_message
                or f"{operation} finished with status {status.status or 'unknown'}",
                operation=operation,
                service_error_code=status.error_code,
                request_id=operation_id,
            )
        return status

    @staticmethod
    def _extract_operation_id(response: requests.Response) -> str:
        if response.content:
            try:
                operation_id = _find_text(fromstring(response.content), "ID")
            except (ParseError, DefusedXmlException):
                # fall back to the request id header
                operation_id = None
            if operation_id:
                return operation_id
        request_id = response.headers.get("x-ms-request-id")
        if not request_id:
            raise RemoteOperationError(
                "Service response did not include an operation ID",
                status_code=response.status_code,
            )
        return request_id

    def _headers(self) -> Dict[str, str]:
        try:
            token = self.credential.get_token(self.config.token_scope)
        except ClientAuthenticationError as exc:
            raise AzureAuthenticationError(
                f"Could not acquire a Service Management token: {exc}", cause=exc
            ) from exc
        return {
            "Authorization": f"Bearer {token.token}",
            "x-ms-version": self.config.api_version,
            "Content-Type": "application/xml",
            "Accept": "application/xml",
        }

    def _request(
        self, method: str, url: str, operation: str, data: Optional[bytes] = None
    ) -> requests.Response:
        logger.debug("service_management_request", method=method, url=url)
        try:
            response = self._http.request(
                method,
                url,
                data=data,
                headers=self._headers(),
                timeout=self.config.http_timeout,
            )
        except requests.RequestException as exc:
            raise RemoteOperationError(
                f"{operation} request failed: {exc}", operation=operation, cause=exc
            ) from exc

        if response.status_code >= 400:
            code = None
            message = response.text or response.reason
            if response.content:
                try:
                    root = fromstring(response.content)
                    code = _find_text(root, "Code")
                    message = _find_text(root, "Message") or message
                except (ParseError, DefusedXmlException):
                    # non-XML error bodies keep their raw text
                    code = None
            raise RemoteOperationError(
                message,
                operation=operation,
                status_code=response.status_code,
                service_error_code=code,
                request_id=response.headers.get("x-ms-request-id"),
            )
        return response
