"""Alert dispatcher for Matrix room delivery."""

from __future__ import annotations

import logging
import secrets
import string
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from matrix_alerter.alerter.exceptions import (
    DeliveryTransportError,
    RemoteRejectedError,
    RequestConstructionError,
)
from matrix_alerter.alerter.formatter import MatrixFormatter
from matrix_alerter.alerter.resolver import resolve_config

if TYPE_CHECKING:
    from matrix_alerter.alerter.models import AlertEvent, FormattedMessage, ResolvedConfig
    from matrix_alerter.config import ProviderState

logger = logging.getLogger(__name__)

SEND_MESSAGE_PATH = "/_matrix/client/r0/rooms/{room}/send/m.room.message/{txn_id}"
MESSAGE_FORMAT = "org.matrix.custom.html"

TRANSACTION_ID_LENGTH = 24
TRANSACTION_ID_ALPHABET = string.ascii_letters + string.digits

# Characters a room id may keep unescaped in a path segment
_PATH_SAFE = "$&+:=@"


def generate_transaction_id(length: int = TRANSACTION_ID_LENGTH) -> str:
    """Generate a random alphanumeric transaction id."""
    return "".join(secrets.choice(TRANSACTION_ID_ALPHABET) for _ in range(length))


def build_payload(message: FormattedMessage) -> str:
    """Build the single-line JSON payload for an ``m.room.message`` event.

    The message bodies are already escaped JSON string fragments.
    """
    return (
        '{"msgtype":"m.text",'
        f'"format":"{MESSAGE_FORMAT}",'
        f'"body":"{message.plaintext_body}",'
        f'"formatted_body":"{message.markup_body}"}}'
    )


def build_send_url(config: ResolvedConfig, txn_id: str) -> str:
    """Build the send-message URL, without the access token."""
    path = SEND_MESSAGE_PATH.format(room=quote(config.room_id, safe=_PATH_SAFE), txn_id=txn_id)
    return config.homeserver_url.rstrip("/") + path


class MatrixDispatcher:
    """Dispatcher for sending alerts to a Matrix room.

    Each send is a single ``PUT`` with a fresh transaction id. Failures are
    raised to the caller; there is no retry, backoff or queuing.
    """

    def __init__(
        self,
        state: ProviderState,
        *,
        client: httpx.AsyncClient | None = None,
        formatter: MatrixFormatter | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            state: Validated provider configuration.
            client: Shared HTTP client. When omitted, a client is opened for
                each send and closed afterwards.
            formatter: Message formatter to use.
            timeout: HTTP request timeout in seconds for per-send clients.
        """
        self.state = state
        self.formatter = formatter or MatrixFormatter()
        self.timeout = timeout

        self._client = client

    def get_default_alert(self) -> dict[str, Any] | None:
        """Return the provider's default alert configuration, unmodified."""
        return self.state.default_alert

    def build_request(
        self, client: httpx.AsyncClient, event: AlertEvent, resolved: bool, group: str
    ) -> httpx.Request:
        """Assemble the outbound request for an alert.

        Raises:
            RequestConstructionError: If the URL or request cannot be built.
        """
        config = resolve_config(self.state, group)
        message = self.formatter.format(event, resolved)
        txn_id = generate_transaction_id()

        try:
            request = client.build_request(
                "PUT",
                build_send_url(config, txn_id),
                params={"access_token": config.access_token},
                content=build_payload(message).encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError, TypeError) as e:
            raise RequestConstructionError(f"cannot build request: {e}") from e

        logger.debug(
            f"Sending alert for {event.display_name} to room {config.room_id} "
            f"(txn {txn_id})"
        )
        return request

    async def send(
        self, event: AlertEvent, resolved: bool, group: str | None = None
    ) -> None:
        """Send an alert to the resolved Matrix room.

        Args:
            event: The alert event.
            resolved: Whether the alert is being resolved.
            group: Group label used to select an override. Defaults to the
                event's endpoint group.

        Raises:
            RequestConstructionError: If the request cannot be assembled.
            DeliveryTransportError: If the transport fails.
            RemoteRejectedError: If the homeserver answers with status >= 400.
        """
        if group is None:
            group = event.endpoint_group

        if self._client is not None:
            await self._send(self._client, event, resolved, group)
            return

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            await self._send(client, event, resolved, group)

    async def _send(
        self, client: httpx.AsyncClient, event: AlertEvent, resolved: bool, group: str
    ) -> None:
        request = self.build_request(client, event, resolved, group)

        try:
            response = await client.send(request)
        except httpx.HTTPError as e:
            raise DeliveryTransportError(e) from e

        if response.status_code >= 400:
            raise RemoteRejectedError(response.status_code, response.text)

        logger.info(f"Matrix alert for {event.display_name} delivered successfully")
