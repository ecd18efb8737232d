"""Reads deployment completion messages from a Service Bus queue over REST."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from typing import Callable, Iterator
from urllib.parse import quote_plus

import requests

from ..config import ServiceBusConfig
from ..exceptions import StatusListenerError

logger = logging.getLogger(__name__)

TOKEN_LIFETIME_SECONDS = 12 * 60 * 60


def generate_sas_token(
    resource_uri: str,
    key: str,
    policy_name: str,
    expiry_seconds: int = TOKEN_LIFETIME_SECONDS,
    now: float | None = None,
) -> str:
    """Build a SharedAccessSignature header value signed over ``resource_uri``."""
    expiry = int((now if now is not None else time.time()) + expiry_seconds)
    encoded_uri = quote_plus(resource_uri)
    string_to_sign = f"{encoded_uri}\n{expiry}".encode("utf-8")
    digest = hmac.new(key.encode("utf-8"), string_to_sign, hashlib.sha256).digest()
    signature = quote_plus(base64.b64encode(digest).decode("utf-8"))
    return f"SharedAccessSignature sr={encoded_uri}&sig={signature}&se={expiry}&skn={policy_name}"


class StatusListener:
    """Destructively reads the head of a queue until it is empty.

    Usage:
        for message in StatusListener(config.service_bus).poll_completion_messages():
            ...
    """

    def __init__(self, config: ServiceBusConfig, clock: Callable[[], float] = time.time):
        self._resource_uri = f"https://{config.namespace}.servicebus.windows.net/{config.queue_name}"
        self._config = config
        self._clock = clock
        self._session = requests.Session()
        self._timeout = config.timeout

    @property
    def head_url(self) -> str:
        return f"{self._resource_uri}/messages/head"

    def poll_completion_messages(self) -> Iterator[str]:
        """Yield message bodies until the queue returns an empty response."""
        token = generate_sas_token(
            self._resource_uri, self._config.sas_key, self._config.policy_name, now=self._clock(),
        )
        headers = {"Authorization": token}
        count = 0
        while True:
            body = self._read_head(headers)
            if not body:
                logger.info("Queue %s drained after %d messages", self._config.queue_name, count)
                return
            count += 1
            logger.debug("Received completion message %d from %s", count, self._config.queue_name)
            yield body

    def _read_head(self, headers: dict[str, str]) -> str:
        try:
            resp = self._session.delete(
                self.head_url,
                headers=headers,
                params={"timeout": self._config.receive_timeout},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise StatusListenerError(f"Request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise StatusListenerError(
                f"HTTP {resp.status_code} on DELETE {self.head_url}: {resp.text}",
                status_code=resp.status_code,
                response_body=resp.text,
            )
        if resp.status_code == 204:
            return ""
        return resp.text.strip()


def poll_completion_messages(namespace: str, queue_name: str, sas_key: str, policy_name: str) -> Iterator[str]:
    """Convenience wrapper around StatusListener for one-off polling."""
    config = ServiceBusConfig(namespace=namespace, queue_name=queue_name, sas_key=sas_key, policy_name=policy_name)
    return StatusListener(config).poll_completion_messages()
