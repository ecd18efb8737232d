"""Bounded-retry wrapper around every outbound provider operation."""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable

from ..config import AzureConfig, GatewayConfig
from ..exceptions import GatewayError, UnsupportedOperationError
from .clients import AzureClients
from .operations import Operation

logger = logging.getLogger(__name__)


class CloudGateway:
    """Executes gateway operations with retries and a per-attempt log timeline.

    Usage:
        gateway = CloudGateway(config.azure, config.gateway)
        lb = gateway.execute(GetLoadBalancer("rg", "lb-slot1"))
    """

    def __init__(
        self,
        azure_config: AzureConfig,
        gateway_config: GatewayConfig,
        clients: AzureClients | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._clients = clients if clients is not None else AzureClients(azure_config)
        self._max_retries = gateway_config.max_retries
        self._retry_delay = gateway_config.retry_delay_seconds
        self._sleep = sleep

    @property
    def default_max_retries(self) -> int:
        return self._max_retries

    def execute(
        self,
        operation: Operation,
        max_retries: int | None = None,
        expected_exception_pattern: str = "",
    ) -> Any:
        """Run ``operation``, retrying any failure not matching ``expected_exception_pattern``.

        Errors matching the pattern are re-raised untouched on the first
        occurrence. Once ``max_retries`` attempts have failed, a GatewayError
        carrying the operation name, activity and last error is raised.
        """
        if not isinstance(operation, Operation):
            raise UnsupportedOperationError(f"Unsupported gateway operation: {operation!r}")

        attempts = max_retries if max_retries is not None else self._max_retries
        attempts = max(attempts, 1)
        expected = re.compile(expected_exception_pattern) if expected_exception_pattern else None
        context = {"operation": operation.name, "activity": operation.activity}

        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            logger.info(
                "%s: attempt %d/%d started (%s)", operation.name, attempt, attempts, operation.activity,
                extra={**context, "attempt": attempt},
            )
            start = time.monotonic()
            try:
                result = operation.invoke(self._clients)
            except Exception as exc:
                if expected is not None and expected.search(str(exc)):
                    logger.info(
                        "%s: expected error on attempt %d, passing through: %s",
                        operation.name, attempt, exc,
                        extra={**context, "attempt": attempt},
                    )
                    raise
                last_error = exc
                logger.warning(
                    "%s: attempt %d/%d failed: %s", operation.name, attempt, attempts, exc,
                    extra={**context, "attempt": attempt},
                )
                if attempt < attempts:
                    self._sleep(self._retry_delay)
                continue

            logger.info(
                "%s: attempt %d/%d succeeded", operation.name, attempt, attempts,
                extra={**context, "attempt": attempt, "elapsed_seconds": round(time.monotonic() - start, 2)},
            )
            return result

        logger.error("%s: giving up after %d attempts", operation.name, attempts, extra=context)
        raise GatewayError(operation.name, operation.activity, last_error) from last_error
