"""Application readiness probe."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable, Optional

import httpx

from common.exceptions import ConfigError, LivenessTimeoutError
from common.models.experiment import LivenessConfig

logger = logging.getLogger(__name__)


def registration_payload(suffix: Optional[str] = None) -> dict[str, str]:
    """Form fields for a throwaway user registration."""
    suffix = suffix or uuid.uuid4().hex[:8]
    return {
        "first_name": "probe",
        "last_name": "probe",
        "username": f"probe_{suffix}",
        "password": "x",
        "user_id": "0",
    }


class LivenessProbe:
    """Poll the registration endpoint until it answers HTTP 200.

    Connection errors and timeouts count as "not ready yet". The deadline
    is measured with a monotonic clock from the first attempt.
    """

    def __init__(
        self,
        config: LivenessConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.transport = transport
        self._sleep = sleep
        self._clock = clock

    async def check_once(self, client: httpx.AsyncClient) -> str:
        """One probe request; returns the HTTP status code or the error name."""
        try:
            response = await client.post(self.config.url, data=registration_payload())
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise ConfigError(f"Invalid liveness URL {self.config.url}: {e}") from e
        except httpx.HTTPError as e:
            return type(e).__name__
        return str(response.status_code)

    async def wait_until_ready(self) -> float:
        """Block until ready; return seconds waited. Raises LivenessTimeoutError."""
        url = self.config.url
        logger.info(f"[liveness] Waiting for {url} (timeout {self.config.timeout_seconds:g}s)")

        start = self._clock()
        deadline = start + self.config.timeout_seconds
        last_status = "none"
        attempts = 0

        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=self.config.request_timeout_seconds,
        ) as client:
            while True:
                attempts += 1
                last_status = await self.check_once(client)
                if last_status == "200":
                    waited = self._clock() - start
                    logger.info(f"[liveness] Service ready after {attempts} attempt(s) ({waited:.1f}s)")
                    return waited

                logger.debug(f"[liveness] Not ready yet (status {last_status})")
                if self._clock() + self.config.interval_seconds > deadline:
                    break
                await self._sleep(self.config.interval_seconds)

        logger.error(f"[liveness] Service not ready after {attempts} attempt(s), last status {last_status}")
        raise LivenessTimeoutError(url, self.config.timeout_seconds, last_status)
