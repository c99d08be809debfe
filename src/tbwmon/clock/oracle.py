"""
Trusted time source.

The local wall clock is exactly what the scheduler has to validate, so the
current date-time is fetched from a remote time service whenever possible and
the local clock is only a fallback. The local reading stays available
separately through ``local_now`` so the two are never conflated.
"""

import logging
import re
from datetime import datetime, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import requests

from ..core.exceptions import TimeSourceError

logger = logging.getLogger(__name__)

DEFAULT_TIME_API_URL = "https://timeapi.io/api/Time/current/zone?timeZone=UTC"

# Zone of the offset-less date-time returned by the default service
DEFAULT_TIME_ZONE = "UTC"

# datetime.fromisoformat accepts at most microsecond precision
_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")


def parse_remote_datetime(value: str, zone: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO-8601 date-time into a naive local datetime.

    A value without a UTC offset is read in ``zone``, or taken as local time
    when no zone is given.
    """
    text = _FRACTION_PATTERN.sub(r"\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None and zone is not None:
        parsed = parsed.replace(tzinfo=zone)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class ClockTrustOracle:
    """Current date-time from a remote authority, with a local fallback."""

    def __init__(
        self,
        api_url: str = DEFAULT_TIME_API_URL,
        field: str = "dateTime",
        timeout: float = 5.0,
        timezone: Optional[str] = DEFAULT_TIME_ZONE,
        local_clock: Callable[[], datetime] = datetime.now,
        session: Optional[requests.Session] = None
    ):
        """Initialize the oracle.

        Args:
            api_url: URL answering a GET with a JSON body
            field: Name of the ISO-8601 date-time field in that body
            timeout: Upper bound in seconds for the remote request
            timezone: IANA zone of date-times returned without an offset;
                None reads them as local time
            local_clock: Local wall clock, injectable for tests
            session: Optional requests session to reuse connections
        """
        self.api_url = api_url
        self.field = field
        self.timeout = timeout
        self.zone = ZoneInfo(timezone) if timezone else None
        self.local_clock = local_clock
        self.session = session or requests.Session()
        self._remote_reachable = False

    def fetch_remote(self) -> datetime:
        """Fetch the remote date-time.

        Raises:
            TimeSourceError: On any network, HTTP, JSON or format failure
        """
        try:
            response = self.session.get(self.api_url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise TimeSourceError(f"Time service request failed: {e}", url=self.api_url) from e

        value = payload.get(self.field) if isinstance(payload, dict) else None
        if not isinstance(value, str):
            raise TimeSourceError(f"Time service response has no '{self.field}' field", url=self.api_url)

        try:
            return parse_remote_datetime(value, self.zone)
        except ValueError as e:
            raise TimeSourceError(f"Unparseable date-time {value!r}", url=self.api_url) from e

    def now(self) -> datetime:
        """Current date-time, remote when reachable, local otherwise."""
        try:
            remote = self.fetch_remote()
        except TimeSourceError as e:
            self._remote_reachable = False
            local = self.local_clock()
            logger.warning(f"Failed to fetch time from time service, using system time {local}: {e}")
            return local

        self._remote_reachable = True
        logger.debug(f"Fetched date and time from time service: {remote}")
        return remote

    def is_remote_reachable(self) -> bool:
        """Whether the last call to ``now`` was answered by the remote source."""
        return self._remote_reachable

    def local_now(self) -> datetime:
        """Current date-time from the local clock only."""
        return self.local_clock()
