"""
Fixed-interval polling of a JSON endpoint into a rolling window.

The newest value sits at the front of the window. Once the window is full,
each push evicts the oldest value.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterator

import requests

from config.settings import get_settings
from vizpipe.exceptions import ResourceLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowEntry:
    """One polled value, the time it arrived and its arrival number."""

    value: Any
    timestamp: datetime
    seq: int = 0


class RollingWindow:
    """Fixed-length window, newest first."""

    def __init__(self, maxlen: int):
        if maxlen < 1:
            raise ValueError(f"Window length must be positive, got {maxlen}")
        self.maxlen = maxlen
        self._entries: deque[WindowEntry] = deque(maxlen=maxlen)
        self.pushed = 0

    def push(self, value: Any, timestamp: datetime | None = None) -> WindowEntry | None:
        """Add a value at the front. Returns the evicted entry, if any."""
        evicted = self._entries[-1] if self.is_full else None
        self.pushed += 1
        self._entries.appendleft(
            WindowEntry(value=value, timestamp=timestamp or datetime.now(timezone.utc), seq=self.pushed)
        )
        return evicted

    @property
    def is_full(self) -> bool:
        return len(self._entries) == self.maxlen

    def entries(self) -> list[WindowEntry]:
        return list(self._entries)

    def values(self) -> list[Any]:
        return [e.value for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WindowEntry]:
        return iter(self._entries)


class Poller:
    """
    Poll a JSON endpoint every ``interval_seconds`` and push results into a window.

    Usage:
        poller = Poller(url, interval_seconds=1, on_update=chart.redraw)
        window = await poller.run()
    """

    def __init__(
        self,
        url: str,
        *,
        interval_seconds: int | None = None,
        window: RollingWindow | None = None,
        fetch: Callable[[], Any] | None = None,
        on_update: Callable[[RollingWindow], None] | None = None,
        stop_when_full: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = get_settings()
        interval = interval_seconds if interval_seconds is not None else settings.poll_interval_seconds
        if not isinstance(interval, int) or interval < 1:
            raise ValueError(f"Polling interval must be a whole number of seconds >= 1, got {interval!r}")

        self.url = url
        self.interval_seconds = interval
        self.window = window or RollingWindow(settings.poll_window_size)
        self._fetch = fetch or self._fetch_json
        self.on_update = on_update
        self.stop_when_full = stop_when_full
        self._sleep = sleep
        self.polls = 0

    def _fetch_json(self) -> Any:
        try:
            response = requests.get(self.url, timeout=get_settings().request_timeout_seconds)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise ResourceLoadError(f"Polling {self.url} failed: {e}", location=self.url, kind="json") from e

    async def poll_once(self, *, notify: bool = True) -> WindowEntry:
        """Fetch one value and push it into the window; ``notify=False`` skips on_update."""
        value = await asyncio.to_thread(self._fetch)
        evicted = self.window.push(value)
        self.polls += 1
        if evicted is not None:
            logger.debug(f"Evicted value from {evicted.timestamp.isoformat()}")
        if notify and self.on_update is not None:
            self.on_update(self.window)
        return self.window.entries()[0]

    async def run(self, max_polls: int | None = None) -> RollingWindow:
        """
        Poll until cancelled, until ``max_polls`` fetches, or until the window
        is full when ``stop_when_full`` is set.

        Raises:
            ResourceLoadError: If a fetch fails
        """
        while True:
            await self.poll_once()
            if self.stop_when_full and self.window.is_full:
                logger.info(f"Window full after {self.polls} polls, stopping")
                break
            if max_polls is not None and self.polls >= max_polls:
                break
            await self._sleep(self.interval_seconds)
        return self.window
