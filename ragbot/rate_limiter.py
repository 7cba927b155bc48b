import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int


class RateLimiter:
    """Fixed-window request counter keyed by client identifier.

    Rejected attempts are not recorded. Clients whose window has emptied are
    dropped by a sweep that runs at most once per window.
    """

    def __init__(self, window_seconds: float = 60, max_requests: int = 10,
                 clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def check_and_record(self, client_id: str) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            cutoff = now - self.window_seconds
            timestamps = [t for t in self._requests.get(client_id, []) if t > cutoff]

            if len(timestamps) >= self.max_requests:
                self._requests[client_id] = timestamps
                return RateLimitDecision(allowed=False, remaining=0)

            timestamps.append(now)
            self._requests[client_id] = timestamps

            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            return RateLimitDecision(allowed=True, remaining=self.max_requests - len(timestamps))

    def _sweep(self, cutoff: float):
        stale = [key for key, stamps in self._requests.items() if not stamps or stamps[-1] <= cutoff]
        for key in stale:
            del self._requests[key]

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._requests)

    def reset(self, client_id: Optional[str] = None):
        with self._lock:
            if client_id is None:
                self._requests.clear()
            else:
                self._requests.pop(client_id, None)


def client_identifier(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """First address of X-Forwarded-For, else the socket peer, else "unknown"."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer_host or "unknown"
