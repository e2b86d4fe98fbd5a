import threading
import time
from typing import Callable, Dict, List

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_WINDOW_SECONDS = 15 * 60


class LoginAttemptTracker:
    """Failed API-token logins per client IP inside a sliding window"""

    def __init__(self, max_attempts: int = MAX_FAILED_ATTEMPTS,
                 window_seconds: float = LOCKOUT_WINDOW_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._failures: Dict[str, List[float]] = {}

    def is_blocked(self, ip: str) -> bool:
        with self._lock:
            return len(self._recent(ip)) >= self.max_attempts

    def record_failure(self, ip: str) -> None:
        with self._lock:
            attempts = self._recent(ip)
            attempts.append(self.clock())
            self._failures[ip] = attempts

    def reset(self, ip: str) -> None:
        with self._lock:
            self._failures.pop(ip, None)

    def _recent(self, ip: str) -> List[float]:
        cutoff = self.clock() - self.window_seconds
        attempts = [at for at in self._failures.get(ip, []) if at > cutoff]
        if attempts:
            self._failures[ip] = attempts
        else:
            self._failures.pop(ip, None)
        return attempts
