# shopcore/services/runtime_controls.py
import threading
from dataclasses import dataclass

from shopcore.utils.settings import SLOW_MODE_DEFAULT_DELAY_MS


@dataclass(frozen=True)
class SlowMode:
    enabled: bool
    delay_ms: int


class RuntimeControls:
    """
    Przelaczniki procesu (slow mode) zmieniane w trakcie dzialania.
    Jedna instancja na aplikacje, odczyt i zapis pod lockiem.
    """

    def __init__(self, delay_ms: int = SLOW_MODE_DEFAULT_DELAY_MS):
        self._lock = threading.Lock()
        self._slow_mode = SlowMode(enabled=False, delay_ms=delay_ms)

    def get_slow_mode(self) -> SlowMode:
        with self._lock:
            return self._slow_mode

    def set_slow_mode(self, enabled: bool, delay_ms: int) -> SlowMode:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        with self._lock:
            self._slow_mode = SlowMode(enabled=enabled, delay_ms=delay_ms)
            return self._slow_mode
