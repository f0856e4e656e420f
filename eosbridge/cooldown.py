from __future__ import annotations


class CooldownGate:
    """
    Global debounce for console events. One timestamp for every command kind:
    an event at `now` may proceed only if now > last_event + cooldown_s.
    The boundary itself is still blocked.

    Timestamps are whole unix seconds. `last_event` starts at 0 ("never") and
    is only moved by record(), which the dispatcher calls once it has
    attempted a dispatch.
    """
    def __init__(self, cooldown_s: int, last_event: int = 0):
        self.cooldown_s = int(cooldown_s)
        self._last_event = int(last_event)

    @property
    def last_event(self) -> int:
        return self._last_event

    def allow(self, now: int) -> bool:
        return now > self._last_event + self.cooldown_s

    def record(self, now: int) -> None:
        self._last_event = int(now)

    def remaining(self, now: int) -> int:
        """Seconds until allow() can return True again (0 if it already does)."""
        return max(0, self._last_event + self.cooldown_s + 1 - now)
