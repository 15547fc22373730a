import asyncio
from typing import List
from engine.engine import CombatEngine
from engine.model import Event, InvariantViolation, State
from .eventlog import EventLog

class BattleRunner:
    """Async driver that plays one round of an engine per tick."""

    def __init__(self, engine: CombatEngine, tick_ms: int = 500, time_compression: float = 30.0):
        self.engine = engine
        self.tick_ms = tick_ms
        self.time_compression = time_compression
        self.sleep_s = (tick_ms / 1000.0) / max(1.0, time_compression)
        self.events = EventLog()
        self._task: asyncio.Task | None = None
        self.error: Exception | None = None
        self._lock = asyncio.Lock()

    @property
    def finished(self) -> bool:
        return self.engine.status != "running"

    async def start(self):
        """Start the round loop."""
        if self._task:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Stop the round loop, whether or not the battle is over."""
        if not self._task:
            return
        if self._task.done():
            # a failed loop already recorded its error; mark it retrieved
            if not self._task.cancelled():
                self._task.exception()
        else:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _loop(self):
        """Step the engine, log its events, sleep, until the battle is decided."""
        while not self.finished:
            async with self._lock:
                try:
                    evts: List[Event] = self.engine.step()
                except InvariantViolation as e:
                    print(f"[BattleRunner] Battle failed in round {self.engine.state.rounds}: {e}")
                    self.error = e
                    raise
            self.events.append_many(evts)
            await asyncio.sleep(self.sleep_s)
        print(f"[BattleRunner] Battle {self.engine.status} after {self.engine.state.rounds} rounds: "
              f"{self.engine.result}")

    async def snapshot(self) -> State:
        """Get current state without racing a round in progress."""
        async with self._lock:
            return self.engine.snapshot()

    def set_time_compression(self, time_compression: float):
        """Update time compression factor (1.0 = real-time, higher = faster)."""
        self.time_compression = max(0.1, min(1000.0, time_compression))
        self.sleep_s = (self.tick_ms / 1000.0) / max(1.0, self.time_compression)
        print(f"[BattleRunner] Time compression set to {self.time_compression}x (sleep: {self.sleep_s:.4f}s)")
