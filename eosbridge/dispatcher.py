from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable

from .commands import IndexedScene, Invalid, NamedScript, ParsedCommand
from .cooldown import CooldownGate
from .vmix_client import VmixClient

log = logging.getLogger("bridge.dispatch")

Sleeper = Callable[[float], Awaitable[None]]


class ActionDispatcher:
    """
    Turns a parsed command into vMix API calls.

    IndexedScene(n):
        DataSourceSelectRow Value=<data_source>,<n>   (cooldown recorded here)
        ... select_delay_ms ...
        ScriptStart Value=<scene_script>
    NamedScript(name):
        ScriptStart Value=<name>                      (then cooldown recorded)
    Invalid:
        nothing

    Failures are logged per call and never stop the sequence. No retries.
    """
    def __init__(
        self,
        client: VmixClient,
        gate: CooldownGate,
        *,
        data_source: str = "Scenes",
        scene_script: str = "GFXSCENE",
        select_delay_ms: int = 250,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.client = client
        self.gate = gate
        self.data_source = data_source
        self.scene_script = scene_script
        self.select_delay_s = select_delay_ms / 1000.0
        self._sleep = sleep

    async def dispatch(self, command: ParsedCommand, now: int) -> bool:
        """Run the call sequence for `command`. Returns True if a dispatch was attempted."""
        if isinstance(command, IndexedScene):
            await self._scene(command.index, now)
            return True
        if isinstance(command, NamedScript):
            await self._script(command.name, now)
            return True
        if isinstance(command, Invalid):
            return False
        raise TypeError(f"Unknown command type: {type(command).__name__}")

    async def _scene(self, index: int, now: int) -> None:
        log.info("scene %d: DataSourceSelectRow on %s", index, self.data_source)
        ok = await self.client.select_row(self.data_source, index)
        self.gate.record(now)
        if not ok:
            log.error("Could not issue GET request to vMix API for scene: %d", index)

        # give vMix time to move the data source row before the script reads it
        await self._sleep(self.select_delay_s)

        if not await self.client.start_script(self.scene_script):
            log.error("Could not issue GET request to vMix API for %s script", self.scene_script)

    async def _script(self, name: str, now: int) -> None:
        log.info("script %s: ScriptStart", name)
        ok = await self.client.start_script(name)
        self.gate.record(now)
        if not ok:
            log.error("Could not issue GET request to vMix API for script: %s", name)
