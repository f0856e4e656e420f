"""
EOS -> vMix Bridge
==================

Purpose
-------
Receive UDP strings from an ETC EOS console and turn them into vMix HTTP API
calls:

    "SCN,3"  -> DataSourceSelectRow Value=Scenes,3, then ScriptStart GFXSCENE
                (row index is zero based, as vMix counts it)
    "SCENE"  -> ScriptStart Value=SCENE   ("next scene" when no numbers are set)
    "TOP"    -> ScriptStart Value=TOP     ("top of show" / reset)

Extra pass-through scripts are registered through bridge.scripts in the YAML
config.

Key behaviors
-------------
- One datagram at a time: each accepted event (including the 250 ms pause of
  the scene sequence) finishes before the next datagram is handled.
- Global cooldown: after an accepted event, everything is ignored for
  cooldown_s seconds (strictly greater-than comparison on unix seconds).
- Malformed SCN strings are logged and dropped; unknown plain strings are
  dropped silently (DEBUG only). Neither touches the cooldown.
- Failed API calls are logged; nothing is retried.

CLI
---
    python -m eosbridge.bridge 192.168.1.50
    VMIX_IP=192.168.1.50 eos-vmix-bridge --config config/config.yaml
    # Optional runtime overrides:
    --listen-port 5000
    --cooldown 6
    --log-level DEBUG
"""

from __future__ import annotations
import argparse
import asyncio
import contextlib
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

import httpx

from .commands import Invalid, decode_datagram, parse_command
from .config_loader import (
    BridgeConfig,
    ConfigError,
    get_log_level,
    load_config,
    resolve_vmix_host,
)
from .cooldown import CooldownGate
from .dispatcher import ActionDispatcher, Sleeper
from .listener import Addr, UdpListener
from .registry import ScriptRegistry
from .vmix_client import VmixClient

# handle() outcomes
DISPATCHED = "dispatched"
COOLDOWN = "cooldown"
INVALID = "invalid"
IGNORED = "ignored"

PROG = "eos-vmix-bridge"


# ------------------------------------------------------------
# Orchestrator
# ------------------------------------------------------------
class BridgeService:
    """
    Wires: UdpListener -> CooldownGate -> parse_command -> ActionDispatcher -> VmixClient.
    """
    def __init__(
        self,
        cfg: BridgeConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
        listener: Optional[UdpListener] = None,
    ):
        self.cfg = cfg
        self.log = logging.getLogger("bridge")

        self.registry = ScriptRegistry.with_builtins(cfg.scripts)
        self.gate = CooldownGate(cfg.cooldown_s)
        self.client = VmixClient(cfg.base_url, timeout_ms=cfg.timeout_ms, transport=transport)
        self.dispatcher = ActionDispatcher(
            self.client,
            self.gate,
            data_source=cfg.data_source,
            scene_script=cfg.scene_script,
            select_delay_ms=cfg.select_delay_ms,
            sleep=sleep,
        )
        self.listener = listener or UdpListener(*cfg.listen_addr, bufsize=cfg.recv_bufsize)

        # Observability counters
        self.seen = 0
        self.dispatched = 0
        self.suppressed = 0
        self.invalid = 0
        self.ignored = 0

    def counters(self) -> dict:
        return {
            "seen": self.seen,
            "dispatched": self.dispatched,
            "cooldown": self.suppressed,
            "invalid": self.invalid,
            "ignored": self.ignored,
            "calls_ok": self.client.calls_ok,
            "calls_failed": self.client.calls_failed,
        }

    async def handle(self, data: bytes, addr: Optional[Addr], now: int) -> str:
        """Process one datagram received at unix second `now`; returns the outcome."""
        self.seen += 1
        logging.getLogger("bridge.raw").info("packet from %s  %r", addr, data)

        if not self.gate.allow(now):
            self.suppressed += 1
            logging.getLogger("bridge.cooldown").info(
                "Cooldown not expired (%ds left). Ignoring...", self.gate.remaining(now)
            )
            return COOLDOWN

        command = parse_command(decode_datagram(data), self.registry)

        if isinstance(command, Invalid):
            if command.is_malformed:
                self.invalid += 1
                logging.getLogger("bridge.parse").warning(
                    "%r: %s after comma... skipping", command.text, command.reason
                )
                return INVALID
            self.ignored += 1
            logging.getLogger("bridge.parse").debug("ignoring %r (%s)", command.text, command.reason)
            return IGNORED

        await self.dispatcher.dispatch(command, now)
        self.dispatched += 1
        return DISPATCHED

    async def run(self, stop_evt: asyncio.Event) -> None:
        # Bind first: a port we cannot open is fatal, so let OSError escape.
        await self.listener.open()
        await self.client.start()

        hb_task = None
        if self.cfg.heartbeat_s > 0:
            hb_task = asyncio.create_task(self._heartbeat(), name="bridge_heartbeat")

        try:
            while not stop_evt.is_set():
                try:
                    # short timeout keeps the loop alive so stop_evt is noticed
                    evt = await asyncio.wait_for(self.listener.get(), timeout=0.5)
                except asyncio.TimeoutError:
                    continue
                try:
                    await self.handle(evt.data, evt.addr, int(evt.received_at))
                except Exception:
                    self.log.exception("error handling %r from %s", evt.data, evt.addr)

        except asyncio.CancelledError:
            stop_evt.set()
            self.log.info("bridge_run_cancelled")

        finally:
            if hb_task is not None:
                hb_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await hb_task

            self.listener.close()
            await self.client.stop()
            self.log.info("bridge_stop %s", self.counters())

    async def _heartbeat(self) -> None:
        """Periodic log line so ops can see counters move."""
        while True:
            await asyncio.sleep(self.cfg.heartbeat_s)
            logging.getLogger("bridge.hb").info("heartbeat %s", self.counters())


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog=PROG,
        description="Forward ETC EOS UDP strings to the vMix HTTP API",
    )
    ap.add_argument("vmix_ip", nargs="?", help="IP at which vMix resides (VMIX_IP env wins)")
    ap.add_argument("--config", help="Path to config/config.yaml (optional)")
    ap.add_argument("--listen-port", type=int, help="UDP port to listen on for EOS strings")
    ap.add_argument("--cooldown", type=int, help="Cooldown period in seconds")
    ap.add_argument("--log-level", help="DEBUG, INFO, WARNING...")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace, cfg_dict: dict) -> BridgeConfig:
    host = resolve_vmix_host(cfg_dict, args.vmix_ip)
    cfg = BridgeConfig.from_dict(cfg_dict, host=host)
    if args.listen_port is not None:
        cfg.listen_port = args.listen_port
    if args.cooldown is not None:
        cfg.cooldown_s = args.cooldown

    # e.g. VMIX_IP=10.0.0.5:8088 -> http://10.0.0.5:8088:8088/api/
    try:
        httpx.URL(cfg.base_url)
    except httpx.InvalidURL as e:
        raise ConfigError(f"Invalid vMix API URL {cfg.base_url!r}: {e}") from e
    return cfg


async def _amain(cfg: BridgeConfig) -> int:
    log = logging.getLogger("bridge")
    stop_evt = asyncio.Event()
    svc = BridgeService(cfg)
    task = asyncio.create_task(svc.run(stop_evt))
    try:
        await task
    except OSError as e:
        log.error("Error opening the socket %s:%s: %s", cfg.listen_host, cfg.listen_port, e)
        return 1
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        cfg_dict = load_config(args.config)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, (args.log_level or get_log_level(cfg_dict)).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger("bridge")
    log.info("%s - Starting up", datetime.now().astimezone().isoformat(timespec="seconds"))

    try:
        cfg = build_config(args, cfg_dict)
    except ConfigError as e:
        log.error("%s", e)
        print(f"Enter VMIX IP in the format: {PROG} x.x.x.x", file=sys.stderr)
        return 1

    log.info("VMIX API is at: %s", cfg.base_url)
    log.info(
        "cooldown=%ss select_delay=%sms scripts=%s",
        cfg.cooldown_s, cfg.select_delay_ms, list(ScriptRegistry.with_builtins(cfg.scripts)),
    )

    try:
        return asyncio.run(_amain(cfg))
    except KeyboardInterrupt:
        log.info("Exiting...")
        return 0


if __name__ == "__main__":
    sys.exit(main())
