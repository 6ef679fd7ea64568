# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Now Playing service (lifecycle manager).

Brings the Pro DJ Link network online, wires the event flow and serves the
display until a termination signal arrives:

    network status ──► StatusReceived ──► DeviceTracker ──► prefetch
                                     └──► MixstatusAdapter ──► NowPlaying
    NowPlaying ──► ResolutionPipeline.on_now_playing ──► UI sink

Lifecycle: OFFLINE → CONNECTING → ONLINE → DISCONNECTING → OFFLINE.
Startup aborts (exit code 1) if the network is not connected right after
``connect()``.  On SIGINT/SIGTERM/SIGHUP the network gets DISCONNECT_TIMEOUT
seconds to disconnect cleanly; after that we stop waiting and exit anyway.
"""

import asyncio
import logging
import signal
from enum import Enum

import aiohttp

from .lib.config import cfg, load_factory
from .lib.events import DeviceConnected, EventDispatcher, NowPlaying, StatusReceived
from .lib.state import DeviceStateStore
from .mixstatus import MixstatusAdapter
from .pipeline import ResolutionPipeline
from .prolink.network import CDJStatus, Device, MixstatusMode
from .publisher import NullSink, UIServer, UISink, WebSocketSink
from .sources.device import DeviceArtwork
from .sources.musicbrainz import (
    DEFAULT_RELEASE_TYPE,
    CoverArtArchive,
    MusicBrainzArtwork,
    MusicBrainzSearch,
)
from .tracker import DeviceTracker

log = logging.getLogger(__name__)

DISCONNECT_TIMEOUT = 5.0  # seconds
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)

DEMO_NETWORK_FACTORY = "nowplaying.prolink.demo:bring_online"
DEMO_ENGINE_FACTORY = "nowplaying.prolink.demo:DemoMixstatusEngine"
USER_AGENT = ("now-playing", "0.1.0", "now-playing@now-playing.com")


def user_agent() -> tuple[str, str, str]:
    """(app name, version, contact) sent to MusicBrainz and the archive."""
    return (
        cfg("musicbrainz", "app_name", default=USER_AGENT[0]),
        cfg("musicbrainz", "app_version", default=USER_AGENT[1]),
        cfg("musicbrainz", "contact", default=USER_AGENT[2]),
    )


class LifecycleState(Enum):
    OFFLINE = "offline"
    CONNECTING = "connecting"
    ONLINE = "online"
    DISCONNECTING = "disconnecting"


class NowPlayingService:
    def __init__(self, network_factory=None, engine_factory=None,
                 remote: MusicBrainzArtwork | None = None,
                 serve_ui: bool = True,
                 disconnect_timeout: float = DISCONNECT_TIMEOUT):
        self.network_factory = network_factory or load_factory(
            cfg("network", "factory", default=DEMO_NETWORK_FACTORY))
        self.engine_factory = engine_factory or load_factory(
            cfg("mixstatus", "factory", default=DEMO_ENGINE_FACTORY))
        self.disconnect_timeout = disconnect_timeout
        self.serve_ui = serve_ui

        self.state = LifecycleState.OFFLINE
        self.states = DeviceStateStore()
        self.events = EventDispatcher()
        self.network = None
        self.pipeline: ResolutionPipeline | None = None
        self.tracker: DeviceTracker | None = None
        self.adapter: MixstatusAdapter | None = None
        self.ui_server: UIServer | None = None
        self._remote = remote
        self._http_session: aiohttp.ClientSession | None = None
        self._devices: dict[int, Device] = {}
        self._sequence = 0
        self._stop_event: asyncio.Event | None = None

    # ── Startup ──

    async def connect(self) -> bool:
        """Bring the network up. False (and nothing wired) on any failure."""
        self.state = LifecycleState.CONNECTING
        try:
            log.info("Bringing the ProLink network online...")
            network = await self.network_factory()

            log.info("Automatically configuring the ProLink network...")
            await network.autoconfigure_from_peers()

            log.info("Connecting to the ProLink network...")
            await network.connect()
        except Exception as e:
            log.error("Failed to bring the ProLink network online: %s", e)
            self.state = LifecycleState.OFFLINE
            return False

        if not network.is_connected():
            log.error("Failed to connect to the ProLink network")
            self.state = LifecycleState.OFFLINE
            return False

        log.info("Successfully connected to the ProLink network")
        self.network = network
        return True

    async def start(self) -> bool:
        if not await self.connect():
            return False

        sink: UISink = NullSink()
        if self.serve_ui:
            sink = WebSocketSink()
            self.ui_server = UIServer(
                sink, self.get_status,
                host=cfg("ui", "host", default="0.0.0.0"),
                port=int(cfg("ui", "port", default=8766)),
            )

        self.pipeline = ResolutionPipeline(
            self.network, self.states,
            local=DeviceArtwork(self.network),
            remote=self._remote or self._make_remote(),
            sink=sink,
        )
        self.tracker = DeviceTracker(self.states, self.pipeline)
        self.adapter = MixstatusAdapter(
            self.engine_factory(MixstatusMode.FOLLOWS_MASTER), self.events)

        # Tracker first, then the adapter — both see every broadcast in order
        self.events.subscribe(StatusReceived, self.tracker.handle_status)
        self.events.subscribe(StatusReceived, self.adapter.handle_status)
        self.events.subscribe(NowPlaying, self.pipeline.handle_now_playing)
        self.events.subscribe(DeviceConnected, self._handle_device_connected)

        self.network.on_device_connected(self._on_device_connected)
        self.network.on_status(self._on_status)

        if self.ui_server:
            await self.ui_server.start()

        self.state = LifecycleState.ONLINE
        log.info("Now listening to the ProLink network")
        return True

    def _make_remote(self) -> MusicBrainzArtwork:
        app_name, app_version, contact = user_agent()
        self._http_session = aiohttp.ClientSession(
            headers={"User-Agent": f"{app_name}/{app_version}"})
        search = MusicBrainzSearch(app_name, app_version, contact)
        archive = CoverArtArchive(
            self._http_session, timeout=cfg("musicbrainz", "timeout", default=10))
        return MusicBrainzArtwork(
            search, archive,
            release_type=cfg("musicbrainz", "release_type", default=DEFAULT_RELEASE_TYPE))

    # ── Network callbacks ──

    def _on_status(self, status: CDJStatus) -> None:
        self._sequence += 1
        status.sequence = self._sequence
        self.events.emit(StatusReceived(status))

    def _on_device_connected(self, device: Device) -> None:
        self.events.emit(DeviceConnected(device))

    def _handle_device_connected(self, event: DeviceConnected) -> None:
        device = event.device
        if device.id in self._devices:
            return
        self._devices[device.id] = device
        log.info("New device found on ProLink network: %s (id %d)", device.name, device.id)

    def get_status(self) -> dict:
        return {
            "state": self.state.value,
            "devices": [{"id": d.id, "name": d.name} for d in self._devices.values()],
            "slots": self.states.snapshot(),
        }

    # ── Shutdown ──

    async def disconnect(self) -> None:
        """Disconnect from the network, giving up after disconnect_timeout."""
        if self.network is None or not self.network.is_connected():
            return
        log.info("Disconnecting from ProLink network...")
        try:
            # shield: on timeout we stop waiting, the disconnect keeps going
            await asyncio.wait_for(
                asyncio.shield(self.network.disconnect()), self.disconnect_timeout)
            log.info("Disconnected from ProLink network")
        except asyncio.TimeoutError:
            log.error("Cleanup timed out after %.1fs, exiting anyway",
                      self.disconnect_timeout)
        except Exception as e:
            log.error("Cleanup failed: %s", e)

    async def shutdown(self) -> None:
        self.state = LifecycleState.DISCONNECTING
        await self.disconnect()

        if self.ui_server:
            await self.ui_server.stop()
            self.ui_server = None
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

        self.state = LifecycleState.OFFLINE
        log.info("Cleanup finished")

    def request_stop(self, sig: signal.Signals | None = None) -> None:
        if sig is not None:
            log.info("Received %s signal, cleaning up...", sig.name)
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self) -> int:
        """Start, wait for a termination signal, shut down. Returns exit code."""
        self._stop_event = asyncio.Event()
        if not await self.start():
            return 1

        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.request_stop, sig)
        try:
            await self._stop_event.wait()
        finally:
            for sig in SHUTDOWN_SIGNALS:
                loop.remove_signal_handler(sig)
            await self.shutdown()
        return 0


async def main() -> int:
    service = NowPlayingService()
    return await service.run()
