"""Tests for change detection and the mix-status wiring."""

import asyncio
from unittest.mock import MagicMock

import pytest
from conftest import FakeNetwork, FakeRemote, make_image, make_status

from nowplaying.lib.artwork import encode_image
from nowplaying.lib.events import EventDispatcher, NowPlaying, StatusReceived
from nowplaying.mixstatus import BroadcastOrderError, MixstatusAdapter
from nowplaying.pipeline import ResolutionPipeline
from nowplaying.sources.device import DeviceArtwork
from nowplaying.tracker import DeviceTracker

LOCAL_BYTES = make_image("PNG")


def _wire(states, network=None):
    """Dispatcher with tracker + adapter subscribed the way the service does it."""
    network = network or FakeNetwork(metadata={5: ("X", "Y"), 6: ("X", "Z")},
                                     artwork={5: LOCAL_BYTES, 6: LOCAL_BYTES})
    pipeline = ResolutionPipeline(network, states, DeviceArtwork(network), FakeRemote())
    tracker = DeviceTracker(states, pipeline)
    engine = MagicMock()
    events = EventDispatcher()
    adapter = MixstatusAdapter(engine, events)
    events.subscribe(StatusReceived, tracker.handle_status)
    events.subscribe(StatusReceived, adapter.handle_status)
    return events, network, engine


def _deliver(events, statuses, start=1):
    async def go():
        for seq, status in enumerate(statuses, start=start):
            status.sequence = seq
            events.emit(StatusReceived(status))
        await events.drain()
    asyncio.run(go())


class TestDeviceTracker:
    def test_duplicate_broadcasts_resolve_once(self, states):
        events, network, _ = _wire(states)
        _deliver(events, [make_status(1, 5) for _ in range(10)])
        assert len(network.metadata_calls) == 1
        assert len(network.artwork_calls) == 1
        assert states[1].artwork == encode_image(LOCAL_BYTES)

    def test_empty_slot_updates_identity_only(self, states):
        events, network, _ = _wire(states)
        _deliver(events, [make_status(1, 0, track_device_id=0, track_slot=0, track_type=0)])
        assert states[1].identity.track_id == 0
        assert network.metadata_calls == []
        assert network.artwork_calls == []

    def test_unloading_after_a_track_resolves_nothing_new(self, states):
        events, network, _ = _wire(states)
        _deliver(events, [make_status(1, 5), make_status(1, 0)])
        assert len(network.metadata_calls) == 1
        assert states[1].identity.track_id == 0
        assert states[1].trusted_artwork is None

    def test_new_track_invalidates_cached_artwork(self, states):
        events, network, _ = _wire(states, FakeNetwork(metadata={5: ("X", "Y")},
                                                       artwork={5: LOCAL_BYTES}))
        _deliver(events, [make_status(1, 5)])
        assert states[1].trusted_artwork is not None
        # Track 6 has no metadata in this network, so nothing gets re-cached
        _deliver(events, [make_status(1, 6)], start=2)
        assert states[1].artwork is not None
        assert states[1].trusted_artwork is None

    def test_same_track_id_from_another_medium_is_a_change(self, states):
        events, network, _ = _wire(states)
        _deliver(events, [make_status(1, 5, track_slot=3), make_status(1, 5, track_slot=2)])
        assert len(network.metadata_calls) == 2

    def test_slots_are_tracked_independently(self, states):
        events, network, _ = _wire(states)
        _deliver(events, [make_status(1, 5), make_status(2, 5), make_status(1, 5)])
        assert len(network.metadata_calls) == 2

    def test_non_player_device_is_ignored(self, states):
        events, network, engine = _wire(states)
        _deliver(events, [make_status(33, 5)])
        assert network.metadata_calls == []
        engine.handle_state.assert_called_once()


class TestMixstatusAdapter:
    def test_every_broadcast_is_forwarded_in_order(self, states):
        events, _, engine = _wire(states)
        statuses = [make_status(1, 5), make_status(1, 5), make_status(2, 0), make_status(1, 5)]
        _deliver(events, statuses)
        forwarded = [c.args[0] for c in engine.handle_state.call_args_list]
        assert forwarded == statuses

    def test_out_of_order_broadcast_is_rejected(self):
        adapter = MixstatusAdapter(MagicMock(), EventDispatcher())
        first, second = make_status(1, 5), make_status(1, 5)
        first.sequence, second.sequence = 2, 1
        adapter.ingest(first)
        with pytest.raises(BroadcastOrderError):
            adapter.ingest(second)

    def test_repeated_sequence_is_rejected(self):
        adapter = MixstatusAdapter(MagicMock(), EventDispatcher())
        status = make_status(1, 5)
        status.sequence = 7
        adapter.ingest(status)
        with pytest.raises(BroadcastOrderError):
            adapter.ingest(status)

    def test_engine_decision_becomes_now_playing_event(self):
        engine = MagicMock()
        events = EventDispatcher()
        seen = []
        events.subscribe(NowPlaying, lambda e: seen.append(e.slot))
        MixstatusAdapter(engine, events)

        callback = engine.on_now_playing.call_args.args[0]
        callback(3)
        assert seen == [3]
