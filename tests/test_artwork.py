"""Tests for inline image encoding and the device-local fetcher."""

import asyncio
import base64

from conftest import FakeNetwork, make_image

from nowplaying.lib.artwork import encode_image, sniff_mime
from nowplaying.prolink.network import TrackIdentity, TrackMetadata
from nowplaying.sources.device import DeviceArtwork, high_res_path

IDENTITY = TrackIdentity(2, 3, 1, 5)


class TestEncodeImage:
    def test_png_is_sniffed(self):
        png = make_image("PNG")
        assert sniff_mime(png) == "image/png"
        assert encode_image(png).startswith("data:image/png;base64,")

    def test_unknown_bytes_default_to_jpeg(self):
        assert encode_image(b"not an image") == (
            "data:image/jpeg;base64," + base64.b64encode(b"not an image").decode())

    def test_image_content_type_is_trusted(self):
        encoded = encode_image(make_image("PNG"), "image/webp; charset=binary")
        assert encoded.startswith("data:image/webp;base64,")

    def test_non_image_content_type_is_ignored(self):
        encoded = encode_image(make_image("PNG"), "application/octet-stream")
        assert encoded.startswith("data:image/png;base64,")

    def test_payload_round_trips(self):
        png = make_image("PNG")
        payload = encode_image(png).split(",", 1)[1]
        assert base64.b64decode(payload) == png


class TestHighResPath:
    def test_marker_before_extension(self):
        assert high_res_path("/PIONEER/Artwork/00001/a1.jpg") == "/PIONEER/Artwork/00001/a1_m.jpg"

    def test_no_extension(self):
        assert high_res_path("/art/a1") == "/art/a1_m"

    def test_dot_in_directory(self):
        assert high_res_path("/v1.2/a1.png") == "/v1.2/a1_m.png"


class TestDeviceArtwork:
    def _metadata(self, path="/art/5.jpg"):
        return TrackMetadata(5, "Y", "X", artwork_path=path)

    def test_requests_high_res_variant(self):
        network = FakeNetwork(artwork={5: make_image("PNG")})
        metadata = self._metadata()
        result = asyncio.run(DeviceArtwork(network).fetch(IDENTITY, metadata))

        locator = network.artwork_calls[0]
        assert locator.artwork_path == "/art/5_m.jpg"
        assert (locator.device_id, locator.track_slot, locator.track_type,
                locator.track_id) == (2, 3, 1, 5)
        assert metadata.artwork_path == "/art/5.jpg"
        assert result.startswith("data:image/png;base64,")

    def test_no_bytes_is_none(self):
        network = FakeNetwork()
        assert asyncio.run(DeviceArtwork(network).fetch(IDENTITY, self._metadata())) is None

    def test_no_artwork_path_skips_query(self):
        network = FakeNetwork()
        assert asyncio.run(DeviceArtwork(network).fetch(IDENTITY, self._metadata(None))) is None
        assert network.artwork_calls == []

    def test_query_error_is_none(self):
        network = FakeNetwork()

        async def broken(locator):
            raise ConnectionError("player went away")

        network.get_artwork = broken
        assert asyncio.run(DeviceArtwork(network).fetch(IDENTITY, self._metadata())) is None
