"""
Tests for Phase 2: Quote Decoder.

CRITICAL TESTS:
1. test_decode_roundtrip - Known field values decode exactly
2. test_unmarked_payload_is_irrelevant - No marker means None, not an error
3. test_non_digit_price_rejected - Malformed price is a DecodeError
"""

from datetime import datetime, timedelta, timezone

import pytest

from quote_replay.capture.reader import Frame
from quote_replay.core.errors import DecodeError, ErrorKind
from quote_replay.demo.capture_generator import build_tcp_frame, build_udp_frame
from quote_replay.protocols.frames import udp_payload
from quote_replay.protocols.quote import QuoteDecoder, packet_time_from_micros

from conftest import CAPTURE_BASE, feed_payload, micros


def frame_at(ts: datetime, data: bytes) -> Frame:
    sec, usec = divmod(micros(ts), 1_000_000)
    return Frame(ts_sec=sec, ts_usec=usec, data=data)


@pytest.fixture
def decoder():
    return QuoteDecoder()


class TestDecodeRoundtrip:
    """Test decoding of well-formed payloads."""

    def test_decode_roundtrip(self, decoder):
        """
        CRITICAL TEST: Known field values decode exactly.

        Accept time 09:30:12.34 KST on the capture date is 00:30:12.34 UTC.
        """
        payload = feed_payload(
            accept_time='09301234',
            issue_code='AAPL--------',
            bids=[(123, 500), (122, 600), (121, 700), (120, 800), (119, 900)],
        )
        packet_time = datetime(2024, 3, 4, 0, 30, 13, 5, tzinfo=timezone.utc)

        quote = decoder.decode_payload(packet_time, payload)

        assert quote.issue_code == 'AAPL--------'
        assert quote.bid_price(1) == 123
        assert quote.bid_quantity(1) == 500
        assert quote.bid_prices == (123, 122, 121, 120, 119)
        assert quote.bid_quantities == (500, 600, 700, 800, 900)
        assert quote.ask_prices == (124, 125, 126, 127, 128)
        assert quote.ask_quantities == (50, 60, 70, 80, 90)
        assert quote.packet_time == packet_time
        assert quote.accept_time == datetime(2024, 3, 4, 0, 30, 12, 340000, tzinfo=timezone.utc)
        assert not quote.is_late

    def test_decode_from_frame(self, decoder, feed_frame):
        """Full frame path: Ethernet/IPv4/UDP → Quote."""
        captured = CAPTURE_BASE + timedelta(microseconds=123457)
        quote = decoder.decode(frame_at(captured, feed_frame('10000000')))

        assert quote is not None
        assert quote.packet_time == captured
        assert quote.accept_time == datetime(2024, 3, 4, 1, 0, tzinfo=timezone.utc)

    def test_accept_time_uses_utc_capture_date(self, decoder):
        """
        Accept date comes from the capture date in UTC, not KST.

        Captured 2024-03-04 23:00 UTC (already 03-05 in KST): an accept time
        of 08:00 KST is placed on 03-04 and lands at 03-03 23:00 UTC. This is
        the documented no-rollover approximation.
        """
        packet_time = datetime(2024, 3, 4, 23, 0, tzinfo=timezone.utc)
        quote = decoder.decode_payload(packet_time, feed_payload('08000000'))

        assert quote.accept_time == datetime(2024, 3, 3, 23, 0, tzinfo=timezone.utc)

    def test_late_quote_flagged(self, decoder):
        """Accept after capture is not fatal but is flagged."""
        packet_time = datetime(2024, 3, 4, 0, 0, tzinfo=timezone.utc)
        quote = decoder.decode_payload(packet_time, feed_payload('10000000'))

        assert quote.is_late

    def test_terminator_optional(self, decoder):
        """Payload without the trailing 0xFF still decodes."""
        payload = feed_payload()[:214]
        quote = decoder.decode_payload(CAPTURE_BASE, payload)
        assert quote.issue_code == 'KR4101V60001'

    def test_custom_offset(self):
        """UTC offset is configurable."""
        decoder = QuoteDecoder(utc_offset_hours=0)
        quote = decoder.decode_payload(CAPTURE_BASE, feed_payload('10000000'))
        assert quote.accept_time == datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)


class TestFiltering:
    """Test that other traffic is skipped silently."""

    def test_unmarked_payload_is_irrelevant(self, decoder):
        """CRITICAL TEST: UDP without the marker yields None, not an error."""
        data = build_udp_frame(b'B7014' + feed_payload()[5:])
        assert decoder.decode(frame_at(CAPTURE_BASE, data)) is None

    def test_tcp_is_irrelevant(self, decoder):
        """Marker inside TCP is not feed traffic."""
        data = build_tcp_frame(feed_payload())
        assert decoder.decode(frame_at(CAPTURE_BASE, data)) is None

    def test_non_ip_is_irrelevant(self, decoder):
        """ARP and other ethertypes are skipped."""
        arp = b'\xff' * 6 + b'\x02' * 6 + b'\x08\x06' + b'\x00' * 28
        assert decoder.decode(frame_at(CAPTURE_BASE, arp)) is None

    def test_garbage_frame_is_irrelevant(self, decoder):
        assert decoder.decode(frame_at(CAPTURE_BASE, b'\x00\x01')) is None

    def test_short_udp_payload_is_irrelevant(self, decoder):
        """Payload shorter than the marker cannot match it."""
        data = build_udp_frame(b'B60')
        assert decoder.decode(frame_at(CAPTURE_BASE, data)) is None

    def test_custom_marker(self, feed_frame):
        decoder = QuoteDecoder(marker='B7014')
        assert decoder.decode(frame_at(CAPTURE_BASE, feed_frame())) is None

    def test_marker_width_enforced(self):
        with pytest.raises(ValueError, match="5 bytes"):
            QuoteDecoder(marker=b'B60')

    def test_udp_payload_extraction(self):
        assert udp_payload(build_udp_frame(b'hello')) == b'hello'
        assert udp_payload(build_tcp_frame(b'hello')) is None


class TestMalformed:
    """Test rejection of marked but malformed payloads."""

    def test_non_digit_price_rejected(self, decoder):
        """CRITICAL TEST: A letter in a price field is an INT_PARSE error."""
        payload = feed_payload(bid_price_3=b'00a21')

        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, payload)

        assert exc.value.kind == ErrorKind.INT_PARSE
        assert exc.value.context.field == 'bid_price_3'
        assert exc.value.context.offset == 53

    def test_non_digit_quantity_rejected(self, decoder):
        payload = feed_payload(ask_quantity_5=b'00000-1')
        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, payload)
        assert exc.value.context.field == 'ask_quantity_5'

    def test_invalid_utf8_issue_code(self, decoder):
        payload = feed_payload()
        payload = payload[:16] + b'\xff' + payload[17:]

        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, payload)
        assert exc.value.kind == ErrorKind.TEXT_DECODE

    def test_multibyte_issue_code_rejected(self, decoder):
        """12 bytes that decode to fewer than 12 characters are rejected."""
        code = 'KR4101V600é'.encode('utf-8')  # 12 bytes, 11 chars
        payload = feed_payload(issue_code='KR4101V60001')
        payload = payload[:5] + code + payload[17:]

        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, payload)
        assert exc.value.kind == ErrorKind.TEXT_DECODE
        assert exc.value.context.field == 'issue_code'

    @pytest.mark.parametrize('accept_time', [
        '24000000',  # hour
        '09600000',  # minute
        '09306000',  # second
    ])
    def test_invalid_time_of_day(self, decoder, accept_time):
        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, feed_payload(accept_time))
        assert exc.value.kind == ErrorKind.INVALID_DATE

    def test_non_digit_accept_time(self, decoder):
        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, feed_payload('0930:234'))
        assert exc.value.kind == ErrorKind.INT_PARSE
        assert exc.value.context.field == 'accept_time'

    def test_truncated_payload(self, decoder):
        """A marked payload cut short fails instead of decoding garbage."""
        payload = feed_payload()[:150]
        with pytest.raises(DecodeError):
            decoder.decode_payload(CAPTURE_BASE, payload)

    def test_truncated_frame_raises(self, decoder, feed_frame):
        """Truncation surfaces through decode() as well."""
        payload = feed_payload()[:100]
        data = build_udp_frame(payload)
        with pytest.raises(DecodeError):
            decoder.decode(frame_at(CAPTURE_BASE, data))

    def test_error_to_dict(self, decoder):
        with pytest.raises(DecodeError) as exc:
            decoder.decode_payload(CAPTURE_BASE, feed_payload(bid_price_1=b'0012x'))

        data = exc.value.to_dict()
        assert data['kind'] == 'int-parse'
        assert data['recoverable'] is True
        assert data['context']['field'] == 'bid_price_1'
        assert data['context']['raw'] == b'0012x'.hex()


class TestPacketTime:
    """Test capture timestamp conversion."""

    def test_microsecond_precision(self):
        ts = packet_time_from_micros(1_709_514_000_123_456)
        assert ts == datetime(2024, 3, 4, 1, 0, 0, 123456, tzinfo=timezone.utc)

    def test_unrepresentable_timestamp(self):
        with pytest.raises(DecodeError) as exc:
            packet_time_from_micros(10 ** 20)
        assert exc.value.kind == ErrorKind.INVALID_DATE

    def test_unrepresentable_frame_timestamp(self, decoder, feed_frame):
        """Marked frame with an out-of-range timestamp is a decode error."""
        frame = Frame(ts_sec=10 ** 14, ts_usec=0, data=feed_frame())
        with pytest.raises(DecodeError) as exc:
            decoder.decode(frame)
        assert exc.value.kind == ErrorKind.INVALID_DATE


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
