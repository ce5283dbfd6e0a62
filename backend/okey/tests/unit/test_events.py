import pytest
from pydantic import ValidationError

from okey.logic.enums import DrawSource, GameErrorCode, MatchEndReason
from okey.logic.events import (
    BroadcastTarget,
    DiscardEvent,
    ErrorEvent,
    EventType,
    HandDealtEvent,
    MatchEndedEvent,
    PlayerDrewEvent,
    SeatTarget,
    ServiceEvent,
    convert_events,
    extract_match_result,
    parse_event_target,
)
from okey.logic.match import get_player_view, init_match
from okey.logic.state import MatchResult
from okey.messaging.event_payload import service_event_payload
from okey.tests.conftest import TEST_SEED


class TestParseEventTarget:
    def test_all(self):
        assert parse_event_target("all") == BroadcastTarget()

    def test_seat(self):
        assert parse_event_target("seat_3") == SeatTarget(seat=3)

    @pytest.mark.parametrize("value", ["everyone", "seat_x", "seat_-1"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_event_target(value)


class TestServiceEvent:
    def test_convert_events_uses_event_target(self):
        events = convert_events(
            [
                DiscardEvent(seat=0, tile_id=5),
                ErrorEvent(code=GameErrorCode.NOT_YOUR_TURN, message="wait", target="seat_2"),
            ],
        )

        assert [e.event for e in events] == [EventType.DISCARD, EventType.ERROR]
        assert [e.target for e in events] == [BroadcastTarget(), SeatTarget(seat=2)]

    def test_event_type_must_match_data(self):
        with pytest.raises(ValidationError, match="does not match"):
            ServiceEvent(event=EventType.TURN, data=DiscardEvent(seat=0, tile_id=5))

    def test_extract_match_result(self):
        result = MatchResult(reason=MatchEndReason.ABORTED)
        events = convert_events([DiscardEvent(seat=0, tile_id=5), MatchEndedEvent(result=result)])

        assert extract_match_result(events) == result
        assert extract_match_result(events[:1]) is None


class TestEventPayload:
    def test_routing_fields_dropped(self):
        payload = service_event_payload(convert_events([DiscardEvent(seat=1, tile_id=7)])[0])

        assert payload == {"type": "discard", "seat": 1, "tile_id": 7}

    def test_none_fields_dropped(self):
        event = PlayerDrewEvent(seat=1, source=DrawSource.STOCK, stock_count=40)

        payload = service_event_payload(convert_events([event])[0])

        assert payload == {"type": "player_drew", "seat": 1, "source": "stock", "stock_count": 40}

    def test_dealt_view_flattened(self):
        state = init_match(["A", "B", "C", "D"], TEST_SEED)
        event = HandDealtEvent(target="seat_1", view=get_player_view(state, 1))

        payload = service_event_payload(convert_events([event])[0])

        assert payload["type"] == "hand_dealt"
        assert "view" not in payload
        assert payload["seat"] == 1
        assert payload["okey"] == {"colour": state.okey.colour.value, "number": state.okey.number}
        assert len(payload["players"]) == 4

    def test_match_result_serialised(self):
        result = MatchResult(reason=MatchEndReason.FINISHED, winner_seat=2, final_tile=9, penalties=(4, 5, 0, 6))

        payload = service_event_payload(convert_events([MatchEndedEvent(result=result)])[0])

        assert payload["result"]["reason"] == "finished"
        assert payload["result"]["penalties"] == [4, 5, 0, 6]
