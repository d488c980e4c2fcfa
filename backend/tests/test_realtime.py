"""
Tests for the calendar broadcaster's fan-out and pruning
"""
import asyncio

from starlette.websockets import WebSocketDisconnect

from labnotes.services.realtime import CalendarBroadcaster


class FakeSocket:
    """Records sent messages, or fails every send with the given error."""

    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def accept(self):
        pass

    async def send_json(self, message):
        if self.error is not None:
            raise self.error
        self.sent.append(message)


def run(coro):
    return asyncio.run(coro)


class TestCalendarBroadcaster:
    def test_dead_client_does_not_block_later_ones(self):
        async def scenario():
            broadcaster = CalendarBroadcaster()
            gone = FakeSocket(WebSocketDisconnect(code=1006))
            broken = FakeSocket(OSError('broken pipe'))
            live = FakeSocket()
            await broadcaster.connect(gone, user_id=1)
            await broadcaster.connect(broken, user_id=2)
            await broadcaster.connect(live, user_id=3)

            delivered = await broadcaster.broadcast('created', {'id': 5}, None)
            return broadcaster, live, delivered

        broadcaster, live, delivered = run(scenario())

        assert delivered == 1
        assert live.sent == [{'type': 'calendar_event.created', 'event': {'id': 5}}]
        assert broadcaster.connection_count == 1

    def test_audience_and_admins(self):
        async def scenario():
            broadcaster = CalendarBroadcaster()
            attendee, stranger, admin = FakeSocket(), FakeSocket(), FakeSocket()
            await broadcaster.connect(attendee, user_id=1)
            await broadcaster.connect(stranger, user_id=2)
            await broadcaster.connect(admin, user_id=3, is_admin=True)

            delivered = await broadcaster.broadcast('updated', {'id': 9}, [1])
            return attendee, stranger, admin, delivered

        attendee, stranger, admin, delivered = run(scenario())

        assert delivered == 2
        assert len(attendee.sent) == 1
        assert stranger.sent == []
        assert len(admin.sent) == 1
