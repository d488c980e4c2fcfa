"""
Tests for calendar events and the calendar WebSocket
"""
import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import add_collaborator


def event_payload(**overrides):
    payload = {
        'title': 'Group meeting',
        'start_date': '2024-06-03T09:00:00',
        'end_date': '2024-06-03T10:00:00',
    }
    payload.update(overrides)
    return payload


def create_event(client, headers, **overrides):
    response = client.post('/api/calendar-events', json=event_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCalendarEvents:
    def test_create_with_defaults(self, client, researcher):
        event = create_event(client, researcher['headers'])

        assert event['creator_id'] == researcher['user']['id']
        assert event['color'] == '#4285F4'
        assert event['recurrence'] == 'none'
        assert event['status'] == 'confirmed'
        assert event['attendees'] == []

    def test_timezone_aware_dates_stored_as_utc(self, client, researcher):
        event = create_event(
            client, researcher['headers'],
            start_date='2024-06-03T11:00:00+02:00', end_date='2024-06-03T12:00:00+02:00',
        )

        assert event['start_date'] == '2024-06-03T09:00:00'

    def test_end_before_start_rejected(self, client, researcher):
        response = client.post(
            '/api/calendar-events',
            json=event_payload(start_date='2024-06-03T10:00:00', end_date='2024-06-03T09:00:00'),
            headers=researcher['headers'],
        )
        assert response.status_code == 400

        event = create_event(client, researcher['headers'])
        response = client.put(
            f"/api/calendar-events/{event['id']}",
            json={'end_date': '2024-06-01T00:00:00'},
            headers=researcher['headers'],
        )
        assert response.status_code == 400

    def test_unknown_attendee_rejected(self, client, researcher):
        response = client.post(
            '/api/calendar-events', json=event_payload(attendees=[999]), headers=researcher['headers']
        )

        assert response.status_code == 400

    def test_linking_project_needs_create_rights(self, client, researcher, outsider, project):
        response = client.post(
            '/api/calendar-events', json=event_payload(project_id=project['id']), headers=outsider['headers']
        )
        assert response.status_code == 403

        response = client.post(
            '/api/calendar-events', json=event_payload(project_id=404), headers=researcher['headers']
        )
        assert response.status_code == 400

    def test_experiment_must_match_project(self, client, researcher, project):
        other = client.post('/api/projects', json={'name': 'Other'}, headers=researcher['headers']).json()
        experiment = client.post(
            '/api/experiments', json={'name': 'E', 'project_id': other['id']}, headers=researcher['headers']
        ).json()

        response = client.post(
            '/api/calendar-events',
            json=event_payload(project_id=project['id'], experiment_id=experiment['id']),
            headers=researcher['headers'],
        )

        assert response.status_code == 400

    def test_visibility(self, client, admin, researcher, outsider, project):
        private = create_event(client, researcher['headers'], title='Private')
        invited = create_event(client, researcher['headers'], title='Invited', attendees=[outsider['user']['id']])
        linked = create_event(client, researcher['headers'], title='Project', project_id=project['id'])

        titles = {e['title'] for e in client.get('/api/calendar-events', headers=outsider['headers']).json()}
        assert titles == {'Invited'}

        add_collaborator(client, project['id'], outsider['user']['id'], 'Viewer', researcher['headers'])
        titles = {e['title'] for e in client.get('/api/calendar-events', headers=outsider['headers']).json()}
        assert titles == {'Invited', 'Project'}

        assert len(client.get('/api/calendar-events', headers=admin['headers']).json()) == 3
        assert client.get(f"/api/calendar-events/{private['id']}", headers=outsider['headers']).status_code == 403
        assert client.get(f"/api/calendar-events/{invited['id']}", headers=outsider['headers']).status_code == 200
        assert client.get(f"/api/calendar-events/{linked['id']}", headers=outsider['headers']).status_code == 200

    def test_range_filter_uses_overlap(self, client, researcher):
        headers = researcher['headers']
        create_event(client, headers, title='Morning', start_date='2024-06-03T08:00:00', end_date='2024-06-03T09:30:00')
        create_event(client, headers, title='Next week', start_date='2024-06-10T08:00:00', end_date='2024-06-10T09:00:00')

        response = client.get(
            '/api/calendar-events',
            params={'start_date': '2024-06-03T09:00:00', 'end_date': '2024-06-04T00:00:00'},
            headers=headers,
        )

        assert [e['title'] for e in response.json()] == ['Morning']

    def test_attendee_cannot_edit_or_delete(self, client, researcher, outsider):
        event = create_event(client, researcher['headers'], attendees=[outsider['user']['id']])
        url = f"/api/calendar-events/{event['id']}"

        assert client.put(url, json={'title': 'Mine now'}, headers=outsider['headers']).status_code == 403
        assert client.delete(url, headers=outsider['headers']).status_code == 403

    def test_update_and_delete(self, client, researcher):
        event = create_event(client, researcher['headers'])
        url = f"/api/calendar-events/{event['id']}"

        response = client.put(url, json={'title': 'Lab meeting', 'status': 'tentative'}, headers=researcher['headers'])
        assert response.status_code == 200
        assert response.json()['title'] == 'Lab meeting'
        assert response.json()['status'] == 'tentative'

        assert client.delete(url, headers=researcher['headers']).status_code == 204
        assert client.get(url, headers=researcher['headers']).status_code == 404


class TestCalendarSocket:
    def test_rejects_missing_or_bad_token(self, client, admin):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect('/ws/calendar') as ws:
                ws.receive_text()

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect('/ws/calendar?token=not-a-token') as ws:
                ws.receive_text()

    def test_ping_pong(self, client, admin):
        with client.websocket_connect(f"/ws/calendar?token={admin['token']}") as ws:
            ws.send_text('ping')
            assert ws.receive_text() == 'pong'

            ws.send_json({'type': 'ping'})
            assert ws.receive_json() == {'type': 'pong'}

    def test_changes_are_pushed_to_the_audience(self, client, researcher, outsider):
        with client.websocket_connect(f"/ws/calendar?token={outsider['token']}") as ws:
            event = create_event(client, researcher['headers'], attendees=[outsider['user']['id']])

            message = ws.receive_json()
            assert message['type'] == 'calendar_event.created'
            assert message['event']['id'] == event['id']

            client.put(
                f"/api/calendar-events/{event['id']}", json={'title': 'Moved'}, headers=researcher['headers']
            )
            message = ws.receive_json()
            assert message['type'] == 'calendar_event.updated'
            assert message['event']['title'] == 'Moved'

            client.delete(f"/api/calendar-events/{event['id']}", headers=researcher['headers'])
            message = ws.receive_json()
            assert message['type'] == 'calendar_event.deleted'
            assert message['event']['id'] == event['id']

    def test_private_changes_are_not_pushed_to_others(self, client, researcher, outsider):
        with client.websocket_connect(f"/ws/calendar?token={outsider['token']}") as ws:
            create_event(client, researcher['headers'], title='Private')
            shared = create_event(client, researcher['headers'], title='Shared', attendees=[outsider['user']['id']])

            message = ws.receive_json()
            assert message['event']['id'] == shared['id']
