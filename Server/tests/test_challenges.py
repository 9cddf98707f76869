from sudoku_server.services.errors import RoomFullError
from sudoku_server.services.room_service import get_room_service

from conftest import PUZZLE, SOLUTION


def send_challenge(client, headers, to_user_id, difficulty='Hard'):
    return client.post('/api/challenges', headers=headers, json={
        'toUserId': to_user_id,
        'difficulty': difficulty,
        'puzzle': PUZZLE,
        'solution': SOLUTION,
    })


def test_challenge_notifies_target(client, register):
    alice, alice_headers = register('alice')
    bob, bob_headers = register('bob')

    response = send_challenge(client, alice_headers, bob['id'])
    assert response.status_code == 201
    challenge = response.get_json()['challenge']
    assert challenge['status'] == 'pending'

    notifications = client.get(f"/api/notifications/{bob['id']}", headers=bob_headers).get_json()['notifications']
    assert len(notifications) == 1
    assert notifications[0]['type'] == 'challenge'
    assert notifications[0]['relatedId'] == challenge['id']
    assert 'alice' in notifications[0]['message']

    assert client.get(f"/api/notifications/{bob['id']}", headers=alice_headers).status_code == 403

    listed = client.get(f"/api/users/{alice['id']}/challenges", headers=alice_headers).get_json()['challenges']
    assert [c['id'] for c in listed] == [challenge['id']]


def test_challenge_guards(client, register):
    alice, alice_headers = register('alice')

    assert send_challenge(client, alice_headers, alice['id']).status_code == 400
    assert send_challenge(client, alice_headers, 'user_missing').status_code == 404
    assert send_challenge(client, alice_headers, alice['id'], difficulty='Nightmare').status_code == 400


def test_accepting_creates_two_player_room(client, register):
    alice, alice_headers = register('alice')
    bob, bob_headers = register('bob')
    challenge = send_challenge(client, alice_headers, bob['id']).get_json()['challenge']

    assert client.post(f"/api/challenges/{challenge['id']}/accept", headers=alice_headers).status_code == 403

    response = client.post(f"/api/challenges/{challenge['id']}/accept", headers=bob_headers)

    assert response.status_code == 200
    room = response.get_json()['room']
    assert room['hostId'] == alice['id']
    assert room['maxPlayers'] == 2
    assert room['difficulty'] == 'Hard'
    assert [p['userId'] for p in room['players']] == [alice['id'], bob['id']]

    assert client.get(f"/api/notifications/{bob['id']}", headers=bob_headers).get_json()['notifications'] == []
    assert client.post(f"/api/challenges/{challenge['id']}/accept", headers=bob_headers).status_code == 404


def test_failed_accept_leaves_no_room_behind(client, register, monkeypatch):
    alice, alice_headers = register('alice')
    bob, bob_headers = register('bob')
    challenge = send_challenge(client, alice_headers, bob['id']).get_json()['challenge']

    def refuse_seat(*args, **kwargs):
        raise RoomFullError()

    monkeypatch.setattr(get_room_service(), 'join_room_by_id', refuse_seat)
    response = client.post(f"/api/challenges/{challenge['id']}/accept", headers=bob_headers)

    assert response.status_code == 400
    assert client.get(f"/api/users/{alice['id']}/rooms", headers=alice_headers).get_json()['rooms'] == []
    listed = client.get(f"/api/users/{bob['id']}/challenges", headers=bob_headers).get_json()['challenges']
    assert [c['id'] for c in listed] == [challenge['id']]


def test_declining_clears_challenge(client, register):
    alice, alice_headers = register('alice')
    bob, bob_headers = register('bob')
    challenge = send_challenge(client, alice_headers, bob['id']).get_json()['challenge']

    response = client.post(f"/api/challenges/{challenge['id']}/decline", headers=bob_headers)

    assert response.status_code == 200
    assert client.get(f"/api/users/{bob['id']}/challenges", headers=bob_headers).get_json()['challenges'] == []


def test_notifications_can_be_marked_read(client, register):
    alice, alice_headers = register('alice')
    bob, bob_headers = register('bob')
    send_challenge(client, alice_headers, bob['id'])
    send_challenge(client, alice_headers, bob['id'], difficulty='Easy')
    first, second = client.get(f"/api/notifications/{bob['id']}", headers=bob_headers).get_json()['notifications']

    assert client.post(f"/api/notifications/{first['id']}/read", headers=alice_headers).status_code == 403
    marked = client.post(f"/api/notifications/{first['id']}/read", headers=bob_headers)
    assert marked.get_json()['notification']['read'] is True

    all_read = client.post(f"/api/notifications/{bob['id']}/read-all", headers=bob_headers)
    assert all_read.get_json()['updated'] == 1
