from sudoku_server.websocket.sessions import get_connection_registry

from conftest import PUZZLE, SOLUTION, blank_cells


def received(socket_client, event):
    return [packet['args'][0] for packet in socket_client.get_received() if packet['name'] == event]


def create_room(client, headers, max_players=2, difficulty='Medium'):
    response = client.post('/api/rooms/create', headers=headers, json={
        'difficulty': difficulty,
        'puzzle': PUZZLE,
        'solution': SOLUTION,
        'maxPlayers': max_players,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['room']


# ----------------------------------------------------------------------
# Auth and users
# ----------------------------------------------------------------------

def test_register_login_verify(client, register):
    user, headers = register('Alice')
    assert 'password' not in user
    assert user['level'] == 1

    duplicate = client.post('/api/auth/register', json={'username': 'alice', 'password': 'another1'})
    assert duplicate.status_code == 400

    bad_login = client.post('/api/auth/login', json={'username': 'alice', 'password': 'wrong-pass'})
    assert bad_login.status_code == 401

    login = client.post('/api/auth/login', json={'username': 'ALICE', 'password': 'secret123'})
    assert login.status_code == 200
    assert login.get_json()['user']['id'] == user['id']

    verify = client.get('/api/auth/verify', headers=headers)
    assert verify.get_json()['user'] == {'id': user['id'], 'username': 'Alice'}
    assert client.get('/api/auth/verify').status_code == 401


def test_profile_is_public_but_only_self_editable(client, register):
    alice, alice_headers = register('alice')
    bob, _ = register('bob')

    profile = client.get(f"/api/users/{alice['id']}")
    assert profile.status_code == 200
    assert 'password' not in profile.get_json()['user']
    assert client.get('/api/users/user_missing').status_code == 404

    forbidden = client.put(f"/api/users/{bob['id']}", headers=alice_headers, json={'profileColor': '#000'})
    assert forbidden.status_code == 403

    updated = client.put(f"/api/users/{alice['id']}", headers=alice_headers,
                         json={'profileColor': '#abcdef', 'xp': 99999})
    assert updated.get_json()['user']['profileColor'] == '#abcdef'
    assert updated.get_json()['user']['xp'] == 0


# ----------------------------------------------------------------------
# Rooms over HTTP
# ----------------------------------------------------------------------

def test_room_endpoints_map_guard_failures_to_status_codes(client, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    third, third_headers = register('third')

    assert client.post('/api/rooms/create', json={}).status_code == 401
    bad = client.post('/api/rooms/create', headers=host_headers, json={'difficulty': 'Medium'})
    assert bad.status_code == 400

    room = create_room(client, host_headers)
    assert client.get('/api/rooms/room_missing').status_code == 404
    assert client.post('/api/rooms/join', headers=guest_headers, json={'code': '000000'}).status_code == 404

    joined = client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})
    assert joined.status_code == 200
    assert len(joined.get_json()['room']['players']) == 2

    full = client.post('/api/rooms/join', headers=third_headers, json={'code': room['code']})
    assert full.status_code == 400
    assert full.get_json() == {'success': False, 'error': 'Room is full.'}

    assert client.post(f"/api/rooms/{room['id']}/start", headers=guest_headers).status_code == 403
    kick = client.post(f"/api/rooms/{room['id']}/kick", headers=guest_headers,
                       json={'kickedPlayerId': host['id']})
    assert kick.status_code == 403
    assert client.delete(f"/api/rooms/{room['id']}", headers=guest_headers).status_code == 403

    ready = client.post(f"/api/rooms/{room['id']}/ready", headers=guest_headers,
                        json={'userId': guest['id'], 'isReady': True})
    assert ready.status_code == 200
    other_ready = client.post(f"/api/rooms/{room['id']}/ready", headers=guest_headers,
                              json={'userId': host['id'], 'isReady': False})
    assert other_ready.status_code == 403

    not_a_flag = client.post(f"/api/rooms/{room['id']}/ready", headers=guest_headers,
                             json={'userId': guest['id'], 'isReady': 'false'})
    assert not_a_flag.status_code == 400
    players = client.get(f"/api/rooms/{room['id']}").get_json()['room']['players']
    assert players[1]['isReady'] is True

    started = client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)
    assert started.get_json()['room']['status'] == 'active'
    assert client.post(f"/api/rooms/{room['id']}/start", headers=host_headers).status_code == 409

    deleted = client.delete(f"/api/rooms/{room['id']}", headers=host_headers)
    assert deleted.get_json() == {'success': True, 'deleted': True}


def test_http_progress_claim_is_validated(client, register):
    host, host_headers = register('host')
    room = create_room(client, host_headers, max_players=1)
    client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)

    response = client.post(f"/api/rooms/{room['id']}/progress", headers=host_headers, json={
        'userId': host['id'], 'progress': 100, 'timeElapsed': 33, 'finished': True,
    })

    assert response.status_code == 200
    player = response.get_json()['room']['players'][0]
    assert player['progress'] == 100
    assert player['timeElapsed'] == 33
    assert player['finished'] is False


# ----------------------------------------------------------------------
# Real-time channel
# ----------------------------------------------------------------------

def test_single_survivor_scenario_end_to_end(app, client, socketio, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    room = create_room(client, host_headers, max_players=2)

    host_socket = socketio.test_client(app, auth={'token': host_headers['Authorization'][7:]})
    guest_socket = socketio.test_client(app)
    assert host_socket.is_connected()
    guest_socket.emit('user:connected', guest['id'])
    host_socket.emit('room:join', {'roomId': room['id']})
    guest_socket.emit('room:join', room['id'])

    client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})
    updates = received(host_socket, 'room:update')
    assert len(updates[-1]['players']) == 2

    client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)
    assert received(guest_socket, 'game:start')[0]['status'] == 'active'

    for row, col in blank_cells():
        guest_socket.emit('game:move', {
            'roomId': room['id'], 'userId': guest['id'], 'row': row, 'col': col, 'value': SOLUTION[row][col],
        })
    guest_socket.emit('game:progress_update', {'roomId': room['id'], 'userId': guest['id'], 'progress': 100})
    progress = received(host_socket, 'game:progress')
    assert progress[-1]['players'][1]['progress'] == 100

    guest_socket.emit('game:validate_win', {'roomId': room['id'], 'userId': guest['id'], 'time': 75})
    after_win = received(host_socket, 'room:update')[-1]
    assert after_win['status'] == 'active'
    assert after_win['players'][1]['finished'] is True

    client.post(f"/api/rooms/{room['id']}/leave", headers=host_headers)
    final = received(guest_socket, 'room:update')[-1]
    assert final['status'] == 'finished'
    assert len(final['players']) == 1
    winner = final['players'][0]
    assert (winner['userId'], winner['finished'], winner['placement']) == (guest['id'], True, 1)

    profile = client.get(f"/api/users/{guest['id']}").get_json()['user']
    assert profile['xp'] == 500


def test_authenticated_socket_cannot_act_for_someone_else(app, client, socketio, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    room = create_room(client, host_headers)
    client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})
    client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)

    host_socket = socketio.test_client(app, auth={'token': host_headers['Authorization'][7:]})
    host_socket.emit('game:move', {'roomId': room['id'], 'userId': guest['id'], 'row': 0, 'col': 1, 'value': 2})

    grids = client.get(f"/api/rooms/{room['id']}").get_json()['room']['grids']
    assert grids[guest['id']][0][1] is None


def test_bad_token_is_refused_on_connect(app, socketio):
    socket_client = socketio.test_client(app, auth={'token': 'not-a-token'})
    assert not socket_client.is_connected()


def test_kicked_player_is_told_directly(app, client, socketio, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    room = create_room(client, host_headers)
    client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})

    guest_socket = socketio.test_client(app)
    guest_socket.emit('user:connected', {'userId': guest['id']})

    response = client.post(f"/api/rooms/{room['id']}/kick", headers=host_headers,
                           json={'kickedPlayerId': guest['id']})

    assert response.status_code == 200
    assert received(guest_socket, 'room:you_were_kicked') == [{'roomId': room['id']}]
    assert [p['userId'] for p in response.get_json()['room']['players']] == [host['id']]


def test_play_again_resolves_one_room(app, client, socketio, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    room = create_room(client, host_headers)
    client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})
    client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)
    client.post(f"/api/rooms/{room['id']}/leave", headers=host_headers)

    host_socket = socketio.test_client(app)
    guest_socket = socketio.test_client(app)
    host_socket.emit('room:play_again', {'oldRoomId': room['id'], 'user': host})
    guest_socket.emit('room:play_again', {'oldRoomId': room['id'], 'user': guest})

    host_new = received(host_socket, 'rematch:created')[0]['newRoomId']
    guest_new = received(guest_socket, 'rematch:created')[0]['newRoomId']
    assert host_new == guest_new

    rematch = client.get(f'/api/rooms/{host_new}').get_json()['room']
    assert rematch['status'] == 'waiting'
    assert rematch['rematchOf'] == room['id']
    assert {p['userId'] for p in rematch['players']} == {host['id'], guest['id']}

    guest_socket.emit('room:play_again', {'oldRoomId': 'room_missing', 'user': guest})
    assert received(guest_socket, 'error') == [{'error': 'Room not found'}]


def test_health_reports_rooms_and_connections(app, client, socketio, register):
    _, headers = register('host')
    create_room(client, headers)
    socket_client = socketio.test_client(app)
    socket_client.emit('user:connected', 'someone')

    body = client.get('/api/health').get_json()

    assert body['rooms']['waiting'] == 1
    assert body['connections'] == 1


def test_socket_events_ignore_non_string_room_ids(app, client, socketio, register):
    host, host_headers = register('host')
    room = create_room(client, host_headers, max_players=1)
    client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)
    socket_client = socketio.test_client(app)

    socket_client.emit('game:move', {'roomId': ['x'], 'userId': host['id'], 'row': 0, 'col': 1, 'value': 2})
    socket_client.emit('game:progress_update', {'roomId': {'id': room['id']}, 'userId': host['id'], 'progress': 50})
    socket_client.emit('game:move', {'roomId': room['id'], 'userId': ['x'], 'row': 0, 'col': 1, 'value': 2})
    socket_client.emit('room:play_again', {'oldRoomId': ['x'], 'user': host})
    socket_client.emit('room:play_again', {'oldRoomId': room['id'], 'user': 'host'})

    assert socket_client.is_connected()
    assert received(socket_client, 'error') == [{'error': 'Room ID is required'}, {'error': 'User is required'}]
    assert received(socket_client, 'rematch:created') == []
    snapshot = client.get(f"/api/rooms/{room['id']}").get_json()['room']
    assert snapshot['grids'][host['id']][0][1] is None
    assert snapshot['players'][0]['progress'] == 0


def test_late_play_again_still_gets_the_rematch_room(app, client, socketio, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    room = create_room(client, host_headers)
    client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})
    client.post(f"/api/rooms/{room['id']}/start", headers=host_headers)

    host_socket = socketio.test_client(app)
    host_socket.emit('room:play_again', {'oldRoomId': room['id'], 'user': host})
    new_room_id = received(host_socket, 'rematch:created')[0]['newRoomId']
    assert client.post(f'/api/rooms/{new_room_id}/start', headers=host_headers).status_code == 200

    guest_socket = socketio.test_client(app)
    guest_socket.emit('room:play_again', {'oldRoomId': room['id'], 'user': guest})

    assert received(guest_socket, 'rematch:created') == [{'newRoomId': new_room_id}]
    assert received(guest_socket, 'error') == []
    rematch = client.get(f'/api/rooms/{new_room_id}').get_json()['room']
    assert [p['userId'] for p in rematch['players']] == [host['id']]


def test_disconnect_prunes_the_session_map(app, client, socketio, register):
    host, host_headers = register('host')
    guest, guest_headers = register('guest')
    room = create_room(client, host_headers)
    client.post('/api/rooms/join', headers=guest_headers, json={'code': room['code']})

    guest_socket = socketio.test_client(app)
    guest_socket.emit('user:connected', guest['id'])
    assert get_connection_registry().sid_for(guest['id']) is not None

    guest_socket.disconnect()

    assert get_connection_registry().sid_for(guest['id']) is None
    players = client.get(f"/api/rooms/{room['id']}").get_json()['room']['players']
    assert [p['userId'] for p in players] == [host['id'], guest['id']]

    response = client.post(f"/api/rooms/{room['id']}/kick", headers=host_headers,
                           json={'kickedPlayerId': guest['id']})
    assert response.status_code == 200
    assert app.extensions['room_service'].channel.you_were_kicked(guest['id'], room['id']) is False
