def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_room_count(client, registry):
    assert client.get('/api/rooms').get_json() == {'rooms': 0}
    registry.create('Alice', 'sid-1')
    assert client.get('/api/rooms').get_json() == {'rooms': 1}


def test_room_state(client, registry):
    room, _ = registry.create('Alice', 'sid-1')
    room.add_player('Bob', 'sid-2')
    res = client.get(f'/api/rooms/{room.room_id.lower()}/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['room_id'] == room.room_id
    assert state['phase'] == 'waiting'
    assert [p['name'] for p in state['players']] == ['Alice', 'Bob']
    assert state['players'][0]['is_host'] is True
    assert state['bomb']['damage'] == 0
    assert state['bomb_color'] == 'black'


def test_room_state_not_found(client):
    res = client.get('/api/rooms/NOPE00/state')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Room not found'}
