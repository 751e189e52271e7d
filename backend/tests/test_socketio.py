def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    # Flush any initial events
    try:
        sio_client.get_received('/ws')
    except Exception:
        pass

    # Join a round room and expect a joined ack
    sio_client.emit('join_round', {'round_id': 'abc123'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] in ('connected', 'joined') for pkt in received)


def test_round_events_reach_the_room(sio_client, client):
    state = client.post('/api/rounds/start', json={'difficulty': 'easy'}).get_json()
    sio_client.emit('join_round', {'round_id': state['id']}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    index = state['grid'].index(state['target'])
    client.post(f"/api/rounds/{state['id']}/tap", json={'index': index})
    events = sio_client.get_received('/ws')
    names = [e['name'] for e in events]
    assert 'score_changed' in names
    assert 'grid_changed' in names
    score_event = next(e for e in events if e['name'] == 'score_changed')
    assert score_event['args'][0]['round_id'] == state['id']
    assert score_event['args'][0]['score'] == 1

    client.post(f"/api/rounds/{state['id']}/exit")
    events = sio_client.get_received('/ws')
    ended = next(e for e in events if e['name'] == 'round_ended')
    assert ended['args'][0]['reason'] == 'exit'


def test_owner_disconnect_discards_round(flask_app, client):
    state = client.post('/api/rounds/start', json={'difficulty': 'easy'}).get_json()

    from colormatch import socketio as _sio
    owner = _sio.test_client(flask_app, namespace='/ws')
    owner.emit('join_round', {'round_id': state['id'], 'is_owner': True}, namespace='/ws')

    # Disconnect owner -> round is torn down
    owner.disconnect(namespace='/ws')
    assert client.get(f"/api/rounds/{state['id']}").status_code == 404


def test_viewer_disconnect_keeps_round(flask_app, client):
    state = client.post('/api/rounds/start', json={'difficulty': 'easy'}).get_json()

    from colormatch import socketio as _sio
    viewer = _sio.test_client(flask_app, namespace='/ws')
    viewer.emit('join_round', {'round_id': state['id']}, namespace='/ws')
    viewer.disconnect(namespace='/ws')
    assert client.get(f"/api/rounds/{state['id']}").status_code == 200
