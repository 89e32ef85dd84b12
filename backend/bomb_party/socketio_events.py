from numbers import Real
from typing import Optional

from flask import current_app, request
from flask_socketio import emit, join_room

from bomb_party import socketio
from bomb_party.errors import (
    ALREADY_STARTED,
    CREATE_FAILED,
    INVALID_REQUEST,
    INVALID_TARGET,
    NEED_MORE_PLAYERS,
    NOT_AVAILABLE_NOW,
    NOT_ENOUGH_PLAYERS,
    NOT_HOST,
    NOT_YOUR_TURN,
    ROOM_NOT_FOUND,
    Rejected,
    rejected,
)
from bomb_party.models import PASS, PLAYING, REVERSE, WAITING
from bomb_party.services.games import MISSING, GameRoom, RoomRegistry


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry() -> RoomRegistry:
    return current_app.extensions['room_registry']


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _clean_name(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _skin_from(data: dict):
    return data['skin'] if 'skin' in data else MISSING


# Machine rejections reported under the code the client protocol uses
START_CODES = {NEED_MORE_PLAYERS: NOT_ENOUGH_PLAYERS, ALREADY_STARTED: NOT_ENOUGH_PLAYERS}
PASS_CODES = {NOT_AVAILABLE_NOW: INVALID_TARGET}


def _seated_elsewhere(registry: RoomRegistry, sid: str, room: Optional[GameRoom] = None,
                      name: Optional[str] = None) -> bool:
    """True when `sid` already holds a seat other than `name` in `room`."""
    bound = registry.find_by_sid(sid)
    if bound is None:
        return False
    if bound is not room:
        return True
    player = bound.get_player_by_sid(sid)
    return player is not None and player.name != name


def _reject(rejection: Rejected, action: str) -> dict:
    current_app.logger.info(f"[rejected] action={action} sid={_get_sid()} code={rejection.code}")
    return rejection.to_ack()


def _broadcast_state(room: GameRoom) -> None:
    emit('roomState', room.get_state(), to=room.room_id)


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    emit('connected', {'message': 'Connected', 'sid': _get_sid()})


def handle_create_room(data=None):
    data = _payload(data)
    name = _clean_name(data.get('name'))
    if not name:
        return _reject(Rejected(CREATE_FAILED), 'create')

    sid = _get_sid()
    registry = _registry()
    # A connection holds at most one seat across all rooms
    if _seated_elsewhere(registry, sid):
        return _reject(Rejected(INVALID_REQUEST, 'Already seated in a room'), 'create')
    room, player = registry.create(name, sid, _skin_from(data))
    join_room(room.room_id)
    current_app.logger.info(
        f"[create] room={room.room_id} host={name} hp={room.bomb.hp} thresholds={room.color_thresholds.to_dict()}"
    )
    _broadcast_state(room)
    return {'success': True, 'room_id': room.room_id, 'player': player.to_dict()}


def handle_join_room(data=None):
    data = _payload(data)
    room_id = data.get('room_id')
    name = _clean_name(data.get('name'))
    if not isinstance(room_id, str) or not name:
        return _reject(Rejected(INVALID_REQUEST), 'join')

    registry = _registry()
    room = registry.get(room_id)
    if room is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'join')

    lock = registry.lock(room.room_id)
    if lock is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'join')
    with lock:
        # The room may have emptied out while we waited for the lock
        if registry.get(room.room_id) is not room:
            return _reject(Rejected(ROOM_NOT_FOUND), 'join')
        if _seated_elsewhere(registry, _get_sid(), room, name):
            return _reject(Rejected(INVALID_REQUEST, 'Already seated in a room'), 'join')
        result = room.add_player(name, _get_sid(), _skin_from(data))
        if rejected(result):
            return _reject(result, 'join')
        player, reconnected = result
        join_room(room.room_id)
        if reconnected:
            current_app.logger.info(f"[reconnect] room={room.room_id} player={name}")
            emit('playerReconnected', player.name, to=room.room_id)
        else:
            current_app.logger.info(f"[join] room={room.room_id} player={name} seat={player.position}")
            emit('playerJoined', player.to_dict(), to=room.room_id)
        _broadcast_state(room)
        return {'success': True, 'room_id': room.room_id, 'player': player.to_dict(), 'reconnected': reconnected}


def handle_start_game(data=None):
    sid = _get_sid()
    registry = _registry()
    room = registry.find_by_sid(sid)
    if room is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'start')

    lock = registry.lock(room.room_id)
    if lock is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'start')
    with lock:
        player = room.get_player_by_sid(sid)
        if player is None:
            return _reject(Rejected(ROOM_NOT_FOUND), 'start')
        if not player.is_host:
            return _reject(Rejected(NOT_HOST), 'start')
        result = room.start_game()
        if rejected(result):
            result = Rejected(START_CODES.get(result.code, result.code))
            return _reject(result, 'start')

        current_app.logger.info(f"[start] room={room.room_id} players={len(room.players)}")
        emit('gameStarted', to=room.room_id)
        _broadcast_state(room)
        first = room.current_turn_player()
        if first:
            emit('turnChanged', first.name, to=room.room_id)
        return {'success': True}


def _advance_bomb(room: GameRoom, total_moves: int) -> None:
    move = room.move_bomb(total_moves)
    holder = room.bomb_holder()
    emit('bombMoved', {
        'from_index': move.from_index,
        'to_index': move.to_index,
        'steps': move.steps,
        'exploded_at_step': move.exploded_at_step,
        'damage': move.damage,
        'new_bomb_holder': holder.name if holder else '',
    }, to=room.room_id)

    if move.exploded:
        current_app.logger.info(
            f"[explode] room={room.room_id} loser={room.loser} winner={room.winner} damage={room.bomb.damage}/{room.bomb.hp}"
        )
        emit('bombExploded', {'loser_name': room.loser}, to=room.room_id)
    else:
        next_player = room.current_turn_player()
        if next_player:
            emit('turnChanged', next_player.name, to=room.room_id)


def handle_roll_dice(data=None):
    sid = _get_sid()
    registry = _registry()
    room = registry.find_by_sid(sid)
    if room is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'roll')

    lock = registry.lock(room.room_id)
    if lock is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'roll')
    with lock:
        player = room.get_player_by_sid(sid)
        if player is None:
            return _reject(Rejected(ROOM_NOT_FOUND), 'roll')
        if room.phase == PLAYING and room.current_turn_player() is not player:
            return _reject(Rejected(NOT_YOUR_TURN), 'roll')
        dice = room.roll_dice()
        if rejected(dice):
            return _reject(dice, 'roll')

        current_app.logger.info(
            f"[roll] room={room.room_id} player={player.name} dice={dice.dice1},{dice.dice2} effect={dice.effect}"
        )
        emit('diceResult', dice.to_dict(), to=room.room_id)
        if dice.effect == REVERSE:
            emit('directionChanged', room.direction, to=room.room_id)
        elif dice.effect == PASS:
            emit('waitingForPassChoice', player.name, to=room.room_id)
        else:
            _advance_bomb(room, dice.total_moves)
        _broadcast_state(room)
        return {'success': True, 'dice': dice.to_dict()}


def handle_pass_bomb(data=None):
    data = _payload(data)
    target_name = _clean_name(data.get('target_name'))
    sid = _get_sid()
    registry = _registry()
    room = registry.find_by_sid(sid)
    if room is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'pass')

    lock = registry.lock(room.room_id)
    if lock is None:
        return _reject(Rejected(ROOM_NOT_FOUND), 'pass')
    with lock:
        player = room.get_player_by_sid(sid)
        if player is None:
            return _reject(Rejected(ROOM_NOT_FOUND), 'pass')
        if room.phase == PLAYING and room.current_turn_player() is not player:
            return _reject(Rejected(NOT_YOUR_TURN), 'pass')
        if not target_name:
            return _reject(Rejected(INVALID_TARGET), 'pass')
        result = room.pass_bomb_to(target_name)
        if rejected(result):
            return _reject(Rejected(PASS_CODES.get(result.code, result.code)), 'pass')

        current_app.logger.info(f"[pass] room={room.room_id} from={player.name} to={target_name}")
        emit('bombMoved', {
            'from_index': -1,
            'to_index': room.bomb_holder_index,
            'steps': [room.bomb_holder_index],
            'exploded_at_step': -1,
            'damage': 0,
            'new_bomb_holder': target_name,
        }, to=room.room_id)
        emit('turnChanged', room.current_turn_player().name, to=room.room_id)
        _broadcast_state(room)
        return {'success': True}


def _valid_rotation(data) -> bool:
    return all(
        isinstance(data.get(axis), Real) and not isinstance(data.get(axis), bool)
        for axis in ('x', 'y')
    )


def handle_update_head_rotation(data=None):
    data = _payload(data)
    if not _valid_rotation(data):
        return
    sid = _get_sid()
    registry = _registry()
    room = registry.find_by_sid(sid)
    if room is None:
        return

    lock = registry.lock(room.room_id)
    if lock is None:
        return
    with lock:
        player = room.update_head_rotation(sid, data)
        if player is None:
            return
        emit('playerHeadRotation', {
            'player_name': player.name,
            'rotation': dict(player.head_rotation),
        }, to=room.room_id, include_self=False)


def handle_update_skin(data=None):
    if not isinstance(data, dict):
        return
    skin = data.get('skin')
    if skin is not None and not isinstance(skin, str):
        return
    sid = _get_sid()
    registry = _registry()
    room = registry.find_by_sid(sid)
    if room is None:
        return

    lock = registry.lock(room.room_id)
    if lock is None:
        return
    with lock:
        player = room.update_skin(sid, skin)
        if player is None:
            return
        emit('playerSkinUpdated', {'player_name': player.name, 'skin': skin}, to=room.room_id, include_self=False)


def handle_disconnect(*args):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid}")
    registry = _registry()
    room = registry.find_by_sid(sid)
    if room is None:
        return

    lock = registry.lock(room.room_id)
    if lock is None:
        return
    with lock:
        was_waiting = room.phase == WAITING
        player = room.remove_player(sid)
        if player is None:
            return
        if was_waiting:
            current_app.logger.info(f"[leave] room={room.room_id} player={player.name}")
            emit('playerLeft', player.name, to=room.room_id)
        if registry.discard_if_empty(room):
            current_app.logger.info(f"[discard] room={room.room_id} (empty)")
            return
        _broadcast_state(room)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on `namespace`."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createRoom', handle_create_room, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('rollDice', handle_roll_dice, namespace=namespace)
    socketio.on_event('passBomb', handle_pass_bomb, namespace=namespace)
    socketio.on_event('updateHeadRotation', handle_update_head_rotation, namespace=namespace)
    socketio.on_event('updateSkin', handle_update_skin, namespace=namespace)
