from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


def _registry():
    return current_app.extensions['room_registry']


@rooms.route('', methods=['GET'])
def list_rooms():
    """Number of live rooms. Room codes are not listed; joining needs one."""
    return jsonify({'rooms': len(_registry())})


@rooms.route('/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    """Returns the same snapshot that socket clients receive as `roomState`."""
    registry = _registry()
    room = registry.get(room_id)
    if not room:
        return jsonify({'error': 'Room not found'}), 404
    lock = registry.lock(room.room_id)
    if lock is None:
        return jsonify({'error': 'Room not found'}), 404
    with lock:
        return jsonify(room.get_state())
