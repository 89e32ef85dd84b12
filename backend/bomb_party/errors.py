"""Expected, user-facing request failures.

Rejections are returned, never raised: a rejected request leaves the room
exactly as it was and is reported back through the request's acknowledgment.
"""
from dataclasses import dataclass


ROOM_NOT_FOUND = 'room-not-found'
ROOM_LOCKED = 'room-locked'
CREATE_FAILED = 'create-failed'
INVALID_REQUEST = 'invalid-request'
NOT_HOST = 'not-host'
NEED_MORE_PLAYERS = 'need-more-players'
NOT_ENOUGH_PLAYERS = 'not-enough-players'
ALREADY_STARTED = 'already-started'
NOT_YOUR_TURN = 'not-your-turn'
NOT_AVAILABLE_NOW = 'not-available-now'
INVALID_TARGET = 'invalid-target'

MESSAGES = {
    ROOM_NOT_FOUND: 'Room not found',
    ROOM_LOCKED: 'Cannot join room (game already started)',
    CREATE_FAILED: 'Failed to create room',
    INVALID_REQUEST: 'Malformed request',
    NOT_HOST: 'Only host can start the game',
    NEED_MORE_PLAYERS: 'Cannot start game (need at least 2 players)',
    NOT_ENOUGH_PLAYERS: 'Cannot start game (need at least 2 players)',
    ALREADY_STARTED: 'Game has already started or is finished',
    NOT_YOUR_TURN: 'Not your turn',
    NOT_AVAILABLE_NOW: 'Cannot do that right now',
    INVALID_TARGET: 'Cannot pass bomb to that player',
}


@dataclass(frozen=True)
class Rejected:
    code: str
    message: str = ''

    def __post_init__(self):
        if not self.message:
            object.__setattr__(self, 'message', MESSAGES.get(self.code, self.code))

    def __bool__(self):
        return False

    def to_ack(self):
        return {'success': False, 'error': self.message, 'code': self.code}


def rejected(result) -> bool:
    return isinstance(result, Rejected)
