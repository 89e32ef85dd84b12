import random
import string
import threading
from typing import Dict, Optional

from .room import HP_RANGE, MISSING, GameRoom


ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


class RoomRegistry:
    """Owns the live rooms of one server process.

    Rooms are looked up by code or by connection id. A per-room re-entrant
    lock lets the socket layer apply one request at a time to each room
    while different rooms proceed independently.
    """

    def __init__(self, rng: Optional[random.Random] = None, code_length: int = 6,
                 min_players: int = 2, hp_range=HP_RANGE):
        self.rng = rng or random.Random()
        self.code_length = code_length
        self.min_players = min_players
        self.hp_range = tuple(hp_range)
        self.rooms: Dict[str, GameRoom] = {}
        self._room_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self.rooms)

    def generate_room_code(self) -> str:
        """Generate a room code not used by any live room."""
        while True:
            code = ''.join(self.rng.choices(ROOM_CODE_ALPHABET, k=self.code_length))
            if code not in self.rooms:
                return code

    def create(self, host_name: str, sid: str, skin=MISSING):
        """Create a room seating `host_name` as its host.

        Returns `(room, player)`.
        """
        with self._lock:
            room = GameRoom(
                self.generate_room_code(),
                rng=random.Random(self.rng.random()),
                min_players=self.min_players,
                hp_range=self.hp_range,
            )
            player, _ = room.add_player(host_name, sid, skin)
            self.rooms[room.room_id] = room
            self._room_locks[room.room_id] = threading.RLock()
        return room, player

    def get(self, room_id: Optional[str]) -> Optional[GameRoom]:
        if not room_id:
            return None
        return self.rooms.get(room_id.strip().upper())

    def find_by_sid(self, sid: str) -> Optional[GameRoom]:
        with self._lock:
            for room in list(self.rooms.values()):
                if room.get_player_by_sid(sid) is not None:
                    return room
        return None

    def lock(self, room_id: str) -> Optional[threading.RLock]:
        """The lock guarding a live room, or None once it has been discarded."""
        with self._lock:
            return self._room_locks.get(room_id)

    def discard_if_empty(self, room: GameRoom) -> bool:
        """Drop `room` once nobody is left on its roster."""
        with self._lock:
            if not room.is_empty() or self.rooms.get(room.room_id) is not room:
                return False
            del self.rooms[room.room_id]
            self._room_locks.pop(room.room_id, None)
            return True
