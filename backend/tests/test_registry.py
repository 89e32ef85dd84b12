import random
import string
import threading

from bomb_party.services.games import RoomRegistry
from bomb_party.services.games.registry import ROOM_CODE_ALPHABET


def test_create_room_seats_host():
    registry = RoomRegistry(rng=random.Random(1))
    room, player = registry.create('Alice', 'sid-1', 'skin')
    assert player.name == 'Alice'
    assert player.is_host
    assert player.skin == 'skin'
    assert registry.get(room.room_id) is room
    assert len(registry) == 1


def test_room_codes_are_six_uppercase_alphanumerics():
    registry = RoomRegistry(rng=random.Random(2))
    for i in range(20):
        room, _ = registry.create(f"host{i}", f"sid-{i}")
        assert len(room.room_id) == 6
        assert set(room.room_id) <= set(string.ascii_uppercase + string.digits)
    assert len(registry) == 20


def test_room_code_regenerated_on_collision():
    # One-character codes force collisions quickly
    registry = RoomRegistry(rng=random.Random(3), code_length=1)
    codes = set()
    for i in range(len(ROOM_CODE_ALPHABET)):
        room, _ = registry.create(f"host{i}", f"sid-{i}")
        codes.add(room.room_id)
    assert len(codes) == len(ROOM_CODE_ALPHABET)


def test_lookup_is_case_insensitive():
    registry = RoomRegistry(rng=random.Random(4))
    room, _ = registry.create('Alice', 'sid-1')
    assert registry.get(room.room_id.lower()) is room
    assert registry.get(' ' + room.room_id + ' ') is room
    assert registry.get('NOPE00') is None
    assert registry.get(None) is None


def test_find_by_sid():
    registry = RoomRegistry(rng=random.Random(5))
    first, _ = registry.create('Alice', 'sid-1')
    second, _ = registry.create('Bob', 'sid-2')
    second.add_player('Cara', 'sid-3')
    assert registry.find_by_sid('sid-1') is first
    assert registry.find_by_sid('sid-3') is second
    assert registry.find_by_sid('sid-unknown') is None


def test_discard_only_empty_rooms():
    registry = RoomRegistry(rng=random.Random(6))
    room, _ = registry.create('Alice', 'sid-1')
    assert registry.discard_if_empty(room) is False
    room.remove_player('sid-1')
    assert registry.discard_if_empty(room) is True
    assert registry.get(room.room_id) is None
    assert registry.discard_if_empty(room) is False


def test_room_settings_propagate():
    registry = RoomRegistry(rng=random.Random(7), min_players=3, hp_range=(60, 60))
    room, _ = registry.create('Alice', 'sid-1')
    room.add_player('Bob', 'sid-2')
    assert room.bomb.hp == 60
    assert not room.start_game()
    room.add_player('Cara', 'sid-3')
    assert room.start_game() is True


def test_same_seed_same_rooms():
    a = RoomRegistry(rng=random.Random(8))
    b = RoomRegistry(rng=random.Random(8))
    room_a, _ = a.create('Alice', 'sid-1')
    room_b, _ = b.create('Alice', 'sid-1')
    assert room_a.room_id == room_b.room_id
    assert room_a.bomb.hp == room_b.bomb.hp
    assert room_a.color_thresholds == room_b.color_thresholds


def test_lock_is_per_room_and_reentrant():
    registry = RoomRegistry(rng=random.Random(9))
    first, _ = registry.create('Alice', 'sid-1')
    second, _ = registry.create('Bob', 'sid-2')
    assert registry.lock(first.room_id) is registry.lock(first.room_id)
    assert registry.lock(first.room_id) is not registry.lock(second.room_id)
    with registry.lock(first.room_id):
        with registry.lock(first.room_id):
            pass


def test_lock_is_gone_once_room_discarded():
    registry = RoomRegistry(rng=random.Random(10))
    room, _ = registry.create('Alice', 'sid-1')
    room.remove_player('sid-1')
    registry.discard_if_empty(room)
    assert registry.lock(room.room_id) is None
    assert registry.lock(room.room_id) is None
    assert registry._room_locks == {}
    assert registry.lock('NOPE00') is None


def test_find_by_sid_while_roster_changes():
    registry = RoomRegistry(rng=random.Random(11))
    room, _ = registry.create('Alice', 'sid-1')
    errors = []
    done = threading.Event()

    def churn():
        try:
            for i in range(2000):
                room.add_player(f"p{i}", f"sid-p{i}")
                room.remove_player(f"sid-p{i}")
        except Exception as exc:
            errors.append(exc)
        finally:
            done.set()

    worker = threading.Thread(target=churn)
    worker.start()
    while not done.is_set():
        try:
            assert registry.find_by_sid('sid-1') is room
        except Exception as exc:
            errors.append(exc)
            break
    worker.join()
    assert errors == []
