import random
from typing import List, Optional, Tuple, Union

from bomb_party.errors import (
    ALREADY_STARTED,
    INVALID_TARGET,
    NEED_MORE_PLAYERS,
    NOT_AVAILABLE_NOW,
    ROOM_LOCKED,
    Rejected,
)
from bomb_party.models import (
    FINISHED,
    HALVE,
    NORMAL,
    PASS,
    PLAYING,
    REVERSE,
    WAITING,
    Bomb,
    ColorThresholds,
    DiceResult,
    MoveResult,
    Player,
)


# Distinguishes "no skin sent" from an explicit None that clears the skin.
MISSING = object()

HP_RANGE = (50, 150)
YELLOW_RANGE = (20, 50)
RED_RANGE = (60, 90)


class GameRoom:
    """Authoritative state of one room.

    Every operation runs to completion without I/O. Callers must serialize
    access per room; rejected requests return a `Rejected` and leave the
    room untouched.

    `current_turn_index` and `bomb_holder_index` index into the alive
    ordering (alive players sorted by seat), not into the roster.
    """

    def __init__(self, room_id: str, rng: Optional[random.Random] = None,
                 min_players: int = 2, hp_range: Tuple[int, int] = HP_RANGE):
        self.room_id = room_id
        self.rng = rng or random.Random()
        self.min_players = min_players
        self.players: dict[str, Player] = {}
        hp = self.rng.randint(*hp_range)
        self.bomb = Bomb(hp=hp, max_hp=hp)
        self.color_thresholds = ColorThresholds(
            yellow=self.rng.randint(*YELLOW_RANGE),
            red=self.rng.randint(*RED_RANGE),
        )
        self.phase = WAITING
        self.direction = 1
        self.current_turn_index = 0
        self.bomb_holder_index = 0
        self.awaiting_pass_choice = False
        self.winner: Optional[str] = None
        self.loser: Optional[str] = None

    # ---- roster ----

    def add_player(self, name: str, sid: str, skin=MISSING) -> Union[Tuple[Player, bool], Rejected]:
        """Register `name`, or rebind it to `sid` if it is already seated.

        Returns `(player, reconnected)`.
        """
        player = self.players.get(name)
        if player is not None:
            player.sid = sid
            if skin is not MISSING:
                player.skin = skin
            return player, True

        if self.phase != WAITING:
            return Rejected(ROOM_LOCKED)

        player = Player(
            name=name,
            sid=sid,
            position=len(self.players),
            is_host=not self.players,
            skin=None if skin is MISSING else skin,
        )
        self.players[name] = player
        return player, False

    def remove_player(self, sid: str) -> Optional[Player]:
        player = self.get_player_by_sid(sid)
        if player is None:
            return None

        if self.phase != WAITING:
            # Mid-game departures keep their seat so turn order and the
            # bomb pointers stay valid.
            player.sid = None
            return player

        del self.players[player.name]
        for position, remaining in enumerate(self._seated()):
            remaining.position = position
        if player.is_host and self.players:
            player.is_host = False
            self._seated()[0].is_host = True
        return player

    def get_player_by_sid(self, sid: str) -> Optional[Player]:
        if sid is None:
            return None
        # Copy: lookups by connection run without this room's lock
        for player in list(self.players.values()):
            if player.sid == sid:
                return player
        return None

    def update_head_rotation(self, sid: str, rotation: dict) -> Optional[Player]:
        player = self.get_player_by_sid(sid)
        if player is not None:
            player.head_rotation = {'x': rotation['x'], 'y': rotation['y']}
        return player

    def update_skin(self, sid: str, skin: Optional[str]) -> Optional[Player]:
        player = self.get_player_by_sid(sid)
        if player is not None:
            player.skin = skin
        return player

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players.values() if p.is_host), None)

    def is_empty(self) -> bool:
        return not self.players

    # ---- turn engine ----

    def start_game(self) -> Union[bool, Rejected]:
        if self.phase != WAITING:
            return Rejected(ALREADY_STARTED)
        if len(self.players) < self.min_players:
            return Rejected(NEED_MORE_PLAYERS)

        self.phase = PLAYING
        self.current_turn_index = 0
        self.bomb_holder_index = 0
        return True

    def roll_dice(self) -> Union[DiceResult, Rejected]:
        if self.phase != PLAYING or self.awaiting_pass_choice:
            return Rejected(NOT_AVAILABLE_NOW)

        dice1 = self.rng.randint(1, 6)
        dice2 = self.rng.randint(1, 6)
        effect = NORMAL
        total_moves = dice1 + dice2

        if dice1 == dice2 == 4:
            effect = REVERSE
            total_moves = 0
            self.direction = -self.direction
        elif dice1 == dice2 == 1:
            effect = PASS
            total_moves = 0
            self.awaiting_pass_choice = True
        elif dice1 == dice2 == 6:
            effect = HALVE
            self._halve_remaining_capacity()

        return DiceResult(dice1=dice1, dice2=dice2, effect=effect, total_moves=total_moves)

    def _halve_remaining_capacity(self) -> None:
        # At least one point of capacity survives so the explosion still
        # lands on a step and damage never overshoots hp.
        remaining = max(1, self.bomb.remaining // 2)
        self.bomb.damage = self.bomb.hp - remaining

    def move_bomb(self, total_moves: int) -> MoveResult:
        alive = self.alive_players()
        from_index = self.bomb_holder_index
        index = from_index
        steps: List[int] = []
        exploded_at_step = -1

        if self.phase == PLAYING:
            for step in range(total_moves):
                index = (index + self.direction) % len(alive)
                self.bomb.damage += 1
                steps.append(index)
                if self.bomb.damage >= self.bomb.hp:
                    exploded_at_step = step
                    break

        self.bomb_holder_index = index
        self.current_turn_index = index
        if exploded_at_step != -1:
            self._explode(alive, index)

        return MoveResult(
            from_index=from_index,
            to_index=index,
            steps=steps,
            exploded_at_step=exploded_at_step,
            damage=len(steps),
        )

    def _explode(self, alive: List[Player], index: int) -> None:
        loser = alive[index]
        survivors = [p for p in alive if p is not loser]
        self.phase = FINISHED
        self.loser = loser.name
        loser.is_alive = False
        # With more than one survivor there is no single winner.
        if len(survivors) == 1:
            self.winner = survivors[0].name

    def pass_bomb_to(self, target_name: str) -> Union[bool, Rejected]:
        if self.phase != PLAYING or not self.awaiting_pass_choice:
            return Rejected(NOT_AVAILABLE_NOW)

        target = self.players.get(target_name)
        if target is None or not target.is_alive:
            return Rejected(INVALID_TARGET)

        index = self.alive_players().index(target)
        self.bomb_holder_index = index
        self.current_turn_index = index
        self.awaiting_pass_choice = False
        return True

    # ---- derived views ----

    def _seated(self) -> List[Player]:
        return sorted(self.players.values(), key=lambda p: p.position)

    def alive_players(self) -> List[Player]:
        return [p for p in self._seated() if p.is_alive]

    def current_turn_player(self) -> Optional[Player]:
        if self.phase == FINISHED:
            return None
        alive = self.alive_players()
        if 0 <= self.current_turn_index < len(alive):
            return alive[self.current_turn_index]
        return None

    def bomb_holder(self) -> Optional[Player]:
        if self.phase == FINISHED:
            return self.players.get(self.loser)
        alive = self.alive_players()
        if 0 <= self.bomb_holder_index < len(alive):
            return alive[self.bomb_holder_index]
        return None

    def bomb_color(self) -> str:
        percent = self.bomb.damage / self.bomb.max_hp * 100
        if percent >= self.color_thresholds.red:
            return 'red'
        if percent >= self.color_thresholds.yellow:
            return 'yellow'
        return 'black'

    def get_state(self) -> dict:
        """Snapshot for clients. Built from fresh containers, so later
        mutation of the room never shows through an issued snapshot."""
        holder = self.bomb_holder()
        turn = self.current_turn_player()
        return {
            'room_id': self.room_id,
            'phase': self.phase,
            'players': [p.to_dict() for p in self._seated()],
            'bomb': self.bomb.to_dict(),
            'bomb_color': self.bomb_color(),
            'color_thresholds': self.color_thresholds.to_dict(),
            'direction': self.direction,
            'current_turn_index': self.current_turn_index,
            'bomb_holder_index': self.bomb_holder_index,
            'current_turn_player': turn.name if turn else None,
            'bomb_holder': holder.name if holder else None,
            'awaiting_pass_choice': self.awaiting_pass_choice,
            'winner': self.winner,
            'loser': self.loser,
        }
