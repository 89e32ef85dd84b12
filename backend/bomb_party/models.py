from dataclasses import dataclass, field
from typing import List, Optional


WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'

NORMAL = 'normal'
REVERSE = 'reverse'
PASS = 'pass'
HALVE = 'halve'


@dataclass
class Player:
    name: str
    sid: Optional[str]
    position: int
    is_alive: bool = True
    is_host: bool = False
    head_rotation: dict = field(default_factory=lambda: {'x': 0, 'y': 0})
    skin: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self.sid is not None

    def to_dict(self):
        return {
            'name': self.name,
            'position': self.position,
            'is_alive': self.is_alive,
            'is_host': self.is_host,
            'is_connected': self.is_connected,
            'head_rotation': dict(self.head_rotation),
            'skin': self.skin,
        }


@dataclass
class Bomb:
    hp: int
    max_hp: int
    damage: int = 0

    @property
    def remaining(self) -> int:
        return self.hp - self.damage

    def to_dict(self):
        return {'hp': self.hp, 'max_hp': self.max_hp, 'damage': self.damage}


@dataclass(frozen=True)
class ColorThresholds:
    """Damage percentages at which the bomb turns yellow, then red."""
    yellow: int
    red: int

    def to_dict(self):
        return {'yellow': self.yellow, 'red': self.red}


@dataclass(frozen=True)
class DiceResult:
    dice1: int
    dice2: int
    effect: str
    total_moves: int

    def to_dict(self):
        return {
            'dice1': self.dice1,
            'dice2': self.dice2,
            'effect': self.effect,
            'total_moves': self.total_moves,
        }


@dataclass(frozen=True)
class MoveResult:
    """Outcome of advancing the bomb.

    `steps` lists the alive-ordering index reached after every step taken;
    `exploded_at_step` is the position in `steps` where the bomb went off,
    or -1 when it did not.
    """
    from_index: int
    to_index: int
    steps: List[int]
    exploded_at_step: int
    damage: int

    @property
    def exploded(self) -> bool:
        return self.exploded_at_step != -1
