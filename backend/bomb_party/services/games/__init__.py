"""Game domain services: the room state machine and the room registry.

This package contains pure domain logic that is imported by HTTP routes
and socket handlers, keeping transport concerns separated from core game
mechanics.
"""

from .registry import RoomRegistry
from .room import MISSING, GameRoom

__all__ = ['GameRoom', 'RoomRegistry', 'MISSING']
