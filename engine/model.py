from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Literal, Optional, Tuple

Faction = Literal["GOBLIN", "ELF"]
Position = Tuple[int, int]  # (x, y) in grid cells, y grows downward

STARTING_HP = 200
GOBLIN_POWER = 3
DEFAULT_ELF_POWER = 3
MIN_SEARCH_POWER = 4
MAX_ROUNDS = 10_000  # no valid battle gets anywhere near this

GLYPHS: Dict[str, Faction] = {
    "G": "GOBLIN",
    "E": "ELF",
}
FACTION_GLYPH: Dict[Faction, str] = {faction: glyph for glyph, faction in GLYPHS.items()}
WALL = "#"
FLOOR = "."


class InvariantViolation(RuntimeError):
    """Raised when the simulation reaches a state that valid play cannot produce."""


@dataclass(frozen=True)
class GridMap:
    """Impassable cells of one battlefield. Never mutated once built."""
    walls: FrozenSet[Position]
    width: int
    height: int

    def is_wall(self, pos: Position) -> bool:
        return pos in self.walls

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos[0] < self.width and 0 <= pos[1] < self.height

    def is_open(self, pos: Position) -> bool:
        return self.in_bounds(pos) and pos not in self.walls


@dataclass
class Unit:
    id: str
    faction: Faction
    pos: Position
    power: int
    hp: int = STARTING_HP
    alive: bool = True

    def is_enemy(self, other: "Unit") -> bool:
        return self.faction != other.faction


@dataclass
class Scenario:
    """Decoded battlefield: the walls plus where each unit starts."""
    grid: GridMap
    spawns: List[Tuple[Faction, Position]] = field(default_factory=list)


@dataclass
class Event:
    kind: str
    round: int
    data: Dict


@dataclass
class State:
    grid: GridMap
    units: Dict[str, Unit] = field(default_factory=dict)
    rounds: int = 0

    def living(self, faction: Optional[Faction] = None) -> List[Unit]:
        return [u for u in self.units.values()
                if u.alive and (faction is None or u.faction == faction)]


@dataclass(frozen=True)
class Outcome:
    rounds: int
    hp_sum: int

    @property
    def score(self) -> int:
        return self.rounds * self.hp_sum


@dataclass(frozen=True)
class Aborted:
    """A unit of the protected faction died; the trial was cut short."""
    faction: Faction
    unit_id: str
    rounds: int


@dataclass(frozen=True)
class SearchResult:
    power: int
    outcome: Outcome

    @property
    def score(self) -> int:
        return self.outcome.score
