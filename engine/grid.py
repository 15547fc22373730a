from typing import Dict, List
import numpy as np
from .model import (DEFAULT_ELF_POWER, FACTION_GLYPH, FLOOR, GLYPHS, GOBLIN_POWER, WALL,
                    GridMap, Scenario, State, Unit)


def _to_chars(text: str) -> np.ndarray:
    """Load grid text into a (rows, cols) character array, padding short lines with floor."""
    lines = text.strip("\n").splitlines()
    if not lines:
        raise ValueError("Grid is empty")
    width = max(len(line) for line in lines)
    return np.array([list(line.ljust(width, FLOOR)) for line in lines], dtype="<U1")


def parse_grid(text: str) -> Scenario:
    """Decode a battlefield. Unknown characters are treated as open floor."""
    cells = _to_chars(text)
    height, width = cells.shape
    walls = frozenset((int(x), int(y)) for y, x in np.argwhere(cells == WALL))
    spawns = []
    # argwhere walks row-major, so spawns come out in reading order
    for y, x in np.argwhere(np.isin(cells, list(GLYPHS))):
        spawns.append((GLYPHS[str(cells[y, x])], (int(x), int(y))))
    return Scenario(grid=GridMap(walls=walls, width=width, height=height), spawns=spawns)


def make_state(scenario: Scenario, elf_power: int = DEFAULT_ELF_POWER) -> State:
    """Build a fresh roster for one trial. Only elf power varies between trials."""
    if elf_power < 0:
        raise ValueError(f"Elf power must be non-negative, got {elf_power}")
    units: Dict[str, Unit] = {}
    counts: Dict[str, int] = {}
    for faction, pos in scenario.spawns:
        glyph = FACTION_GLYPH[faction]
        counts[glyph] = counts.get(glyph, 0) + 1
        uid = f"{glyph}{counts[glyph]}"
        power = elf_power if faction == "ELF" else GOBLIN_POWER
        units[uid] = Unit(id=uid, faction=faction, pos=pos, power=power)
    return State(grid=scenario.grid, units=units)


def render(state: State, show_hp: bool = True) -> str:
    """Draw the battlefield as text, optionally listing hit points after each row."""
    grid = state.grid
    cells = np.full((grid.height, grid.width), FLOOR, dtype="<U1")
    for x, y in grid.walls:
        cells[y, x] = WALL
    row_units: Dict[int, List[Unit]] = {}
    for u in state.living():
        cells[u.pos[1], u.pos[0]] = FACTION_GLYPH[u.faction]
        row_units.setdefault(u.pos[1], []).append(u)

    lines = []
    for y in range(grid.height):
        line = "".join(cells[y])
        if show_hp and y in row_units:
            here = sorted(row_units[y], key=lambda u: u.pos[0])
            line += "   " + ", ".join(f"{FACTION_GLYPH[u.faction]}({u.hp})" for u in here)
        lines.append(line)
    return "\n".join(lines)
