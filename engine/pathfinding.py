"""Breadth-first movement rules.

Choosing a move takes two independent searches: one from the unit to find
the nearest in-range cell, and one back from that cell to pick which of the
unit's neighbours starts a shortest path. No parent pointers are kept.
"""
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .model import GridMap, Position, Unit


def reading_order(pos: Position) -> Tuple[int, int]:
    """Sort key: top row first, then left to right."""
    return pos[1], pos[0]


def neighbors(pos: Position) -> List[Position]:
    """Orthogonal neighbours, already in reading order."""
    x, y = pos
    return [(x, y - 1), (x - 1, y), (x + 1, y), (x, y + 1)]


def distances_from(grid: GridMap, origin: Position, blocked: Set[Position]) -> Dict[Position, int]:
    """Step count from origin to every reachable cell that is open and not blocked."""
    dist: Dict[Position, int] = {origin: 0}
    frontier = deque([origin])
    while frontier:
        pos = frontier.popleft()
        for nxt in neighbors(pos):
            if nxt in dist or nxt in blocked or not grid.is_open(nxt):
                continue
            dist[nxt] = dist[pos] + 1
            frontier.append(nxt)
    return dist


def in_range_cells(grid: GridMap, enemies: Iterable[Unit], occupied: Set[Position]) -> Set[Position]:
    """Free cells orthogonally adjacent to at least one living enemy."""
    cells: Set[Position] = set()
    for enemy in enemies:
        if not enemy.alive:
            continue
        for pos in neighbors(enemy.pos):
            if grid.is_open(pos) and pos not in occupied:
                cells.add(pos)
    return cells


def choose_step(grid: GridMap, origin: Position, targets: Set[Position],
                blocked: Set[Position]) -> Optional[Position]:
    """First step toward the closest target cell, or None if none is reachable.

    Ties on distance go to the target first in reading order, and ties among
    equally good first steps go to the step first in reading order.
    """
    dist = distances_from(grid, origin, blocked)
    reachable = [pos for pos in targets if pos in dist]
    if not reachable:
        return None
    dest = min(reachable, key=lambda pos: (dist[pos], reading_order(pos)))
    if dest == origin:
        return None

    back = distances_from(grid, dest, blocked)
    wanted = dist[dest] - 1
    steps = [pos for pos in neighbors(origin) if back.get(pos) == wanted]
    # neighbors() is in reading order, so the first match wins
    return steps[0]
