from typing import List, Literal, Optional, Set, Union
from .grid import make_state
from .model import (DEFAULT_ELF_POWER, MAX_ROUNDS, Aborted, Event, Faction, InvariantViolation,
                    Outcome, Position, Scenario, State, Unit)
from .pathfinding import choose_step, in_range_cells, neighbors, reading_order

Status = Literal["running", "ended", "aborted"]
Result = Union[Outcome, Aborted]


class CombatEngine:
    """Pure, deterministic round-by-round combat.

    Units live in ``state.units`` for the whole battle. Each round takes a
    snapshot of unit ids in reading order; a unit killed earlier in the round
    keeps its slot but is skipped when its turn comes.
    """

    def __init__(self, state: State, abort_on_death: Optional[Faction] = None,
                 max_rounds: int = MAX_ROUNDS):
        self.state = state
        self.abort_on_death = abort_on_death
        self.max_rounds = max_rounds
        self.status: Status = "running"
        self.result: Optional[Result] = None

    def _turn_order(self) -> List[str]:
        """Unit ids sorted into reading order of their current position."""
        ids = list(self.state.units.keys())
        ids.sort(key=lambda uid: reading_order(self.state.units[uid].pos))
        return ids

    def _occupied(self, unit: Unit) -> Set[Position]:
        return {u.pos for u in self.state.units.values() if u.alive and u is not unit}

    def _enemies(self, unit: Unit) -> List[Unit]:
        return [u for u in self.state.units.values() if u.alive and unit.is_enemy(u)]

    def _move(self, unit: Unit, enemies: List[Unit]) -> List[Event]:
        """Step one cell toward the nearest in-range cell, if not already in range."""
        grid = self.state.grid
        occupied = self._occupied(unit)
        targets = in_range_cells(grid, enemies, occupied)
        if unit.pos in targets:
            return []
        step = choose_step(grid, unit.pos, targets, occupied)
        if step is None:
            return []
        if not grid.is_open(step) or step in occupied:
            raise InvariantViolation(f"{unit.id} tried to move from {unit.pos} onto blocked cell {step}")
        old = unit.pos
        unit.pos = step
        return [Event("UnitMoved", self.state.rounds,
                      {"unit_id": unit.id, "from": list(old), "to": list(step)})]

    def _select_target(self, unit: Unit, enemies: List[Unit]) -> Optional[Unit]:
        """Weakest adjacent enemy, ties broken by reading order of its position."""
        adjacent = set(neighbors(unit.pos))
        candidates = [e for e in enemies if e.alive and e.pos in adjacent]
        if not candidates:
            return None
        return min(candidates, key=lambda e: (e.hp, reading_order(e.pos)))

    def _attack(self, unit: Unit, enemies: List[Unit]) -> List[Event]:
        evts: List[Event] = []
        target = self._select_target(unit, enemies)
        if target is None:
            return evts
        target.hp -= unit.power
        evts.append(Event("Attack", self.state.rounds,
                          {"attacker": unit.id, "target": target.id,
                           "dmg": unit.power, "hp": target.hp}))
        if target.hp <= 0:
            target.alive = False
            evts.append(Event("Destroyed", self.state.rounds,
                              {"unit_id": target.id, "killer": unit.id}))
            if self.abort_on_death == target.faction:
                self._finish("aborted", Aborted(faction=target.faction, unit_id=target.id,
                                                rounds=self.state.rounds))
                evts.append(Event("CombatAborted", self.state.rounds,
                                  {"faction": target.faction, "unit_id": target.id}))
        return evts

    def _finish(self, status: Status, result: Result) -> None:
        self.status = status
        self.result = result

    def step(self) -> List[Event]:
        """Play one round, or the part of it before one faction runs out of units."""
        if self.status != "running":
            raise RuntimeError(f"Combat already {self.status}")
        if self.state.rounds >= self.max_rounds:
            raise InvariantViolation(f"Combat did not finish within {self.max_rounds} rounds")

        evts: List[Event] = []
        for uid in self._turn_order():
            unit = self.state.units[uid]
            if not unit.alive:
                continue
            enemies = self._enemies(unit)
            if not enemies:
                hp_sum = sum(u.hp for u in self.state.living())
                outcome = Outcome(rounds=self.state.rounds, hp_sum=hp_sum)
                self._finish("ended", outcome)
                evts.append(Event("CombatEnded", self.state.rounds,
                                  {"winner": unit.faction, "rounds": outcome.rounds,
                                   "hp_sum": outcome.hp_sum, "score": outcome.score}))
                return evts
            evts += self._move(unit, enemies)
            evts += self._attack(unit, enemies)
            if self.status == "aborted":
                return evts

        self.state.rounds += 1
        return evts

    def run(self) -> Result:
        """Step until the battle ends or is aborted."""
        while self.status == "running":
            self.step()
        return self.result

    def snapshot(self) -> State:
        """Return current state."""
        return self.state


def simulate(scenario: Scenario, elf_power: int = DEFAULT_ELF_POWER,
             abort_on_elf_death: bool = False) -> Result:
    """Run one trial on a fresh roster."""
    state = make_state(scenario, elf_power)
    if not state.living("GOBLIN") or not state.living("ELF"):
        raise ValueError("Both factions need at least one unit")
    engine = CombatEngine(state, abort_on_death="ELF" if abort_on_elf_death else None)
    return engine.run()
