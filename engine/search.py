import itertools
from .engine import simulate
from .model import MIN_SEARCH_POWER, STARTING_HP, Aborted, InvariantViolation, Scenario, SearchResult


def find_min_power(scenario: Scenario, starting_power: int = MIN_SEARCH_POWER) -> SearchResult:
    """Lowest elf power at which the elves win without losing a single unit.

    Whether every elf survives is monotone in power, so a linear scan upward
    from ``starting_power`` finds the first winning value.
    """
    for power in itertools.count(starting_power):
        result = simulate(scenario, elf_power=power, abort_on_elf_death=True)
        if isinstance(result, Aborted):
            print(f"[Search] power={power}: {result.unit_id} died in round {result.rounds}")
            if power >= STARTING_HP:
                # every hit already kills, so more power cannot change the battle
                raise InvariantViolation(f"Elves lose a unit even at power {power}")
            continue
        print(f"[Search] power={power}: elves win, score {result.score}")
        return SearchResult(power=power, outcome=result)
