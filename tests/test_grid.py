import pytest
from engine.grid import make_state, parse_grid, render

GRID = """\
#######
#.G...#
#...EG#
#.#.#G#
#..G#E#
#.....#
#######
"""


def test_parse_walls_and_spawns():
    scenario = parse_grid(GRID)
    grid = scenario.grid
    assert (grid.width, grid.height) == (7, 7)
    assert grid.is_wall((0, 0))
    assert grid.is_wall((2, 3))
    assert not grid.is_wall((1, 1))
    assert scenario.spawns == [
        ("GOBLIN", (2, 1)),
        ("ELF", (4, 2)),
        ("GOBLIN", (5, 2)),
        ("GOBLIN", (5, 3)),
        ("GOBLIN", (3, 4)),
        ("ELF", (5, 4)),
    ]


def test_unknown_characters_are_floor():
    scenario = parse_grid("#####\n#G?E#\n#####")
    assert not scenario.grid.is_wall((2, 1))
    assert scenario.grid.is_open((2, 1))
    assert len(scenario.spawns) == 2


def test_ragged_lines_are_padded():
    grid = parse_grid("####\n#G\n#E.#").grid
    assert grid.width == 4
    assert grid.is_open((3, 1))


def test_empty_grid_is_rejected():
    with pytest.raises(ValueError):
        parse_grid("\n\n")


def test_make_state_numbers_units_per_faction():
    state = make_state(parse_grid(GRID), elf_power=15)
    assert list(state.units) == ["G1", "E1", "G2", "G3", "G4", "E2"]
    assert state.units["E1"].power == 15
    assert state.units["G1"].power == 3
    assert all(u.hp == 200 and u.alive for u in state.units.values())


def test_negative_power_is_rejected():
    with pytest.raises(ValueError):
        make_state(parse_grid(GRID), elf_power=-1)


def test_render_round_trips_the_picture():
    state = make_state(parse_grid(GRID))
    assert render(state, show_hp=False) == GRID.rstrip("\n")


def test_render_lists_hit_points_and_hides_the_dead():
    state = make_state(parse_grid(GRID))
    state.units["G1"].alive = False
    state.units["E1"].hp = 197
    lines = render(state).splitlines()
    assert lines[1] == "#.....#"
    assert lines[2] == "#...EG#   E(197), G(200)"
