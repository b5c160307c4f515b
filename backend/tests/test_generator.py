from fractions import Fraction

import pytest

from zippath.config import settings
from zippath.services import generator as generator_module
from zippath.services.game_logic import replay_moves
from zippath.services.generator import (
    SeededRandom,
    build_hamiltonian_path,
    build_serpentine_path,
    clues_to_values,
    generate_level,
    get_difficulty_config,
    place_clues,
    place_walls,
)
from zippath.services.grid import are_adjacent, path_edge_set, wall_key
from zippath.services.solvability import validate_level, verify_solvable
from zippath.schemas import Coordinate, Level

from helpers import ScriptedRandom, serpentine


def assert_hamiltonian(path, rows, cols):
    assert len(path) == rows * cols
    assert len(set(path)) == rows * cols
    assert all(0 <= r < rows and 0 <= c < cols for r, c in path)
    for a, b in zip(path, path[1:]):
        assert are_adjacent(a, b)


def assert_clues_well_formed(level):
    values = sorted(clue.value for clue in level.initial_values)
    assert values == list(range(1, len(values) + 1))
    positions = [(clue.row, clue.col) for clue in level.initial_values]
    assert len(set(positions)) == len(positions)
    assert all(0 <= r < level.rows and 0 <= c < level.cols for r, c in positions)


# ============================================
# SEEDED RANDOM
# ============================================

def test_seeded_random_is_deterministic():
    a = SeededRandom(42)
    b = SeededRandom(42)
    assert [a.next() for _ in range(20)] == [b.next() for _ in range(20)]


def test_seeded_random_ranges():
    rng = SeededRandom(7)
    for _ in range(1000):
        value = rng.next()
        assert 0.0 <= value < 1.0
        assert 2 <= rng.next_int(2, 5) <= 5


def test_seeded_random_shuffle_returns_permutation_copy():
    rng = SeededRandom(3)
    items = list(range(10))
    shuffled = rng.shuffle(items)
    assert sorted(shuffled) == items
    assert items == list(range(10))


def test_seeded_random_choice():
    rng = SeededRandom(5)
    items = ["a", "b", "c"]
    assert all(rng.choice(items) in items for _ in range(50))
    assert rng.choice([]) is None


def test_seeded_random_token():
    token = SeededRandom(11).token()
    assert len(token) == 6
    assert token.isalnum()


# ============================================
# DIFFICULTY
# ============================================

def test_difficulty_config_values():
    assert get_difficulty_config("easy") == {"clue_fraction": Fraction(1, 3), "wall_density": 0.03}
    assert get_difficulty_config("medium") == {"clue_fraction": Fraction(1, 4), "wall_density": 0.05}
    assert get_difficulty_config("hard") == {"clue_fraction": Fraction(1, 5), "wall_density": 0.08}


def test_unknown_difficulty_raises():
    with pytest.raises(ValueError):
        get_difficulty_config("extreme")
    with pytest.raises(ValueError):
        generate_level(4, 4, "extreme", seed=1)


# ============================================
# HAMILTONIAN PATH
# ============================================

@pytest.mark.parametrize("rows,cols", [(2, 2), (3, 4), (4, 4), (4, 5)])
def test_path_is_hamiltonian_when_found(rows, cols):
    found = 0
    for seed in range(1, 11):
        path = build_hamiltonian_path(rows, cols, SeededRandom(seed), step_budget=50_000)
        if path is None:
            continue
        found += 1
        assert_hamiltonian(path, rows, cols)
    assert found > 0


def test_single_cell_path():
    assert build_hamiltonian_path(1, 1, SeededRandom(1)) == [(0, 0)]


def test_path_from_middle_of_a_row_fails():
    # 1x3 from the middle cell cannot cover both ends
    assert build_hamiltonian_path(1, 3, ScriptedRandom([0, 1])) is None


def test_path_from_end_of_a_row_succeeds():
    assert build_hamiltonian_path(1, 3, ScriptedRandom([0, 0])) == [(0, 0), (0, 1), (0, 2)]


def test_step_budget_reports_failure():
    # On 5x5 a hamiltonian path must start on the majority colour; (0, 1) is not
    assert build_hamiltonian_path(5, 5, ScriptedRandom([0, 1]), step_budget=500) is None


def test_path_is_reproducible_for_seed():
    first = build_hamiltonian_path(6, 6, SeededRandom(99), step_budget=50_000)
    second = build_hamiltonian_path(6, 6, SeededRandom(99), step_budget=50_000)
    assert first == second


# ============================================
# CLUES
# ============================================

def test_clues_include_endpoints_and_count():
    path = serpentine(6, 6)
    clues = place_clues(path, Fraction(1, 3), SeededRandom(5))

    assert len(clues) == 12
    indices = [idx for idx, _ in clues]
    assert indices == sorted(indices)
    assert len(set(indices)) == len(indices)
    assert clues[0] == (0, 1)
    assert clues[-1] == (35, 12)
    assert [value for _, value in clues] == list(range(1, 13))


@pytest.mark.parametrize("difficulty,expected", [("easy", 12), ("medium", 9), ("hard", 7)])
def test_clue_count_per_difficulty(difficulty, expected):
    fraction = get_difficulty_config(difficulty)["clue_fraction"]
    clues = place_clues(serpentine(6, 6), fraction, SeededRandom(1))
    assert len(clues) == expected


def test_clue_minimum_is_two():
    clues = place_clues(serpentine(2, 2), Fraction(1, 5), SeededRandom(1))
    assert clues == [(0, 1), (3, 2)]


def test_single_cell_has_single_clue():
    assert place_clues([(0, 0)], Fraction(1, 3), SeededRandom(1)) == [(0, 1)]


def test_clues_to_values_uses_path_positions():
    path = [(0, 0), (0, 1), (1, 1), (1, 0)]
    values = clues_to_values(path, [(0, 1), (2, 2), (3, 3)])
    assert [(v.row, v.col, v.value) for v in values] == [(0, 0, 1), (1, 1, 2), (1, 0, 3)]


# ============================================
# WALLS
# ============================================

def test_walls_never_cross_path_edges():
    path = serpentine(4, 4)
    walls = place_walls(4, 4, path, 1.0, SeededRandom(1))

    # 24 internal edges, 15 used by the path
    assert len(walls) == 9
    used = path_edge_set(path)
    assert all(wall_key(w) not in used for w in walls)
    assert len({wall_key(w) for w in walls}) == len(walls)


def test_walls_stay_inside_grid():
    walls = place_walls(3, 5, serpentine(3, 5), 1.0, SeededRandom(2))
    for w in walls:
        if w.orientation == "horizontal":
            assert 0 <= w.row < 2 and 0 <= w.col < 5
        else:
            assert 0 <= w.row < 3 and 0 <= w.col < 4


def test_zero_density_places_no_walls():
    assert place_walls(6, 6, serpentine(6, 6), 0.0, SeededRandom(1)) == []


def test_generating_path_still_solves_the_puzzle():
    rng = SeededRandom(17)
    path = serpentine(6, 6)
    clues = place_clues(path, Fraction(1, 4), rng)
    walls = place_walls(6, 6, path, 0.5, rng)
    level = Level(
        id="x", rows=6, cols=6,
        initial_values=clues_to_values(path, clues),
        walls=walls,
    )

    state = replay_moves(level, [Coordinate(row=r, col=c) for r, c in path[1:]])
    assert state.is_complete
    assert len(state.current_path) == 36


# ============================================
# LEVEL GENERATOR
# ============================================

@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_generated_levels_are_well_formed(difficulty, seed):
    level = generate_level(4, 4, difficulty, seed=seed, step_budget=50_000)

    assert level.rows == 4 and level.cols == 4
    assert level.difficulty == difficulty
    assert level.seed == seed
    assert_clues_well_formed(level)
    assert validate_level(level)["valid"]
    assert verify_solvable(level) or (level.fallback and level.walls == ())


def test_generated_6x6_level():
    level = generate_level(6, 6, "hard", seed=2024, step_budget=50_000)
    assert_clues_well_formed(level)
    assert len(level.initial_values) == 7
    assert verify_solvable(level) or (level.fallback and level.walls == ())


def test_generation_is_deterministic_for_seed():
    first = generate_level(5, 4, "medium", seed=123, step_budget=50_000)
    second = generate_level(5, 4, "medium", seed=123, step_budget=50_000)
    assert first == second


def test_generation_without_seed_picks_one():
    level = generate_level(3, 4, "easy", step_budget=50_000)
    assert level.seed is not None
    assert_clues_well_formed(level)


def test_fallback_when_verification_keeps_failing(monkeypatch):
    monkeypatch.setattr(generator_module, "verify_solvable", lambda level: False)

    level = generate_level(4, 4, "hard", seed=8, max_attempts=3, step_budget=50_000)

    assert level.fallback
    assert level.walls == ()
    assert_clues_well_formed(level)
    # same clue policy as the requested difficulty: floor(16 / 5) = 3
    assert len(level.initial_values) == 3


def test_failed_search_falls_back_to_serpentine(monkeypatch):
    calls = []

    def no_path(*args, **kwargs):
        calls.append(args)
        return None

    monkeypatch.setattr(generator_module, "build_hamiltonian_path", no_path)
    monkeypatch.setattr(generator_module, "verify_solvable", lambda level: False)

    level = generate_level(4, 4, "easy", seed=1, max_attempts=5)

    # search budget is spent once, later attempts go straight to the serpentine
    assert len(calls) == 1
    assert level.fallback
    assert_clues_well_formed(level)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_largest_allowed_grid_generates(seed):
    size = settings.MAX_GRID_SIZE
    level = generate_level(size, size, "medium", seed=seed, step_budget=5_000)

    assert level.rows == size and level.cols == size
    assert_clues_well_formed(level)
    assert validate_level(level)["valid"]
    assert verify_solvable(level) or (level.fallback and level.walls == ())


# ============================================
# SERPENTINE
# ============================================

@pytest.mark.parametrize("rows,cols", [(1, 1), (1, 5), (5, 1), (3, 4), (10, 10), (7, 9)])
def test_serpentine_is_hamiltonian(rows, cols):
    for seed in range(8):
        path = build_serpentine_path(rows, cols, SeededRandom(seed))
        assert_hamiltonian(path, rows, cols)
        assert path[0] in {(0, 0), (0, cols - 1), (rows - 1, 0), (rows - 1, cols - 1)}


def test_serpentine_orientation_depends_on_rng():
    paths = {tuple(build_serpentine_path(4, 4, SeededRandom(seed))) for seed in range(30)}
    assert len(paths) > 1
