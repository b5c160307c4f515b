import json

from zippath.services.game_logic import replay_moves
from zippath.services.level_loader import (
    level_file_path,
    level_from_dict,
    load_level_from_file,
    save_level_to_file,
)
from zippath.services.solvability import verify_solvable

from helpers import C, make_level


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


def test_save_and_load(tmp_path):
    level = make_level(3, 3, {(0, 0): 1, (1, 1): 2, (2, 2): 3}, walls=[(0, 1, "vertical")], level_id="abc")

    path = save_level_to_file(level, 5, tmp_path)

    assert path == level_file_path(5, tmp_path)
    assert path.name == "level_5.json"
    assert load_level_from_file(5, tmp_path) == level


def test_camel_case_and_list_forms(tmp_path):
    write_json(tmp_path / "3.json", {
        "id": "legacy",
        "rows": 2,
        "cols": 3,
        "difficulty": "Normal",
        "initialValues": [[0, 0, 1], {"row": 1, "col": 2, "value": 2}],
        "walls": [[0, 1, "v"], {"row": 0, "col": 2, "orientation": "H"}],
    })

    level = load_level_from_file(3, tmp_path)

    assert level.id == "legacy"
    assert level.difficulty == "medium"
    assert [(v.row, v.col, v.value) for v in level.initial_values] == [(0, 0, 1), (1, 2, 2)]
    assert [(w.row, w.col, w.orientation) for w in level.walls] == [
        (0, 1, "vertical"),
        (0, 2, "horizontal"),
    ]


def test_bad_entries_are_skipped():
    level = level_from_dict({
        "rows": 2,
        "cols": 2,
        "initial_values": [[0, 0, 1], [1, 1], {"row": "x", "col": 0, "value": 2}],
        "walls": [[0, 0, "diagonal"], "nope"],
    }, fallback_id="level_9")

    assert level.id == "level_9"
    assert len(level.initial_values) == 1
    assert level.walls == ()


def test_missing_file(tmp_path):
    assert load_level_from_file(1, tmp_path) is None


def test_invalid_json(tmp_path):
    (tmp_path / "level_2.json").write_text("{not json", encoding="utf-8")
    assert load_level_from_file(2, tmp_path) is None


def test_non_object_json(tmp_path):
    write_json(tmp_path / "level_2.json", [1, 2, 3])
    assert load_level_from_file(2, tmp_path) is None


def test_malformed_level_is_rejected(tmp_path):
    write_json(tmp_path / "level_4.json", {
        "rows": 2,
        "cols": 2,
        "initial_values": [[0, 0, 1], [1, 1, 3]],
    })
    assert load_level_from_file(4, tmp_path) is None


def test_bundled_first_level_is_playable():
    level = load_level_from_file(1)

    assert level is not None
    assert level.id == "intro1"
    assert verify_solvable(level)

    moves = [
        C(0, 1), C(0, 2), C(0, 3),
        C(1, 3), C(1, 2), C(1, 1), C(1, 0),
        C(2, 0), C(2, 1), C(2, 2), C(2, 3),
        C(3, 3), C(3, 2), C(3, 1), C(3, 0),
    ]
    assert replay_moves(level, moves).is_complete
