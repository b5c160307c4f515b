#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

from zippath.services.generator import DIFFICULTY_CONFIG, generate_level
from zippath.services.level_loader import LEVELS_DIR, level_file_path, save_level_to_file
from zippath.services.solvability import validate_level, verify_solvable


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate seeded level files for the level library."
    )
    parser.add_argument(
        "--difficulty",
        choices=sorted(DIFFICULTY_CONFIG.keys()),
        default="medium",
    )
    parser.add_argument("--count", type=int, default=10, help="Number of levels to generate.")
    parser.add_argument("--start-level", type=int, default=1, help="Number of the first level file.")
    parser.add_argument("--seed-start", type=int, default=1, help="Seed of the first level; seeds increase by one.")
    parser.add_argument("--rows", type=int, default=6)
    parser.add_argument("--cols", type=int, default=6)
    parser.add_argument(
        "--out",
        type=Path,
        default=LEVELS_DIR,
        help="Output directory for level_<n>.json files.",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing level files. Without this flag existing files are skipped.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if args.rows < 1 or args.cols < 1 or args.count < 1:
        raise SystemExit("rows, cols and count must be positive")

    written = 0
    skipped = 0
    fallbacks = 0

    for offset in range(args.count):
        level_number = args.start_level + offset
        seed = args.seed_start + offset

        if level_file_path(level_number, args.out).exists() and not args.overwrite:
            skipped += 1
            print(f"level_{level_number}.json: exists, skipped")
            continue

        level = generate_level(args.rows, args.cols, args.difficulty, seed=seed)

        validation = validate_level(level)
        if not validation["valid"]:
            for err in validation["errors"]:
                print(f"level_{level_number}.json: {err}")
            raise SystemExit(f"Generated level {level_number} is malformed (seed={seed})")

        solvable = verify_solvable(level)
        if level.fallback:
            fallbacks += 1

        save_level_to_file(level, level_number, args.out)
        written += 1
        print(
            f"level_{level_number}.json: seed={seed} clues={len(level.initial_values)} "
            f"walls={len(level.walls)} solvable={solvable} fallback={level.fallback}"
        )

    print(f"Wrote {written} level file(s), skipped {skipped}, fallbacks {fallbacks}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
