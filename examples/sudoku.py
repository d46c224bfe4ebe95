# sudoku.py
# Models a 9x9 Sudoku as exact cover and prints the solved grid

from __future__ import annotations

import logging
import sys
from typing import Dict, List, Optional, Tuple

from dlx import Matrix
from solver import Solver

SIZE = 9
BOX = 3

PUZZLE = (
    "53..7...."
    "6..195..."
    ".98....6."
    "8...6...3"
    "4..8.3..1"
    "7...2...6"
    ".6....28."
    "...419..5"
    "....8..79"
)


def constraint_columns(r: int, c: int, digit: int) -> List[int]:
    # cell, row-digit, column-digit, box-digit; digit is 0-based
    box = (r // BOX) * BOX + c // BOX
    cells = SIZE * SIZE
    return [
        r * SIZE + c,
        cells + r * SIZE + digit,
        cells * 2 + c * SIZE + digit,
        cells * 3 + box * SIZE + digit,
    ]


def build_exact_cover() -> Tuple[Matrix, Dict[Tuple[int, int, int], int]]:
    matrix = Matrix()
    matrix.add_columns(4 * SIZE * SIZE)

    row_index: Dict[Tuple[int, int, int], int] = {}
    for r in range(SIZE):
        for c in range(SIZE):
            for digit in range(SIZE):
                row_index[(r, c, digit)] = matrix.add_row(constraint_columns(r, c, digit))
    return matrix, row_index


def solve_puzzle(puzzle: str) -> Optional[List[List[int]]]:
    if len(puzzle) != SIZE * SIZE:
        raise ValueError(f"expected {SIZE * SIZE} cells, got {len(puzzle)}")

    matrix, row_index = build_exact_cover()
    givens = [
        row_index[(i // SIZE, i % SIZE, int(ch) - 1)]
        for i, ch in enumerate(puzzle)
        if ch in "123456789"
    ]

    solution = Solver(matrix, givens=givens).first()
    if solution is None:
        return None

    cells = {v: k for k, v in row_index.items()}
    grid = [[0] * SIZE for _ in range(SIZE)]
    for row_id in solution:
        r, c, digit = cells[row_id]
        grid[r][c] = digit + 1
    return grid


def format_grid(grid: List[List[int]]) -> str:
    line = "+-------+-------+-------+"
    out = [line]
    for r, values in enumerate(grid):
        chunks = [" ".join(str(v) for v in values[i:i + BOX]) for i in range(0, SIZE, BOX)]
        out.append("| " + " | ".join(chunks) + " |")
        if r % BOX == BOX - 1:
            out.append(line)
    return "\n".join(out)


def main(argv: List[str]) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    puzzle = argv[1] if len(argv) > 1 else PUZZLE
    grid = solve_puzzle(puzzle)
    if grid is None:
        print("No solution.")
        return 1
    print(format_grid(grid))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
