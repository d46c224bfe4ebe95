import logging

import pytest

from dlx import ColumnKind, Matrix


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_matrix(num_columns, rows, secondary=()):
    matrix = Matrix()
    for c in range(num_columns):
        kind = ColumnKind.SECONDARY if c in secondary else ColumnKind.PRIMARY
        matrix.add_column(kind)
    for row in rows:
        matrix.add_row(row)
    return matrix


def queens_matrix(n):
    """Ranks and files primary, both diagonal families secondary."""
    matrix = Matrix()
    matrix.add_columns(2 * n)
    matrix.add_columns(2 * (2 * n - 1), ColumnKind.SECONDARY)
    diag = 2 * n
    anti = diag + 2 * n - 1
    positions = []
    for r in range(n):
        for c in range(n):
            matrix.add_row([r, n + c, diag + r + c, anti + r - c + n - 1])
            positions.append((r, c))
    return matrix, positions


@pytest.fixture
def knuth_matrix():
    # Columns A..G, example from "Dancing Links" (Knuth, 2000).
    return build_matrix(
        7,
        [
            [2, 4, 5],  # C E F
            [0, 3, 6],  # A D G
            [1, 2, 5],  # B C F
            [0, 3],  # A D
            [1, 6],  # B G
            [3, 4, 6],  # D E G
        ],
    )


@pytest.fixture
def square_matrix():
    return build_matrix(4, [[0, 1], [2, 3], [0, 2], [1, 3]])
