"""Tests for the dancing links matrix."""

import pytest

from conftest import build_matrix
from dlx import (
    ColumnIndexError,
    ColumnKind,
    CoverOrderError,
    DuplicateColumnError,
    InvariantViolation,
    Matrix,
    MatrixBusyError,
    RowIndexError,
)


class TestConstruction:
    """Building columns and rows."""

    def test_column_ids_are_sequential(self):
        matrix = Matrix()
        assert matrix.add_column() == 0
        assert matrix.add_column(ColumnKind.SECONDARY, label="s") == 1
        assert list(matrix.add_columns(3)) == [2, 3, 4]
        assert matrix.column_count == 5
        assert matrix.column_kind(1) is ColumnKind.SECONDARY
        assert matrix.column_label(1) == "s"
        assert matrix.column_label(0) is None

    def test_secondary_columns_are_not_active(self):
        matrix = build_matrix(4, [], secondary={1, 3})
        assert matrix.active_columns() == [0, 2]

    def test_rows_link_into_columns(self, knuth_matrix):
        assert knuth_matrix.row_count == 6
        assert knuth_matrix.node_count == 16
        assert [knuth_matrix.column_size(c) for c in range(7)] == [2, 2, 2, 3, 2, 2, 3]
        assert list(knuth_matrix.column_rows(3)) == [1, 3, 5]
        assert knuth_matrix.row_columns(0) == (2, 4, 5)
        knuth_matrix.check_invariants()

    def test_row_keeps_caller_column_order(self):
        matrix = build_matrix(3, [[2, 0, 1]])
        assert matrix.row_columns(0) == (2, 0, 1)
        matrix.check_invariants()

    def test_empty_row(self):
        matrix = build_matrix(1, [[]])
        assert matrix.row_count == 1
        assert matrix.column_size(0) == 0
        matrix.check_invariants()

    @pytest.mark.parametrize("bad", [3, -1, 10, "1", 1.0, True])
    def test_out_of_range_column_rejected(self, bad):
        matrix = build_matrix(3, [[0, 1]])
        before = matrix.snapshot()

        with pytest.raises(ColumnIndexError):
            matrix.add_row([2, bad])

        assert matrix.snapshot() == before
        assert matrix.row_count == 1
        # Still usable afterwards
        assert matrix.add_row([2]) == 1
        matrix.check_invariants()

    def test_column_index_error_is_index_error(self):
        matrix = build_matrix(1, [])
        with pytest.raises(IndexError):
            matrix.add_row([1])

    def test_duplicate_column_rejected(self):
        matrix = build_matrix(3, [])
        with pytest.raises(DuplicateColumnError):
            matrix.add_row([0, 1, 0])
        assert matrix.row_count == 0
        assert matrix.node_count == 0

    def test_column_added_after_rows(self):
        matrix = build_matrix(2, [[0], [1]])
        assert matrix.add_column() == 2
        matrix.add_row([1, 2])
        assert matrix.active_columns() == [0, 1, 2]
        assert list(matrix.column_rows(1)) == [1, 2]
        matrix.check_invariants()

    def test_lookup_errors(self):
        matrix = build_matrix(2, [[0]])
        with pytest.raises(RowIndexError):
            matrix.row_columns(1)
        with pytest.raises(ColumnIndexError):
            matrix.column_size(2)
        with pytest.raises(ColumnIndexError):
            list(matrix.column_rows(-1))


class TestCoverUncover:
    """Knuth's cover/uncover pair."""

    def test_cover_unlinks_column_and_rows(self, knuth_matrix):
        knuth_matrix.cover(0)  # A: rows 1 and 3

        assert knuth_matrix.active_columns() == [1, 2, 3, 4, 5, 6]
        assert list(knuth_matrix.column_rows(3)) == [5]
        assert knuth_matrix.column_size(3) == 1
        assert knuth_matrix.column_size(6) == 2
        # The covered column keeps its own rows
        assert list(knuth_matrix.column_rows(0)) == [1, 3]
        assert knuth_matrix.covered_columns == (0,)
        assert not knuth_matrix.is_pristine
        knuth_matrix.check_invariants()

    def test_uncover_restores_links_exactly(self, knuth_matrix):
        before = knuth_matrix.snapshot()

        knuth_matrix.cover(3)
        knuth_matrix.uncover(3)

        assert knuth_matrix.snapshot() == before
        assert knuth_matrix.is_pristine

    def test_nested_cover_sequence_restores(self, knuth_matrix):
        before = knuth_matrix.snapshot()
        order = [6, 0, 4, 2]

        for column in order:
            knuth_matrix.cover(column)
            knuth_matrix.check_invariants()
        for column in reversed(order):
            knuth_matrix.uncover(column)
            knuth_matrix.check_invariants()

        assert knuth_matrix.snapshot() == before
        assert knuth_matrix.active_columns() == list(range(7))

    def test_every_pair_of_columns(self, knuth_matrix):
        before = knuth_matrix.snapshot()
        for a in range(7):
            for b in range(7):
                if a == b:
                    continue
                knuth_matrix.cover(a)
                knuth_matrix.cover(b)
                knuth_matrix.check_invariants()
                knuth_matrix.uncover(b)
                knuth_matrix.uncover(a)
                assert knuth_matrix.snapshot() == before

    def test_secondary_column_cover(self):
        matrix = build_matrix(2, [[0, 1], [1]], secondary={1})
        before = matrix.snapshot()

        matrix.cover(1)
        assert matrix.active_columns() == [0]
        assert matrix.column_size(0) == 0
        matrix.check_invariants()

        matrix.uncover(1)
        assert matrix.snapshot() == before

    def test_uncover_out_of_order(self, knuth_matrix):
        knuth_matrix.cover(0)
        knuth_matrix.cover(1)
        with pytest.raises(CoverOrderError):
            knuth_matrix.uncover(0)
        with pytest.raises(CoverOrderError):
            knuth_matrix.uncover(5)

    def test_uncover_without_cover(self, knuth_matrix):
        with pytest.raises(CoverOrderError):
            knuth_matrix.uncover(0)

    def test_cover_twice(self, knuth_matrix):
        knuth_matrix.cover(2)
        with pytest.raises(CoverOrderError):
            knuth_matrix.cover(2)

    def test_no_construction_while_covered(self, knuth_matrix):
        knuth_matrix.cover(2)
        with pytest.raises(MatrixBusyError):
            knuth_matrix.add_row([0])
        with pytest.raises(MatrixBusyError):
            knuth_matrix.add_column()

        knuth_matrix.uncover(2)
        assert knuth_matrix.add_row([0]) == 6


class TestInvariantCheck:
    """check_invariants catches corruption."""

    def test_size_mismatch(self, knuth_matrix):
        knuth_matrix._sizes[2] += 1
        with pytest.raises(InvariantViolation):
            knuth_matrix.check_invariants()

    def test_broken_vertical_link(self, knuth_matrix):
        node = knuth_matrix._down[knuth_matrix._headers[0]]
        knuth_matrix._up[node] = node
        with pytest.raises(InvariantViolation):
            knuth_matrix.check_invariants()

    def test_broken_root_ring(self, knuth_matrix):
        header = knuth_matrix._headers[3]
        knuth_matrix._right[knuth_matrix._left[header]] = knuth_matrix._right[header]
        with pytest.raises(InvariantViolation):
            knuth_matrix.check_invariants()
