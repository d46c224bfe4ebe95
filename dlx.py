# dlx.py
# Dancing Links sparse matrix (arena of integer-linked nodes)

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, NamedTuple, Optional

ROOT = 0


class ColumnKind(Enum):
    PRIMARY = "primary"  # covered exactly once
    SECONDARY = "secondary"  # covered at most once


class MatrixError(Exception):
    """Base class for every error raised by :class:`Matrix`."""


class ColumnIndexError(MatrixError, IndexError):
    pass


class RowIndexError(MatrixError, IndexError):
    pass


class DuplicateColumnError(MatrixError, ValueError):
    pass


class MatrixBusyError(MatrixError, RuntimeError):
    pass


class CoverOrderError(MatrixError, RuntimeError):
    pass


class InvariantViolation(MatrixError, AssertionError):
    """The link structure is corrupt. Never recoverable."""


class MatrixSnapshot(NamedTuple):
    left: tuple[int, ...]
    right: tuple[int, ...]
    up: tuple[int, ...]
    down: tuple[int, ...]
    sizes: tuple[int, ...]


class Matrix:
    """
    Sparse 0/1 incidence matrix for exact cover problems.

    Every link element lives in a set of parallel lists indexed by node id:
    node 0 is the root, column headers and row nodes follow in creation
    order. ``left``/``right`` link a row (or, for headers, the active
    primary columns) and ``up``/``down`` link a column.
    """

    def __init__(self) -> None:
        self._left: list[int] = [ROOT]
        self._right: list[int] = [ROOT]
        self._up: list[int] = [ROOT]
        self._down: list[int] = [ROOT]
        self._col: list[int] = [-1]
        self._row: list[int] = [-1]

        self._headers: list[int] = []
        self._sizes: list[int] = []
        self._kinds: list[ColumnKind] = []
        self._labels: list[Optional[str]] = []
        self._rows: list[tuple[int, ...]] = []

        self._covered: list[int] = []
        self._held = False

    def __repr__(self) -> str:
        return (
            f"Matrix(columns={self.column_count}, rows={self.row_count}, "
            f"nodes={self.node_count})"
        )

    # --- construction ------------------------------------------------------

    def _new_node(self, column: int, row: int) -> int:
        node = len(self._left)
        self._left.append(node)
        self._right.append(node)
        self._up.append(node)
        self._down.append(node)
        self._col.append(column)
        self._row.append(row)
        return node

    def _check_mutable(self) -> None:
        if self._held:
            raise MatrixBusyError("matrix is being searched")
        if self._covered:
            raise MatrixBusyError(
                f"cannot modify a matrix with covered columns {self._covered}"
            )

    def add_column(
        self,
        kind: ColumnKind = ColumnKind.PRIMARY,
        label: Optional[str] = None,
    ) -> int:
        self._check_mutable()
        kind = ColumnKind(kind)

        column = len(self._headers)
        header = self._new_node(column, -1)

        # Primary headers go at the end of the root ring; secondary headers
        # stay self-linked so the search never sees them.
        if kind is ColumnKind.PRIMARY:
            last = self._left[ROOT]
            self._left[header] = last
            self._right[header] = ROOT
            self._right[last] = header
            self._left[ROOT] = header

        self._headers.append(header)
        self._sizes.append(0)
        self._kinds.append(kind)
        self._labels.append(label)
        return column

    def add_columns(self, count: int, kind: ColumnKind = ColumnKind.PRIMARY) -> range:
        start = self.column_count
        for _ in range(count):
            self.add_column(kind)
        return range(start, self.column_count)

    def add_row(self, columns: Iterable[int]) -> int:
        self._check_mutable()
        columns = tuple(columns)

        seen: set[int] = set()
        for c in columns:
            self._check_column(c)
            if c in seen:
                raise DuplicateColumnError(f"column {c} listed twice in one row")
            seen.add(c)

        row = len(self._rows)
        nodes: list[int] = []
        for c in columns:
            header = self._headers[c]
            node = self._new_node(c, row)

            # Insert into column (at bottom)
            bottom = self._up[header]
            self._up[node] = bottom
            self._down[node] = header
            self._down[bottom] = node
            self._up[header] = node
            self._sizes[c] += 1

            nodes.append(node)

        # Link horizontally within row
        for i, node in enumerate(nodes):
            self._right[node] = nodes[(i + 1) % len(nodes)]
            self._left[node] = nodes[i - 1]

        self._rows.append(columns)
        return row

    # --- cover / uncover ---------------------------------------------------

    def _cover(self, column: int) -> None:
        left, right, up, down = self._left, self._right, self._up, self._down
        col, sizes = self._col, self._sizes

        header = self._headers[column]
        right[left[header]] = right[header]
        left[right[header]] = left[header]

        i = down[header]
        while i != header:
            j = right[i]
            while j != i:
                up[down[j]] = up[j]
                down[up[j]] = down[j]
                sizes[col[j]] -= 1
                j = right[j]
            i = down[i]

        self._covered.append(column)

    def _uncover(self, column: int) -> None:
        left, right, up, down = self._left, self._right, self._up, self._down
        col, sizes = self._col, self._sizes

        header = self._headers[column]
        i = up[header]
        while i != header:
            j = left[i]
            while j != i:
                sizes[col[j]] += 1
                up[down[j]] = j
                down[up[j]] = j
                j = left[j]
            i = up[i]

        right[left[header]] = header
        left[right[header]] = header

        self._covered.pop()

    def cover(self, column: int) -> None:
        if self._held:
            raise MatrixBusyError("matrix is being searched")
        self._check_column(column)
        if column in self._covered:
            raise CoverOrderError(f"column {column} is already covered")
        self._cover(column)

    def uncover(self, column: int) -> None:
        if self._held:
            raise MatrixBusyError("matrix is being searched")
        self._check_column(column)
        if not self._covered or self._covered[-1] != column:
            raise CoverOrderError(
                f"column {column} is not the most recently covered column "
                f"(covered: {self._covered})"
            )
        self._uncover(column)

    # --- search support ----------------------------------------------------

    def _acquire(self) -> None:
        if self._held:
            raise MatrixBusyError("matrix is already being searched")
        self._held = True

    def _release(self) -> None:
        self._held = False

    def active_columns(self) -> list[int]:
        """Uncovered primary columns in ring order, starting at the root."""
        columns: list[int] = []
        node = self._right[ROOT]
        while node != ROOT:
            columns.append(self._col[node])
            node = self._right[node]
        return columns

    def column_rows(self, column: int) -> Iterator[int]:
        """
        Rows currently linked under ``column``, top to bottom.

        The ring is followed lazily: the next row is looked up only when it
        is requested, so a caller may cover and uncover other columns between
        steps as long as the structure is restored before resuming.
        """
        self._check_column(column)
        header = self._headers[column]
        node = self._down[header]
        while node != header:
            yield self._row[node]
            node = self._down[node]

    # --- introspection -----------------------------------------------------

    def _check_column(self, column: int) -> None:
        if (
            not isinstance(column, int)
            or isinstance(column, bool)
            or not 0 <= column < len(self._headers)
        ):
            raise ColumnIndexError(
                f"column {column!r} out of range (matrix has {len(self._headers)} columns)"
            )

    def _check_row(self, row: int) -> None:
        if (
            not isinstance(row, int)
            or isinstance(row, bool)
            or not 0 <= row < len(self._rows)
        ):
            raise RowIndexError(
                f"row {row!r} out of range (matrix has {len(self._rows)} rows)"
            )

    @property
    def column_count(self) -> int:
        return len(self._headers)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def node_count(self) -> int:
        """Row x column intersections (headers and root excluded)."""
        return len(self._left) - 1 - len(self._headers)

    @property
    def covered_columns(self) -> tuple[int, ...]:
        return tuple(self._covered)

    @property
    def is_pristine(self) -> bool:
        return not self._covered and not self._held

    @property
    def is_held(self) -> bool:
        return self._held

    def column_size(self, column: int) -> int:
        self._check_column(column)
        return self._sizes[column]

    def column_kind(self, column: int) -> ColumnKind:
        self._check_column(column)
        return self._kinds[column]

    def column_label(self, column: int) -> Optional[str]:
        self._check_column(column)
        return self._labels[column]

    def row_columns(self, row: int) -> tuple[int, ...]:
        self._check_row(row)
        return self._rows[row]

    def snapshot(self) -> MatrixSnapshot:
        return MatrixSnapshot(
            tuple(self._left),
            tuple(self._right),
            tuple(self._up),
            tuple(self._down),
            tuple(self._sizes),
        )

    def check_invariants(self) -> None:
        """
        Walk every active ring and verify links and sizes.

        Raises InvariantViolation on the first inconsistency found.
        """
        left, right, up, down = self._left, self._right, self._up, self._down
        limit = len(left)
        covered = set(self._covered)

        # Root ring holds exactly the uncovered primary columns, in order.
        expected = [
            c
            for c in range(len(self._headers))
            if self._kinds[c] is ColumnKind.PRIMARY and c not in covered
        ]
        ring: list[int] = []
        node, steps = ROOT, 0
        while True:
            nxt = right[node]
            if left[nxt] != node:
                raise InvariantViolation(f"root ring broken between {node} and {nxt}")
            node = nxt
            if node == ROOT:
                break
            ring.append(self._col[node])
            steps += 1
            if steps > limit:
                raise InvariantViolation("root ring does not close")
        if ring != expected:
            raise InvariantViolation(f"active columns {ring}, expected {expected}")

        for c, header in enumerate(self._headers):
            if c in covered:
                continue
            count, node = 0, header
            while True:
                nxt = down[node]
                if up[nxt] != node:
                    raise InvariantViolation(
                        f"column {c} ring broken between {node} and {nxt}"
                    )
                node = nxt
                if node == header:
                    break
                if self._col[node] != c:
                    raise InvariantViolation(f"node {node} linked under wrong column {c}")
                count += 1
                if count > limit:
                    raise InvariantViolation(f"column {c} ring does not close")

                # Horizontal ring of an active row.
                j, hops = right[node], 0
                while j != node:
                    if left[right[j]] != j:
                        raise InvariantViolation(f"row ring broken at node {j}")
                    j = right[j]
                    hops += 1
                    if hops > limit:
                        raise InvariantViolation(f"row {self._row[node]} ring does not close")
            if count != self._sizes[c]:
                raise InvariantViolation(
                    f"column {c} reports size {self._sizes[c]} but links {count} rows"
                )
