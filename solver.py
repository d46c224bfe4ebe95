# solver.py
# Algorithm X search over a dancing links matrix

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from itertools import islice
from typing import Iterable, Iterator, List, Optional, Tuple

from dlx import Matrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchConfig:
    # Search nodes (recursive steps) allowed before giving up; None = unlimited.
    max_nodes: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_nodes is None:
            return
        if (
            not isinstance(self.max_nodes, int)
            or isinstance(self.max_nodes, bool)
            or self.max_nodes < 1
        ):
            raise ValueError(f"max_nodes must be a positive integer or None, got {self.max_nodes!r}")


@dataclass
class SearchStats:
    nodes: int = 0
    solutions: int = 0
    backtracks: int = 0


class SearchLimitExceeded(RuntimeError):
    """Raised from the solution sequence when the node budget runs out."""

    def __init__(self, limit: int, solutions: int):
        super().__init__(
            f"search limit of {limit} nodes exceeded after {solutions} solution(s)"
        )
        self.limit = limit
        self.solutions = solutions


class EventKind(Enum):
    START = auto()
    CHOOSE_COLUMN = auto()
    COVER = auto()
    SELECT_ROW = auto()
    UNSELECT_ROW = auto()
    UNCOVER = auto()
    BACKTRACK = auto()
    SOLUTION = auto()


@dataclass(frozen=True)
class SearchEvent:
    kind: EventKind
    depth: int
    selection: Tuple[int, ...]
    column: Optional[int] = None
    row: Optional[int] = None
    size: Optional[int] = None
    # (column, size) for every active column scanned by CHOOSE_COLUMN
    candidates: Tuple[Tuple[int, int], ...] = ()


def choose_column(matrix: Matrix) -> Optional[int]:
    # Heuristic: choose column with smallest size, first one wins ties.
    best: Optional[int] = None
    best_size = 0
    for column in matrix.active_columns():
        size = matrix.column_size(column)
        if best is None or size < best_size:
            best, best_size = column, size
    return best


class Solver:
    """
    Knuth's Algorithm X over a :class:`dlx.Matrix`.

    ``givens`` are rows forced into every solution and ``satisfied`` are
    columns treated as already covered. Both are applied before the search
    starts and undone when it ends.

    Every search is a generator that holds the matrix exclusively while it
    runs. Closing it early, or an exception escaping it, uncovers everything
    the search covered, so the matrix is always handed back unchanged.
    """

    def __init__(
        self,
        matrix: Matrix,
        config: Optional[SearchConfig] = None,
        *,
        givens: Iterable[int] = (),
        satisfied: Iterable[int] = (),
    ):
        self.matrix = matrix
        self.config = config if config is not None else SearchConfig()
        self.givens = tuple(givens)
        self.satisfied = tuple(satisfied)
        self.stats = SearchStats()

        for row in self.givens:
            if not matrix.row_columns(row):
                raise ValueError(f"given row {row} covers no columns")
        for column in self.satisfied:
            matrix.column_size(column)

    def solutions(self) -> Iterator[List[int]]:
        """Lazily yield each exact cover as a list of row ids."""
        for event in self._run(trace=False):
            yield list(event.selection)

    def steps(self) -> Iterator[SearchEvent]:
        """Generator that yields every decision the search makes."""
        return self._run(trace=True)

    def first(self) -> Optional[List[int]]:
        solutions = self.solutions()
        try:
            return next(solutions, None)
        finally:
            solutions.close()

    def count(self, limit: Optional[int] = None) -> int:
        solutions = self.solutions()
        try:
            return sum(1 for _ in islice(solutions, limit))
        finally:
            solutions.close()

    # --- search ------------------------------------------------------------

    def _run(self, trace: bool) -> Iterator[SearchEvent]:
        matrix = self.matrix
        matrix._acquire()
        self.stats = SearchStats()
        selection: List[int] = []
        preset: List[int] = []

        logger.debug(
            "Starting search on %r (givens=%s, satisfied=%s)",
            matrix,
            self.givens,
            self.satisfied,
        )
        try:
            if trace:
                yield SearchEvent(EventKind.START, 0, ())

            if self._apply_presets(selection, preset):
                yield from self._search(0, selection, trace)
            else:
                logger.debug("Givens conflict; instance has no solution")
        finally:
            for column in reversed(preset):
                matrix._uncover(column)
            matrix._release()

        logger.debug(
            "Search finished: %d solution(s), %d node(s), %d backtrack(s)",
            self.stats.solutions,
            self.stats.nodes,
            self.stats.backtracks,
        )

    def _apply_presets(self, selection: List[int], preset: List[int]) -> bool:
        matrix = self.matrix
        # Columns covered by hand before the search count as satisfied.
        covered: set[int] = set(matrix.covered_columns)

        for column in self.satisfied:
            if column in covered:
                continue
            matrix._cover(column)
            preset.append(column)
            covered.add(column)

        for row in self.givens:
            columns = matrix.row_columns(row)
            if any(c in covered for c in columns):
                return False
            for column in columns:
                matrix._cover(column)
                preset.append(column)
                covered.add(column)
            selection.append(row)

        return True

    def _search(self, depth: int, selection: List[int], trace: bool) -> Iterator[SearchEvent]:
        matrix = self.matrix
        stats = self.stats

        stats.nodes += 1
        limit = self.config.max_nodes
        if limit is not None and stats.nodes > limit:
            logger.info(
                "Search limit of %d nodes reached after %d solution(s)",
                limit,
                stats.solutions,
            )
            raise SearchLimitExceeded(limit, stats.solutions)

        column = choose_column(matrix)
        if column is None:
            stats.solutions += 1
            yield SearchEvent(EventKind.SOLUTION, depth, tuple(selection))
            return

        size = matrix.column_size(column)
        if trace:
            candidates = tuple((c, matrix.column_size(c)) for c in matrix.active_columns())
            yield SearchEvent(
                EventKind.CHOOSE_COLUMN,
                depth,
                tuple(selection),
                column=column,
                size=size,
                candidates=candidates,
            )

        if size == 0:
            stats.backtracks += 1
            if trace:
                yield SearchEvent(EventKind.BACKTRACK, depth, tuple(selection), column=column, size=0)
            return

        matrix._cover(column)
        try:
            if trace:
                yield SearchEvent(EventKind.COVER, depth, tuple(selection), column=column)

            for row in matrix.column_rows(column):
                columns = matrix.row_columns(row)
                at = columns.index(column)
                others = columns[at + 1:] + columns[:at]

                selection.append(row)
                covered: List[int] = []
                try:
                    if trace:
                        yield SearchEvent(
                            EventKind.SELECT_ROW, depth, tuple(selection), column=column, row=row
                        )
                    for other in others:
                        matrix._cover(other)
                        covered.append(other)

                    yield from self._search(depth + 1, selection, trace)
                finally:
                    for other in reversed(covered):
                        matrix._uncover(other)
                    selection.pop()

                if trace:
                    yield SearchEvent(
                        EventKind.UNSELECT_ROW, depth, tuple(selection), column=column, row=row
                    )
        finally:
            matrix._uncover(column)

        if trace:
            yield SearchEvent(EventKind.UNCOVER, depth, tuple(selection), column=column)
            if depth > 0:
                yield SearchEvent(EventKind.BACKTRACK, depth, tuple(selection), column=column)


def solve(
    matrix: Matrix,
    config: Optional[SearchConfig] = None,
    *,
    givens: Iterable[int] = (),
    satisfied: Iterable[int] = (),
) -> Iterator[List[int]]:
    return Solver(matrix, config, givens=givens, satisfied=satisfied).solutions()


def solve_one(
    matrix: Matrix,
    config: Optional[SearchConfig] = None,
    *,
    givens: Iterable[int] = (),
    satisfied: Iterable[int] = (),
) -> Optional[List[int]]:
    return Solver(matrix, config, givens=givens, satisfied=satisfied).first()
