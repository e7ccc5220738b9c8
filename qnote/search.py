"""
Incremental fuzzy search over notes.

A query matches a note when its characters appear, in order and ignoring
case, somewhere in ``"<title> <content>"``. The best-scoring alignment wins:
matches at word starts and runs of consecutive characters score higher,
gaps cost a little (up to a cap, so any subsequence match stays positive).
"""

from typing import List, Optional, Tuple

from .note import Note
from .sorting import SortMode

SCORE_MATCH = 16
BONUS_FIRST_CHAR = 8
BONUS_BOUNDARY = 8
BONUS_CAMEL = 7
BONUS_CONSECUTIVE = 5
PENALTY_GAP_START = 3
PENALTY_GAP_EXTENSION = 1
PENALTY_GAP_MAX = 12

# Notes scoring below this are not shown.
MIN_SCORE = 1

# Widest stretch of text the alignment pass looks at.
MAX_WINDOW = 512

_NEG = float("-inf")


def searchable_text(note: Note) -> str:
    """Text a query is matched against; title offsets come first."""
    return f"{note.title} {note.content}"


class FuzzyMatcher:
    """Subsequence scorer returning the score and matched character offsets."""

    def _bonus(self, text: str, j: int) -> int:
        if j == 0:
            return BONUS_FIRST_CHAR
        prev, cur = text[j - 1], text[j]
        if not prev.isalnum():
            return BONUS_BOUNDARY
        if prev.islower() and cur.isupper():
            return BONUS_CAMEL
        return 0

    def fuzzy_indices(self, text: str, pattern: str) -> Optional[Tuple[int, List[int]]]:
        """
        Score ``pattern`` against ``text``.

        The alignment only looks at a window of at most ``MAX_WINDOW``
        characters, starting at the first place the match can begin. When
        even the tightest match is wider than that, the greedy alignment is
        scored instead.

        Args:
            text: The text to search
            pattern: The query (case-insensitive)

        Returns:
            ``(score, offsets)`` for the best alignment, or None when the
            pattern is not a subsequence of the text
        """
        pattern = pattern.lower()
        if not pattern:
            return None
        lowered = text.lower()
        if len(lowered) != len(text):
            lowered = "".join(ch.lower()[0] for ch in text)
        end = _greedy_end(pattern, lowered)
        if end < 0:
            return None

        start = lowered.find(pattern[0])
        if end - start >= MAX_WINDOW:
            start = _tight_start(pattern, lowered, end)
        if end - start >= MAX_WINDOW:
            indices = _greedy_indices(pattern, lowered, start)
            return self._score(text, indices), indices
        stop = min(len(lowered), max(end + 1, start + MAX_WINDOW))
        return self._align(text, lowered, pattern, start, stop)

    def _score(self, text: str, indices: List[int]) -> int:
        """Score a fixed alignment the same way ``_align`` does."""
        score = 0
        for n, j in enumerate(indices):
            score += SCORE_MATCH + self._bonus(text, j)
            if n == 0:
                continue
            gap = j - indices[n - 1] - 1
            if gap == 0:
                score += BONUS_CONSECUTIVE
            else:
                score -= min(PENALTY_GAP_START + (gap - 1) * PENALTY_GAP_EXTENSION, PENALTY_GAP_MAX)
        return score

    def _align(self, text: str, lowered: str, pattern: str, lo: int, hi: int) -> Optional[Tuple[int, List[int]]]:
        """Best alignment of ``pattern`` inside ``text[lo:hi]``; offsets are absolute."""
        n = hi - lo
        bonuses = [self._bonus(text, lo + j) for j in range(n)]
        window = lowered[lo:hi]
        rows: List[List[float]] = []
        back: List[List[int]] = []

        prev: List[float] = [_NEG] * n
        for i, ch in enumerate(pattern):
            cur: List[float] = [_NEG] * n
            came_from: List[int] = [-1] * n
            # Best predecessor at least one character back, with the gap
            # penalty still growing, and the best one with the penalty capped.
            gap_val, gap_k = _NEG, -1
            capped_val, capped_k = _NEG, -1
            for j in range(n):
                if window[j] == ch:
                    base = SCORE_MATCH + bonuses[j]
                    if i == 0:
                        cur[j] = base
                    else:
                        best, best_k = _NEG, -1
                        if j > 0 and prev[j - 1] > _NEG:
                            best, best_k = prev[j - 1] + BONUS_CONSECUTIVE, j - 1
                        if gap_val > best:
                            best, best_k = gap_val, gap_k
                        if capped_val - PENALTY_GAP_MAX > best:
                            best, best_k = capped_val - PENALTY_GAP_MAX, capped_k
                        if best_k >= 0:
                            cur[j] = base + best
                            came_from[j] = best_k
                if i > 0 and j > 0:
                    candidate = prev[j - 1] - PENALTY_GAP_START
                    gap_val -= PENALTY_GAP_EXTENSION
                    if candidate > gap_val:
                        gap_val, gap_k = candidate, j - 1
                    if prev[j - 1] > capped_val:
                        capped_val, capped_k = prev[j - 1], j - 1
            rows.append(cur)
            back.append(came_from)
            prev = cur

        last = rows[-1]
        end = max(range(n), key=lambda j: last[j])
        score = last[end]
        if score == _NEG:
            return None

        indices = [end]
        for i in range(len(pattern) - 1, 0, -1):
            end = back[i][end]
            indices.append(end)
        indices.reverse()
        return int(score), [lo + j for j in indices]


def _greedy_end(pattern: str, text: str) -> int:
    """Offset of the last character of the leftmost greedy match, or -1."""
    pos = -1
    for ch in pattern:
        pos = text.find(ch, pos + 1)
        if pos < 0:
            return -1
    return pos


def _tight_start(pattern: str, text: str, end: int) -> int:
    """Latest offset a match ending at or before ``end`` can start from."""
    pos = end + 1
    for ch in reversed(pattern):
        pos = text.rfind(ch, 0, pos)
    return pos


def _greedy_indices(pattern: str, text: str, start: int) -> List[int]:
    indices = []
    pos = start - 1
    for ch in pattern:
        pos = text.find(ch, pos + 1)
        indices.append(pos)
    return indices


class SearchState:
    """
    Committed query, live input buffer and per-note match offsets.

    ``match_indices`` is positionally aligned with the list returned by the
    most recent ``filter_notes`` call.
    """

    def __init__(self, matcher: Optional[FuzzyMatcher] = None):
        self.query = ""
        self.input_buffer = ""
        self.match_indices: List[List[int]] = []
        self._matcher = matcher or FuzzyMatcher()
        self._query_before_input = ""

    def is_active(self) -> bool:
        return bool(self.query)

    def clear(self) -> None:
        self.query = ""
        self.input_buffer = ""
        self.match_indices = []

    def set_query(self, query: str) -> None:
        self.query = query
        self.input_buffer = query

    def begin_input(self) -> None:
        """Enter search input, seeded with the committed query."""
        self.input_buffer = self.query
        self._query_before_input = self.query

    def push_char(self, ch: str) -> None:
        self.set_query(self.input_buffer + ch)

    def pop_char(self) -> None:
        self.set_query(self.input_buffer[:-1])

    def cancel_input(self) -> bool:
        """
        Drop the typed text and restore the query from before input began.

        Returns:
            True if the committed query changed and the list needs a refresh
        """
        changed = self.query != self._query_before_input
        self.query = self._query_before_input
        self.input_buffer = ""
        return changed

    def accept_input(self) -> None:
        self._query_before_input = self.query

    def filter_notes(self, all_notes: List[Note], sort_mode: SortMode) -> List[Note]:
        """
        Produce the displayed list from a freshly loaded corpus.

        With no query the corpus is sorted by ``sort_mode``; otherwise notes
        that do not match are dropped and the rest ordered by descending
        score (ties keep storage order). Match offsets are recomputed in
        the same pass.
        """
        if not self.query:
            self.match_indices = []
            notes = list(all_notes)
            sort_mode.sort_notes(notes)
            return notes

        scored = []
        for note in all_notes:
            result = self._matcher.fuzzy_indices(searchable_text(note), self.query)
            if result is not None and result[0] >= MIN_SCORE:
                scored.append((result[0], note, result[1]))
        scored.sort(key=lambda item: item[0], reverse=True)

        self.match_indices = [indices for _, _, indices in scored]
        return [note for _, note, _ in scored]
