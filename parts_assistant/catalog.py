"""
Part Catalog Store

Holds every PartRecord in memory and answers catalog questions:
- load_all(): lazy, load-once read of the bundled JSON
- find_by_part_number(): case-insensitive exact lookup
- search_by_text() / search_by_symptom(): scored keyword search
- find_compatible() / check_compatibility(): model-number matching

Scoring is a term-overlap heuristic (see score_text). Scores are not bounded to
[0, 1]: a strong name match can push a part well above 1.0.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .agent_types import SortBy, SortOrder
from .models import Category, PartRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    """A part together with the score that ranked it."""
    part: PartRecord
    score: float


@dataclass(frozen=True)
class CompatibilityCheck:
    """Outcome of check_compatibility; part is None when the part number is unknown."""
    is_compatible: bool
    part: Optional[PartRecord] = None
    compatible_models: list[str] = field(default_factory=list)


def build_search_text(part: PartRecord) -> str:
    symptoms = " ".join(part.symptoms or [])
    models = " ".join(part.compatible_models)
    return (
        f"{part.name} {part.description} {part.category.value} {part.brand} "
        f"{part.part_number} {symptoms} {models}"
    ).lower()


def query_tokens(query: str) -> list[str]:
    return [w for w in query.lower().split() if len(w) > 2]


def score_text(query: str, text: str, name: str = "") -> float:
    """
    Term-overlap relevance score.

    For every query token longer than 2 chars that occurs in `text`:
    +1, +0.5 more if it occurs as a whole word, +2.0 more if it is also in `name`.
    The sum is divided by the number of tokens. No tokens means a score of 0.
    """
    tokens = query_tokens(query)
    if not tokens:
        return 0.0

    text_lower = text.lower()
    name_lower = name.lower()
    match_count = 0
    exact_bonus = 0.0
    name_bonus = 0.0

    for word in tokens:
        if word not in text_lower:
            continue
        match_count += 1
        if f" {word} " in text_lower or text_lower.startswith(word) or text_lower.endswith(word):
            exact_bonus += 0.5
        if name_lower and word in name_lower:
            name_bonus += 2.0

    return (match_count + exact_bonus + name_bonus) / len(tokens)


def _sort_key(sort_by: SortBy):
    if sort_by == SortBy.PRICE:
        return lambda hit: hit.part.price
    if sort_by == SortBy.RATING:
        return lambda hit: hit.part.rating
    if sort_by == SortBy.REVIEWS:
        return lambda hit: hit.part.review_count
    return lambda hit: hit.score


class CatalogStore:
    """
    In-memory part catalog backed by a JSON file.

    The part list is read once, on first use, under a lock; afterwards every call
    returns the same tuple object. invalidate() drops it so the next call re-reads.
    """

    def __init__(self, data_path: Path, parts: Optional[list[PartRecord]] = None) -> None:
        self._data_path = Path(data_path)
        self._lock = threading.Lock()
        self._parts: Optional[tuple[PartRecord, ...]] = None
        self.load_count = 0
        if parts is not None:
            self._parts = self._index(parts)

    # -------- loading --------

    @staticmethod
    def _index(raw_parts: list[PartRecord]) -> tuple[PartRecord, ...]:
        return tuple(
            part.model_copy(update={
                "id": part.id or f"part_{index}",
                "search_text": build_search_text(part),
            })
            for index, part in enumerate(raw_parts)
        )

    def _read_file(self) -> list[PartRecord]:
        with open(self._data_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [PartRecord.model_validate(item) for item in raw]

    def load_all(self) -> tuple[PartRecord, ...]:
        """
        Return every part, reading the backing file on first call only.

        Raises:
            OSError / ValueError: if the data file is missing or malformed.
        """
        if self._parts is not None:
            return self._parts
        with self._lock:
            if self._parts is None:
                parts = self._index(self._read_file())
                self.load_count += 1
                logger.info("Loaded %d parts from %s", len(parts), self._data_path)
                self._parts = parts
            return self._parts

    def invalidate(self) -> None:
        """Drop the cached part list; the next load_all() re-reads the file."""
        with self._lock:
            self._parts = None

    # -------- lookups --------

    def find_by_part_number(self, part_number: str) -> Optional[PartRecord]:
        wanted = part_number.strip().lower()
        for part in self.load_all():
            if part.part_number.lower() == wanted:
                return part
        return None

    def parts_by_category(self, category: Category) -> list[PartRecord]:
        return [p for p in self.load_all() if p.category == category]

    def _candidates(self, category: Optional[Category]) -> list[PartRecord]:
        if category is None:
            return list(self.load_all())
        return self.parts_by_category(category)

    # -------- search --------

    def search_by_text(
        self,
        query: str,
        category: Optional[Category] = None,
        max_results: int = 5,
        min_score: float = 0.4,
        sort_by: SortBy = SortBy.RELEVANCE,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> list[SearchHit]:
        """
        Score every candidate part against `query` and return the best matches.

        Only hits with score >= min_score survive; an empty or all-short-token
        query returns [].
        """
        if not query_tokens(query):
            return []

        hits = []
        for part in self._candidates(category):
            score = score_text(query, part.search_text, part.name)
            if score >= min_score:
                hits.append(SearchHit(part=part, score=score))

        hits.sort(key=_sort_key(sort_by), reverse=sort_order == SortOrder.DESC)
        return hits[:max_results]

    def search_by_symptom(
        self,
        symptom: str,
        category: Optional[Category] = None,
        max_results: int = 5,
    ) -> list[SearchHit]:
        """
        Rank parts that declare symptoms.

        A part whose symptom phrases overlap `symptom` (substring either way) scores
        1 + 0.2 per matching phrase; otherwise it falls back to score_text over its
        search text. Hits scoring <= 0.1 are dropped.
        """
        symptom_lower = symptom.strip().lower()
        hits = []
        for part in self._candidates(category):
            if not part.symptoms:
                continue
            matches = [
                s for s in part.symptoms
                if symptom_lower and (symptom_lower in s.lower() or s.lower() in symptom_lower)
            ]
            if matches:
                score = 1 + 0.2 * len(matches)
            else:
                score = score_text(symptom, part.search_text)
            if score > 0.1:
                hits.append(SearchHit(part=part, score=score))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:max_results]

    # -------- compatibility --------

    def find_compatible(
        self,
        model_number: str,
        max_results: Optional[int] = None,
        sort_by: SortBy = SortBy.RATING,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> list[PartRecord]:
        """Parts listing a compatible model that contains `model_number` (case-insensitive)."""
        model_lower = model_number.strip().lower()
        if not model_lower:
            return []
        compatible = [
            part for part in self.load_all()
            if any(model_lower in m.lower() for m in part.compatible_models)
        ]
        if sort_by != SortBy.RELEVANCE:
            hits = [SearchHit(part=p, score=0.0) for p in compatible]
            hits.sort(key=_sort_key(sort_by), reverse=sort_order == SortOrder.DESC)
            compatible = [hit.part for hit in hits]
        if max_results:
            return compatible[:max_results]
        return compatible

    def check_compatibility(self, part_number: str, model_number: str) -> CompatibilityCheck:
        part = self.find_by_part_number(part_number)
        if part is None:
            return CompatibilityCheck(is_compatible=False)

        model_lower = model_number.strip().lower()
        is_compatible = bool(model_lower) and any(
            model_lower in m.lower() or m.lower() in model_lower
            for m in part.compatible_models
        )
        return CompatibilityCheck(
            is_compatible=is_compatible,
            part=part,
            compatible_models=list(part.compatible_models),
        )
