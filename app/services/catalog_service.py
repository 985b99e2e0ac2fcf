"""Read-only bilingual question catalog with filters and per-filter counts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from app.adapters.storage.json_file import read_json_lenient
from app.schemas.questions import FacetValues, QuestionFiltersResponse

logger = logging.getLogger(__name__)

FILTER_FIELDS = ("category", "difficulty", "frequency")

# Filter value meaning "do not filter on this field"
ALL = "all"


def _matches(question: dict[str, Any], filters: dict[str, str | None], skip: str | None = None) -> bool:
    for field, wanted in filters.items():
        if field == skip or not wanted or wanted == ALL:
            continue
        if question.get(field) != wanted:
            return False
    return True


def _distinct(questions: Iterable[dict[str, Any]], field: str) -> list[str]:
    values: set[str] = set()
    for question in questions:
        value = question.get(field)
        if isinstance(value, str) and value.strip():
            values.add(value.strip())
    return sorted(values)


class QuestionCatalog:
    """Serves the static question dataset.

    The dataset is loaded once, on first use. A missing or invalid file
    yields an empty catalog.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._questions: list[dict[str, Any]] | None = None

    @property
    def questions(self) -> list[dict[str, Any]]:
        if self._questions is None:
            raw = read_json_lenient(self.path, list, collection="questions")
            self._questions = [q for q in raw if isinstance(q, dict)]
            if not self._questions:
                logger.warning("catalog.empty", extra={"dataset": self.path.name})
            else:
                logger.info(
                    "catalog.loaded",
                    extra={"dataset": self.path.name, "size": len(self._questions)},
                )
        return self._questions

    def search(
        self,
        *,
        category: str | None = None,
        difficulty: str | None = None,
        frequency: str | None = None,
    ) -> list[dict[str, Any]]:
        filters = {"category": category, "difficulty": difficulty, "frequency": frequency}
        return [q for q in self.questions if _matches(q, filters)]

    def filters(
        self,
        *,
        category: str | None = None,
        difficulty: str | None = None,
        frequency: str | None = None,
    ) -> QuestionFiltersResponse:
        """Distinct values and counts for each filter field.

        The counts of a field ignore that field's own filter but honour the
        other two, so every option shows how many questions selecting it
        would return.
        """

        filters = {"category": category, "difficulty": difficulty, "frequency": frequency}
        facets: dict[str, FacetValues] = {}

        for field in FILTER_FIELDS:
            base = [q for q in self.questions if _matches(q, filters, skip=field)]
            counts: dict[str, int] = {}
            for question in base:
                value = question.get(field)
                if isinstance(value, str):
                    counts[value] = counts.get(value, 0) + 1
            counts[ALL] = len(base)
            facets[field] = FacetValues(values=_distinct(self.questions, field), counts=counts)

        return QuestionFiltersResponse(**facets)
