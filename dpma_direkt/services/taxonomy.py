import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from dpma_direkt.core.config import get_settings
from dpma_direkt.core.errors import TaxonomyLoadError
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import NiceClassSelection
from dpma_direkt.services.similarity import levenshtein_similarity, normalize_for_comparison

logger = get_logger(__name__)

INDEX_STRIP_PATTERN = re.compile(r"[^\w\säöüß]", re.ASCII)
WHITESPACE_PATTERN = re.compile(r"\s+")


class TaxonomyEntry(BaseModel):
    text: str
    normalized_text: str
    class_number: int
    concept_id: str
    level: int
    path: list[str] = Field(default_factory=list)
    child_count: int = 0
    is_leaf: bool = True


class TermValidation(BaseModel):
    found: bool
    entry: TaxonomyEntry | None = None
    suggestions: list[TaxonomyEntry] = Field(default_factory=list)
    error: str | None = None


def normalize_text(text: str) -> str:
    value = INDEX_STRIP_PATTERN.sub(" ", (text or "").lower())
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def calculate_similarity(query: str, target: str) -> float:
    normalized_query = normalize_for_comparison(query)
    normalized_target = normalize_for_comparison(target)
    if normalized_query == normalized_target:
        return 1.0

    score = levenshtein_similarity(normalized_query, normalized_target, min_similarity=0.2, normalize=False)

    if normalized_query and normalized_query in normalized_target:
        score = min(1.0, score + 0.3 * (len(normalized_query) / len(normalized_target)))
    elif normalized_target and normalized_target in normalized_query:
        score = min(1.0, score + 0.1)

    query_words = [word for word in normalized_query.split(" ") if len(word) > 2]
    target_words = [word for word in normalized_target.split(" ") if len(word) > 2]
    if query_words and target_words:
        matched = 0
        for query_word in query_words:
            for target_word in target_words:
                if levenshtein_similarity(query_word, target_word, min_similarity=0.7, normalize=False) >= 0.7:
                    matched += 1
                    break
        score = min(1.0, score + 0.1 * (matched / len(query_words)))
    return score


def _is_skipped_root(item: dict[str, Any]) -> bool:
    text = item.get("Text") or ""
    return item.get("Level") == 0 and (text == "Begriffe" or text.startswith("Sämtliche"))


class TaxonomyService:
    """In-memory index over the DPMA goods and services taxonomy (Nice classes)."""

    def __init__(self) -> None:
        self.entries: list[TaxonomyEntry] = []
        self._text_index: dict[str, list[TaxonomyEntry]] = {}
        self._concept_index: dict[str, TaxonomyEntry] = {}
        self._class_index: dict[int, list[TaxonomyEntry]] = {}
        self.loaded = False

    def load(self, taxonomy_path: str | Path | None = None) -> None:
        if self.loaded:
            return
        path = Path(taxonomy_path or get_settings().taxonomy_path)
        try:
            root = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise TaxonomyLoadError(f"Failed to load taxonomy: {exc}") from exc
        self.load_tree(root)
        logger.info("taxonomy loaded", extra={"extra": {"path": str(path), "entries": len(self.entries)}})

    def load_tree(self, root: dict[str, Any]) -> None:
        if self.loaded:
            return
        self._traverse(root, [])
        self.loaded = True

    def _traverse(self, item: dict[str, Any], current_path: list[str]) -> None:
        children = item.get("Items") or []
        if _is_skipped_root(item):
            for child in children:
                self._traverse(child, current_path)
            return

        text = item.get("Text") or ""
        entry = TaxonomyEntry(
            text=text,
            normalized_text=normalize_text(text),
            class_number=int(item.get("ClassNumber") or 0),
            concept_id=str(item.get("ConceptId") or ""),
            level=int(item.get("Level") or 0),
            path=[*current_path, text],
            child_count=int(item.get("ItemsSize") or 0),
            is_leaf=item.get("Items") is None,
        )
        self.entries.append(entry)
        self._text_index.setdefault(entry.normalized_text, []).append(entry)
        self._concept_index[entry.concept_id] = entry
        if entry.class_number > 0:
            self._class_index.setdefault(entry.class_number, []).append(entry)

        for child in children:
            self._traverse(child, entry.path)

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    def get_available_classes(self) -> list[int]:
        return sorted(self._class_index)

    def get_class_entries(self, class_number: int) -> list[TaxonomyEntry]:
        return list(self._class_index.get(class_number, []))

    def find_exact(self, text: str, class_number: int | None = None) -> TaxonomyEntry | None:
        matches = self._text_index.get(normalize_text(text), [])
        if class_number is not None:
            return next((entry for entry in matches if entry.class_number == class_number), None)
        return matches[0] if matches else None

    def find_by_concept_id(self, concept_id: str) -> TaxonomyEntry | None:
        return self._concept_index.get(concept_id)

    def search(
        self,
        query: str,
        *,
        class_numbers: list[int] | None = None,
        leaf_only: bool = False,
        limit: int = 20,
        min_score: float = 0.3,
    ) -> list[TaxonomyEntry]:
        normalized_query = normalize_text(query)
        candidates = self.entries
        if class_numbers:
            candidates = [entry for entry in candidates if entry.class_number in class_numbers]
        if leaf_only:
            candidates = [entry for entry in candidates if entry.is_leaf]

        scored = [(entry, calculate_similarity(normalized_query, entry.text)) for entry in candidates]
        scored = [item for item in scored if item[1] >= min_score]
        scored.sort(key=lambda item: item[1], reverse=True)
        return [entry for entry, _ in scored[:limit]]

    def validate_term(self, term: str, class_number: int | None = None) -> TermValidation:
        exact = self.find_exact(term, class_number)
        if exact:
            return TermValidation(found=True, entry=exact)

        suggestions = self.search(
            term,
            class_numbers=[class_number] if class_number else None,
            limit=5,
            min_score=0.4,
        )
        if suggestions:
            quoted = ", ".join(f'"{entry.text}"' for entry in suggestions)
            error = f'Term "{term}" not found. Did you mean one of: {quoted}?'
        else:
            error = f'Term "{term}" not found in taxonomy.'
        return TermValidation(found=False, suggestions=suggestions, error=error)

    def validate_nice_class_selection(self, selection: NiceClassSelection | dict[str, Any]) -> dict[str, Any]:
        if isinstance(selection, dict):
            class_number = selection.get("class_number")
            terms = selection.get("terms") or []
        else:
            class_number = selection.class_number
            terms = selection.terms

        errors: list[str] = []
        results: dict[str, TermValidation] = {}
        if not isinstance(class_number, int) or not 1 <= class_number <= 45:
            errors.append(f"Invalid class number: {class_number}. Must be 1-45.")
        for term in terms:
            result = self.validate_term(term, class_number if isinstance(class_number, int) else None)
            results[term] = result
            if not result.found:
                errors.append(result.error or f'Term "{term}" not found.')
        return {"valid": not errors, "results": results, "errors": errors}

    def validate_nice_classes(self, selections: list[NiceClassSelection | dict[str, Any]]) -> dict[str, Any]:
        class_results: dict[Any, dict[str, Any]] = {}
        all_errors: list[str] = []
        for selection in selections:
            outcome = self.validate_nice_class_selection(selection)
            class_number = selection.get("class_number") if isinstance(selection, dict) else selection.class_number
            class_results[class_number] = {"valid": outcome["valid"], "errors": outcome["errors"]}
            all_errors.extend(f"Class {class_number}: {error}" for error in outcome["errors"])
        return {"valid": not all_errors, "class_results": class_results, "all_errors": all_errors}

    def get_class_header(self, class_number: int) -> TaxonomyEntry | None:
        return next(
            (
                entry
                for entry in self._class_index.get(class_number, [])
                if entry.level == 1 and entry.text.startswith("Klasse")
            ),
            None,
        )

    def get_class_categories(self, class_number: int) -> list[TaxonomyEntry]:
        return [entry for entry in self._class_index.get(class_number, []) if entry.level == 2]

    def get_stats(self) -> dict[str, Any]:
        class_counts: dict[int, int] = {}
        leaf_count = 0
        for entry in self.entries:
            if entry.class_number > 0:
                class_counts[entry.class_number] = class_counts.get(entry.class_number, 0) + 1
            if entry.is_leaf:
                leaf_count += 1
        return {
            "total_entries": len(self.entries),
            "class_counts": class_counts,
            "leaf_count": leaf_count,
            "category_count": len(self.entries) - leaf_count,
        }


@lru_cache(maxsize=1)
def get_taxonomy_service() -> TaxonomyService:
    service = TaxonomyService()
    service.load()
    return service
