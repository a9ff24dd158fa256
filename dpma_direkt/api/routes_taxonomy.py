from fastapi import APIRouter, Depends, HTTPException, Query

from dpma_direkt.api.deps import get_taxonomy
from dpma_direkt.api.schemas import TermValidationRequest, ok
from dpma_direkt.services.taxonomy import TaxonomyEntry, TaxonomyService

router = APIRouter(prefix="/api/taxonomy", tags=["taxonomy"])


def _entry(entry: TaxonomyEntry) -> dict:
    return {
        "text": entry.text,
        "class_number": entry.class_number,
        "concept_id": entry.concept_id,
        "level": entry.level,
        "path": entry.path,
        "is_leaf": entry.is_leaf,
    }


@router.get("/search")
def search_terms(
    q: str = Query(default=""),
    class_number: int | None = Query(default=None, alias="class", ge=1, le=45),
    limit: int = Query(default=20, ge=1, le=100),
    min_score: float = Query(default=0.3, ge=0.0, le=1.0),
    leaf_only: bool = False,
    taxonomy: TaxonomyService = Depends(get_taxonomy),
):
    if len(q.strip()) < 2:
        raise HTTPException(status_code=400, detail="Query parameter q must be at least 2 characters")
    results = taxonomy.search(
        q,
        class_numbers=[class_number] if class_number else None,
        leaf_only=leaf_only,
        limit=limit,
        min_score=min_score,
    )
    return ok({"query": q, "count": len(results), "results": [_entry(entry) for entry in results]})


def _validate(payload: TermValidationRequest, taxonomy: TaxonomyService) -> dict:
    if payload.nice_classes is not None:
        outcome = taxonomy.validate_nice_classes(payload.nice_classes)
        return {
            "valid": outcome["valid"],
            "class_results": {str(number): result for number, result in outcome["class_results"].items()},
            "errors": outcome["all_errors"],
        }
    if not payload.term:
        raise HTTPException(status_code=400, detail="Provide either term or nice_classes")

    result = taxonomy.validate_term(payload.term, payload.class_number)
    return {
        "valid": result.found,
        "entry": _entry(result.entry) if result.entry else None,
        "suggestions": [_entry(entry) for entry in result.suggestions],
        "error": result.error,
    }


@router.get("/validate")
def validate_term_query(
    term: str = Query(default=""),
    class_number: int | None = Query(default=None, alias="class", ge=1, le=45),
    taxonomy: TaxonomyService = Depends(get_taxonomy),
):
    return ok(_validate(TermValidationRequest(term=term or None, class_number=class_number), taxonomy))


@router.post("/validate")
def validate_terms(payload: TermValidationRequest, taxonomy: TaxonomyService = Depends(get_taxonomy)):
    return ok(_validate(payload, taxonomy))


@router.get("/classes")
def list_classes(taxonomy: TaxonomyService = Depends(get_taxonomy)):
    classes = []
    for number in taxonomy.get_available_classes():
        header = taxonomy.get_class_header(number)
        classes.append(
            {
                "class_number": number,
                "header": header.text if header else None,
                "entry_count": len(taxonomy.get_class_entries(number)),
            }
        )
    return ok({"classes": classes})


@router.get("/classes/{class_number}")
def get_class(class_number: int, taxonomy: TaxonomyService = Depends(get_taxonomy)):
    if not 1 <= class_number <= 45:
        raise HTTPException(status_code=400, detail="Class number must be between 1 and 45")
    header = taxonomy.get_class_header(class_number)
    return ok(
        {
            "class_number": class_number,
            "header": _entry(header) if header else None,
            "categories": [_entry(entry) for entry in taxonomy.get_class_categories(class_number)],
            "entry_count": len(taxonomy.get_class_entries(class_number)),
        }
    )


@router.get("/stats")
def taxonomy_stats(taxonomy: TaxonomyService = Depends(get_taxonomy)):
    return ok(taxonomy.get_stats())
