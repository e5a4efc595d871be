"""
Country and exam catalog: public reads plus admin creation.
"""

import logging
from typing import Any, Dict, List

from pymongo import ASCENDING

from colleges import COLLECTION as COLLEGE_COLLECTION, populate_country
from database import create_document, get_db, get_documents, store_errors, to_public
from schemas import Country, Exam, parse_model
from validation import NotFoundError, ValidationError, validate_required_fields

logger = logging.getLogger(__name__)

CATALOG_SORT = [("display_order", ASCENDING), ("name", ASCENDING)]


def list_countries() -> List[Dict[str, Any]]:
    docs = get_documents("country", {"is_active": True}, sort=CATALOG_SORT)
    return [to_public(d) for d in docs]


def get_country(slug: str) -> Dict[str, Any]:
    """Active country by slug together with its active colleges."""
    with store_errors("fetch country"):
        db = get_db()
        country = db["country"].find_one({"slug": slug, "is_active": True})
        if not country:
            raise NotFoundError("Country not found")
        colleges = list(
            db[COLLEGE_COLLECTION]
            .find({"country_ref": country["_id"], "is_active": True})
            .sort("name", ASCENDING)
        )
        populate_country(db, colleges)

    result = to_public(country)
    result["colleges"] = [to_public(c) for c in colleges]
    return result


def list_exams() -> List[Dict[str, Any]]:
    docs = get_documents("exam", {"is_active": True}, sort=CATALOG_SORT)
    return [to_public(d) for d in docs]


def get_exam(slug: str) -> Dict[str, Any]:
    with store_errors("fetch exam"):
        doc = get_db()["exam"].find_one({"slug": slug, "is_active": True})
    if not doc:
        raise NotFoundError("Exam not found")
    return to_public(doc)


def _ensure_unique_slug(collection: str, slug: str, label: str) -> None:
    if get_db()[collection].find_one({"slug": slug}, {"_id": 1}):
        raise ValidationError(f"{label} with this slug already exists", {"existingSlug": slug})


def create_country(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    validate_required_fields(payload, ("name", "slug"))
    country = parse_model(Country, payload)

    with store_errors("create country"):
        _ensure_unique_slug("country", country.slug, "Country")
    country_id = create_document("country", country)
    logger.info("Country %s created (%s)", country.slug, country_id)
    return {"id": country_id, **country.model_dump()}


def create_exam(payload: Any) -> Dict[str, Any]:
    """Create an exam; `applicable_countries` slugs are stored as country ids."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    validate_required_fields(payload, ("name", "slug"))
    exam = parse_model(Exam, payload)

    with store_errors("create exam"):
        db = get_db()
        _ensure_unique_slug("exam", exam.slug, "Exam")

        country_ids = []
        if exam.applicable_countries:
            found = {
                c["slug"]: c["_id"]
                for c in db["country"].find({"slug": {"$in": exam.applicable_countries}, "is_active": True}, {"slug": 1})
            }
            unknown = [s for s in exam.applicable_countries if s not in found]
            if unknown:
                valid = sorted(c["slug"] for c in db["country"].find({"is_active": True}, {"slug": 1}))
                raise ValidationError(
                    f"Unknown countries: {', '.join(unknown)}",
                    {"invalidCountries": unknown, "availableCountries": valid},
                )
            country_ids = [found[s] for s in exam.applicable_countries]

    doc = exam.model_dump()
    doc["applicable_countries"] = country_ids
    exam_id = create_document("exam", doc)
    logger.info("Exam %s created (%s)", exam.slug, exam_id)
    return to_public({"_id": exam_id, **doc})
