"""
College listing queries and admin writes.

Public listings only ever see active colleges. A college's country is given
as a slug on write and stored as the country's ObjectId.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database

from database import create_document, get_db, now, store_errors, to_public
from schemas import College, FeeCourse, FeesStructureSection, RankingSection, parse_model
from validation import NotFoundError, ValidationError, is_blank, parse_object_id, validate_required_fields

logger = logging.getLogger(__name__)

COLLECTION = "college"
REQUIRED_FIELDS = ("name", "slug", "college_type", "country_ref")
LIST_SORT = [("ranking", ASCENDING), ("name", ASCENDING)]
COUNTRY_SUMMARY = {"name": 1, "slug": 1, "flag": 1}


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def resolve_country(db: Database, slug: str) -> Optional[ObjectId]:
    country = db["country"].find_one({"slug": slug, "is_active": True}, {"_id": 1})
    return country["_id"] if country else None


def build_college_filter(
    db: Database,
    search: Optional[str] = None,
    country: Optional[str] = None,
    exam: Optional[str] = None,
    college_type: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Mongo filter for the public listing, or None if nothing can match."""
    query: Dict[str, Any] = {"is_active": True}

    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"name": pattern}, {"about_content": pattern}]

    if _is_set(country):
        country_id = resolve_country(db, country)
        if country_id is None:
            return None
        query["country_ref"] = country_id

    if _is_set(exam):
        query["exams"] = {"$in": [exam]}

    if _is_set(college_type):
        query["college_type"] = college_type

    return query


def populate_country(db: Database, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace each `country_ref` id with a {name, slug, flag} summary (None if dangling)."""
    ids = {d.get("country_ref") for d in docs if isinstance(d.get("country_ref"), ObjectId)}
    countries = {}
    if ids:
        for c in db["country"].find({"_id": {"$in": list(ids)}}, COUNTRY_SUMMARY):
            countries[c["_id"]] = c
    for d in docs:
        ref = d.get("country_ref")
        if isinstance(ref, ObjectId):
            d["country_ref"] = countries.get(ref)
    return docs


def pagination_meta(total: int, page: int, limit: Optional[int]) -> Dict[str, Any]:
    if limit:
        skip = (page - 1) * limit
        return {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
            "hasNext": skip + limit < total,
        }
    return {"total": total, "page": page, "limit": total, "totalPages": 1, "hasNext": False}


def list_colleges(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    country: Optional[str] = None,
    exam: Optional[str] = None,
    college_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Filtered, sorted, paginated public college listing.

    `limit=None` returns every match. The count and the page are two separate
    reads, so `total` can drift from the page under concurrent writes.
    """
    with store_errors("fetch colleges"):
        db = get_db()
        query = build_college_filter(db, search, country, exam, college_type)
        if query is None:
            return {"colleges": [], **pagination_meta(0, page, limit)}

        total = db[COLLECTION].count_documents(query)

        cursor = db[COLLECTION].find(query).sort(LIST_SORT)
        if limit:
            cursor = cursor.skip((page - 1) * limit).limit(limit)
        docs = populate_country(db, list(cursor))

    return {"colleges": [to_public(d) for d in docs], **pagination_meta(total, page, limit)}


def get_college(slug: str) -> Dict[str, Any]:
    with store_errors("fetch college"):
        db = get_db()
        doc = db[COLLECTION].find_one({"slug": slug, "is_active": True})
        if not doc:
            raise NotFoundError("College not found")
        populate_country(db, [doc])
    return to_public(doc)


# ---------- Admin ----------

def list_all_colleges() -> List[Dict[str, Any]]:
    with store_errors("fetch colleges"):
        db = get_db()
        docs = list(db[COLLECTION].find({}).sort("created_at", DESCENDING))
        populate_country(db, docs)
    return [to_public(d) for d in docs]


def _country_not_found(db: Database, slug: str) -> ValidationError:
    available = list(db["country"].find({"is_active": True}, {"_id": 0, **COUNTRY_SUMMARY}).sort("name", ASCENDING))
    listing = "\n".join(f"- {c['slug']} ({c.get('flag', '')} {c['name']})" for c in available)
    return ValidationError(
        "Country not found",
        {
            "invalidCountry": slug,
            "availableCountries": available,
            "message": f"Country with slug '{slug}' not found. Available countries:\n{listing}",
        },
    )


def _parse_college(payload: Dict[str, Any]) -> College:
    overview = payload.get("overview")
    if not isinstance(overview, dict) or is_blank(overview.get("description")):
        raise ValidationError("Overview description is required")

    data = dict(payload)
    # Older admin forms sent `ranking` as a plain value
    if data.get("ranking") is not None and not isinstance(data["ranking"], dict):
        data["ranking"] = RankingSection(country_ranking=str(data["ranking"])).model_dump()
    return parse_model(College, data)


def _college_document(college: College, country_id: ObjectId) -> Dict[str, Any]:
    doc = college.model_dump()
    doc["country_ref"] = country_id
    if college.fees_structure is None:
        fee = f"₹{college.fees:,.0f}" if college.fees else "N/A"
        doc["fees_structure"] = FeesStructureSection(
            courses=[FeeCourse(course_name="Program", duration=college.duration or "N/A", annual_tuition_fee=fee)]
        ).model_dump()
    return doc


def create_college(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    validate_required_fields(payload, REQUIRED_FIELDS)
    college = _parse_college(payload)

    with store_errors("create college"):
        db = get_db()
        country_id = resolve_country(db, college.country_ref)
        if country_id is None:
            raise _country_not_found(db, college.country_ref)

        existing = db[COLLECTION].find_one({"slug": college.slug}, {"name": 1})
        if existing:
            raise ValidationError(
                "College with this slug already exists",
                {"existingSlug": college.slug, "existingCollege": existing.get("name")},
            )

    college_id = create_document(COLLECTION, _college_document(college, country_id))
    logger.info("College %s created (%s)", college.slug, college_id)

    with store_errors("fetch college"):
        doc = get_db()[COLLECTION].find_one({"_id": ObjectId(college_id)})
        populate_country(get_db(), [doc])
    return to_public(doc)


def update_college(college_id: str, payload: Any) -> Dict[str, Any]:
    """Partial update. Slug uniqueness and country lookup apply to changed values."""
    oid = parse_object_id(college_id, "college")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    with store_errors("update college"):
        db = get_db()
        existing = db[COLLECTION].find_one({"_id": oid})
        if not existing:
            raise NotFoundError("College not found")

        merged = {k: v for k, v in existing.items() if k not in ("_id", "created_at", "updated_at")}
        merged["country_ref"] = str(existing.get("country_ref") or "")
        merged.update(payload)
        for field in REQUIRED_FIELDS:
            if field in payload and is_blank(payload[field]):
                raise ValidationError(f"Missing required fields: {field}", {"missing_fields": [field]})
        college = _parse_college(merged)

        if "country_ref" in payload:
            country_id = resolve_country(db, college.country_ref)
            if country_id is None:
                raise _country_not_found(db, college.country_ref)
        else:
            country_id = existing.get("country_ref")

        if college.slug != existing.get("slug"):
            clash = db[COLLECTION].find_one({"slug": college.slug, "_id": {"$ne": oid}}, {"name": 1})
            if clash:
                raise ValidationError(
                    "College with this slug already exists",
                    {"existingSlug": college.slug, "existingCollege": clash.get("name")},
                )

        doc = _college_document(college, country_id)
        doc["updated_at"] = now()
        updated = db[COLLECTION].find_one_and_update({"_id": oid}, {"$set": doc}, return_document=ReturnDocument.AFTER)
        populate_country(db, [updated])

    logger.info("College %s updated", college.slug)
    return to_public(updated)


def deactivate_college(college_id: str) -> None:
    """Hide a college from public listings. Records are never hard-deleted."""
    oid = parse_object_id(college_id, "college")
    with store_errors("deactivate college"):
        result = get_db()[COLLECTION].update_one(
            {"_id": oid}, {"$set": {"is_active": False, "updated_at": now()}}
        )
    if result.matched_count == 0:
        raise NotFoundError("College not found")
    logger.info("College %s deactivated", college_id)
