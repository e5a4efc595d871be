"""
Enquiry submission pipeline and the admin operations on stored enquiries.

A submission is validated, persisted, and only then handed to `notify`,
which sends the admin and student emails independently. Email failures are
logged and never undo or fail the submission.
"""

import logging
import math
import re
from typing import Any, Callable, Dict, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument

from config import Settings
from database import create_document, get_db, now, store_errors, to_public
from emails import EmailMessage, enquiry_confirmation, enquiry_notification
from schemas import Enquiry, EnquiryStatusUpdate, parse_model
from validation import (
    NotFoundError,
    ValidationError,
    is_valid_email,
    is_valid_phone,
    parse_object_id,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

COLLECTION = "enquiry"
REQUIRED_FIELDS = ("name", "email", "phone", "city", "interest")

EmailSender = Callable[[EmailMessage], bool]


class EnquiryPipeline:
    def __init__(self, settings: Settings, sender: EmailSender):
        self.settings = settings
        self.sender = sender

    def validate(self, payload: Any) -> Enquiry:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        validate_required_fields(payload, REQUIRED_FIELDS)

        if not is_valid_email(payload["email"]):
            raise ValidationError("Invalid email format")

        phone = payload["phone"]
        if not is_valid_phone(phone.strip() if isinstance(phone, str) else phone):
            raise ValidationError("Invalid phone number format")

        for key in ("related_college_id", "related_exam_id"):
            if payload.get(key):
                parse_object_id(payload[key], key.replace("related_", "").replace("_id", ""))

        data = {k: payload.get(k) for k in Enquiry.model_fields if k != "status"}
        return parse_model(Enquiry, data)

    def persist(self, enquiry: Enquiry) -> str:
        doc = enquiry.model_dump()
        doc["status"] = "pending"
        for key in ("related_college_id", "related_exam_id"):
            if doc.get(key):
                doc[key] = parse_object_id(doc[key])
        enquiry_id = create_document(COLLECTION, doc)
        logger.info("Enquiry %s saved (interest=%s)", enquiry_id, enquiry.interest)
        return enquiry_id

    def submit(self, payload: Any) -> Tuple[str, Enquiry]:
        """Validate and persist a form payload. Returns the new id and the saved enquiry."""
        enquiry = self.validate(payload)
        return self.persist(enquiry), enquiry

    def notify(self, enquiry: Enquiry) -> Dict[str, bool]:
        """Send the admin and student emails. Never raises."""
        results = {"admin": False, "student": False}

        if self.settings.admin_email:
            results["admin"] = self._send(
                "admin notification", enquiry_notification(enquiry, self.settings.admin_email)
            )
        else:
            logger.warning("ADMIN_EMAIL not set; skipping admin notification")

        results["student"] = self._send(
            "student confirmation", enquiry_confirmation(enquiry, self.settings.support_email)
        )
        return results

    def _send(self, kind: str, message: EmailMessage) -> bool:
        try:
            ok = bool(self.sender(message))
        except Exception:
            logger.exception("Failed to send %s email to %s", kind, message.to)
            return False
        if ok:
            logger.info("Sent %s email to %s", kind, message.to)
        else:
            logger.error("Failed to send %s email to %s", kind, message.to)
        return ok


# ---------- Admin operations ----------

def list_enquiries(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    interest: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if status and status != "all":
        query["status"] = status
    if interest and interest != "all":
        query["interest"] = interest
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{f: pattern} for f in ("name", "email", "phone", "city")]

    skip = (page - 1) * limit
    with store_errors("fetch enquiries"):
        coll = get_db()[COLLECTION]
        docs = list(coll.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit))
        total = coll.count_documents(query)

    return {
        "data": [to_public(d) for d in docs],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
            "hasNext": page * limit < total,
            "hasPrev": page > 1,
        },
    }


def get_enquiry(enquiry_id: str) -> Dict[str, Any]:
    oid = parse_object_id(enquiry_id, "enquiry")
    with store_errors("fetch enquiry"):
        doc = get_db()[COLLECTION].find_one({"_id": oid})
    if not doc:
        raise NotFoundError("Enquiry not found")
    return to_public(doc)


def update_enquiry_status(enquiry_id: str, payload: Any) -> Dict[str, Any]:
    """Set any status on an enquiry; there is no enforced workflow."""
    oid = parse_object_id(enquiry_id, "enquiry")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    update = parse_model(EnquiryStatusUpdate, payload)

    with store_errors("update enquiry"):
        doc = get_db()[COLLECTION].find_one_and_update(
            {"_id": oid},
            {"$set": {"status": update.status, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise NotFoundError("Enquiry not found")
    logger.info("Enquiry %s marked %s", enquiry_id, update.status)
    return to_public(doc)


def delete_enquiry(enquiry_id: str) -> None:
    if not enquiry_id or not enquiry_id.strip():
        raise ValidationError("Enquiry ID is required")
    oid = parse_object_id(enquiry_id, "enquiry")
    with store_errors("delete enquiry"):
        result = get_db()[COLLECTION].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFoundError("Enquiry not found")
    logger.info("Enquiry %s deleted", enquiry_id)
