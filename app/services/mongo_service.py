"""
MongoDB Service - CRUD operations for the portal collections.

Collections in this database:
1. users         - credentials, session state (refresh token, reset token) and profile
2. companies     - companies registered by recruiters
3. jobs          - job postings, referencing a company and the recruiter who posted them
4. applications  - one document per (job, applicant)

Every multi-document invariant the auth flows rely on (refresh-token rotation,
single-use reset tokens) is enforced here with conditional updates, never
with in-process locks.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from app.core.errors import ConflictError
from app.db.mongodb import COLLECTIONS, get_collection


# ============================================================
# HELPERS
# ============================================================

def utcnow() -> datetime:
    """Naive UTC timestamp, the form pymongo hands back by default."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id from a URL or token claim; None if it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def serialize_doc(doc: Any) -> Any:
    """Convert a MongoDB document (recursively) to a JSON-serializable value."""
    if doc is None:
        return None
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, dict):
        return {key: serialize_doc(value) for key, value in doc.items()}
    if isinstance(doc, list):
        return [serialize_doc(item) for item in doc]
    return doc


def serialize_docs(docs: list) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


# Never leave the server
SENSITIVE_USER_FIELDS = (
    "password",
    "refresh_token",
    "reset_password_token",
    "reset_password_expiry",
)


def public_user(doc: Optional[dict]) -> Optional[dict]:
    """User document without the password hash and token fields."""
    if doc is None:
        return None
    return serialize_doc({k: v for k, v in doc.items() if k not in SENSITIVE_USER_FIELDS})


def _duplicate_field(error: DuplicateKeyError) -> str:
    """Name the unique field a DuplicateKeyError tripped on."""
    details = getattr(error, "details", None) or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    if key_pattern:
        return next(iter(key_pattern))
    message = str(error)
    for field in ("email", "phone_number", "company_name"):
        if field in message:
            return field
    return "record"


# ============================================================
# USERS COLLECTION
# The credential store
# ============================================================

class UserStore:
    """
    Handles user documents.
    Session state lives on the user: one refresh token, one pending reset.
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["users"])

    # ---- lookups ----

    def find_by_id(self, user_id: Any) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.strip().lower()})

    def find_by_identifier(self, identifier: str, role: str) -> Optional[dict]:
        """Match email OR phone number, AND the role the client logged in as."""
        identifier = identifier.strip()
        return self.collection.find_one({
            "$or": [{"email": identifier.lower()}, {"phone_number": identifier}],
            "role": role,
        })

    def find_conflict(
        self, email: Optional[str], phone_number: Optional[str], exclude_id: Any = None
    ) -> Optional[str]:
        """Return which identity field ('email' / 'phone number') is already taken."""
        clauses = []
        if email:
            clauses.append({"email": email.strip().lower()})
        if phone_number:
            clauses.append({"phone_number": phone_number.strip()})
        if not clauses:
            return None

        query: Dict[str, Any] = {"$or": clauses}
        if exclude_id is not None:
            query["_id"] = {"$ne": to_object_id(exclude_id)}

        existing = self.collection.find_one(query, {"email": 1, "phone_number": 1})
        if existing is None:
            return None
        if email and existing.get("email") == email.strip().lower():
            return "email"
        return "phone number"

    # ---- creation ----

    def create(self, doc: dict) -> dict:
        """
        Insert a new user. The unique indexes on email / phone_number are the
        final word on duplicates, racing registrations included.
        """
        now = utcnow()
        doc = {
            **doc,
            "refresh_token": None,
            "reset_password_token": None,
            "reset_password_expiry": None,
            "last_login_at": None,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            field = _duplicate_field(e).replace("_", " ")
            raise ConflictError(f"User already exists with this {field}") from e
        doc["_id"] = result.inserted_id
        return doc

    # ---- refresh token (session) state ----

    def set_refresh_token(self, user_id: Any, token: str) -> bool:
        """Overwrite the stored refresh token; any previous one stops working."""
        result = self.collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"refresh_token": token, "updated_at": utcnow()}},
        )
        return result.matched_count > 0

    def swap_refresh_token(self, user_id: Any, presented: str, new_token: str) -> bool:
        """
        Compare-and-swap: replace the refresh token only if it still equals
        the presented one. Exactly one of two concurrent refreshes wins.
        """
        result = self.collection.update_one(
            {"_id": to_object_id(user_id), "refresh_token": presented},
            {"$set": {"refresh_token": new_token, "updated_at": utcnow()}},
        )
        return result.modified_count == 1

    def clear_refresh_token(self, user_id: Any) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"refresh_token": None, "updated_at": utcnow()}},
        )

    def touch_last_login(self, user_id: Any, at: datetime) -> None:
        self.collection.update_one({"_id": to_object_id(user_id)}, {"$set": {"last_login_at": at}})

    def update_password(self, user_id: Any, password_hash: str) -> bool:
        result = self.collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"password": password_hash, "updated_at": utcnow()}},
        )
        return result.matched_count > 0

    # ---- password reset state ----
    # Token digest and expiry are always written and cleared together.

    def set_reset_token(self, user_id: Any, token_digest: str, expiry: datetime) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {
                "reset_password_token": token_digest,
                "reset_password_expiry": expiry,
                "updated_at": utcnow(),
            }},
        )

    def clear_reset_token(self, user_id: Any, token_digest: str) -> bool:
        """Roll back a pending reset, only if it is still the one we issued."""
        result = self.collection.update_one(
            {"_id": to_object_id(user_id), "reset_password_token": token_digest},
            {"$set": {"reset_password_token": None, "reset_password_expiry": None}},
        )
        return result.modified_count == 1

    def find_by_reset_token(self, token_digest: str, now: datetime) -> Optional[dict]:
        """Read-only: the user holding this unexpired reset token."""
        return self.collection.find_one({
            "reset_password_token": token_digest,
            "reset_password_expiry": {"$gt": now},
        })

    def consume_reset_token(
        self, token_digest: str, now: datetime, password_hash: str
    ) -> Optional[dict]:
        """
        Atomically set the new password and clear the reset fields, matching
        only an unexpired token. A second attempt with the same token finds nothing.
        """
        return self.collection.find_one_and_update(
            {"reset_password_token": token_digest, "reset_password_expiry": {"$gt": now}},
            {"$set": {
                "password": password_hash,
                "reset_password_token": None,
                "reset_password_expiry": None,
                "updated_at": now,
            }},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, user_id: Any) -> bool:
        result = self.collection.delete_one({"_id": to_object_id(user_id)})
        return result.deleted_count == 1

    # ---- profile ----

    def update_fields(self, user_id: Any, fields: dict) -> Optional[dict]:
        """$set the given (dotted) fields and return the updated document."""
        fields = {**fields, "updated_at": utcnow()}
        try:
            return self.collection.find_one_and_update(
                {"_id": to_object_id(user_id)},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            field = _duplicate_field(e).replace("_", " ")
            raise ConflictError(f"User already exists with this {field}") from e

    # ---- stats ----

    def count(self, query: Optional[dict] = None) -> int:
        return self.collection.count_documents(query or {})

    def iter_all(self, projection: Optional[dict] = None):
        return self.collection.find({}, projection)


# ============================================================
# COMPANIES COLLECTION
# ============================================================

class CompanyStore:
    """Handles company documents. Company names are unique."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["companies"])

    def create(self, user_id: Any, data: dict) -> dict:
        now = utcnow()
        doc = {
            "company_name": data["company_name"],
            "description": data.get("description"),
            "website": data.get("website"),
            "location": data.get("location"),
            "logo": data.get("logo"),
            "user_id": to_object_id(user_id),
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError(
                f"Company with {data['company_name']} name already exists! So try with another name"
            ) from e
        doc["_id"] = result.inserted_id
        return doc

    def find_by_id(self, company_id: Any) -> Optional[dict]:
        oid = to_object_id(company_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def find_by_name(self, company_name: str) -> Optional[dict]:
        return self.collection.find_one({"company_name": company_name})

    def find_by_owner(self, user_id: Any) -> List[dict]:
        cursor = self.collection.find({"user_id": to_object_id(user_id)}).sort("created_at", DESCENDING)
        return list(cursor)

    def find_many(self, company_ids: List[Any]) -> Dict[ObjectId, dict]:
        """Batch lookup keyed by _id (used to embed companies in jobs)."""
        oids = [oid for oid in (to_object_id(c) for c in company_ids) if oid is not None]
        if not oids:
            return {}
        return {doc["_id"]: doc for doc in self.collection.find({"_id": {"$in": oids}})}

    def update(self, company_id: Any, fields: dict) -> Optional[dict]:
        fields = {**fields, "updated_at": utcnow()}
        try:
            return self.collection.find_one_and_update(
                {"_id": to_object_id(company_id)},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError("Company with this name already exists") from e

    def count(self) -> int:
        return self.collection.count_documents({})


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobStore:
    """Handles job postings."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"])

    def create(self, created_by: Any, data: dict) -> dict:
        now = utcnow()
        doc = {
            **data,
            "company": to_object_id(data["company"]),
            "created_by": to_object_id(created_by),
            "applications": [],
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def find_by_id(self, job_id: Any) -> Optional[dict]:
        oid = to_object_id(job_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def search(self, keyword: str = "") -> List[dict]:
        """Case-insensitive keyword match on title or description, newest first."""
        pattern = re.escape(keyword or "")
        query = {
            "$or": [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
            ]
        }
        return list(self.collection.find(query).sort("created_at", DESCENDING))

    def find_by_creator(self, user_id: Any) -> List[dict]:
        cursor = self.collection.find({"created_by": to_object_id(user_id)}).sort("created_at", DESCENDING)
        return list(cursor)

    def find_many(self, job_ids: List[Any]) -> Dict[ObjectId, dict]:
        oids = [oid for oid in (to_object_id(j) for j in job_ids) if oid is not None]
        if not oids:
            return {}
        return {doc["_id"]: doc for doc in self.collection.find({"_id": {"$in": oids}})}

    def update(self, job_id: Any, fields: dict) -> Optional[dict]:
        fields = {**fields, "updated_at": utcnow()}
        return self.collection.find_one_and_update(
            {"_id": to_object_id(job_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, job_id: Any) -> Optional[dict]:
        return self.collection.find_one_and_delete({"_id": to_object_id(job_id)})

    def add_application(self, job_id: Any, application_id: ObjectId) -> None:
        self.collection.update_one(
            {"_id": to_object_id(job_id)},
            {"$push": {"applications": application_id}},
        )

    def count(self) -> int:
        return self.collection.count_documents({})


# ============================================================
# APPLICATIONS COLLECTION
# ============================================================

class ApplicationStore:
    """Handles job applications. One application per (job, applicant)."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["applications"])

    def create(self, job_id: Any, applicant_id: Any) -> dict:
        now = utcnow()
        doc = {
            "job": to_object_id(job_id),
            "applicant": to_object_id(applicant_id),
            "status": "pending",
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("You have already applied for this job") from e
        doc["_id"] = result.inserted_id
        return doc

    def find_by_id(self, application_id: Any) -> Optional[dict]:
        oid = to_object_id(application_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def find_existing(self, job_id: Any, applicant_id: Any) -> Optional[dict]:
        return self.collection.find_one({
            "job": to_object_id(job_id),
            "applicant": to_object_id(applicant_id),
        })

    def find_by_applicant(self, applicant_id: Any) -> List[dict]:
        cursor = self.collection.find({"applicant": to_object_id(applicant_id)}).sort("created_at", DESCENDING)
        return list(cursor)

    def find_by_job(self, job_id: Any) -> List[dict]:
        cursor = self.collection.find({"job": to_object_id(job_id)}).sort("created_at", DESCENDING)
        return list(cursor)

    def update_status(self, application_id: Any, status: str) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": to_object_id(application_id)},
            {"$set": {"status": status, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def delete_by_job(self, job_id: Any) -> int:
        result = self.collection.delete_many({"job": to_object_id(job_id)})
        return result.deleted_count

    def count(self, query: Optional[dict] = None) -> int:
        return self.collection.count_documents(query or {})

    def monthly_counts(self, applicant_id: Any, since: datetime) -> List[dict]:
        """Applications per calendar month since a date, oldest month first."""
        pipeline = [
            {"$match": {"applicant": to_object_id(applicant_id), "created_at": {"$gte": since}}},
            {"$group": {
                "_id": {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}},
                "count": {"$sum": 1},
            }},
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ]
        return list(self.collection.aggregate(pipeline))
