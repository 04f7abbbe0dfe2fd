"""
MongoDB Service - CRUD operations for document collections.

Collections in this database:
1. users         - Accounts; role fixed at registration
2. projects      - Projects posted by admins (pending / approved / rejected)
3. applications  - One per (project, user); carries point-in-time snapshots
                   of the user's name/email and the project's name

Every service is constructed with an explicit ``Database`` handle. Methods
return raw documents (ObjectId values intact); routes call ``serialize_doc``
on the way out.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from projectify.db.mongodb import COLLECTIONS
from projectify.schemas.schemas import ApplicationStatus, ProjectStatus


# ============================================================
# HELPERS: ObjectId <-> string for JSON serialization
# ============================================================

def serialize_doc(doc: Any) -> Any:
    """Convert a MongoDB document (possibly populated) to a JSON-serializable value."""
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


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id from a path or body; None when it is not a valid ObjectId."""
    if value is None:
        # ObjectId(None) would mint a fresh id
        return None
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _populate(doc: dict, field: str, collection: Collection, fields: List[str]) -> dict:
    """Replace a reference id with a summary of the referenced document (None if gone)."""
    ref_id = doc.get(field)
    if ref_id is None:
        return doc
    projection = {name: 1 for name in fields}
    doc[field] = collection.find_one({"_id": ref_id}, projection)
    return doc


USER_SUMMARY = ["name", "email"]
PROJECT_SUMMARY = ["name", "description", "startDate", "endDate", "budget", "status"]


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService:
    """Account storage. Passwords arrive already hashed."""

    def __init__(self, db: Database):
        self.collection: Collection = db[COLLECTIONS["users"]]

    def insert(self, name: str, email: str, password_hash: str, role: str) -> dict:
        """Insert a user. DuplicateKeyError propagates when the email is taken."""
        now = datetime.utcnow()
        doc = {
            "name": name,
            "email": email,
            "password_hash": password_hash,
            "role": role,
            "createdAt": now,
            "updatedAt": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_by_id(self, user_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": user_id})

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email})

    def count(self, query: Optional[dict] = None) -> int:
        return self.collection.count_documents(query or {})


# ============================================================
# PROJECTS COLLECTION
# ============================================================

class ProjectService:
    """Project storage; references the creating admin via ``createdBy``."""

    def __init__(self, db: Database):
        self.collection: Collection = db[COLLECTIONS["projects"]]
        self.users: Collection = db[COLLECTIONS["users"]]

    def insert(self, data: Dict[str, Any], created_by: ObjectId) -> dict:
        """
        Insert a new project in pending state.

        Args:
            data: Validated fields (name, description, startDate, endDate, budget)
            created_by: ObjectId of the admin creating it

        Returns:
            The stored document with ``createdBy`` populated
        """
        now = datetime.utcnow()
        doc = {
            "name": data["name"],
            "description": data["description"],
            "startDate": data["startDate"],
            "endDate": data["endDate"],
            "budget": data["budget"],
            "status": ProjectStatus.pending.value,
            "createdBy": created_by,
            "createdAt": now,
            "updatedAt": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self.populate_creator(doc)

    def get_by_id(self, project_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": project_id})

    def populate_creator(self, doc: dict) -> dict:
        return _populate(doc, "createdBy", self.users, USER_SUMMARY)

    def find(self, query: dict, limit: int = 0) -> List[dict]:
        """Projects matching ``query``, newest first, creator populated."""
        cursor = self.collection.find(query).sort("createdAt", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return [self.populate_creator(doc) for doc in cursor]

    def set_status(self, project_id: ObjectId, status: ProjectStatus) -> Optional[dict]:
        """Atomically set status; returns the updated document or None if absent."""
        return self.collection.find_one_and_update(
            {"_id": project_id},
            {"$set": {"status": status.value, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, project_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": project_id})
        return result.deleted_count > 0

    def count(self, query: Optional[dict] = None) -> int:
        return self.collection.count_documents(query or {})


# ============================================================
# APPLICATIONS COLLECTION
# ============================================================

class ApplicationService:
    """
    Application storage.

    ``userName``/``userEmail``/``projectName`` are copied at creation and never
    re-synced with later user or project edits.
    """

    def __init__(self, db: Database):
        self.collection: Collection = db[COLLECTIONS["applications"]]
        self.projects: Collection = db[COLLECTIONS["projects"]]
        self.users: Collection = db[COLLECTIONS["users"]]

    def insert(self, project: dict, user: dict) -> dict:
        """Insert a pending application. DuplicateKeyError propagates on a (project, user) clash."""
        now = datetime.utcnow()
        doc = {
            "projectId": project["_id"],
            "userId": user["_id"],
            "userName": user["name"],
            "userEmail": user["email"],
            "projectName": project["name"],
            "status": ApplicationStatus.pending.value,
            "appliedAt": now,
            "createdAt": now,
            "updatedAt": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_by_id(self, application_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": application_id})

    def exists(self, project_id: ObjectId, user_id: ObjectId) -> bool:
        return self.collection.find_one(
            {"projectId": project_id, "userId": user_id}, {"_id": 1}
        ) is not None

    def find_by_project(self, project_id: ObjectId) -> List[dict]:
        return list(self.collection.find({"projectId": project_id}))

    def find(
        self,
        query: dict,
        populate_user: bool = False,
        project_fields: List[str] = PROJECT_SUMMARY,
        limit: int = 0,
    ) -> List[dict]:
        """Applications matching ``query``, newest first, project (and optionally user) populated."""
        cursor = self.collection.find(query).sort("createdAt", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        docs = []
        for doc in cursor:
            _populate(doc, "projectId", self.projects, project_fields)
            if populate_user:
                _populate(doc, "userId", self.users, USER_SUMMARY)
            docs.append(doc)
        return docs

    def set_status(self, application_id: ObjectId, status: ApplicationStatus) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": application_id},
            {"$set": {"status": status.value, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def delete_by_project(self, project_id: ObjectId) -> int:
        result = self.collection.delete_many({"projectId": project_id})
        return result.deleted_count

    def count(self, query: Optional[dict] = None) -> int:
        return self.collection.count_documents(query or {})
