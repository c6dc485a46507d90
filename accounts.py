import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database

from auth import create_access_token, hash_password, verify_password
from database import create_document, serialize_doc, to_object_id
from errors import ConflictError, NotFound, Unauthorized, ValidationError
from schemas import LoginInput, RegisterInput, User

logger = logging.getLogger(__name__)


class AccountDirectory:
    def __init__(self, database: Database):
        self.db = database
        self.users = database["user"]

    def register(self, payload: RegisterInput) -> Dict[str, Any]:
        email = payload.email.lower()
        if self.users.find_one({"email": email}):
            raise ConflictError("Email is already in use")

        user_model = User(
            name=payload.name,
            email=email,
            password_hash=hash_password(payload.password),
            phone_number=payload.phone_number,
            role="customer",
            address=payload.address,
        )
        user_id = create_document(self.db, "user", user_model)
        logger.info("Registered user %s", user_id)
        # Never send password hash
        return serialize_doc(self.users.find_one({"_id": ObjectId(user_id)}))

    def login(self, payload: LoginInput) -> Tuple[str, Dict[str, Any]]:
        user = self.users.find_one({"email": payload.email.lower()})
        if not user:
            raise NotFound("User not found")
        if not verify_password(payload.password, user.get("password_hash", "")):
            raise Unauthorized("Invalid password")

        token = create_access_token({
            "id": str(user["_id"]),
            "email": user["email"],
            "role": user.get("role", "customer"),
        })
        return token, serialize_doc(user)

    def list(self) -> List[Dict[str, Any]]:
        return [serialize_doc(u) for u in self.users.find({}, {"password_hash": 0})]

    def get(self, user_id: Optional[str]) -> Dict[str, Any]:
        if not user_id:
            raise ValidationError("User ID is required")
        obj_id = to_object_id(user_id)
        if obj_id is None:
            raise ValidationError("Invalid user id")
        user = self.users.find_one({"_id": obj_id}, {"password_hash": 0})
        if not user:
            raise NotFound("No User Found")
        return serialize_doc(user)
