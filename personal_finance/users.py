"""
User Directory Module

Minimal view of the user records that own accounts. Profile management and
credentials live outside the ledger; the core only asks whether a user exists.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional
import uuid

from .storage import StorageInterface, StorageRecord


@dataclass
class User(StorageRecord):
    """Account owner"""
    name: str
    email: str


class UserDirectory:
    """Looks up users in the ``users`` table"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "users"

    def register_user(self, name: str, email: str, user_id: Optional[str] = None) -> User:
        """Store a user record (seeding and tests)"""
        now = datetime.now(timezone.utc)
        user = User(
            id=user_id or str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            name=name,
            email=email
        )
        self.storage.save(self.table_name, user.id, user.to_dict())
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        data = self.storage.load(self.table_name, user_id)
        if not data:
            return None
        return User(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            name=data['name'],
            email=data['email']
        )

    def user_exists(self, user_id: str) -> bool:
        return bool(user_id) and self.storage.exists(self.table_name, user_id)
