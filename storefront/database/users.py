"""User storage for the storefront"""

import uuid
from dataclasses import dataclass
from typing import Optional

from ..security.passwords import hash_password


@dataclass
class User:
    id: str
    email: str
    name: str
    password_hash: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


SEED_USERS = [
    ("user-001", "demo@storefront.test", "Demo Customer", "demo-password", "customer"),
    ("user-002", "admin@storefront.test", "Store Admin", "admin-password", "admin"),
]


class UserDatabase:
    """In-memory user storage"""

    def __init__(self):
        self.users: dict[str, User] = {}
        for user_id, email, name, password, role in SEED_USERS:
            self.users[user_id] = User(
                id=user_id,
                email=email,
                name=name,
                password_hash=hash_password(password),
                role=role,
            )

    def get(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return next((u for u in self.users.values() if u.email == email), None)

    def create(self, email: str, name: str, password: str, role: str = "customer") -> User:
        if self.get_by_email(email):
            raise ValueError(f"User {email} already exists")
        user = User(
            id=f"user-{uuid.uuid4().hex[:8]}",
            email=email.strip().lower(),
            name=name,
            password_hash=hash_password(password),
            role=role,
        )
        self.users[user.id] = user
        return user


# Singleton instance
user_db = UserDatabase()
