"""Saved address storage"""

import uuid
from typing import Optional

from commerce.orders import Address


class AddressDatabase:
    """In-memory saved addresses"""

    def __init__(self):
        self.addresses: dict[str, tuple[str, Address]] = {}
        self.defaults: dict[str, str] = {}

    def reset(self) -> None:
        self.addresses.clear()
        self.defaults.clear()

    def add(self, user_id: str, address: Address, is_default: bool = False) -> str:
        """Save an address, reusing the id of an identical saved one"""
        for address_id, (owner, saved) in self.addresses.items():
            if owner == user_id and saved == address:
                break
        else:
            address_id = f"addr-{uuid.uuid4().hex[:10]}"
            self.addresses[address_id] = (user_id, address)

        if is_default or user_id not in self.defaults:
            self.defaults[user_id] = address_id
        return address_id

    def remove(self, address_id: str) -> bool:
        entry = self.addresses.pop(address_id, None)
        if entry and self.defaults.get(entry[0]) == address_id:
            del self.defaults[entry[0]]
        return entry is not None

    def list_for_user(self, user_id: str) -> list[tuple[str, Address]]:
        return [
            (address_id, address)
            for address_id, (owner, address) in self.addresses.items()
            if owner == user_id
        ]

    def for_user(self, user_id: str) -> "UserAddressBook":
        return UserAddressBook(self, user_id)


class UserAddressBook:
    """Resolves only the addresses saved by one user"""

    def __init__(self, db: AddressDatabase, user_id: str):
        self._db = db
        self.user_id = user_id

    def resolve(self, address_ref: str) -> Optional[Address]:
        entry = self._db.addresses.get(address_ref)
        if entry is None or entry[0] != self.user_id:
            return None
        return entry[1]


# Singleton instance
address_db = AddressDatabase()
