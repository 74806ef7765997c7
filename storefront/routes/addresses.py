"""Saved address routes"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from commerce.orders import Address

from ..database import address_db
from ..models.order import AddressIn, SavedAddressOut
from ..security.auth import CurrentUser, require_user

router = APIRouter(prefix="/api/addresses", tags=["Addresses"])


@router.get("", response_model=list[SavedAddressOut])
async def list_addresses(user: CurrentUser = Depends(require_user)):
    """List the user's saved addresses"""
    default_id = address_db.defaults.get(user.id)
    return [
        SavedAddressOut(id=address_id, is_default=address_id == default_id, **asdict(address))
        for address_id, address in address_db.list_for_user(user.id)
    ]


@router.post("", response_model=SavedAddressOut, status_code=201)
async def save_address(
    request: AddressIn,
    is_default: bool = Query(False, alias="isDefault"),
    user: CurrentUser = Depends(require_user),
):
    """Save an address for later checkouts"""
    address_id = address_db.add(user.id, Address(**request.model_dump()), is_default=is_default)
    return SavedAddressOut(
        id=address_id,
        is_default=address_db.defaults.get(user.id) == address_id,
        **request.model_dump(),
    )


@router.delete("/{address_id}")
async def delete_address(address_id: str, user: CurrentUser = Depends(require_user)):
    """Delete a saved address; orders keep their snapshot"""
    if address_db.for_user(user.id).resolve(address_id) is None:
        raise HTTPException(status_code=404, detail="Address not found")
    address_db.remove(address_id)
    return {"message": "Address removed"}
