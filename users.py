"""
User accounts: registration, login and administration.
"""
import logging
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from auth import hash_password, public_user, verify_password
from database import count_documents, create_document, ensure_unique_index, get_document_by_id, get_documents, update_document
from errors import (
    CannotModifySelf,
    EmailAlreadyRegistered,
    InvalidCredentials,
    LastAdmin,
    NotFound,
    UserAlreadyActive,
    UserAlreadyInactive,
    UserInactive,
)
from schemas import User
from status_policy import Role

logger = logging.getLogger(__name__)

COLLECTION = "user"


def ensure_indexes() -> None:
    ensure_unique_index(COLLECTION, "email")


def get_user_by_email(email: str) -> Optional[dict]:
    users = get_documents(COLLECTION, {"email": email.lower()}, limit=1)
    return users[0] if users else None


def get_user(user_id: str) -> dict:
    user = get_document_by_id(COLLECTION, user_id)
    if user is None:
        raise NotFound("The requested user does not exist.")
    return user


def create_user(name: str, email: str, password: str, role: str = Role.customer.value, phone: Optional[str] = None, address: Optional[str] = None) -> dict:
    if get_user_by_email(email):
        raise EmailAlreadyRegistered("An account with this email already exists.")
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        phone=phone or None,
        address=address or None,
    )
    try:
        user_id = create_document(COLLECTION, user)
    except DuplicateKeyError:
        raise EmailAlreadyRegistered("An account with this email already exists.")
    logger.info("User %s created with role %s", user_id, user.role)
    return public_user(get_user(user_id))


def register_user(name: str, email: str, password: str, phone: Optional[str] = None, address: Optional[str] = None) -> dict:
    """Self-registration always yields a customer account."""
    return create_user(name, email, password, Role.customer.value, phone, address)


def authenticate(email: str, password: str) -> dict:
    user = get_user_by_email(email)
    if user is None or not verify_password(password, user.get("password_hash", "")):
        logger.warning("Failed login for %s", email.lower())
        raise InvalidCredentials("Incorrect email or password.")
    if not user.get("active", True):
        raise UserInactive("This account has been deactivated.")
    return public_user(user)


def list_users(role: Optional[str] = None) -> List[dict]:
    filt = {"role": role} if role else {}
    return [public_user(u) for u in get_documents(COLLECTION, filt, sort=[("created_at", -1)])]


def update_profile(user_id: str, changes: dict) -> dict:
    fields = {k: v for k, v in changes.items() if k in ("name", "phone", "address") and v is not None}
    if fields:
        update_document(COLLECTION, user_id, fields)
    return public_user(get_user(user_id))


def _active_admin_count() -> int:
    return count_documents(COLLECTION, {"role": Role.admin.value, "active": True})


def _guard_admin_change(actor: dict, target: dict) -> None:
    if target["id"] == actor["id"]:
        raise CannotModifySelf("You cannot change the role or status of your own account.")
    if target.get("role") == Role.admin.value and target.get("active", True) and _active_admin_count() <= 1:
        raise LastAdmin("You cannot demote or deactivate the last administrator.")


def change_role(actor: dict, user_id: str, role: str) -> dict:
    target = get_user(user_id)
    if target.get("role") == role:
        return public_user(target)
    if target.get("role") == Role.admin.value:
        _guard_admin_change(actor, target)
    elif target["id"] == actor["id"]:
        raise CannotModifySelf("You cannot change the role of your own account.")
    update_document(COLLECTION, user_id, {"role": Role(role).value})
    logger.info("User %s role changed from %s to %s by %s", user_id, target.get("role"), role, actor["id"])
    return public_user(get_user(user_id))


def set_active(actor: dict, user_id: str, active: bool) -> dict:
    target = get_user(user_id)
    current = target.get("active", True)
    if active and current:
        raise UserAlreadyActive("This user is already active.")
    if not active and not current:
        raise UserAlreadyInactive("This user is already inactive.")
    if not active:
        _guard_admin_change(actor, target)
    update_document(COLLECTION, user_id, {"active": active})
    logger.info("User %s %s by %s", user_id, "activated" if active else "deactivated", actor["id"])
    return public_user(get_user(user_id))
