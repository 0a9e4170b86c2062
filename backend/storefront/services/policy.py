from __future__ import annotations
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity
from storefront.models.user import User


def current_user_id() -> int:
    # identity is issued as a string (flask-jwt-extended v4 requirement)
    return int(get_jwt_identity())


def current_role() -> str:
    return get_jwt().get('role', User.ROLE_CUSTOMER)


def has_role(*roles: str) -> bool:
    return current_role() in roles


def is_admin() -> bool:
    return has_role(User.ROLE_ADMIN)


def assert_owns_record(owner_user_id: int):
    """Allow the owner or an admin; everyone else gets 404 so ids are not probeable."""
    if is_admin():
        return
    if current_user_id() != owner_user_id:
        abort(404)
