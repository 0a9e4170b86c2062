from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import select
from storefront import get_db
from storefront.models.user import User
from storefront.services.policy import current_user_id

auth_bp = Blueprint('auth', __name__)

MIN_PASSWORD_LENGTH = 8


def user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'is_active': u.is_active,
    }


def _issue_token(user: User) -> str:
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role})


@auth_bp.post('/register')
def register():
    data = request.json or {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    if not name or not email:
        abort(400, description='name & email required')
    if '@' not in email:
        abort(400, description='email invalid')
    if len(password) < MIN_PASSWORD_LENGTH:
        abort(400, description=f'password must be at least {MIN_PASSWORD_LENGTH} characters')
    session = get_db()
    if session.execute(select(User).where(User.email==email)).scalar_one_or_none():
        abort(409, description='email already registered')
    user = User(name=name, email=email, password_hash='', role=User.ROLE_CUSTOMER)
    user.set_password(password)
    session.add(user)
    session.commit()
    return {'user': user_json(user), 'access_token': _issue_token(user)}, 201


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = (data.get('email') or '').strip().lower(); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='invalid credentials')
    if not user.is_active:
        abort(403, description='account disabled')
    return {'access_token': _issue_token(user)}


@auth_bp.get('/me')
@jwt_required()
def me():
    session = get_db()
    user = session.execute(select(User).where(User.id==current_user_id())).scalar_one_or_none()
    if not user:
        abort(404)
    return user_json(user)
