"""Password hashing, signed session tokens and the route guard."""
import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from bcrypt import checkpw, gensalt, hashpw
from flask import g, jsonify, request

import settings

logger = logging.getLogger(__name__)

TOKEN_COOKIE = 'token'
ALGORITHM = 'HS256'


# ============================================================================
# PASSWORDS
# ============================================================================
# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password):
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def hash_password(password):
    return hashpw(_password_bytes(password), gensalt(rounds=10)).decode('utf-8')


def check_password(password, password_hash):
    if not password or not password_hash:
        return False
    return checkpw(_password_bytes(password), password_hash.encode('utf-8'))


# ============================================================================
# TOKENS
# ============================================================================
def sign_token(payload, expires_in=None):
    now = datetime.now(timezone.utc)
    seconds = settings.JWT_EXPIRES_SECONDS if expires_in is None else expires_in
    claims = dict(payload, iat=now, exp=now + timedelta(seconds=seconds))
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def verify_token(token):
    """Return the token's claims, or None when it cannot be trusted."""
    if not token:
        logger.info("No token provided")
        return None
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured")
        return None
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Token has expired")
    except jwt.ImmatureSignatureError:
        logger.info("Token not active yet")
    except jwt.InvalidTokenError as e:
        logger.info("Token rejected: %s", e)
    return None


def set_token_cookie(response, token):
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.JWT_EXPIRES_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        path='/'
    )
    return response


def clear_token_cookie(response):
    response.delete_cookie(TOKEN_COOKIE, path='/')
    return response


# ============================================================================
# ROUTE GUARD
# ============================================================================
def token_required(role):
    """Reject requests whose token cookie is missing, invalid or lacks ``role``."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = request.cookies.get(TOKEN_COOKIE)
            if not token:
                return jsonify({'error': 'Unauthorized'}), 401

            payload = verify_token(token)
            if not payload:
                return jsonify({'error': 'Invalid token'}), 401

            if payload.get('role') != role:
                logger.warning("Access denied - role mismatch: %s", payload.get('role'))
                return jsonify({'error': 'Forbidden'}), 403

            g.user = {
                'id': payload.get('id'),
                'email': payload.get('email'),
                'role': payload.get('role'),
            }
            return view(*args, **kwargs)
        return wrapper
    return decorator
