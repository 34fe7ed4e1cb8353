"""Password hashing and the acting user of a board request."""
from functools import wraps
from flask import has_request_context, jsonify, session
from werkzeug.security import check_password_hash, generate_password_hash
from kanban.models import User, db
from kanban.logging_config import get_logger

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    # pbkdf2 works on every supported Python; scrypt needs 3.11+
    return generate_password_hash(password, method='pbkdf2:sha256')


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def _load_session_user():
    user_id = session.get('user_id')
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    return user if user is not None and user.is_active else None


def get_current_user():
    """
    The active user behind the current session.

    Returns:
        User, or None outside a request, without a session, or for an
        inactive account
    """
    if not has_request_context():
        return None
    try:
        return _load_session_user()
    except Exception as e:
        logger.error("Error loading session user", error=str(e))
        return None


def login_required(f):
    """Reject the request with 401 JSON unless a user is logged in."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_user() is None:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function
