"""Session login for board users."""
from flask import Blueprint, request, jsonify, session
from kanban.models import User
from kanban.auth.utils import verify_password, get_current_user
from kanban.logging_config import get_logger

logger = get_logger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Authenticate with username/password and start a session."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No JSON data provided'}), 400

    username = data.get('username')
    password = data.get('password')
    if not username or not password:
        return jsonify({'error': 'Username and password are required'}), 400

    try:
        user = User.query.filter_by(username=username).first()
    except Exception as e:
        logger.error("Error during login", username=username, error=str(e))
        return jsonify({'error': 'An error occurred during login'}), 500

    if not user or not verify_password(user.password_hash, password):
        logger.warning("Failed login attempt", username=username)
        return jsonify({'error': 'Invalid username or password'}), 401

    if not user.is_active:
        logger.warning("Login attempt for inactive user", username=username)
        return jsonify({'error': 'Account is inactive'}), 403

    session['user_id'] = user.id
    session.permanent = True
    logger.info("User logged in", username=username)

    return jsonify({'status': 'success', 'user': user.to_dict()}), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'success', 'message': 'Logged out successfully'}), 200


@auth_bp.route('/me', methods=['GET'])
def me():
    """The logged-in user and whether they may drag cards."""
    user = get_current_user()
    if not user:
        return jsonify({'error': 'Not authenticated'}), 401
    return jsonify(user.to_dict()), 200
