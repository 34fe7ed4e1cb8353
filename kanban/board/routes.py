from flask import current_app, jsonify, request
from kanban.board import kanban_bp
from kanban.board.engine import build_board
from kanban.board.payloads import DragResult
from kanban.board.registry import get_registry
from kanban.board.results import ReorderOutcome
from kanban.board.service import BoardService, ReorderCommand
from kanban.exceptions import AuthorizationDenied, InvalidDragResult, InvalidStatusError, MalformedKeyError
from kanban.auth.utils import login_required, get_current_user
from kanban.logging_config import get_logger
from kanban.models import db

logger = get_logger(__name__)

REORDER_STATUS_CODES = {
    ReorderOutcome.ACCEPTED: 200,
    ReorderOutcome.NOOP: 200,
    ReorderOutcome.REJECTED: 403,
    ReorderOutcome.FAILED: 500,
}


def _collection_or_404(slug):
    config = get_registry().get(slug)
    if config is None:
        return None, (jsonify({"error": f"Unknown collection: {slug}"}), 404)
    return config, None


def _snapshot_limit(body=None):
    """Records per snapshot: ?limit=, then a "limit" body field, then KANBAN_DEFAULT_LIMIT.

    The reorder snapshot must use the same limit as the board the client
    loaded, or destination indices point at different cards.
    """
    limit = request.args.get('limit', type=int)
    if not limit and body:
        try:
            limit = int(body.get('limit') or 0)
        except (TypeError, ValueError):
            limit = None
    if limit and limit > 0:
        return limit
    return current_app.config.get('KANBAN_DEFAULT_LIMIT', 100)


@kanban_bp.route("/collections")
@login_required
def list_collections():
    """Return every board-enabled collection with its status columns"""
    language = request.args.get('lang', 'en')
    return jsonify({
        "collections": [config.to_dict(language) for config in get_registry().all()]
    }), 200


@kanban_bp.route("/<slug>/board")
@login_required
def get_board(slug):
    """Return the board columns for a collection, each sorted by rank"""
    config, error = _collection_or_404(slug)
    if error:
        return error

    try:
        user = get_current_user()
        if not config.can_read_status(user):
            return jsonify({"error": "Not authorised to read the board"}), 403

        limit = _snapshot_limit()
        language = request.args.get('lang', 'en')

        items = BoardService.load_items(config, limit)
        columns = build_board(items, config.vocabulary, language)

        return jsonify({
            "collection": slug,
            "drag_enabled": config.can_update_status(user),
            "limit": limit,
            "columns": [
                {
                    "value": column['value'],
                    "label": column['label'],
                    "items": [item.data for item in column['items']],
                }
                for column in columns
            ],
        }), 200
    except Exception as exc:
        logger.error("Error building board", collection=slug, error=str(exc))
        return jsonify({
            "error": "Failed to load board",
            "details": str(exc)
        }), 500


@kanban_bp.route("/<slug>/reorder", methods=["POST"])
@login_required
def reorder(slug):
    """Apply a drag-and-drop result: decide the new status and rank, then persist it"""
    config, error = _collection_or_404(slug)
    if error:
        return error

    try:
        data = request.get_json(silent=True) or {}
        try:
            drag = DragResult.from_dict(data)
        except InvalidDragResult as exc:
            return jsonify({"error": exc.message}), 400

        decision = ReorderCommand(config, drag, user=get_current_user(), limit=_snapshot_limit(data)).execute()

        return jsonify(decision.to_dict()), REORDER_STATUS_CODES[decision.outcome]

    except LookupError as exc:
        db.session.rollback()
        return jsonify({"error": str(exc)}), 404
    except InvalidStatusError as exc:
        db.session.rollback()
        return jsonify({"error": exc.message}), 400
    except Exception as exc:
        logger.error("Error applying reorder", collection=slug, error=str(exc))
        db.session.rollback()
        return jsonify({
            "error": "Failed to reorder",
            "details": str(exc)
        }), 500


@kanban_bp.route("/<slug>/<record_id>", methods=["PATCH"])
@login_required
def update_kanban_fields(slug, record_id):
    """Update kanban_status and/or kanban_order_rank of a record"""
    config, error = _collection_or_404(slug)
    if error:
        return error

    try:
        data = request.get_json(silent=True) or {}
        if 'kanban_status' not in data and 'kanban_order_rank' not in data:
            return jsonify({"error": "kanban_status or kanban_order_rank is required"}), 400

        user = get_current_user()
        if 'kanban_status' in data and not config.can_update_status(user):
            return jsonify({"error": "Not authorised to change the status"}), 403

        try:
            record = BoardService.get_record(config, BoardService.coerce_id(config, record_id))
        except LookupError:
            record = None
        if record is None:
            return jsonify({"error": "Record not found"}), 404

        BoardService.update_fields(config, record, data, user=user)
        db.session.commit()

        return jsonify({
            "success": True,
            "id": record.id,
            "kanban_status": record.kanban_status,
            "kanban_order_rank": record.kanban_order_rank,
        }), 200

    except InvalidStatusError as exc:
        db.session.rollback()
        return jsonify({"error": exc.message}), 400
    except MalformedKeyError as exc:
        db.session.rollback()
        return jsonify({"error": exc.message}), 400
    except AuthorizationDenied as exc:
        db.session.rollback()
        return jsonify({"error": exc.message}), 401
    except Exception as exc:
        logger.error("Error updating kanban fields", collection=slug, record_id=record_id, error=str(exc))
        db.session.rollback()
        return jsonify({
            "error": "Failed to update record",
            "details": str(exc)
        }), 500
