"""
Service layer for the kanban board.
Loads board snapshots from the database and persists the engine's decisions.
"""
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from kanban.board.engine import ReorderEngine
from kanban.board.payloads import DragResult, KanbanItem
from kanban.board.registry import CollectionConfig
from kanban.board.results import ReorderDecision
from kanban.board.statuses import NO_STATUS
from kanban.exceptions import AuthorizationDenied, InvalidStatusError
from kanban.logging_config import ReorderContext, get_logger
from kanban.models import db
from kanban.rank import LexoRank

logger = get_logger(__name__)


class BoardService:
    """Database access for one board at a time."""

    @staticmethod
    def load_records(config: CollectionConfig, limit: Optional[int] = None) -> List:
        """Records of the collection in primary key order (the board's list order)."""
        model = config.model
        query = model.query.order_by(model.id.asc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def load_items(config: CollectionConfig, limit: Optional[int] = None) -> List[KanbanItem]:
        return [KanbanItem.from_record(record) for record in BoardService.load_records(config, limit)]

    @staticmethod
    def get_record(config: CollectionConfig, record_id):
        return db.session.get(config.model, record_id)

    @staticmethod
    def apply_decision(config: CollectionConfig, decision: ReorderDecision):
        """
        Write an accepted decision to its record. Does not commit.

        Returns:
            The updated record, or None if the decision was not accepted
        """
        if not decision.is_accepted:
            return None

        record = BoardService.get_record(config, BoardService.coerce_id(config, decision.document_id))
        if record is None:
            raise LookupError(f"Record {decision.document_id} not found")

        record.kanban_status = decision.new_status
        record.kanban_order_rank = decision.new_rank
        return record

    @staticmethod
    def update_fields(config: CollectionConfig, record, payload: Mapping[str, Any], user=None):
        """
        Partial update of the two kanban fields (the board's PATCH). Does not commit.

        ``"null"`` as a status clears it. Every status is checked against the
        vocabulary; only an actual change runs the destination column's drop
        validation, so re-sending the current status alongside a new rank works
        for records that already sit in that column.

        Raises:
            InvalidStatusError: If the status is not part of the vocabulary
            AuthorizationDenied: If the destination column refuses the record
            MalformedKeyError: If the rank is not a valid key
        """
        vocabulary = config.vocabulary

        if 'kanban_status' in payload:
            new_status = vocabulary.validate_status(payload['kanban_status'])
            option = vocabulary.get(new_status)
            if option is not None and new_status != record.kanban_status:
                data = record.to_dict() if hasattr(record, 'to_dict') else {}
                validation = option.validate_drop(data, user)
                if not validation.drop_able:
                    raise AuthorizationDenied("Access not granted")
            record.kanban_status = new_status

        if 'kanban_order_rank' in payload:
            rank = payload['kanban_order_rank']
            record.kanban_order_rank = LexoRank.parse(rank).to_string() if rank is not None else None

        return record

    @staticmethod
    def coerce_id(config: CollectionConfig, document_id: str):
        column = config.model.__table__.primary_key.columns.values()[0]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return document_id
        try:
            return python_type(document_id)
        except (TypeError, ValueError):
            raise LookupError(f"Record {document_id} not found")


@dataclass
class ReorderCommand:
    """
    Run one drop end to end:
    - Snapshot the collection
    - Decide the move with the engine
    - Persist an accepted move and commit

    Known race: two concurrent drops into the same gap read the same
    neighbours and may write equal keys. Nothing here locks the rows.
    """
    config: CollectionConfig
    drag: DragResult
    user: Any = None
    limit: Optional[int] = None

    def execute(self) -> ReorderDecision:
        with ReorderContext(self.config.slug, self.drag.draggable_id):
            items = BoardService.load_items(self.config, self.limit)
            decision = ReorderEngine.decide(
                items,
                self.drag,
                self.config.vocabulary,
                user=self.user,
                drag_enabled=self.config.can_update_status(self.user),
            )

            if not decision.is_accepted:
                return decision

            if decision.new_status is not None and self.config.vocabulary.get(decision.new_status) is None:
                raise InvalidStatusError(f"Invalid status: {decision.new_status}")

            BoardService.apply_decision(self.config, decision)
            db.session.commit()

            logger.info(
                "Reorder applied",
                collection=self.config.slug,
                document_id=decision.document_id,
                new_status=decision.new_status or NO_STATUS,
                new_rank=decision.new_rank,
            )
            return decision
