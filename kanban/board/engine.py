"""
Pure business logic for the kanban board.
Contains no database dependencies - works with plain data structures.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from kanban.board.payloads import DragResult, KanbanItem
from kanban.board.results import ReorderDecision
from kanban.board.statuses import (
    NO_STATUS,
    NO_STATUS_LABEL,
    StatusVocabulary,
    is_unset_status,
    translate_label,
)
from kanban.exceptions import (
    GENERIC_FAILURE_MESSAGE,
    AuthorizationDenied,
    DisabledOperation,
    InvalidDragResult,
    MalformedKeyError,
)
from kanban.logging_config import get_logger
from kanban.rank import LexoRank

logger = get_logger(__name__)


def _rank_sort_key(item: KanbanItem) -> str:
    return item.rank or ''


def group_by_status(items: Iterable[KanbanItem], status: str) -> List[KanbanItem]:
    """Items in ``status`` ordered by rank; unranked items come first."""
    return sorted((item for item in items if item.status == status), key=_rank_sort_key)


def group_without_status(items: Iterable[KanbanItem]) -> List[KanbanItem]:
    """Items without a status ordered by rank; unranked items come first."""
    return sorted((item for item in items if is_unset_status(item.status)), key=_rank_sort_key)


def group_for_column(items: Iterable[KanbanItem], column: str) -> List[KanbanItem]:
    if column == NO_STATUS:
        return group_without_status(items)
    return group_by_status(items, column)


def build_board(items: Sequence[KanbanItem], vocabulary: StatusVocabulary,
                language: str = "en") -> List[Dict[str, Any]]:
    """
    Lay the items out as board columns.

    Returns:
        List of {'value', 'label', 'items'} dicts, the no-status column first
        unless the vocabulary hides it.
    """
    columns = []
    if not vocabulary.hide_no_status_column:
        columns.append({
            'value': NO_STATUS,
            'label': NO_STATUS_LABEL,
            'items': group_without_status(items),
        })
    for option in vocabulary.options:
        columns.append({
            'value': option.value,
            'label': translate_label(option.label, language),
            'items': group_by_status(items, option.value),
        })
    return columns


class ReorderEngine:
    """Decides where a dropped card lands and which rank it gets."""

    @staticmethod
    def initial_rank(status: Optional[str], current_rank: Optional[str],
                     last_rank: Optional[str]) -> Optional[str]:
        """
        Rank for a record that receives a status for the first time.

        Args:
            status: The record's status
            current_rank: The record's existing rank, if any
            last_rank: Highest rank among records sharing the status

        Returns:
            The existing rank unchanged when there is one (or no status),
            otherwise two steps after ``last_rank`` (or after the minimum key)
        """
        if current_rank or is_unset_status(status):
            return current_rank

        if isinstance(last_rank, str) and last_rank:
            base = LexoRank.parse(last_rank)
        else:
            base = LexoRank.min()
        return base.gen_next().gen_next().to_string()

    @staticmethod
    def _neighbour(group: Sequence[KanbanItem], index: int) -> KanbanItem:
        if index < 0 or index >= len(group):
            raise IndexError(f"No card at position {index} of a column with {len(group)} cards")
        return group[index]

    @staticmethod
    def compute_rank(items: Sequence[KanbanItem], drag: DragResult,
                     group: Sequence[KanbanItem]) -> str:
        """
        Rank for the moved card at ``drag.destination`` within ``group``.

        ``group`` is the destination column as it was before the move, so a
        card moved down its own column still occupies its old slot.
        """
        destination_index = drag.destination.index

        min_overall = (items[0].rank if items else None) or LexoRank.min().to_string()
        max_overall = (items[-1].rank if items else None) or LexoRank.max().to_string()
        moved_index = next((i for i, item in enumerate(items) if item.id == drag.draggable_id), -1)

        # first ranked card in the whole collection
        if not group and moved_index == 0:
            return LexoRank.min().to_string()

        if not group and destination_index == 0:
            return LexoRank.min().gen_next().to_string()

        if destination_index == 0:
            first = group[0]
            if not isinstance(first.rank, str):
                return LexoRank.parse(min_overall).between(LexoRank.max()).to_string()
            return LexoRank.parse(first.rank).gen_prev().to_string()

        if ((drag.is_same_status and destination_index + 1 == len(group))
                or (not drag.is_same_status and destination_index == len(group))):
            last = group[-1]
            if not isinstance(last.rank, str):
                return LexoRank.parse(max_overall).between(LexoRank.min()).to_string()
            return LexoRank.parse(last.rank).gen_next().to_string()

        before_index, after_index = destination_index - 1, destination_index
        if drag.is_same_status and drag.source.index < destination_index:
            before_index, after_index = destination_index, destination_index + 1

        before = ReorderEngine._neighbour(group, before_index)
        after = ReorderEngine._neighbour(group, after_index)
        return LexoRank.parse(before.rank).between(LexoRank.parse(after.rank)).to_string()

    @staticmethod
    def plan(items: Sequence[KanbanItem], drag: DragResult, vocabulary: StatusVocabulary,
             user: Any = None, drag_enabled: bool = True) -> ReorderDecision:
        """
        Work out the move, raising on anything that stops it.

        Raises:
            DisabledOperation: If reordering is disabled for the user
            InvalidDragResult: If the drop has no destination
            AuthorizationDenied: If the destination column refuses the card
            MalformedKeyError: If a neighbouring rank cannot be parsed
        """
        if not drag_enabled:
            raise DisabledOperation()

        if drag.destination is None:
            raise InvalidDragResult("Drop has no destination")

        if drag.is_same_position:
            return ReorderDecision.noop(drag.draggable_id)

        destination_status = drag.destination.droppable_id
        group = group_for_column(items, destination_status)

        moved = next((item for item in items if item.id == drag.draggable_id), None)
        message = None
        option = vocabulary.get(destination_status)
        if option is not None:
            validation = option.validate_drop(moved.data if moved else {}, user)
            if not validation.drop_able:
                raise AuthorizationDenied(validation.message)
            message = validation.message

        new_rank = ReorderEngine.compute_rank(items, drag, group)
        new_status = None if destination_status == NO_STATUS else destination_status

        return ReorderDecision.accepted(drag.draggable_id, new_status, new_rank, message)

    @staticmethod
    def decide(items: Sequence[KanbanItem], drag: DragResult, vocabulary: StatusVocabulary,
               user: Any = None, drag_enabled: bool = True) -> ReorderDecision:
        """
        Decide a drop. Never raises: every path ends in a ReorderDecision.

        Args:
            items: Snapshot of the collection, in the order the board shows it
            drag: The drag-and-drop gesture
            vocabulary: Board columns and their drop validation
            user: Acting user, passed through to drop validation
            drag_enabled: Whether the user may reorder at all

        Returns:
            Accepted, rejected, no-op or failed decision
        """
        try:
            return ReorderEngine.plan(items, drag, vocabulary, user, drag_enabled)
        except InvalidDragResult as exc:
            logger.debug("Ignoring drop", document_id=drag.draggable_id, reason=exc.message)
            return ReorderDecision.noop(drag.draggable_id)
        except (AuthorizationDenied, DisabledOperation) as exc:
            logger.info("Drop rejected", document_id=drag.draggable_id, reason=exc.message)
            return ReorderDecision.rejected(exc.message, drag.draggable_id)
        except MalformedKeyError as exc:
            logger.error("Malformed rank key", document_id=drag.draggable_id, error=exc.message)
            return ReorderDecision.failed(GENERIC_FAILURE_MESSAGE, drag.draggable_id)
        except Exception as exc:
            logger.error("Error computing rank", document_id=drag.draggable_id,
                         error=str(exc), error_type=type(exc).__name__)
            return ReorderDecision.failed(GENERIC_FAILURE_MESSAGE, drag.draggable_id)
