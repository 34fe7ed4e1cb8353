from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from kanban.exceptions import InvalidDragResult


@dataclass
class KanbanItem:
    """A record on the board. ``data`` is passed untouched to drop validation."""
    id: str
    status: Optional[str] = None
    rank: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "KanbanItem":
        status = raw.get('kanban_status', raw.get('status'))
        rank = raw.get('kanban_order_rank', raw.get('rank'))
        return cls(id=str(raw['id']), status=status, rank=rank, data=dict(raw))

    @classmethod
    def from_record(cls, record) -> "KanbanItem":
        data = record.to_dict() if hasattr(record, 'to_dict') else {}
        return cls(
            id=str(record.id),
            status=record.kanban_status,
            rank=record.kanban_order_rank,
            data=data,
        )


@dataclass
class DragLocation:
    droppable_id: str
    index: int


@dataclass
class DragResult:
    """One drag-and-drop gesture, as reported by the board UI."""
    draggable_id: str
    source: DragLocation
    destination: Optional[DragLocation] = None

    @staticmethod
    def _location(raw: Optional[Mapping[str, Any]]) -> Optional[DragLocation]:
        if not raw:
            return None
        droppable_id = raw.get('droppableId', raw.get('droppable_id'))
        index = raw.get('index')
        if droppable_id in (None, '') or index is None:
            return None
        try:
            return DragLocation(droppable_id=str(droppable_id), index=int(index))
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "DragResult":
        """
        Build a drag result from the UI payload.

        Accepts camelCase (``draggableId``) and snake_case keys. A missing or
        incomplete destination is kept as ``None``.

        Raises:
            InvalidDragResult: If the draggable id or the source is missing
        """
        if not isinstance(raw, Mapping):
            raise InvalidDragResult("Drag result must be an object")

        draggable_id = raw.get('draggableId', raw.get('draggable_id'))
        if draggable_id in (None, ''):
            raise InvalidDragResult("draggableId is required")

        source = cls._location(raw.get('source'))
        if source is None:
            raise InvalidDragResult("source with droppableId and index is required")

        return cls(
            draggable_id=str(draggable_id),
            source=source,
            destination=cls._location(raw.get('destination')),
        )

    @property
    def is_same_position(self) -> bool:
        return (
            self.destination is not None
            and self.source.droppable_id == self.destination.droppable_id
            and self.source.index == self.destination.index
        )

    @property
    def is_same_status(self) -> bool:
        return self.destination is not None and self.source.droppable_id == self.destination.droppable_id
