from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReorderOutcome(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    NOOP = "noop"
    FAILED = "failed"


@dataclass
class DropValidation:
    """Answer of a status drop-validation predicate."""
    drop_able: bool
    message: Optional[str] = None


@dataclass
class ReorderDecision:
    outcome: ReorderOutcome
    document_id: Optional[str] = None
    new_status: Optional[str] = None
    new_rank: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def accepted(cls, document_id: str, new_status: Optional[str], new_rank: str,
                 message: Optional[str] = None) -> "ReorderDecision":
        return cls(ReorderOutcome.ACCEPTED, document_id, new_status, new_rank, message)

    @classmethod
    def rejected(cls, message: str, document_id: Optional[str] = None) -> "ReorderDecision":
        return cls(ReorderOutcome.REJECTED, document_id=document_id, message=message)

    @classmethod
    def noop(cls, document_id: Optional[str] = None) -> "ReorderDecision":
        return cls(ReorderOutcome.NOOP, document_id=document_id)

    @classmethod
    def failed(cls, message: str, document_id: Optional[str] = None) -> "ReorderDecision":
        return cls(ReorderOutcome.FAILED, document_id=document_id, message=message)

    @property
    def is_accepted(self) -> bool:
        return self.outcome is ReorderOutcome.ACCEPTED

    def to_dict(self) -> dict:
        """Serialize for JSON response"""
        return {
            "outcome": self.outcome.value,
            "drop_able": self.outcome in (ReorderOutcome.ACCEPTED, ReorderOutcome.NOOP),
            "document_id": self.document_id,
            "new_status": self.new_status,
            "new_rank": self.new_rank,
            "message": self.message,
        }
