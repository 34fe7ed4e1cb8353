"""
Rank algebra: densely insertable, lexically ordered string keys.
"""
from kanban.rank.decimal import RankDecimal
from kanban.rank.lexorank import (
    LexoRank,
    between,
    max_rank,
    min_rank,
    next_rank,
    parse,
    prev_rank,
)

__all__ = [
    "LexoRank",
    "RankDecimal",
    "between",
    "max_rank",
    "min_rank",
    "next_rank",
    "parse",
    "prev_rank",
]
