from loop_vault.core.adapters.BaseAdapter import BaseAdapter
from loop_vault.core.strategies.Strategy import (
    StatusDict,
    StatusTuple,
    Strategy,
)

__all__ = [
    "Strategy",
    "StatusDict",
    "StatusTuple",
    "BaseAdapter",
]
