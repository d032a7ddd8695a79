# Adapters
from folio.adapters.executor import Executors
from folio.adapters.executor.memory import MemoryQueryExecutor

__all__ = (
    "Executors",
    "MemoryQueryExecutor",
)
