from .executor import BaseLookup, BaseQueryExecutor

__all__ = ["BaseLookup", "BaseQueryExecutor"]
