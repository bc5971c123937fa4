from .store import ContentStore, HierarchyLevel
from .memory_store import InMemoryContentStore
from .mongo_store import MongoContentStore
from .preprocess import parse_object_id, parse_id_list

__all__ = [
    "ContentStore",
    "HierarchyLevel",
    "InMemoryContentStore",
    "MongoContentStore",
    "parse_object_id",
    "parse_id_list",
]
