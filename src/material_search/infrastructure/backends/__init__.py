"""
Search backends.

- base: SearchBackend protocol, BackendQuery, BackendHit
- mongodb: MongoMaterialBackend (PyMongo async client)
"""

from .base import BackendHit, BackendQuery, SearchBackend
from .mongodb import MongoMaterialBackend

__all__ = ["BackendHit", "BackendQuery", "SearchBackend", "MongoMaterialBackend"]
