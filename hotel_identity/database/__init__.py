# Database package for hotel identity resolution

from .connection import DatabaseManager
from .models import Base, HotelAlias
from .record_store import InMemoryRecordStore, ResolutionRecordStore, SqlAlchemyRecordStore

__all__ = [
    'DatabaseManager',
    'Base',
    'HotelAlias',
    'InMemoryRecordStore',
    'ResolutionRecordStore',
    'SqlAlchemyRecordStore',
]
