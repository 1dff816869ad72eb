"""
Session history persistence: local JSON file or Firestore.
"""

from .history import HistoryStore, LocalHistoryStore, FirestoreHistoryStore

__all__ = [
    'HistoryStore',
    'LocalHistoryStore',
    'FirestoreHistoryStore'
]
