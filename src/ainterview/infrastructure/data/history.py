"""
Session history persistence.

Two backends share one contract: save a finalized session for an identity,
list an identity's sessions newest-first, and clear them. A store that has no
identity to scope to is a no-op rather than an error.
"""
import json
import logging
import os
import tempfile
from typing import List, Optional, Protocol

from google.api_core import exceptions as gapi_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore

from ...config import HISTORY_LIMIT, HISTORY_COLLECTION, FIRESTORE_BATCH_LIMIT
from ...errors import PersistenceError, ConfigurationError
from ...interview.models import Session, Identity

logger = logging.getLogger("history_store")


class HistoryStore(Protocol):
    """Persistence contract used by the session machine and the CLI."""

    def available(self, identity: Optional[Identity]) -> bool: ...

    def save(self, session: Session, identity: Optional[Identity]) -> bool: ...

    def list(self, identity: Optional[Identity]) -> List[Session]: ...

    def clear(self, identity: Optional[Identity]) -> int: ...


class LocalHistoryStore:
    """
    Single-user history kept in a JSON file.

    Only the most recent ``limit`` sessions are kept; saving beyond that
    evicts the oldest. Identity is ignored.
    """

    def __init__(self, path: str, limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.path = path
        self.limit = limit

    def available(self, identity: Optional[Identity]) -> bool:
        return True

    def _read(self) -> List[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            logger.error("History file %s is corrupt, starting fresh: %s", self.path, e)
            return []
        except OSError as e:
            raise PersistenceError(f"Could not read history: {e}", {"path": self.path}) from e

        sessions = data.get("sessions") if isinstance(data, dict) else None
        return sessions if isinstance(sessions, list) else []

    def _write(self, sessions: List[dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".history-", suffix=".json")
        except OSError as e:
            raise PersistenceError(f"Could not write history: {e}", {"path": self.path}) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"sessions": sessions}, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise PersistenceError(f"Could not write history: {e}", {"path": self.path}) from e

    def save(self, session: Session, identity: Optional[Identity] = None) -> bool:
        sessions = self._read()
        sessions.append(session.to_dict())
        evicted = max(0, len(sessions) - self.limit)
        if evicted:
            logger.info("Evicting %d oldest session(s) from local history", evicted)
        self._write(sessions[evicted:])
        logger.info("Saved session %s locally (%d exchanges)", session.id, len(session.exchanges))
        return True

    def list(self, identity: Optional[Identity] = None) -> List[Session]:
        sessions = []
        for item in reversed(self._read()):
            try:
                sessions.append(Session.from_dict(item))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping unreadable history entry: %s", e)
        return sessions

    def clear(self, identity: Optional[Identity] = None) -> int:
        count = len(self._read())
        self._write([])
        logger.info("Cleared %d local session(s)", count)
        return count


class FirestoreHistoryStore:
    """History stored in Firestore, one document per session, scoped by userId."""

    def __init__(self,
                 project_id: Optional[str] = None,
                 credentials_json: Optional[str] = None,
                 collection: str = HISTORY_COLLECTION,
                 client=None):
        self.collection = collection
        if client is not None:
            self._client = client
            return

        if not project_id:
            raise ConfigurationError("FIREBASE_PROJECT_ID is required for Firestore history")
        try:
            if credentials_json:
                self._client = firestore.Client.from_service_account_json(credentials_json, project=project_id)
            else:
                self._client = firestore.Client(project=project_id)
        except (auth_exceptions.GoogleAuthError, OSError, ValueError) as e:
            raise ConfigurationError(f"Could not initialize Firestore: {e}") from e
        logger.info("Firestore history enabled for project %s", project_id)

    def available(self, identity: Optional[Identity]) -> bool:
        return identity is not None

    def _owner_query(self, identity: Identity):
        return self._client.collection(self.collection).where(
            filter=firestore.FieldFilter("userId", "==", identity.uid)
        )

    def save(self, session: Session, identity: Optional[Identity]) -> bool:
        if identity is None:
            logger.info("No signed-in user; session %s not saved", session.id)
            return False

        document = session.to_dict()
        document.pop("id")
        document.pop("timestamp")
        document["userId"] = identity.uid
        document["createdAt"] = firestore.SERVER_TIMESTAMP

        try:
            self._client.collection(self.collection).add(document)
        except gapi_exceptions.GoogleAPIError as e:
            logger.error("Could not save to Firestore: %s", e)
            raise PersistenceError("Your interview session could not be saved", {"error": str(e)}) from e
        logger.info("Saved session %s to Firestore for %s", session.id, identity.uid)
        return True

    def list(self, identity: Optional[Identity]) -> List[Session]:
        if identity is None:
            return []

        query = self._owner_query(identity).order_by("createdAt", direction=firestore.Query.DESCENDING)
        sessions = []
        try:
            for doc in query.stream():
                data = doc.to_dict() or {}
                created = data.get("createdAt")
                try:
                    sessions.append(Session.from_dict({
                        "id": doc.id,
                        "timestamp": created.timestamp() if hasattr(created, "timestamp") else None,
                        "category": data.get("category"),
                        "difficulty": data.get("difficulty"),
                        "exchanges": data.get("exchanges") or [],
                    }))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning("Skipping unreadable session %s: %s", doc.id, e)
        except gapi_exceptions.GoogleAPIError as e:
            logger.error("Could not fetch history from Firestore: %s", e)
            raise PersistenceError("Could not load interview history", {"error": str(e)}) from e
        return sessions

    def clear(self, identity: Optional[Identity]) -> int:
        if identity is None:
            return 0

        deleted = 0
        try:
            batch = self._client.batch()
            pending = 0
            for doc in self._owner_query(identity).stream():
                batch.delete(doc.reference)
                pending += 1
                deleted += 1
                if pending == FIRESTORE_BATCH_LIMIT:
                    batch.commit()
                    batch = self._client.batch()
                    pending = 0
            if pending:
                batch.commit()
        except gapi_exceptions.GoogleAPIError as e:
            logger.error("Could not clear history from Firestore: %s", e)
            raise PersistenceError("Could not clear history", {"error": str(e)}) from e
        logger.info("Cleared %d Firestore session(s) for %s", deleted, identity.uid)
        return deleted
