"""
Identity providers.

The session machine only needs the current identity to scope history. The
local provider keeps a signed-in email on disk; the Firebase provider signs
in against the Firebase Auth REST API and caches the result the same way.
"""
import json
import logging
import os
import uuid
from typing import Optional, Protocol, Dict, Any

import requests

from ...config import FIREBASE_AUTH_URL, FIREBASE_TIMEOUT
from ...errors import AuthError, ConfigurationError
from ...interview.models import Identity

logger = logging.getLogger("identity")

LOCAL_UID_NAMESPACE = uuid.UUID("6f1c3f4e-8a55-4f1e-9a43-3c1d2a7b9e10")


class IdentityProvider(Protocol):
    def current(self) -> Optional[Identity]: ...

    def login(self, email: str, password: Optional[str] = None) -> Identity: ...

    def signup(self, email: str, password: Optional[str] = None) -> Identity: ...

    def logout(self) -> None: ...


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise AuthError("A valid email address is required", {"email": email})
    return email


class _IdentityFile:
    """Small JSON file holding the signed-in identity."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[Identity]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Identity(uid=data["uid"], email=data.get("email"))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to parse stored user, signing out: %s", e)
            self.remove()
            return None

    def store(self, identity: Identity, extra: Optional[Dict[str, Any]] = None) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        payload = {"uid": identity.uid, "email": identity.email}
        payload.update(extra or {})
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)

    def remove(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


class LocalIdentityProvider:
    """
    Single-machine sign-in without a backend.

    Login and signup both just remember the email; the uid is derived from it
    so the same email always maps to the same history owner.
    """

    def __init__(self, path: str):
        self._file = _IdentityFile(path)
        self._current = self._file.load()

    def current(self) -> Optional[Identity]:
        return self._current

    def login(self, email: str, password: Optional[str] = None) -> Identity:
        email = _normalize_email(email)
        identity = Identity(uid=str(uuid.uuid5(LOCAL_UID_NAMESPACE, email)), email=email)
        self._file.store(identity)
        self._current = identity
        logger.info("Signed in locally as %s", email)
        return identity

    def signup(self, email: str, password: Optional[str] = None) -> Identity:
        return self.login(email, password)

    def logout(self) -> None:
        self._file.remove()
        self._current = None
        logger.info("Signed out")


class FirebaseIdentityProvider:
    """Email/password sign-in through the Firebase Auth REST API."""

    def __init__(self, api_key: Optional[str], path: str,
                 session: Optional[requests.Session] = None,
                 base_url: str = FIREBASE_AUTH_URL,
                 timeout: int = FIREBASE_TIMEOUT):
        if not api_key:
            raise ConfigurationError("FIREBASE_API_KEY is required for Firebase sign-in")
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._http = session or requests.Session()
        self._file = _IdentityFile(path)
        self._current = self._file.load()

    def current(self) -> Optional[Identity]:
        return self._current

    def _call(self, method: str, email: str, password: Optional[str]) -> Identity:
        email = _normalize_email(email)
        if not password:
            raise AuthError("A password is required", {"email": email})

        url = f"{self.base_url}/accounts:{method}"
        body = {"email": email, "password": password, "returnSecureToken": True}
        try:
            resp = self._http.post(url, params={"key": self.api_key}, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise AuthError(f"Could not reach Firebase Auth: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if resp.status_code >= 400:
            reason = (data.get("error") or {}).get("message", f"HTTP {resp.status_code}")
            raise AuthError(f"Firebase rejected {method}: {reason}", {"email": email})
        if not data.get("localId"):
            raise AuthError("Firebase response did not include a user id", {"email": email})

        identity = Identity(uid=data["localId"], email=data.get("email", email))
        self._file.store(identity, {"refreshToken": data.get("refreshToken")})
        self._current = identity
        logger.info("Signed in with Firebase as %s", identity.email)
        return identity

    def login(self, email: str, password: Optional[str] = None) -> Identity:
        return self._call("signInWithPassword", email, password)

    def signup(self, email: str, password: Optional[str] = None) -> Identity:
        return self._call("signUp", email, password)

    def logout(self) -> None:
        self._file.remove()
        self._current = None
        logger.info("Signed out")
