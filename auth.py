"""Credential check against the users collection."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from database import USERS_COLLECTION, DocumentStore, DocumentStoreError
from schemas import AuthResult, UserRecord

logger = logging.getLogger(__name__)


class CredentialMatcher(ABC):
    """Decides whether a supplied secret matches the stored reference value."""

    @abstractmethod
    def matches(self, stored: str, supplied: str) -> bool:
        """Return True when `supplied` is accepted for `stored`."""


class PlaintextMatcher(CredentialMatcher):
    # Stored passwords are not hashed; swap in another matcher to change that.
    def matches(self, stored: str, supplied: str) -> bool:
        return stored == supplied


async def verify(
    store: DocumentStore,
    email: str,
    password: str,
    matcher: Optional[CredentialMatcher] = None,
    collection: str = USERS_COLLECTION,
) -> AuthResult:
    """Look up the user by exact email and compare the stored password.

    Unknown email and wrong password produce the same rejection so callers
    cannot tell which one happened. Store failures come back as a failed
    result rather than an exception.
    """
    matcher = matcher or PlaintextMatcher()
    input_email = email.strip()

    try:
        doc = await store.find_one_by_field(collection, "email", input_email)
    except DocumentStoreError:
        logger.exception("User lookup failed")
        return AuthResult.failed()

    if doc is None:
        logger.info("Login rejected for %s", input_email)
        return AuthResult.rejected()

    try:
        user = UserRecord.model_validate(doc)
    except ValidationError:
        logger.exception("Unreadable user document %s", doc.get("id"))
        return AuthResult.failed()

    if not matcher.matches(user.password, password):
        logger.info("Login rejected for %s", input_email)
        return AuthResult.rejected()

    logger.info("Login succeeded for %s", input_email)
    return AuthResult.authenticated(name=user.name, email=input_email)
