"""Session lifecycle: restore at start, populate on login, clear on logout"""

import logging

from goldapp.domain.models import AuthResult
from goldapp.domain.session import Session
from goldapp.infrastructure.database.repositories import SessionRepository

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the app's one Session and keeps its persisted copy in sync"""

    def __init__(self, session: Session | None = None):
        self.session = session or Session()
        self._restored = False

    def restore(self, repo: SessionRepository) -> Session:
        """Load the persisted login once per process"""
        if self._restored:
            return self.session
        row = repo.load()
        if row is not None:
            self.session.login(row.token, row.unique_id, row.user_data or {}, row.kyc_status)
            logger.info("Session restored", extra={"unique_id": row.unique_id})
        self._restored = True
        return self.session

    def login(self, repo: SessionRepository, unique_id: str, auth: AuthResult) -> Session:
        user = {"mobile": unique_id, **auth.user}
        self.session.login(auth.token, unique_id, user, auth.kyc_status)
        repo.save(self.session)
        self._restored = True
        logger.info("Session started", extra={"unique_id": unique_id, "kyc_status": auth.kyc_status})
        return self.session

    def logout(self, repo: SessionRepository) -> None:
        unique_id = self.session.unique_id
        self.session.logout()
        repo.clear()
        self._restored = True
        logger.info("Session ended", extra={"unique_id": unique_id})
