"""Authenticated user session"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Session:
    """
    Explicit per-app session, passed to whatever needs the current user.

    Lifecycle: created anonymous at app start, populated by login(),
    emptied by logout().
    """

    token: Optional[str] = None
    unique_id: Optional[str] = None
    kyc_status: str = "pending"
    user: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        # Some OTP verifications return no token; the mobile number still identifies the user
        return self.unique_id is not None

    def login(self, token: Optional[str], unique_id: str, user: Dict[str, Any], kyc_status: str = "pending") -> None:
        self.token = token
        self.unique_id = unique_id
        self.user = dict(user)
        self.kyc_status = kyc_status

    def logout(self) -> None:
        self.token = None
        self.unique_id = None
        self.user = {}
        self.kyc_status = "pending"

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}
