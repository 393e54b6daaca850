from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated principal for RBAC checks.
    Identity lives in the identity service; only the token claims are trusted here.
    """

    id: UUID
    role: str
    permissions: Dict[str, Dict[str, bool]]
    name: Optional[str] = None
