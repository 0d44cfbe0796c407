"""Identity resolved by the authentication gate."""

import uuid
from typing import Optional

from pydantic import BaseModel


class CurrentUser(BaseModel):
    id: uuid.UUID
    email: Optional[str] = None
