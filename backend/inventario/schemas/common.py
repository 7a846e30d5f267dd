from typing import Optional

from pydantic import BaseModel


class UsernameIn(BaseModel):
    username: Optional[str] = None


class SuccessOut(BaseModel):
    success: bool = True
    message: Optional[str] = None
