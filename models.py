from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar, Union
from pydantic import BaseModel, Field

class SiteUser(BaseModel):
    Id: int
    LoginName: str
    Title: Optional[str] = None

class SiteGroup(BaseModel):
    Id: int
    Title: str
    Users: List[SiteUser] = Field(default_factory=list)

class SetSiteReadOnlyRequest(BaseModel):
    SiteURL: Optional[str] = Field(None, description="URL of site")
    Owner: Optional[str] = Field(None, description="Owner")

class SetSiteReadOnlyResponse(BaseModel):
    SetReadOnly: bool = Field(..., description="True if the site was set to read-only")

T = TypeVar("T")

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

@dataclass(frozen=True)
class Err:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)

Result = Union[Ok[T], Err]
