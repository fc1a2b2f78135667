"""
User-related Pydantic models
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Address(BaseModel):
    model_config = ConfigDict(extra="allow")

    street: Optional[str] = None
    suite: Optional[str] = None
    city: Optional[str] = None
    zipcode: Optional[str] = None


class Company(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = None
    catch_phrase: Optional[str] = Field(None, alias="catchPhrase")
    bs: Optional[str] = Field(None, description="Business slogan")


class UserFields(BaseModel):
    """Editable user attributes, as submitted by the create/edit form"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[Address] = None
    company: Optional[Company] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire/snapshot representation using the remote API's field names"""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_changes(self) -> Dict[str, Any]:
        """Fields the form actually sent, keeping explicit nulls so an edit can clear a value"""
        return self.model_dump(by_alias=True, exclude_unset=True)


class User(UserFields):
    """A directory entry keyed by its numeric identifier"""
    id: int

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "User":
        return cls.model_validate(payload)


class UserCreateRequest(UserFields):
    pass


class UserUpdateRequest(UserFields):
    pass


class UserListResponse(BaseModel):
    """Rendered state of the directory list view"""
    users: List[Dict[str, Any]]
    count: int
    loading: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None
