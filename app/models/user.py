from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthMethod(BaseModel):
    type: str
    id: str


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    real_name: str = Field(default="", alias="realName")
    email_address: str = Field(alias="emailAddress")
    auth_methods: list[AuthMethod] = Field(default_factory=list, alias="authMethods")
    created_at: datetime = Field(alias="createdAt")


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    real_name: Optional[str] = Field(default=None, alias="realName")
    email_address: Optional[str] = Field(default=None, alias="emailAddress")
    auth_type: Optional[str] = Field(default=None, alias="authType")
    auth_id: Optional[str] = Field(default=None, alias="authId")


class SignupResponse(BaseModel):
    success: bool
    user: User


class AuthMethodRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auth_type: str = Field(alias="authType")
    auth_id: str = Field(alias="authId")


class ClientPrincipal(BaseModel):
    auth_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None


class CurrentUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authenticated: bool
    user: Optional[User] = None
    auth_type: Optional[str] = Field(default=None, alias="authType")
    auth_id: Optional[str] = Field(default=None, alias="authId")
    suggested_email: Optional[str] = Field(default=None, alias="suggestedEmail")
    suggested_name: Optional[str] = Field(default=None, alias="suggestedName")
