"""Request bodies for the user routes.

Every body wraps its fields in a ``user`` object and uses camelCase names.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignUpUser(_CamelModel):
    email: EmailStr
    first_name: str = Field(alias="firstName", min_length=1)
    last_name: str = Field(alias="lastName", min_length=1)
    password: str = Field(min_length=1)


class SignUpRequest(BaseModel):
    user: SignUpUser


class ConfirmUser(_CamelModel):
    email: EmailStr
    confirmation_code: str = Field(alias="confirmationCode", min_length=1)


class ConfirmRequest(BaseModel):
    user: ConfirmUser


class LoginUser(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    user: LoginUser


class UpdateUser(_CamelModel):
    email: EmailStr
    first_name: str = Field(alias="firstName", min_length=1)
    last_name: str = Field(alias="lastName", min_length=1)


class UpdateRequest(BaseModel):
    user: UpdateUser


class EmailUser(BaseModel):
    email: EmailStr


class EmailRequest(BaseModel):
    user: EmailUser


class ConfirmForgotPasswordUser(BaseModel):
    email: EmailStr
    code: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ConfirmForgotPasswordRequest(BaseModel):
    user: ConfirmForgotPasswordUser
