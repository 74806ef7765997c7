"""Auth models"""

from .common import ApiModel


class LoginRequest(ApiModel):
    email: str
    password: str


class UserOut(ApiModel):
    id: str
    email: str
    name: str
    role: str


class LoginResponse(ApiModel):
    access_token: str
    user: UserOut


class RefreshResponse(ApiModel):
    access_token: str
