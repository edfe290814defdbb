from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == "null":
        return None
    return text


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    full_name: str
    email: str
    avatar_url: Optional[str] = None


class FavoriteDetail(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="artistId")
    name: str = ""
    nationality: str = ""
    years: str = ""
    added_at: str = Field(default="", alias="addedAt")
    thumbnail_url: str = Field(default="", alias="thumbnail")

    @field_validator("name", "nationality", "years", "added_at", "thumbnail_url", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return "" if value is None else value


class FavoritesResponse(BaseModel):
    favorites: List[FavoriteDetail] = Field(default_factory=list)
    message: str = ""

    @field_validator("favorites", mode="before")
    @classmethod
    def _null_as_empty_list(cls, value):
        return [] if value is None else value

    @field_validator("message", mode="before")
    @classmethod
    def _null_as_empty_message(cls, value):
        return "" if value is None else value

    @property
    def is_authenticated(self) -> bool:
        return bool(self.favorites) or self.message == "success"


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    fullname: str
    email: str
    password: str


class AuthUserPayload(BaseModel):
    """The ``user`` object returned by the login and register endpoints.

    The server keys accounts by email, so the email doubles as the user id.
    """

    fullname: str = "User"
    email: str = ""
    profile_image_url: Optional[str] = Field(default=None, alias="profileImageUrl")

    def to_user(self) -> User:
        return User(
            id=self.email,
            full_name=self.fullname,
            email=self.email,
            avatar_url=_blank_to_none(self.profile_image_url),
        )


class AuthResponse(BaseModel):
    user: Optional[AuthUserPayload] = None
    message: str = ""


class UserProfileResponse(BaseModel):
    id: str
    full_name: str = Field(alias="fullName")
    email: str
    profile_image_url: Optional[str] = Field(default=None, alias="profileImageUrl")

    def to_user(self) -> User:
        return User(
            id=self.id,
            full_name=self.full_name,
            email=self.email,
            avatar_url=_blank_to_none(self.profile_image_url),
        )
