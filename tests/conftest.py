"""Shared pytest fixtures for tests."""

import copy
from types import SimpleNamespace
from typing import Annotated

import pydantic
import pytest

from mox_py import Field, Model


class Profile(Model):
    bio: str = ""
    website: str = ""


class Post(Model):
    title: str = ""
    createdAt: str = "1970-01-01"


class User(Model):
    id: Annotated[int, pydantic.Field(ge=0)] = 0
    firstName: str = ""
    lastName: str = ""
    email: Annotated[str, pydantic.StringConstraints(pattern=r"^[^@\s]+@[^@\s]+$")] = ""
    password: str = Field("", exclude=True)
    isAdmin: bool = Field(False, groups=["admin"])
    createdAt: str = Field("1970-01-01", read_only=True)
    profile: Profile = Field(default_factory=Profile, nested=Profile)
    posts: list[Post] = Field(default_factory=list, nested=Post)


USER_PAYLOAD = {
    "id": 1,
    "first_name": "Pavel",
    "last_name": "del Pozo",
    "email": "pavel@dev.com",
    "password": "secret",
    "is_admin": True,
    "created_at": "2024-01-01",
    "profile": {
        "bio": "Frontend Dev",
        "website": "https://pavel.dev",
    },
    "posts": [
        {"title": "Hola", "created_at": "2023-01-01"},
        {"title": "Adiós", "created_at": "2023-02-01"},
    ],
}


@pytest.fixture
def models():
    """The shared User/Profile/Post model classes."""
    return SimpleNamespace(User=User, Profile=Profile, Post=Post)


@pytest.fixture
def user_payload():
    """A fresh copy of the external user payload."""
    return copy.deepcopy(USER_PAYLOAD)


@pytest.fixture
def user(user_payload):
    """A User built from the external payload, with a snapshot."""
    return User.from_external(user_payload)
