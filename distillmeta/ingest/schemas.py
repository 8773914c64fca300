"""Pydantic models for the platform REST payloads the ingestor consumes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class _PlatformModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class User(_PlatformModel):
    login: str
    avatar_url: Optional[str] = None


class Label(_PlatformModel):
    name: str


class Issue(_PlatformModel):
    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: Optional[User] = None
    labels: List[Label] = []
    html_url: Optional[str] = None
    created_at: datetime
    closed_at: Optional[datetime] = None
    pull_request: Optional[Dict[str, Any]] = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None


class Comment(_PlatformModel):
    id: int
    body: Optional[str] = None
    user: Optional[User] = None
    html_url: Optional[str] = None
    created_at: datetime


class PullRequest(_PlatformModel):
    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: Optional[User] = None
    html_url: Optional[str] = None
    created_at: datetime
    merged_at: Optional[datetime] = None

    @property
    def merged(self) -> bool:
        return self.merged_at is not None


class Review(_PlatformModel):
    id: int
    user: Optional[User] = None
    body: Optional[str] = None
    state: str
    html_url: Optional[str] = None
    submitted_at: Optional[datetime] = None


class CommitPerson(_PlatformModel):
    name: Optional[str] = None
    email: Optional[str] = None
    date: datetime


class CommitDetail(_PlatformModel):
    message: str
    author: Optional[CommitPerson] = None
    committer: Optional[CommitPerson] = None


class PullCommit(_PlatformModel):
    sha: str
    commit: CommitDetail
    author: Optional[User] = None


class Fork(_PlatformModel):
    full_name: str
    owner: User
    created_at: datetime


def login_of(user: Optional[User]) -> str:
    """Platform login, with deleted accounts reported as ``ghost``."""
    return user.login if user is not None else "ghost"


__all__ = [
    "Comment",
    "CommitDetail",
    "CommitPerson",
    "Fork",
    "Issue",
    "Label",
    "PullCommit",
    "PullRequest",
    "Review",
    "User",
    "login_of",
]
