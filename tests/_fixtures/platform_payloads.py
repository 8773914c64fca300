"""Minimal platform REST payloads shaped like the GitHub v3 API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


def user(login: str) -> Dict[str, Any]:
    return {"login": login, "id": 1, "type": "User"}


def issue(
    number: int,
    *,
    login: str = "reader",
    state: str = "open",
    created: str = "2024-03-10T09:00:00Z",
    closed: Optional[str] = None,
    title: str = "Question",
    body: str = "",
    labels: Optional[List[str]] = None,
    pull_request: bool = False,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "number": number,
        "title": title,
        "body": body,
        "state": state,
        "user": user(login),
        "labels": [{"name": name, "color": "ffffff"} for name in labels or []],
        "html_url": f"https://github.com/octo/notes/issues/{number}",
        "created_at": created,
        "closed_at": closed,
        "comments": 0,
    }
    if pull_request:
        payload["pull_request"] = {"url": f"https://api.github.com/repos/octo/notes/pulls/{number}"}
    return payload


def comment(comment_id: int, *, login: str, created: str, body: str = "Thanks") -> Dict[str, Any]:
    return {
        "id": comment_id,
        "body": body,
        "user": user(login),
        "html_url": f"https://github.com/octo/notes/issues/comments/{comment_id}",
        "created_at": created,
    }


def pull(
    number: int,
    *,
    login: str = "contributor",
    created: str = "2024-03-05T09:00:00Z",
    merged: Optional[str] = None,
    state: str = "open",
    title: str = "Revise section",
) -> Dict[str, Any]:
    return {
        "number": number,
        "title": title,
        "body": "",
        "state": state,
        "user": user(login),
        "html_url": f"https://github.com/octo/notes/pull/{number}",
        "created_at": created,
        "merged_at": merged,
    }


def review(review_id: int, *, login: str, submitted: Optional[str], state: str = "COMMENTED") -> Dict[str, Any]:
    return {
        "id": review_id,
        "user": user(login),
        "body": "Looks good",
        "state": state,
        "html_url": f"https://github.com/octo/notes/pull/1#pullrequestreview-{review_id}",
        "submitted_at": submitted,
    }


def pull_commit(sha: str, *, login: str, date: str, message: str = "Address review") -> Dict[str, Any]:
    person = {"name": login, "email": f"{login}@example.org", "date": date}
    return {"sha": sha, "commit": {"message": message, "author": person, "committer": person}, "author": user(login)}


def fork(full_name: str, *, created: str) -> Dict[str, Any]:
    owner = full_name.split("/", 1)[0]
    return {"full_name": full_name, "owner": user(owner), "created_at": created}


__all__ = ["comment", "fork", "issue", "pull", "pull_commit", "review", "user"]
