"""Habitica v3 API helpers.

Every call takes the credentials dict explicitly:
    {"user_id": "...", "api_token": "..."}
"""

import requests

from helpers import to_ms
from models import ChatMessage

API_BASE = "https://habitica.com/api/v3"
CLIENT_NAME = "QuestStats"
TIMEOUT = 30


class HabiticaError(RuntimeError):
    """An API call failed (network error, HTTP error, or success: false)."""


def _headers(creds: dict) -> dict:
    return {
        "x-api-user": creds["user_id"],
        "x-api-key": creds["api_token"],
        "x-client": f"{creds['user_id']}-{CLIENT_NAME}",
    }


def _request(creds: dict, method: str, path: str, payload: dict | None = None,
             label: str = "request"):
    """Call the API and return the 'data' member. Raises HabiticaError on failure."""
    try:
        resp = requests.request(
            method,
            f"{API_BASE}{path}",
            headers=_headers(creds),
            json=payload,
            timeout=TIMEOUT,
        )
    except requests.RequestException as e:
        raise HabiticaError(f"Habitica {label} failed: {e}") from e

    if resp.status_code not in (200, 201):
        raise HabiticaError(f"Habitica {label} failed (HTTP {resp.status_code}): {resp.text[:300]}")

    body = resp.json()
    if not body.get("success", False):
        raise HabiticaError(f"Habitica {label} failed: {body.get('message', body)}")
    return body.get("data")


def _to_message(raw: dict) -> ChatMessage:
    author = raw.get("user")
    if raw.get("uuid") == "system":
        author = None
    return ChatMessage(
        text=raw.get("text", ""),
        timestamp=to_ms(raw["timestamp"]),
        author=author,
        id=raw.get("id") or raw.get("_id"),
    )


def get_group_chat(creds: dict, group_id: str) -> list[ChatMessage]:
    """Fetch group chat, newest first as the API returns it."""
    data = _request(creds, "GET", f"/groups/{group_id}/chat", label="get_group_chat")
    return [_to_message(m) for m in data or []]


def get_group(creds: dict, group_id: str) -> dict:
    """Fetch group info, including quest status and leader."""
    return _request(creds, "GET", f"/groups/{group_id}", label="get_group")


def get_member(creds: dict, member_id: str) -> dict:
    return _request(creds, "GET", f"/members/{member_id}", label="get_member")


def get_inbox(creds: dict) -> list[ChatMessage]:
    """Fetch the bot account's private messages."""
    data = _request(creds, "GET", "/inbox/messages", label="get_inbox")
    return [_to_message(m) for m in data or []]


def post_chat(creds: dict, group_id: str, text: str) -> bool:
    _request(creds, "POST", f"/groups/{group_id}/chat", {"message": text}, "post_chat")
    return True


def send_private_message(creds: dict, user_id: str, text: str) -> bool:
    _request(creds, "POST", "/members/send-private-message",
             {"message": text, "toUserId": user_id}, "send_private_message")
    return True


def force_start_quest(creds: dict, group_id: str) -> bool:
    """Try to force-start the pending quest. Returns False if the API refuses."""
    try:
        _request(creds, "POST", f"/groups/{group_id}/quests/force-start", label="force_start")
    except HabiticaError as e:
        print(f"Force-start refused: {e}")
        return False
    return True


def member_mention(member: dict) -> str:
    """'@username' for a member profile, falling back to the display name."""
    username = ((member.get("auth") or {}).get("local") or {}).get("username")
    if username:
        return f"@{username}"
    return (member.get("profile") or {}).get("name", "someone")
