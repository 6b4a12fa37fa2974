"""Tests for habitica.py, with requests patched out."""

from unittest.mock import MagicMock, patch

import pytest
import requests

import habitica

CREDS = {"user_id": "bot-id", "api_token": "secret"}


def _resp(status=200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {"success": True, "data": None}
    resp.text = str(body)
    return resp


def test_get_group_chat_converts_messages():
    body = {"success": True, "data": [
        {"id": "m2", "text": "`Alice attacks Dragon for 3 damage.`", "timestamp": 2000, "uuid": "system"},
        {"id": "m1", "text": "hello", "timestamp": "2026-01-01T00:00:00.000Z", "user": "Bob", "uuid": "u-bob"},
    ]}
    with patch("habitica.requests.request", return_value=_resp(body=body)) as mock_req:
        chat = habitica.get_group_chat(CREDS, "party")

    method, url = mock_req.call_args[0]
    assert method == "GET"
    assert url == "https://habitica.com/api/v3/groups/party/chat"
    headers = mock_req.call_args[1]["headers"]
    assert headers["x-api-user"] == "bot-id"
    assert headers["x-api-key"] == "secret"
    assert headers["x-client"] == "bot-id-QuestStats"

    assert chat[0].author is None
    assert chat[0].timestamp == 2000
    assert chat[1].author == "Bob"
    assert chat[1].timestamp == 1_767_225_600_000


def test_http_error_raises():
    with patch("habitica.requests.request", return_value=_resp(401, {"success": False})):
        with pytest.raises(habitica.HabiticaError):
            habitica.get_group(CREDS, "party")


def test_unsuccessful_body_raises():
    with patch("habitica.requests.request", return_value=_resp(200, {"success": False, "message": "nope"})):
        with pytest.raises(habitica.HabiticaError, match="nope"):
            habitica.get_inbox(CREDS)


def test_network_error_raises():
    with patch("habitica.requests.request", side_effect=requests.ConnectionError("down")):
        with pytest.raises(habitica.HabiticaError):
            habitica.get_group_chat(CREDS, "party")


def test_post_chat_payload():
    with patch("habitica.requests.request", return_value=_resp()) as mock_req:
        assert habitica.post_chat(CREDS, "party", "hi") is True
    assert mock_req.call_args[0] == ("POST", "https://habitica.com/api/v3/groups/party/chat")
    assert mock_req.call_args[1]["json"] == {"message": "hi"}


def test_send_private_message_payload():
    with patch("habitica.requests.request", return_value=_resp()) as mock_req:
        habitica.send_private_message(CREDS, "u-1", "psst")
    assert mock_req.call_args[1]["json"] == {"message": "psst", "toUserId": "u-1"}


def test_force_start_refused_returns_false():
    with patch("habitica.requests.request", return_value=_resp(401, {"success": False})):
        assert habitica.force_start_quest(CREDS, "party") is False


def test_force_start_ok():
    with patch("habitica.requests.request", return_value=_resp()) as mock_req:
        assert habitica.force_start_quest(CREDS, "party") is True
    assert mock_req.call_args[0][1].endswith("/groups/party/quests/force-start")


def test_member_mention():
    assert habitica.member_mention({"auth": {"local": {"username": "fiona"}}}) == "@fiona"
    assert habitica.member_mention({"profile": {"name": "Fiona"}}) == "Fiona"
