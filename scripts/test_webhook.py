"""Tests for the Discord webhook publisher."""

from unittest.mock import MagicMock, patch

import requests

import webhook


def test_split_message_short():
    assert webhook.split_message("hello") == ["hello"]


def test_split_message_on_paragraphs():
    text = "a" * 15 + "\n\n" + "b" * 15
    assert webhook.split_message(text, max_length=20) == ["a" * 15, "b" * 15]


def test_split_message_long_paragraph_on_lines():
    text = "\n".join(["x" * 8] * 4)
    chunks = webhook.split_message(text, max_length=20)
    assert all(len(c) <= 20 for c in chunks)
    assert "".join(chunks).count("x") == 32


def test_post_sends_content():
    with patch("webhook.requests.post", return_value=MagicMock(status_code=204)) as mock_post:
        assert webhook.post("https://discord.example/hook", "**Quest Stats**") is True
    assert mock_post.call_args[1]["json"]["content"] == "**Quest Stats**"


def test_post_reports_failure():
    with patch("webhook.requests.post", return_value=MagicMock(status_code=400, text="bad")):
        assert webhook.post("https://discord.example/hook", "x") is False


def test_post_network_error():
    with patch("webhook.requests.post", side_effect=requests.ConnectionError("down")):
        assert webhook.post("https://discord.example/hook", "x") is False
