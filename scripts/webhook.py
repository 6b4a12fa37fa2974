"""Post quest reports to a Discord channel through an incoming webhook."""

import requests

DISCORD_MAX_LENGTH = 2000
WEBHOOK_USERNAME = "Quest Stats"


def split_message(text: str, max_length: int = DISCORD_MAX_LENGTH) -> list[str]:
    """Split a report into chunks under Discord's limit, on line breaks."""
    if len(text) <= max_length:
        return [text]

    chunks = []
    current = ""
    for line in text.split("\n"):
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= max_length:
            current = candidate
            continue
        if current.strip():
            chunks.append(current.strip())
        current = line[:max_length]

    if current.strip():
        chunks.append(current.strip())
    return chunks


def post(webhook_url: str, text: str) -> bool:
    """Post text to the webhook, chunked. Returns True if every chunk went through."""
    success = True
    chunks = split_message(text)

    for i, chunk in enumerate(chunks):
        try:
            resp = requests.post(
                webhook_url,
                json={"content": chunk, "username": WEBHOOK_USERNAME},
                timeout=30,
            )
            if resp.status_code in (200, 204):
                print(f"Posted Discord chunk {i + 1}/{len(chunks)} ({len(chunk)} chars)")
            else:
                print(f"Discord error: {resp.text[:300]}")
                success = False
        except requests.RequestException as e:
            print(f"Network error: {e}")
            success = False

    return success
