"""Quest queue persistence: a local JSON file, or a Gist when credentials are set.

The queue is an ordered list of {"user": ..., "quest": ...} entries; the head
is whoever starts the next quest. It is read whole and written back whole.
"""

import json
from pathlib import Path

import requests

QUEUE_FILENAME = "quest_queue.json"


def make_store(path, gist_id: str = "", gist_token: str = "") -> dict:
    """Describe where the queue lives. Gist wins when both id and token are set."""
    store = {"path": Path(path)}
    if gist_id and gist_token:
        store["gist_api"] = f"https://api.github.com/gists/{gist_id}"
        store["gist_token"] = gist_token
    return store


def _gist_headers(store: dict) -> dict:
    return {
        "Authorization": f"token {store['gist_token']}",
        "Accept": "application/vnd.github.v3+json",
    }


def _clean(entries) -> list[dict]:
    queue = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get("user") and entry.get("quest"):
            queue.append({"user": entry["user"], "quest": entry["quest"]})
        else:
            print(f"Warning: dropping malformed queue entry {entry!r}")
    return queue


def load(store: dict) -> list[dict]:
    if "gist_api" in store:
        return _load_gist(store)

    path = store["path"]
    if not path.exists():
        return []
    try:
        with open(path) as f:
            return _clean(json.load(f))
    except json.JSONDecodeError as e:
        print(f"Warning: Could not parse {path} ({e}), starting with an empty queue")
        return []


def save(store: dict, queue: list[dict]) -> None:
    if "gist_api" in store:
        _save_gist(store, queue)
        return

    path = store["path"]
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(queue, f, indent=2)
    print(f"Quest queue saved to {path}")


def _load_gist(store: dict) -> list[dict]:
    resp = requests.get(store["gist_api"], headers=_gist_headers(store), timeout=30)

    if resp.status_code != 200:
        print(f"Warning: Could not load gist (HTTP {resp.status_code}), starting with an empty queue")
        return []

    files = resp.json().get("files", {})
    if QUEUE_FILENAME not in files:
        return []
    return _clean(json.loads(files[QUEUE_FILENAME]["content"] or "[]"))


def _save_gist(store: dict, queue: list[dict]) -> None:
    resp = requests.patch(
        store["gist_api"],
        headers=_gist_headers(store),
        json={"files": {QUEUE_FILENAME: {"content": json.dumps(queue, indent=2)}}},
        timeout=30,
    )

    if resp.status_code == 200:
        print("Quest queue saved to gist")
    else:
        print(f"Warning: Failed to save quest queue (HTTP {resp.status_code})")


# ------------------------------------------------------------------ #
#  Queue operations
# ------------------------------------------------------------------ #
def add(store: dict, user: str, quest: str) -> list[dict]:
    queue = load(store)
    queue.append({"user": user, "quest": quest})
    save(store, queue)
    return queue


def pop(store: dict) -> dict | None:
    """Remove and return the head entry, or None when the queue is empty."""
    queue = load(store)
    if not queue:
        return None
    head = queue.pop(0)
    save(store, queue)
    return head
