"""
Quest Stats Bot for Habitica parties

Runs from cron (hourly is typical). Two jobs:
  report   post award leaderboards for the last completed quest
  pending  nudge, auto-start or escalate a quest nobody has started

Every job is safe to re-run: already-posted reports and escalations are
detected in chat/inbox and skipped. The quest queue (who starts the next
quest) is kept in a JSON file or a Gist between runs.
Modules: habitica.py (API), questlog.py (parsing), awards.py (leaderboards),
dedup.py / escalation.py (run decisions), state.py (queue), webhook.py (Discord).
"""

import argparse
import os
import sys
from datetime import datetime, timezone

import requests

import awards
import dedup
import escalation
import habitica as hab
import helpers
import questlog
import state as queue_store
import webhook

QUEUE_HEADER = "Quest Queue"


# ------------------------------------------------------------------ #
#  Quest report
# ------------------------------------------------------------------ #
def _post_queue_reminder(config: dict, creds: dict, store: dict, api) -> dict | None:
    """Remind the head of the quest queue that they're up, then drop them from it."""
    queue = queue_store.load(store)
    if not queue:
        print("Quest queue is empty, no reminder to post")
        return None

    head = queue[0]
    message = (
        f"{QUEUE_HEADER}: @{head['user']} you're up next! "
        f"Please send out the invites for {head['quest']}."
    )
    print(f"Posting queue reminder for {head['user']} ({head['quest']})")
    api.post_chat(creds, config.get("group_id", "party"), message)
    queue_store.save(store, queue[1:])
    return head


def run_quest_report(config: dict, creds: dict, *, post_to_discord: bool = False,
                     use_queue_reminder: bool = False, history: int | None = None,
                     webhook_url: str = "", store: dict | None = None, api=hab) -> bool:
    """Post the stats report for a quest unless it's already in chat. Returns True if posted."""
    settings = helpers.load_settings(config)
    group_id = config.get("group_id", "party")
    header = settings["report_header"]
    history = settings["report_history"] if history is None else history

    transcript = api.get_group_chat(creds, group_id)
    print(f"Fetched {len(transcript)} chat messages")

    try:
        window = questlog.extract_window(transcript, history)
    except questlog.QuestNotFound as e:
        print(f"No quest data available: {e}")
        return False

    records = questlog.classify_window(window)
    if not records:
        print("No quest actions found in the quest window, nothing to report")
        return False

    if not dedup.report_needed(transcript, records, header):
        print("Report already posted for this quest, skipping")
        return False

    lines = awards.format_report(window, records, header, settings)
    name = questlog.quest_name(window)

    print(f"Posting quest report for {name} ({len(records)} actions)")
    api.post_chat(creds, group_id, awards.to_habitica(lines))

    if post_to_discord:
        if webhook_url:
            webhook.post(webhook_url, awards.to_discord(lines))
        else:
            print("Warning: No DISCORD_WEBHOOK_URL set, skipping Discord post")

    if use_queue_reminder:
        store = store or queue_store.make_store(settings["queue_path"])
        _post_queue_reminder(config, creds, store, api)

    return True


# ------------------------------------------------------------------ #
#  Pending quest notice / escalation
# ------------------------------------------------------------------ #
def _latest_notice_ms(transcript, header: str) -> int | None:
    """Timestamp of the newest notice posted since the previous quest finished."""
    messages = questlog.chronological(transcript)
    completions = [m for m in messages if questlog.is_quest_complete(m.text)]
    since = completions[-1].timestamp if completions else 0
    notices = [m for m in messages if header in m.text and m.timestamp > since]
    return notices[-1].timestamp if notices else None


def escalation_text(header: str, quest_key: str, timeout_hours: float) -> str:
    return (
        f"{header}: the {quest_key} quest has been waiting for over "
        f"{helpers.fmt_amount(timeout_hours)} hours and could not be force-started. "
        f"Please begin it or cancel the invitations."
    )


def run_pending_notice(config: dict, creds: dict, *, header: str | None = None,
                       timeout_hours: float | None = None, now: datetime | None = None,
                       api=hab) -> str:
    """Advance the pending-quest escalation by one step. Returns the step taken."""
    settings = helpers.load_settings(config)
    group_id = config.get("group_id", "party")
    header = header or settings["pending_header"]
    timeout_hours = settings["pending_quest_timer_hours"] if timeout_hours is None else timeout_hours
    now = now or datetime.now(timezone.utc)

    group = api.get_group(creds, group_id)
    status = escalation.quest_status(group)
    if status != escalation.PENDING:
        print(f"No pending quest (status: {status})")
        return escalation.NOOP

    quest = group["quest"]
    quest_key = quest["key"]
    transcript = api.get_group_chat(creds, group_id)
    notice_ms = _latest_notice_ms(transcript, header)

    step = escalation.next_step(status, notice_ms, now, timeout_hours)

    if step == escalation.POST_NOTICE:
        leader = api.get_member(creds, quest["leader"])
        mention = hab.member_mention(leader)
        message = (
            f"{header}: {mention} has invited the party to the {quest_key} quest. "
            f"Accept or decline the invitation so the party can get going!"
        )
        print(f"Posting pending notice for {quest_key}")
        api.post_chat(creds, group_id, message)
        return escalation.POST_NOTICE

    if step == escalation.NOOP:
        waited = helpers.hours_since(now, helpers.ms_to_datetime(notice_ms, now.tzinfo))
        print(f"Quest {quest_key} pending, notice posted {waited:.1f}h ago, waiting")
        return escalation.NOOP

    print(f"Quest {quest_key} pending past {timeout_hours}h, attempting force-start")
    if api.force_start_quest(creds, group_id):
        print(f"Quest {quest_key} force-started")
        return escalation.STARTED

    text = escalation_text(header, quest_key, timeout_hours)
    inbox = api.get_inbox(creds)
    if dedup.escalation_already_sent(inbox, text, notice_ms):
        print("Escalation already sent for this notice, skipping")
        return escalation.NOOP

    for uid in escalation.leader_ids(group):
        print(f"Sending escalation to {uid}")
        api.send_private_message(creds, uid, text)
    return escalation.ESCALATED


# ------------------------------------------------------------------ #
#  Main
# ------------------------------------------------------------------ #
def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="questbot", description="Habitica quest stats bot")
    parser.add_argument("--config", default=None, help="Path to config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    report = sub.add_parser("report", help="Post award stats for a completed quest")
    report.add_argument("--history", type=int, default=None,
                        help="1 = latest completed quest, 2 = the one before, 0 = in progress")
    report.add_argument("--discord", action="store_true", help="Also post to the Discord webhook")
    report.add_argument("--queue-reminder", action="store_true",
                        help="Remind the next user in the quest queue")

    pending = sub.add_parser("pending", help="Nudge or escalate a quest nobody has started")
    pending.add_argument("--timeout", type=float, default=None, help="Hours before force-start")
    pending.add_argument("--header", default=None, help="Notice header text")

    queue = sub.add_parser("queue", help="Manage the quest queue")
    queue_sub = queue.add_subparsers(dest="queue_command", required=True)
    add = queue_sub.add_parser("add", help="Append a user and quest to the queue")
    add.add_argument("user")
    add.add_argument("quest")
    queue_sub.add_parser("list", help="Show the queue")
    queue_sub.add_parser("pop", help="Remove the head of the queue")

    return parser


def _queue_command(args, store: dict) -> int:
    if args.queue_command == "add":
        queue = queue_store.add(store, args.user, args.quest)
        print(f"Added {args.user} ({args.quest}), {len(queue)} in queue")
    elif args.queue_command == "pop":
        head = queue_store.pop(store)
        print(f"Removed {head['user']} ({head['quest']})" if head else "Queue is empty")
    else:
        queue = queue_store.load(store)
        if not queue:
            print("Queue is empty")
        for i, entry in enumerate(queue):
            print(f"{i + 1}. {entry['user']}: {entry['quest']}")
    return 0


def main(argv=None) -> int:
    """Entry point: load config, run the requested job, map failures to exit status."""
    args = _build_parser().parse_args(argv)

    try:
        config = helpers.load_config(args.config)
    except FileNotFoundError:
        print("Warning: No config.json found, using defaults")
        config = {}

    issues = helpers.validate_config(config)
    for issue in issues:
        print(issue)
    if any(i.startswith("ERROR:") for i in issues):
        print("Fatal config errors found, aborting")
        return 1

    settings = helpers.load_settings(config)
    store = queue_store.make_store(
        settings["queue_path"],
        os.environ.get("GIST_ID", ""),
        os.environ.get("GIST_TOKEN", ""),
    )

    creds = helpers.load_credentials()
    if args.command != "queue" and (not creds["user_id"] or not creds["api_token"]):
        print("Error: HABITICA_USER_ID and HABITICA_API_TOKEN must be set")
        return 1

    try:
        if args.command == "queue":
            return _queue_command(args, store)
        if args.command == "report":
            run_quest_report(
                config, creds,
                post_to_discord=args.discord,
                use_queue_reminder=args.queue_reminder,
                history=args.history,
                webhook_url=os.environ.get("DISCORD_WEBHOOK_URL", ""),
                store=store,
            )
        else:
            run_pending_notice(config, creds, header=args.header, timeout_hours=args.timeout)
    except (hab.HabiticaError, requests.RequestException) as e:
        print(f"Error: {e}")
        return 1

    print("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
