# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from topicstream.app import open_session, run_polling
from topicstream.config import ConfigurationError, configure_logging
from topicstream.domain.model import (
    FeedConfig,
    FeedSelection,
    MergeMode,
    ReadStatusAction,
    SortMode,
    UserSettings,
    category_slug,
)
from topicstream.domain.reconciliation import is_read

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from topicstream.domain.model import Topic
    from topicstream.domain.reconciliation import PollResult, ReconciliationCore

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Follow a Discourse forum's topic feed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    poll = subparsers.add_parser("poll", help="Fetch the feed once and print it")
    _add_feed_arguments(poll)
    poll.add_argument(
        "--append",
        action="store_true",
        help="Keep topics from earlier polls that the feed no longer lists",
    )

    watch = subparsers.add_parser("watch", help="Poll on the configured interval")
    _add_feed_arguments(watch)

    read = subparsers.add_parser("read", help="Mark a topic as read")
    read.add_argument("topic_id", type=int, help="Forum topic id")
    read.add_argument(
        "--post-number",
        type=int,
        help="Highest post read; defaults to the last post seen in a fresh poll of the feed",
    )

    for name, description in (
        ("unread", "Mark a topic as unread"),
        ("bookmark", "Toggle a topic's bookmark"),
    ):
        command = subparsers.add_parser(name, help=description)
        command.add_argument("topic_id", type=int, help="Forum topic id")

    config = subparsers.add_parser("config", help="Show or change options")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Print the stored options")
    config_set = config_sub.add_parser("set", help="Change options")
    config_set.add_argument(
        "assignments",
        nargs="+",
        metavar="KEY=VALUE",
        help="Option to change, e.g. notifyKeywords=AI,GPT or qualityFilter=true",
    )
    config_sub.add_parser("reset", help="Restore the default feed options")

    return parser.parse_args(list(argv))


def _add_feed_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--feed",
        choices=[selection.value for selection in FeedSelection],
        help="Which topic list to follow (stored for later runs)",
    )
    parser.add_argument("--category", type=int, help="Category id for --feed categories")
    parser.add_argument(
        "--sort",
        choices=[mode.value for mode in SortMode],
        help="Sort order of the printed list (stored for later runs)",
    )


def _parse_value(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_assignments(
    assignments: Sequence[str],
) -> tuple[dict[str, object], dict[str, object]]:
    """Split ``KEY=VALUE`` pairs into feed-config and user-settings changes."""

    config_changes: dict[str, object] = {}
    settings_changes: dict[str, object] = {}
    for assignment in assignments:
        key, separator, raw = assignment.partition("=")
        if not separator or not key:
            raise ValueError(f"Expected KEY=VALUE, got {assignment!r}")
        key = "pollingIntervalSeconds" if key == "pollingInterval" else key
        if (name := FeedConfig.field_name_for(key)) is not None:
            config_changes[name] = _parse_value(raw)
        elif (name := UserSettings.field_name_for(key)) is not None:
            settings_changes[name] = _parse_value(raw)
        else:
            raise ValueError(f"Unknown option: {key}")
    return config_changes, settings_changes


def _settings_changes(args: argparse.Namespace) -> dict[str, object]:
    changes: dict[str, object] = {}
    if args.feed is not None:
        changes["category_filter"] = args.feed
    if args.category is not None:
        changes["sub_category_filter"] = args.category
        changes.setdefault("category_filter", FeedSelection.CATEGORIES.value)
    if args.sort is not None:
        changes["sort_filter"] = args.sort
    return changes


def format_topic(core: ReconciliationCore, topic: Topic) -> str:
    state = core.state
    markers = "".join(
        (
            "*" if core.is_new(topic) else " ",
            "B" if topic.id in state.bookmark_ids else " ",
        )
    )
    slug = category_slug(topic.category_id) or "-"
    line = (
        f"{markers} {topic.id:>8}  {topic.title}  [{slug}] "
        f"replies={topic.reply_count} views={topic.view_count}"
    )
    if state.config.read_status_action is ReadStatusAction.FADE and is_read(state, topic):
        line += "  (read)"
    if state.config.low_data_mode:
        return line
    if topic.last_poster_username:
        line += f"  by {topic.last_poster_username}"
    if topic.excerpt:
        line += f"\n{'':>12}{_one_line(topic.excerpt)}"
    return line


def _one_line(text: str, width: int = 100) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


def print_view(core: ReconciliationCore, result: PollResult | None = None) -> None:
    topics = result.view if result is not None else core.view()
    for topic in topics:
        print(format_topic(core, topic))
    unread = result.unread_count if result is not None else core.unread_count()
    if core.state.config.show_badge:
        print(f"-- {len(topics)} topics, {unread} unread")


async def _run(args: argparse.Namespace) -> int:
    async with open_session() as core:
        if args.command in {"poll", "watch"}:
            changes = _settings_changes(args)
            if changes:
                core.update_settings(**changes)

        if args.command == "poll":
            mode = MergeMode.APPEND if args.append else MergeMode.REPLACE
            result = await core.poll(mode=mode)
            if not result.ok:
                log.error("Poll failed: %s", result.error)
                return 1
            print_view(core, result)
        elif args.command == "watch":
            await run_polling(
                core,
                stop=asyncio.Event(),
                on_result=lambda result: print_view(core, result),
            )
        elif args.command == "read":
            sequence = args.post_number
            if sequence is None and core.state.config.sync_read_status:
                # A fresh session has no topics yet; the poll supplies the post number.
                await core.poll()
                if args.topic_id not in core.state.topics:
                    log.warning(
                        "Topic %s is not in the current feed; read status stays local",
                        args.topic_id,
                    )
            await core.mark_read(args.topic_id, sequence=sequence)
            log.info("Marked topic %s as read", args.topic_id)
        elif args.command == "unread":
            core.unmark_read(args.topic_id)
            log.info("Marked topic %s as unread", args.topic_id)
        elif args.command == "bookmark":
            outcome = await core.toggle_bookmark(args.topic_id)
            if outcome.error is not None:
                log.error("%s", outcome.error)
                return 1
            state = "bookmarked" if outcome.bookmarked else "not bookmarked"
            print(f"Topic {args.topic_id} is {state}")
        elif args.command == "config":
            if args.config_command == "set":
                config_changes, settings_changes = parse_assignments(args.assignments)
                if config_changes:
                    core.update_config(**config_changes)
                if settings_changes:
                    core.update_settings(**settings_changes)
            elif args.config_command == "reset":
                core.reset_config()
            document = {
                "config": core.state.config.to_document(),
                "userSettings": core.state.settings.to_document(),
            }
            print(json.dumps(document, indent=2, ensure_ascii=False))
        else:
            raise ValueError(f"Unsupported command: {args.command}")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    if parsed_args.command == "config" and parsed_args.config_command == "set":
        try:
            parse_assignments(parsed_args.assignments)
        except ValueError:
            log.exception("CLI validation error")
            sys.exit(2)

    try:
        exit_code = asyncio.run(_run(parsed_args))
    except (ConfigurationError, ValueError):
        log.exception("Invalid configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
