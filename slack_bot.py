import argparse
import os
import re
from typing import Optional

from markdown_to_mrkdwn import SlackMarkdownConverter
from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from config import LogConfig, get_allowed_users, load_workspace_env, resolve_config, resolve_workspace
from core_tools._utils import cleanup_logs, log_line
from journal import AddEntryRequest, add_entry, list_entries
from messages import CHAT_HELP, ChatCommand, describe_add, describe_list, parse_chat_command, split_text
from storage import build_storage

_mrkdwn_converter = SlackMarkdownConverter()


def _is_allowed(user_id: Optional[str], allowed: list[str]) -> bool:
    if user_id is None:
        return False
    if not allowed:
        return False
    return user_id in allowed


def _strip_mention(text: str, bot_user_id: Optional[str]) -> str:
    if not text:
        return ""
    if bot_user_id:
        text = re.sub(rf"<@{re.escape(bot_user_id)}>", "", text)
    return text.strip()


def _to_mrkdwn(text: str) -> str:
    # Entries render as "- **09:30** ..." which Slack would show literally
    return _mrkdwn_converter.convert(text)


def _answer(config: LogConfig, command: Optional[ChatCommand]) -> str:
    if command is None or command.action == "help":
        return CHAT_HELP
    storage = build_storage(config)
    if command.action == "list":
        return "\n".join(describe_list(list_entries(config, storage), config.today_header))

    result = add_entry(AddEntryRequest(command.message, command.override_time), config, storage)
    if result.success:
        log_line(config.log_dir, f"slack: added {result.data.rendered_line} to {result.data.path}")
    else:
        log_line(config.log_dir, f"slack: {result.error.kind.value}: {result.error.message}")
    return "\n".join(describe_add(result, config.today_header))


def _post_message(
    client: WebClient,
    channel_id: str,
    text: str,
    thread_ts: Optional[str] = None,
) -> Optional[str]:
    try:
        if thread_ts:
            resp = client.chat_postMessage(channel=channel_id, thread_ts=thread_ts, text=text)
        else:
            resp = client.chat_postMessage(channel=channel_id, text=text)
        return resp.get("ts")
    except SlackApiError as e:
        print(f"[WARN] Failed to post message: {e.response.get('error', str(e))}")
        return None


def _process_text(
    client: WebClient,
    config: LogConfig,
    channel_id: str,
    thread_ts: Optional[str],
    text: str,
) -> None:
    answer = _to_mrkdwn(_answer(config, parse_chat_command(text)))
    for chunk in split_text(answer, limit=3500):
        _post_message(client, channel_id, chunk, thread_ts)


def main() -> None:
    parser = argparse.ArgumentParser(description="daylog Slack bot")
    parser.add_argument("--workspace", default=None)
    parser.add_argument("--config", default=None)
    args = parser.parse_args()

    workspace = resolve_workspace(args.workspace)
    load_workspace_env(workspace)

    slack_enabled = os.environ.get("DAYLOG_SLACK_ENABLED", "1").strip().lower()
    if slack_enabled in ("0", "false", "no", "off"):
        return

    bot_token = os.environ.get("SLACK_BOT_TOKEN")
    app_token = os.environ.get("SLACK_APP_TOKEN")
    if not bot_token or not app_token:
        raise RuntimeError("Missing SLACK_BOT_TOKEN or SLACK_APP_TOKEN in workspace .env")

    config = resolve_config(args.config, workspace=workspace)
    cleanup_logs(config.log_dir)
    allowed = get_allowed_users("DAYLOG_SLACK_ALLOWED_USERS")

    app = App(token=bot_token)
    client = app.client

    try:
        auth = client.auth_test()
        bot_user_id = auth.get("user_id")
    except SlackApiError:
        bot_user_id = None

    @app.event("app_mention")
    def handle_mention(body, event, logger):
        channel_id = event.get("channel")
        if not channel_id or not _is_allowed(event.get("user"), allowed):
            return
        thread_ts = event.get("thread_ts") or event.get("ts")
        _process_text(client, config, channel_id, thread_ts, _strip_mention(event.get("text", ""), bot_user_id))

    @app.event("message")
    def handle_message(body, event, logger):
        if event.get("subtype") or event.get("bot_id"):
            return
        if event.get("channel_type") != "im":
            return
        channel_id = event.get("channel")
        if not channel_id or not _is_allowed(event.get("user"), allowed):
            return
        _process_text(client, config, channel_id, event.get("thread_ts"), event.get("text", ""))

    @app.command("/daylog")
    def handle_daylog_command(ack, body, logger):
        ack()
        channel_id = body.get("channel_id")
        if not channel_id or not _is_allowed(body.get("user_id"), allowed):
            return
        _process_text(client, config, channel_id, None, body.get("text", ""))

    log_line(config.log_dir, "slack: socket mode started")
    SocketModeHandler(app, app_token).start()


if __name__ == "__main__":
    main()
