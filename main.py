import argparse
import asyncio
import os
from functools import partial
from typing import List, Optional

from telegram import Update
from telegram.ext import ApplicationBuilder, CommandHandler, ContextTypes, MessageHandler, filters

from config import LogConfig, get_allowed_users, load_workspace_env, resolve_config, resolve_workspace
from core_tools._utils import cleanup_logs, log_line
from journal import AddEntryRequest, add_entry, list_entries
from messages import CHAT_HELP, ChatCommand, describe_add, describe_list, parse_chat_command, split_text
from storage import build_storage


def _is_allowed(user_id: Optional[int], allowed: List[str]) -> bool:
    if user_id is None:
        return False
    if not allowed:
        return False
    return str(user_id) in allowed


def _run_command(config: LogConfig, command: ChatCommand) -> str:
    storage = build_storage(config)
    if command.action == "help":
        return CHAT_HELP
    if command.action == "list":
        result = list_entries(config, storage)
        return "\n".join(describe_list(result, config.today_header))

    result = add_entry(AddEntryRequest(command.message, command.override_time), config, storage)
    if result.success:
        log_line(config.log_dir, f"telegram: added {result.data.rendered_line} to {result.data.path}")
    else:
        log_line(config.log_dir, f"telegram: {result.error.kind.value}: {result.error.message}")
    return "\n".join(describe_add(result, config.today_header))


async def _reply(update: Update, context: ContextTypes.DEFAULT_TYPE, command: Optional[ChatCommand]) -> None:
    message = update.message
    if message is None:
        return

    allowed = context.application.bot_data.get("allowed_users", [])
    if not _is_allowed(update.effective_user.id if update.effective_user else None, allowed):
        return

    if command is None:
        await message.reply_text("No text received. Send /help for usage.")
        return

    config: LogConfig = context.application.bot_data["config"]
    loop = asyncio.get_running_loop()
    try:
        answer = await loop.run_in_executor(None, partial(_run_command, config, command))
    except Exception as exc:
        log_line(config.log_dir, f"telegram: error: {exc}")
        await message.reply_text(f"Error: {exc}")
        return

    for chunk in split_text(answer):
        await message.reply_text(chunk)


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _reply(update, context, ChatCommand("help"))


async def cmd_list(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _reply(update, context, ChatCommand("list"))


async def cmd_at(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    args = context.args or []
    if len(args) < 2:
        if update.message:
            await update.message.reply_text("Usage: /at HH:mm <message>")
        return
    await _reply(update, context, ChatCommand("add", message=" ".join(args[1:]), override_time=args[0]))


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    text = update.message.text if update.message else None
    await _reply(update, context, parse_chat_command(text))


def main() -> None:
    parser = argparse.ArgumentParser(description="daylog Telegram bot")
    parser.add_argument("--workspace", default=None)
    parser.add_argument("--config", default=None)
    args = parser.parse_args()

    workspace = resolve_workspace(args.workspace)
    load_workspace_env(workspace)

    telegram_enabled = os.environ.get("DAYLOG_TELEGRAM_ENABLED", "1").strip().lower()
    if telegram_enabled in ("0", "false", "no", "off"):
        return

    token = os.environ.get("TELEGRAM_TOKEN")
    if not token:
        raise RuntimeError("Missing TELEGRAM_TOKEN in workspace .env")

    config = resolve_config(args.config, workspace=workspace)
    for warning in config.warnings:
        log_line(config.log_dir, f"config: {warning}")
    cleanup_logs(config.log_dir)

    app = ApplicationBuilder().token(token).build()
    app.bot_data["config"] = config
    app.bot_data["allowed_users"] = get_allowed_users()

    app.add_handler(CommandHandler(["start", "help"], cmd_help))
    app.add_handler(CommandHandler("list", cmd_list))
    app.add_handler(CommandHandler("at", cmd_at))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    log_line(config.log_dir, "telegram: polling started")
    app.run_polling()


if __name__ == "__main__":
    main()
