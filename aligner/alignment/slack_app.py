"""Slack Bolt連携.

Slack BotをSocket Modeで起動し、拉齐メッセージを解析して
ワークスペースに反映し、要約と追問を返信する。
"""

import logging
from collections import OrderedDict
from datetime import datetime

from dotenv import load_dotenv
from pydantic import ValidationError
from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from aligner.alignment.state import AlignResult
from aligner.config import TIMEZONE, get_slack_tokens
from aligner.inquiry import Inquiry
from aligner.service import run_alignment
from aligner.workspace import AppliedUpdates

logger = logging.getLogger(__name__)

# 処理済みメッセージのキャッシュ（重複処理防止）
# 最大100件を保持
_processed_messages: OrderedDict[str, bool] = OrderedDict()
MAX_CACHE_SIZE = 100

_PRIORITY_EMOJI = {1: "🔴", 2: "🟠", 3: "🟢"}


def _is_already_processed(message_ts: str) -> bool:
    """メッセージが処理済みかどうかを確認.

    Args:
        message_ts: メッセージのタイムスタンプ

    Returns:
        bool: 処理済みならTrue
    """
    if message_ts in _processed_messages:
        return True

    _processed_messages[message_ts] = True

    while len(_processed_messages) > MAX_CACHE_SIZE:
        _processed_messages.popitem(last=False)

    return False


def format_reply(
    result: AlignResult, applied: AppliedUpdates, inquiries: list[Inquiry]
) -> str:
    """拉齐結果と追問を返信メッセージに整形.

    Args:
        result: 解析結果
        applied: ワークスペースへの反映結果
        inquiries: 追問リスト

    Returns:
        str: Slack用のメッセージ
    """
    lines = [f"🧭 {result.summary}"]

    for title in applied.completed_todos:
        lines.append(f"✅ 已完成：{title}")
    for title in applied.updated_milestones:
        lines.append(f"📊 已更新里程碑：{title}")
    for key in applied.saved_memos:
        lines.append(f"📝 已记录：{key}")

    if inquiries:
        lines.append("")
        lines.append("*接下来想确认：*")
        for inquiry in inquiries:
            emoji = _PRIORITY_EMOJI[inquiry.priority]
            lines.append(f"{emoji} {inquiry.question}（{inquiry.context}）")

    return "\n".join(lines)


def process_alignment(user_id: str, text: str, now: datetime) -> str:
    """拉齐テキストを解析・反映し、返信メッセージを作成.

    Args:
        user_id: SlackのユーザーID
        text: 拉齐テキスト
        now: 基準時刻

    Returns:
        str: 返信メッセージ
    """
    outcome = run_alignment(user_id, text, now)
    return format_reply(outcome.result, outcome.applied, outcome.inquiries)


def handle_message(event: dict, say, client) -> None:
    """メッセージイベントを処理.

    Args:
        event: Slackイベントデータ
        say: メッセージ送信関数
        client: Slack WebClient
    """
    # Bot自身のメッセージは無視
    if event.get("bot_id"):
        return

    # サブタイプがあるメッセージ（編集、削除など）は無視
    if event.get("subtype"):
        return

    message_ts = event.get("ts", "")

    # 重複処理を防止
    if _is_already_processed(message_ts):
        logger.debug(f"Skipping already processed message: {message_ts}")
        return

    user_input = event.get("text", "")
    user_id = event.get("user", "")
    channel_id = event.get("channel", "")

    if not user_input.strip():
        return

    logger.info(f"Received alignment from {user_id}: {user_input[:50]}...")

    # 処理中のリアクションを追加
    try:
        client.reactions_add(
            channel=channel_id,
            name="hourglass_flowing_sand",
            timestamp=message_ts,
        )
    except Exception as e:
        logger.warning(f"Failed to add reaction: {e}")

    try:
        say(process_alignment(user_id, user_input, datetime.now(TIMEZONE)))
    except ValidationError as e:
        say(f"⚠️ 输入无效: {e.errors()[0]['msg']}")
    except Exception as e:
        logger.error(f"Error processing message: {e}", exc_info=True)
        say("⚠️ 解析失败，请稍后再试")

    # 処理完了のリアクションに変更
    try:
        client.reactions_remove(
            channel=channel_id,
            name="hourglass_flowing_sand",
            timestamp=message_ts,
        )
        client.reactions_add(
            channel=channel_id,
            name="white_check_mark",
            timestamp=message_ts,
        )
    except Exception as e:
        logger.warning(f"Failed to update reaction: {e}")


def create_slack_app(bot_token: str) -> App:
    """Slack Appを初期化してイベントハンドラを登録.

    app_mention は message イベントと同じ処理を行い、
    重複はタイムスタンプのキャッシュで防ぐ。
    """
    slack_app = App(token=bot_token)
    slack_app.event("message")(handle_message)
    slack_app.event("app_mention")(handle_message)
    return slack_app


def start_slack_bot() -> None:
    """Slack Botを起動.

    Socket Modeでボットを起動し、メッセージを待ち受ける。

    Raises:
        ValueError: 必要な環境変数が設定されていない場合
    """
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    bot_token, app_token = get_slack_tokens()

    logger.info("Starting Alignment Bot in Socket Mode...")
    handler = SocketModeHandler(create_slack_app(bot_token), app_token)
    handler.start()


if __name__ == "__main__":
    start_slack_bot()
