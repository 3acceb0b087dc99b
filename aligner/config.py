"""環境設定.

環境変数から読み込む設定値をまとめたモジュール。
"""

import os
from zoneinfo import ZoneInfo

TIMEZONE = ZoneInfo(os.environ.get("ALIGN_TIMEZONE", "Asia/Shanghai"))

DEFAULT_LLM_MODEL = "gemini-2.5-flash"


def get_llm_model() -> str:
    """使用するLLMのモデル名を取得."""
    return os.environ.get("ALIGN_LLM_MODEL", DEFAULT_LLM_MODEL)


def get_slack_tokens() -> tuple[str, str]:
    """Slack Botのトークンを取得.

    Returns:
        tuple[str, str]: (Botトークン, Appトークン)

    Raises:
        ValueError: 必要な環境変数が設定されていない場合
    """
    bot_token = os.environ.get("ALIGN_SLACK_BOT_TOKEN")
    app_token = os.environ.get("ALIGN_SLACK_APP_TOKEN")

    if not bot_token:
        raise ValueError("ALIGN_SLACK_BOT_TOKEN環境変数が設定されていません")
    if not app_token:
        raise ValueError("ALIGN_SLACK_APP_TOKEN環境変数が設定されていません")

    return bot_token, app_token
