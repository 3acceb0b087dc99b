"""Plannerエージェントのノード関数.

目標を分析し、Todoを提案してワークスペースに保存する。
"""

import logging
from datetime import datetime

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from aligner.config import TIMEZONE, get_llm_model
from aligner.planner.state import PlannerState, TodoPlan
from aligner.workspace.store import get_store

logger = logging.getLogger(__name__)

MAX_PLANNED_TODOS = 8


def get_llm() -> ChatGoogleGenerativeAI:
    """LLMインスタンスを取得する.

    Returns:
        ChatGoogleGenerativeAI: 環境変数 ALIGN_LLM_MODEL で指定されたモデル
    """
    return ChatGoogleGenerativeAI(model=get_llm_model(), temperature=0.3)


ANALYSIS_SYSTEM_PROMPT = """你是一名个人效率教练，帮助用户把目标拆解成可执行的计划。
请用中文回答。"""

ANALYSIS_USER_PROMPT = """用户目标: {goal}
{context_section}

请深度分析这个目标，并按以下格式返回：

## 理解
对用户目标的简要理解和重述

## 关键问题
列出 3-5 个需要澄清的具体问题（这些问题可以帮助更好地规划）

## 初步拆解
基于目标本身，建议的主要阶段或组成部分

## 可能的风险
列出可能的阻碍和注意事项

## 建议的 Todo 拆分
按照时间序列或优先级提出 5-8 个具体的、可执行的 Todo 任务"""

PLAN_SYSTEM_PROMPT = """你负责把目标分析结果整理成结构化的 Todo 列表。

## 规则
- 返回 5-8 个 Todo
- title 要具体、可执行
- priority 只能是 low, medium, high, urgent
- estimated_hours 为估计需要的小时数"""

PLAN_USER_PROMPT = """基于以下分析结果，生成 Todo 列表。

分析结果:
{analysis}"""


def analyze_node(state: PlannerState) -> dict:
    """目標を分析し、問い・段階・リスクを洗い出す.

    Args:
        state: 現在のエージェント状態

    Returns:
        更新された状態の部分辞書
    """
    prompt = ChatPromptTemplate.from_messages(
        [
            ("system", ANALYSIS_SYSTEM_PROMPT),
            ("human", ANALYSIS_USER_PROMPT),
        ]
    )
    chain = prompt | get_llm() | StrOutputParser()

    context_section = f"背景信息: {state.context}" if state.context else ""

    try:
        logger.info("Starting goal analysis LLM call")
        analysis = chain.invoke(
            {"goal": state.goal, "context_section": context_section}
        )
        return {"status": "planning", "analysis": analysis}
    except Exception as e:
        logger.error(f"Goal analysis failed: {e}", exc_info=True)
        return {"status": "failed", "error_message": f"目标分析失败: {e}"}


def plan_node(state: PlannerState) -> dict:
    """分析結果から構造化されたTodoを生成.

    Args:
        state: 現在のエージェント状態

    Returns:
        更新された状態の部分辞書
    """
    if state.status == "failed":
        return {}

    prompt = ChatPromptTemplate.from_messages(
        [
            ("system", PLAN_SYSTEM_PROMPT),
            ("human", PLAN_USER_PROMPT),
        ]
    )
    chain = prompt | get_llm().with_structured_output(TodoPlan)

    try:
        plan: TodoPlan = chain.invoke({"analysis": state.analysis})
        return {"status": "saving", "suggested_todos": plan.todos}
    except Exception as e:
        logger.error(f"Todo planning failed: {e}", exc_info=True)
        return {"status": "failed", "error_message": f"Todo 生成失败: {e}"}


def save_node(state: PlannerState) -> dict:
    """提案されたTodoをワークスペースに保存（最大8件）.

    Args:
        state: 現在のエージェント状態

    Returns:
        更新された状態の部分辞書
    """
    if state.status == "failed":
        return {}

    if not state.suggested_todos:
        return {"status": "failed", "error_message": "没有生成任何 Todo"}

    store = get_store()
    created = []
    for suggestion in state.suggested_todos[:MAX_PLANNED_TODOS]:
        todo = store.add_todo(
            state.user_id,
            title=suggestion.title,
            description=suggestion.description or None,
            priority=suggestion.priority,
        )
        created.append(todo.title)

    store.save_interaction(
        state.user_id,
        state.goal,
        f"成功分析目标并创建 {len(created)} 个 Todo",
        datetime.now(TIMEZONE),
        kind="plan",
    )
    return {"status": "completed", "created_titles": created}
