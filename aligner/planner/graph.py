"""Plannerエージェントのワークフロー定義.

LangGraphを使用して目標分析からTodo保存までのフローを構築。
"""

from langgraph.graph import END, StateGraph

from aligner.planner.nodes import analyze_node, plan_node, save_node
from aligner.planner.state import PlannerState


def compile_graph() -> StateGraph:
    """Plannerグラフを構築・コンパイル.

    フロー:
        START -> analyze -> plan -> save -> END

    analyze: 目標を分析し、問い・段階・リスクを洗い出す
    plan: 分析結果から構造化されたTodoを生成
    save: Todoをワークスペースに保存

    Returns:
        StateGraph: コンパイル済みのワークフロー
    """
    workflow = StateGraph(PlannerState)

    # ノードを追加
    workflow.add_node("analyze", analyze_node)
    workflow.add_node("plan", plan_node)
    workflow.add_node("save", save_node)

    # エッジを定義
    workflow.set_entry_point("analyze")
    workflow.add_edge("analyze", "plan")
    workflow.add_edge("plan", "save")
    workflow.add_edge("save", END)

    return workflow.compile()


# コンパイル済みグラフをエクスポート
app = compile_graph()


def run_planner(user_id: str, goal: str, context: str | None = None) -> dict:
    """目標を分析してTodoを作成.

    Args:
        user_id: ユーザーID
        goal: 目標・計画
        context: 背景情報

    Returns:
        dict: 実行後の状態
    """
    return app.invoke(PlannerState(user_id=user_id, goal=goal, context=context))
