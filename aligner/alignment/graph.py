"""拉齐解析のワークフロー定義.

LangGraphを使用してテキスト解析のフローを構築。
"""

from langgraph.graph import END, StateGraph

from aligner.alignment.nodes import (
    classify_node,
    extract_node,
    segment_node,
    summarize_node,
)
from aligner.alignment.state import AlignRequest, AlignResult, AlignState

_RESULT_FIELDS = ("parsed", "updates", "signals", "summary")


def compile_graph() -> StateGraph:
    """拉齐解析グラフを構築・コンパイル.

    フロー:
        START -> segment -> classify -> extract -> summarize -> END

    segment: テキストを文に分割
    classify: 文ごとにタグを付与し、成果・阻塞・決定を集める
    extract: 完了Todo・マイルストーン進捗・メモ・シグナルを抽出
    summarize: 件数から要約を作成

    Returns:
        StateGraph: コンパイル済みのワークフロー
    """
    workflow = StateGraph(AlignState)

    # ノードを追加
    workflow.add_node("segment", segment_node)
    workflow.add_node("classify", classify_node)
    workflow.add_node("extract", extract_node)
    workflow.add_node("summarize", summarize_node)

    # エッジを定義
    workflow.set_entry_point("segment")
    workflow.add_edge("segment", "classify")
    workflow.add_edge("classify", "extract")
    workflow.add_edge("extract", "summarize")
    workflow.add_edge("summarize", END)

    return workflow.compile()


# コンパイル済みグラフをエクスポート
app = compile_graph()


def parse_alignment(text: str) -> AlignResult:
    """拉齐テキストを構造化された更新内容に変換.

    Args:
        text: ユーザーの状況報告テキスト

    Returns:
        AlignResult: 解析結果

    Raises:
        pydantic.ValidationError: テキストが空または空白のみの場合
    """
    request = AlignRequest(text=text)
    result = app.invoke(AlignState(text=request.text))
    return AlignResult.model_validate(
        {field: result[field] for field in _RESULT_FIELDS if field in result}
    )
