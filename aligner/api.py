"""HTTP API.

拉齐解析・追問生成・ワークスペース参照をFastAPIで公開する。
"""

import logging
from datetime import datetime
from typing import Any, Literal

from dotenv import load_dotenv
from fastapi import Body, FastAPI
from fastapi.responses import JSONResponse
from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from aligner.alignment import parse_alignment
from aligner.alignment.state import AlignRequest
from aligner.config import TIMEZONE
from aligner.inquiry import InquiryRequest, build_inquiries
from aligner.planner.graph import run_planner
from aligner.service import run_alignment
from aligner.workspace import get_store

logger = logging.getLogger(__name__)

app = FastAPI(title="aligner")


class PlanRequest(BaseModel):
    """目標分析リクエスト."""

    goal: str = Field(..., description="ユーザーが表明した目標・計画")
    context: str | None = Field(default=None, description="追加の背景情報")

    @field_validator("goal")
    @classmethod
    def _require_goal(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("empty_goal", "请提供需要分析的目标")
        return value


DeleteType = Literal["todo", "milestone", "memo"]

# 削除結果のメッセージ（成功, 見つからない場合）
_DELETE_MESSAGES: dict[DeleteType, tuple[str, str]] = {
    "todo": ('成功删除 Todo "{}"', "未找到匹配的 Todo: {}"),
    "milestone": ('成功删除里程碑 "{}"', "未找到匹配的里程碑: {}"),
    "memo": ('成功删除备忘录 "{}"', "未找到匹配的备忘录: {}"),
}


class DeleteRequest(BaseModel):
    """削除リクエスト."""

    type: str = Field(default="", description="todo / milestone / memo")
    name: str = Field(default="", description="タイトル・名前・キーのキーワード")

    @model_validator(mode="after")
    def _check_target(self) -> "DeleteRequest":
        if not self.type or not self.name.strip():
            raise PydanticCustomError(
                "missing_target", "Missing type or name parameter"
            )
        if self.type not in _DELETE_MESSAGES:
            raise PydanticCustomError("invalid_type", "Invalid type")
        return self


def current_time() -> datetime:
    """基準時刻を取得."""
    return datetime.now(TIMEZONE)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _validation_message(error: ValidationError) -> str:
    errors = error.errors()
    return errors[0]["msg"] if errors else "请求无效"


def _dump(models: list[BaseModel]) -> list[dict]:
    return [m.model_dump(mode="json", by_alias=True) for m in models]


@app.post("/api/align")
async def align(payload: Any = Body(...)):
    try:
        request = AlignRequest.model_validate(payload)
        result = parse_alignment(request.text)
        return result.model_dump(exclude_none=True)
    except ValidationError as e:
        return _error(_validation_message(e), 400)
    except Exception:
        logger.error("align api error", exc_info=True)
        return _error("解析失败，请稍后再试", 500)


@app.post("/api/inquiry")
async def inquiry(payload: Any = Body(...)):
    try:
        request = InquiryRequest.model_validate(payload)
        inquiries = build_inquiries(request, current_time())
        return {"inquiries": [i.model_dump() for i in inquiries]}
    except ValidationError as e:
        return _error(_validation_message(e), 400)
    except Exception:
        logger.error("inquiry api error", exc_info=True)
        return _error("追问生成失败，请稍后再试", 500)


@app.get("/api/users/{user_id}/data")
async def user_data(user_id: str):
    snapshot = get_store().snapshot(user_id)
    last_align_at = snapshot["lastAlignAt"]
    return {
        "todos": _dump(snapshot["todos"]),
        "milestones": _dump(snapshot["milestones"]),
        "memos": _dump(snapshot["memos"]),
        "lastAlignAt": last_align_at.isoformat() if last_align_at else None,
    }


@app.post("/api/users/{user_id}/align")
async def user_align(user_id: str, payload: Any = Body(...)):
    """拉齐テキストを解析してワークスペースに反映し、追問を返す."""
    try:
        request = AlignRequest.model_validate(payload)
        outcome = run_alignment(user_id, request.text, current_time())
        return {
            "result": outcome.result.model_dump(exclude_none=True),
            "applied": outcome.applied.model_dump(),
            "inquiries": [i.model_dump() for i in outcome.inquiries],
        }
    except ValidationError as e:
        return _error(_validation_message(e), 400)
    except Exception:
        logger.error("user align api error", exc_info=True)
        return _error("解析失败，请稍后再试", 500)


@app.post("/api/users/{user_id}/plan")
def user_plan(user_id: str, payload: Any = Body(...)):
    """目標を分析し、提案されたTodoをワークスペースに保存."""
    try:
        request = PlanRequest.model_validate(payload)
    except ValidationError as e:
        return _error(_validation_message(e), 400)

    result = run_planner(user_id, request.goal, request.context)
    if result.get("status") != "completed":
        logger.warning(f"Planner failed for {user_id}: {result.get('error_message')}")
        return _error("计划生成失败，请稍后再试", 500)

    return {
        "created": result.get("created_titles", []),
        "analysis": result.get("analysis"),
    }


def _delete_item(user_id: str, kind: DeleteType, name: str) -> str | None:
    """キーワードに一致する最初の要素を削除し、そのラベルを返す."""
    store = get_store()
    if kind == "todo":
        todo = store.delete_todo(user_id, name)
        return todo.title if todo else None
    if kind == "milestone":
        milestone = store.delete_milestone(user_id, name)
        return milestone.title if milestone else None
    memo = store.delete_memo(user_id, name)
    return memo.key if memo else None


@app.post("/api/users/{user_id}/delete")
async def user_delete(user_id: str, payload: Any = Body(...)):
    """Todo・マイルストーン・メモをキーワードで削除."""
    try:
        request = DeleteRequest.model_validate(payload)
    except ValidationError as e:
        return _error(_validation_message(e), 400)

    try:
        label = _delete_item(user_id, request.type, request.name)
    except Exception:
        logger.error("delete api error", exc_info=True)
        return _error("Failed to delete item", 500)

    success_message, missing_message = _DELETE_MESSAGES[request.type]
    if label is None:
        return JSONResponse(
            {"success": False, "message": missing_message.format(request.name)},
            status_code=404,
        )
    logger.info(f"Deleted {request.type} for {user_id}: {label}")
    return {"success": True, "message": success_message.format(label)}


def main() -> None:
    """APIサーバーを起動."""
    import uvicorn

    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
