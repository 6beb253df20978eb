"""REST API routes over the practice ledger and the AI services."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from algo_grind import analytics
from algo_grind.ledger import PracticeLedger
from algo_grind.models.practice import (
    Goal,
    GoalPeriod,
    NewProblemRecord,
    ProblemCategory,
    SolvedProblemRecord,
)
from algo_grind.models.services import ChatReply, ChatRequest
from algo_grind.services.chat import ChatPersona, ChatService
from algo_grind.services.recommendations import (
    RecommendationService,
    build_recommendation_request,
)

router = APIRouter(prefix="/api")


class GoalSettingsPatch(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    period: GoalPeriod | None = None
    goals: dict[str, Goal] | list[Goal] | None = None
    default_coding_language: str | None = None


class RecommendationQuery(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    focus_categories: list[ProblemCategory] = Field(default_factory=list)


def get_ledger(request: Request) -> PracticeLedger:
    return request.app.state.ledger


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_recommendation_service(request: Request) -> RecommendationService:
    return request.app.state.recommendation_service


def _dump(record: SolvedProblemRecord) -> dict:
    return record.model_dump(mode="json", by_alias=True)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/ledger")
async def get_full_ledger(ledger: PracticeLedger = Depends(get_ledger)) -> dict:
    """The whole ledger document, records in insertion order."""
    return ledger.ledger.to_document()


@router.post("/records", status_code=201)
async def add_record(
    entry: NewProblemRecord, ledger: PracticeLedger = Depends(get_ledger)
) -> dict:
    return _dump(ledger.add_record(entry))


@router.put("/records/{record_id}")
async def update_record(
    record_id: str,
    entry: NewProblemRecord,
    ledger: PracticeLedger = Depends(get_ledger),
) -> dict:
    record = SolvedProblemRecord(id=record_id, **entry.model_dump())
    updated = ledger.update_record(record)
    if updated is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return _dump(updated)


@router.delete("/records/{record_id}", status_code=204)
async def remove_record(record_id: str, ledger: PracticeLedger = Depends(get_ledger)) -> Response:
    if not ledger.remove_record(record_id):
        raise HTTPException(status_code=404, detail="Record not found")
    return Response(status_code=204)


@router.post("/records/{record_id}/review")
async def toggle_review(record_id: str, ledger: PracticeLedger = Depends(get_ledger)) -> dict:
    record = ledger.toggle_review(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return _dump(record)


@router.patch("/goals")
async def update_goals(
    patch: GoalSettingsPatch, ledger: PracticeLedger = Depends(get_ledger)
) -> dict:
    try:
        settings = ledger.update_goal_settings(
            patch.model_dump(exclude_unset=True, exclude_none=True)
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )
    return settings.model_dump(mode="json", by_alias=True)


@router.get("/goals/progress")
async def goal_progress(ledger: PracticeLedger = Depends(get_ledger)) -> dict:
    """Adherence to every goal in the current day or week."""
    period = ledger.goal_settings.period
    start, end = analytics.period_interval(period)
    return {
        "period": period.value,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "progress": [p.model_dump() for p in ledger.goal_adherence()],
    }


@router.get("/analytics")
async def get_analytics(ledger: PracticeLedger = Depends(get_ledger)) -> dict:
    records = ledger.records
    return {
        "total": len(records),
        "solvedByCategory": analytics.solved_by_category(records),
        "weeklyProgress": analytics.weekly_progress(records),
        "reviewQueue": [_dump(r) for r in analytics.review_queue(records)],
    }


@router.post("/recommendations")
async def recommend(
    query: RecommendationQuery,
    ledger: PracticeLedger = Depends(get_ledger),
    service: RecommendationService = Depends(get_recommendation_service),
) -> dict:
    request = build_recommendation_request(ledger.records, focus=query.focus_categories)
    result = await service.recommend(request)
    return result.model_dump(mode="json", by_alias=True)


@router.post("/chat/{persona}")
async def chat(
    persona: str,
    chat_request: ChatRequest,
    ledger: PracticeLedger = Depends(get_ledger),
    service: ChatService = Depends(get_chat_service),
) -> ChatReply:
    try:
        chat_persona = ChatPersona(persona)
    except ValueError:
        raise HTTPException(status_code=404, detail="Unknown chat persona")
    if chat_request.preferred_language is None:
        chat_request = chat_request.model_copy(
            update={"preferred_language": ledger.goal_settings.default_coding_language}
        )
    return await service.reply(chat_request, chat_persona)
