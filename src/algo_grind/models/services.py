"""Request/response models for the chat, recommendation and reminder services."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from algo_grind.models.practice import Difficulty, ProblemCategory


class ChatMessage(BaseModel):
    """One turn of a chat conversation."""

    role: Literal["user", "model"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(min_length=1)
    history: list[ChatMessage] = Field(default_factory=list)
    preferred_language: str | None = None


class ChatReply(BaseModel):
    response: str


class SolvedProblemSummary(BaseModel):
    """What the recommendation service is told about a solved problem."""

    category: ProblemCategory
    difficulty: Difficulty
    url: str


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    solved_records: list[SolvedProblemSummary]
    focus_categories: list[ProblemCategory] | None = None
    source_sheet_url: str


class Recommendation(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: ProblemCategory
    problem_name: str
    difficulty: Difficulty
    url: str
    reason: str


class RecommendationResponse(BaseModel):
    recommendations: list[Recommendation] = Field(default_factory=list)


class UnmetGoal(BaseModel):
    category: str
    target: int
    solved: int
    remaining: int


class ReminderPayload(BaseModel):
    """Body POSTed to the goal-reminder webhook."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_identifier: str
    unmet_goals: list[UnmetGoal]
