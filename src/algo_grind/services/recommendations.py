"""LLM-backed problem recommendations from the user's solved history."""

import json
from collections.abc import Iterable

import structlog
from openai import AsyncOpenAI
from pydantic import ValidationError

from algo_grind.models.catalog import STRIVER_SHEET_URL
from algo_grind.models.practice import Difficulty, ProblemCategory, SolvedProblemRecord
from algo_grind.models.services import (
    RecommendationRequest,
    RecommendationResponse,
    SolvedProblemSummary,
)

logger = structlog.get_logger()

MAX_SOLVED_IN_PROMPT = 100

RECOMMENDATION_SYSTEM_PROMPT = """\
You are an AI mentor specializing in DSA problem recommendations based on user progress.

Based on the user's progress and weaknesses, recommend problems from the \
Striver's A2Z DSA sheet, adjusting difficulty appropriately. Explain why each \
problem is being recommended. Ensure the URLs you provide are valid and link \
directly to the problem.

Allowed categories: {categories}
Allowed difficulties: {difficulties}

Respond ONLY with a JSON object, with every field populated:
{{
    "recommendations": [
        {{
            "category": "<category>",
            "problemName": "<problem name>",
            "difficulty": "<difficulty>",
            "url": "<problem url>",
            "reason": "<why this problem>"
        }}
    ]
}}
"""


def build_recommendation_request(
    records: Iterable[SolvedProblemRecord],
    focus: list[ProblemCategory] | None = None,
    sheet_url: str = STRIVER_SHEET_URL,
) -> RecommendationRequest:
    """Map ledger records to the summary the recommendation service needs."""
    return RecommendationRequest(
        solved_records=[
            SolvedProblemSummary(category=r.category, difficulty=r.difficulty, url=r.reference_url)
            for r in records
        ],
        focus_categories=focus or None,
        source_sheet_url=sheet_url,
    )


def format_request(request: RecommendationRequest) -> str:
    """Render the user prompt for a recommendation request."""
    solved = request.solved_records[-MAX_SOLVED_IN_PROMPT:]
    lines = ["The user has solved the following problems:"]
    lines.extend(
        f"- Type: {p.category.value}, Difficulty: {p.difficulty.value}, URL: {p.url}"
        for p in solved
    )
    omitted = len(request.solved_records) - len(solved)
    if omitted:
        lines.append(f"[{omitted} earlier problems omitted]")
    lines.append("")
    lines.append(f"The Striver's A2Z DSA sheet is available at: {request.source_sheet_url}")
    if request.focus_categories:
        focus = ", ".join(c.value for c in request.focus_categories)
        lines.append(f"The user wants to focus on the following problem types: {focus}.")
    return "\n".join(lines)


class RecommendationService:
    """Asks an LLM for the next problems to practice.

    Args:
        api_key: OpenAI API key.
        model: Model to use for recommendations.
    """

    def __init__(self, api_key: str | None, model: str = "gpt-4o-mini"):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model

    async def recommend(self, request: RecommendationRequest) -> RecommendationResponse:
        """Get ranked recommendations.

        Returns an empty response when there is no solved history or the
        model call or its output is unusable.
        """
        if not request.solved_records:
            return RecommendationResponse()
        if self.client is None:
            logger.warning("recommendations_unavailable", reason="no_api_key")
            return RecommendationResponse()

        system_prompt = RECOMMENDATION_SYSTEM_PROMPT.format(
            categories=", ".join(c.value for c in ProblemCategory),
            difficulties=", ".join(d.value for d in Difficulty),
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": format_request(request)},
                ],
                temperature=0.4,
                response_format={"type": "json_object"},
            )

            result = RecommendationResponse.model_validate(
                json.loads(response.choices[0].message.content)
            )
            logger.info("recommendations_generated", count=len(result.recommendations))
            return result

        except (ValidationError, json.JSONDecodeError):
            logger.exception("recommendations_invalid_output")
            return RecommendationResponse()
        except Exception:
            logger.exception("recommendations_failed")
            return RecommendationResponse()
