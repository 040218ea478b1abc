"""Structured cost extraction and remote-work summaries via LangChain.

``LLMCostExtractor`` turns one category's evidence into a
:class:`CostCategoryResult` using ``model.with_structured_output()``;
the internet category uses a wider schema carrying speed, reliability and
fiber availability.  ``LLMSummaryWriter`` produces the short narrative
attached to a city analysis and falls back to a template when the model
call fails.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from cost_of_living.domain.exceptions import ExtractionError
from cost_of_living.domain.values import Category, CostCategoryResult, Evidence, PPPAnalysis

logger = logging.getLogger(__name__)

INTERNET_CATEGORY = "internet"

# -- Structured output schemas -----------------------------------------------


class CostExtractionOutput(BaseModel):
    """Structured output schema for one category's cost figure."""

    amount: float | None = Field(default=None, description="Cost in the local currency")
    currency: str | None = Field(default=None, description="ISO currency code of `amount`")
    usd_amount: float | None = Field(default=None, description="Cost converted to USD")
    source: str | None = Field(default=None, description="Where the figure came from")
    context: str | None = Field(
        default=None, description="Qualifiers such as city centre vs suburbs, monthly vs daily"
    )
    confidence: float = Field(
        ge=0, le=100, description="Confidence as a whole-number percentage (e.g. 85, not 0.85)"
    )
    notes: str | None = Field(default=None, description="Anything else worth knowing")


class InternetExtractionOutput(CostExtractionOutput):
    """Cost schema extended with connection quality fields."""

    speed_mbps: float | None = Field(
        default=None, ge=0, description="Typical download speed in Mbps"
    )
    reliability_score: float | None = Field(
        default=None, ge=0, le=100, description="Reliability from user reports, 0-100"
    )
    fiber_availability: bool | None = Field(
        default=None, description="Whether fiber internet is widely available"
    )


class SummaryOutput(BaseModel):
    """Structured output schema for the remote-work summary."""

    summary: str = Field(description="Remote worker-focused summary of the city's suitability")


# -- Prompts -----------------------------------------------------------------

_INTERNET_REQUIREMENTS = (
    "\n\nINTERNET SPECIFIC REQUIREMENTS:\n"
    "7. Extract internet speed in Mbps (look for download speeds)\n"
    "8. Rate internet reliability on a scale of 0-100 based on user reviews/reports\n"
    "9. Determine if fiber internet is widely available (true/false)\n"
    "10. Look for monthly internet package costs (not daily or hourly rates)\n\n"
    "INTERNET DATA SOURCES: Prioritize Numbeo, Speedtest.net data, ISP websites, "
    "and user reviews."
)

_EXTRACTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a cost analysis assistant. Extract cost figures for one "
            "category of living expenses from targeted search results.\n\n"
            "Focus on credible sources like Numbeo, Expatistan, or official city data.\n\n"
            "CONFIDENCE SCORING GUIDE (return as INTEGER 0-100):\n"
            "- 90-100: Recent data from Numbeo/Expatistan with clear pricing\n"
            "- 70-89: Reliable source but older data or less specific location\n"
            "- 50-69: General estimates or less reliable sources\n"
            "- 30-49: Rough estimates or poor source quality\n"
            "- 0-29: Very unreliable or no data found\n\n"
            "EXAMPLE CONFIDENCE VALUES: 85, 72, 91, 43 (NOT 0.85, 0.72, 0.91, 0.43)",
        ),
        (
            "human",
            "City: \"{city}, {country}\"\n"
            "Target Category: \"{display_name}\"\n\n"
            "Search Results:\n{search_results}\n\n"
            "Extract the following information:\n"
            "1. Find the most relevant and recent cost data for {display_name}\n"
            "2. Extract the amount and currency\n"
            "3. Convert to USD if possible\n"
            "4. Identify the source and reliability\n"
            "5. Provide context (e.g., city center vs suburbs, monthly vs daily)\n"
            "6. Assign a confidence score as an INTEGER from 0 to 100"
            "{category_requirements}\n\n"
            "Return structured data for this specific category only.",
        ),
    ]
)

_SUMMARY_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a remote work consultant. Write a concise summary (2-3 "
            "sentences) that helps remote workers understand a city's suitability. "
            "Mention overall affordability, key strengths for remote workers, "
            "data reliability and any specific appeal such as time zones or "
            "infrastructure.",
        ),
        (
            "human",
            "Cost analysis for {city}, {country}:\n"
            "- Average confidence: {average_confidence}%\n"
            "- Categories analyzed: {category_count}\n"
            "- Remote work score: {remote_work_score}/100\n"
            "- PPP factor: {ppp_factor}\n\n"
            "Key costs found:\n{cost_lines}\n\n"
            "Keep it concise and actionable for someone deciding where to live remotely.",
        ),
    ]
)


def _model_label(model: BaseChatModel) -> str:
    for attr in ("model_name", "model"):
        value = getattr(model, attr, None)
        if isinstance(value, str) and value:
            return value
    return model._llm_type


def format_search_results(evidence: Evidence) -> str:
    return json.dumps(evidence.to_dict(), indent=2, ensure_ascii=False)


# ===================================================================== #
#  Cost extraction                                                       #
# ===================================================================== #


class BaseCostExtractor(ABC):
    """Turns one category's evidence into a structured cost figure.

    Implementations raise :class:`ExtractionError` when no figure can be
    produced; the returned confidence is the raw, unscaled value.
    """

    model_name: str = "unknown"

    @abstractmethod
    async def extract(
        self,
        evidence: Evidence,
        category: Category,
        city: str,
        country: str,
    ) -> CostCategoryResult:
        """Extract a cost figure for *category* in *city*."""


class LLMCostExtractor(BaseCostExtractor):
    """LLM-based extraction using structured output.

    Parameters
    ----------
    model:
        A LangChain chat model (e.g. ``ChatOpenAI``, ``ChatAnthropic``).
    timeout:
        Seconds to wait for one extraction; ``None`` waits indefinitely.
    prompt:
        Optional custom ``ChatPromptTemplate`` to replace the default.
    """

    def __init__(
        self,
        model: BaseChatModel,
        timeout: float | None = None,
        prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.model = model
        self.model_name = _model_label(model)
        self.timeout = timeout
        self._prompt = prompt or _EXTRACTION_PROMPT
        self._cost_chain = self._prompt | model.with_structured_output(CostExtractionOutput)
        self._internet_chain = self._prompt | model.with_structured_output(
            InternetExtractionOutput
        )

    async def extract(
        self,
        evidence: Evidence,
        category: Category,
        city: str,
        country: str,
    ) -> CostCategoryResult:
        is_internet = category.name == INTERNET_CATEGORY
        chain = self._internet_chain if is_internet else self._cost_chain
        inputs = {
            "city": city,
            "country": country,
            "display_name": category.display_name,
            "search_results": format_search_results(evidence),
            "category_requirements": _INTERNET_REQUIREMENTS if is_internet else "",
        }
        try:
            output = await asyncio.wait_for(chain.ainvoke(inputs), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ExtractionError(
                f"Extraction timed out after {self.timeout}s", category=category.name
            ) from exc
        except Exception as exc:
            raise ExtractionError(
                f"Extraction failed: {exc}", category=category.name
            ) from exc

        if not isinstance(output, CostExtractionOutput):
            raise ExtractionError(
                f"Unexpected extraction output type {type(output).__name__}",
                category=category.name,
            )
        return to_category_result(output, category)


def to_category_result(output: CostExtractionOutput, category: Category) -> CostCategoryResult:
    """Convert a structured output into a domain result with integer confidence."""
    internet: dict[str, Any] = {}
    if isinstance(output, InternetExtractionOutput):
        internet = {
            "speed_mbps": output.speed_mbps,
            "reliability_score": output.reliability_score,
            "fiber_availability": output.fiber_availability,
        }
    return CostCategoryResult(
        category=category.name,
        display_name=category.display_name,
        confidence=int(round(min(100.0, max(0.0, output.confidence)))),
        amount=output.amount,
        currency=output.currency,
        usd_amount=output.usd_amount,
        source=output.source,
        context=output.context,
        notes=output.notes,
        **internet,
    )


# ===================================================================== #
#  Summaries                                                             #
# ===================================================================== #


def fallback_summary(
    city: str,
    average_confidence: float,
    remote_work_score: int,
    ppp_factor: float,
) -> str:
    if average_confidence > 70:
        availability = "strong"
    elif average_confidence > 50:
        availability = "moderate"
    else:
        availability = "limited"
    if remote_work_score > 70:
        outlook = "appears well-suited"
    elif remote_work_score > 50:
        outlook = "offers mixed potential"
    else:
        outlook = "may present challenges"
    return (
        f"{city} shows {availability} data availability for remote work planning. "
        f"With a {remote_work_score}/100 remote work score and {ppp_factor:.3f} PPP "
        f"factor, it {outlook} for remote workers based on available cost and "
        "infrastructure data."
    )


class BaseSummaryWriter(ABC):
    """Writes the narrative summary attached to a city analysis."""

    @abstractmethod
    async def write(
        self,
        city: str,
        country: str,
        results: Sequence[CostCategoryResult],
        average_confidence: float,
        remote_work_score: int,
        ppp: PPPAnalysis,
    ) -> str:
        """Return a short remote-work summary; never raises."""


class TemplateSummaryWriter(BaseSummaryWriter):
    """Deterministic summary from the aggregate figures alone."""

    async def write(
        self,
        city: str,
        country: str,
        results: Sequence[CostCategoryResult],
        average_confidence: float,
        remote_work_score: int,
        ppp: PPPAnalysis,
    ) -> str:
        return fallback_summary(city, average_confidence, remote_work_score, ppp.factor)


class LLMSummaryWriter(BaseSummaryWriter):
    """LLM-written summary with the template as a fallback."""

    def __init__(
        self,
        model: BaseChatModel,
        timeout: float | None = None,
        prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._chain = (prompt or _SUMMARY_PROMPT) | model.with_structured_output(SummaryOutput)

    async def write(
        self,
        city: str,
        country: str,
        results: Sequence[CostCategoryResult],
        average_confidence: float,
        remote_work_score: int,
        ppp: PPPAnalysis,
    ) -> str:
        cost_lines = "\n".join(
            f"- {r.display_name}: "
            f"{f'${r.usd_amount}' if r.has_usd_amount else 'Not found'} "
            f"({r.confidence}% confidence)"
            for r in results
        )
        try:
            output = await asyncio.wait_for(
                self._chain.ainvoke(
                    {
                        "city": city,
                        "country": country,
                        "average_confidence": f"{average_confidence:.1f}",
                        "category_count": len(results),
                        "remote_work_score": remote_work_score,
                        "ppp_factor": f"{ppp.factor:.3f}",
                        "cost_lines": cost_lines or "- none",
                    }
                ),
                timeout=self.timeout,
            )
            return output.summary
        except Exception as exc:
            logger.warning("LLMSummaryWriter: summary failed for %s: %s", city, exc)
            return fallback_summary(city, average_confidence, remote_work_score, ppp.factor)
