"""
analysis.py - Optional text summary of a PDF.

Independent of compression: separate document handle, no shared state,
and failures end up in the returned status instead of being raised.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from openai import AsyncOpenAI

from .config import Settings
from .rasterize import open_document

logger = logging.getLogger(__name__)

# Only the first pages are sent, to keep requests small and fast
MAX_TEXT_PAGES = 5

NO_TEXT_MESSAGE = "No extractable text found for analysis."
EMPTY_RESPONSE_MESSAGE = "Could not generate a summary at this time."

PROMPT_TEMPLATE = """
You are a helpful document assistant.
Here is the text extracted from the beginning of a PDF file.
Please provide a concise summary of the document's contents (in {language}) and
suggest 3 keywords that describe it.

Text Content:
{text}
"""


class AnalysisStatus(str, Enum):
    SKIPPED = "SKIPPED"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


@dataclass
class AnalysisResult:
    status: AnalysisStatus
    text: str = ""
    error: Optional[str] = None


def page_texts(source_bytes: bytes, max_pages: int = MAX_TEXT_PAGES) -> List[str]:
    """Visible text of the first ``max_pages`` pages, whitespace collapsed."""
    with open_document(source_bytes) as doc:
        return [
            " ".join(doc[page_num].get_text("text").split())
            for page_num in range(min(doc.page_count, max_pages))
        ]


def format_page_texts(texts: List[str]) -> str:
    return "".join(f"Page {n}: {text}\n" for n, text in enumerate(texts, start=1))


def extract_text(source_bytes: bytes, max_pages: int = MAX_TEXT_PAGES) -> str:
    """
    Collect visible text from the first ``max_pages`` pages.

    Each page becomes one line: "Page <n>: <words separated by spaces>".
    """
    return format_page_texts(page_texts(source_bytes, max_pages))


class Summarizer:
    """Summarizes text through an OpenAI-compatible chat endpoint."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        if not settings.summary_api_key and client is None:
            raise ValueError("Summarizer requires an API key")
        self.settings = settings
        self.client = client or AsyncOpenAI(
            base_url=settings.summary_base_url,
            api_key=settings.summary_api_key,
            timeout=settings.summary_timeout,
        )

    async def summarize(self, text: str) -> str:
        prompt = PROMPT_TEMPLATE.format(language=self.settings.summary_language, text=text)

        response = await self.client.chat.completions.create(
            model=self.settings.summary_model,
            messages=[{"role": "user", "content": prompt}],
        )

        content = response.choices[0].message.content if response.choices else None
        return content or EMPTY_RESPONSE_MESSAGE


def get_summarizer(settings: Settings) -> Optional[Summarizer]:
    """Return a Summarizer, or None when no API key is configured."""
    if not settings.summary_enabled:
        logger.debug("No summary API key configured, analysis disabled")
        return None
    return Summarizer(settings)


async def analyze_document(
    source_bytes: bytes,
    summarizer: Optional[Summarizer],
    max_pages: Optional[int] = None
) -> AnalysisResult:
    """
    Extract text and summarize it. Never raises.

    max_pages defaults to the summarizer's configured page limit.
    """
    if summarizer is None:
        return AnalysisResult(status=AnalysisStatus.SKIPPED)

    if max_pages is None:
        max_pages = summarizer.settings.summary_max_pages

    try:
        texts = page_texts(source_bytes, max_pages=max_pages)
        if not any(texts):
            return AnalysisResult(status=AnalysisStatus.COMPLETED, text=NO_TEXT_MESSAGE)

        summary = await summarizer.summarize(format_page_texts(texts))
        return AnalysisResult(status=AnalysisStatus.COMPLETED, text=summary)
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        return AnalysisResult(status=AnalysisStatus.ERROR, error=str(e))
