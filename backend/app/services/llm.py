# llm helpers: gemini chat model factory and json extraction from model output

import json
import logging
import re
from typing import Any, Optional

from langchain_google_genai import ChatGoogleGenerativeAI

from app.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float = 0.7, max_output_tokens: int = 1024) -> ChatGoogleGenerativeAI:
    """create a gemini llm instance"""
    return ChatGoogleGenerativeAI(
        model=settings.GEMINI_MODEL,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )


def parse_json_object(raw: Optional[str]) -> Optional[dict[str, Any]]:
    """parse the first {...} block in a model reply. models often wrap json in
    prose or code fences. returns none if nothing parseable is found."""
    if not raw:
        return None
    match = re.search(r"\{.*\}", raw, re.DOTALL)
    if not match:
        return None
    text = match.group(0)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        # trailing commas are the most common defect
        try:
            parsed = json.loads(re.sub(r",\s*([}\]])", r"\1", text))
        except json.JSONDecodeError:
            logger.warning(f"Could not parse JSON from model output: {raw[:80]}")
            return None
    return parsed if isinstance(parsed, dict) else None
