# crisis service: flags self-harm / suicide risk in journal entries and chat messages
# gemini returns a json verdict; a keyword scan decides when the llm is unavailable

import logging
import re
from typing import Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from app.models.crisis import DEFAULT_RESOURCES, CrisisAlert, CrisisAssessment
from app.services.llm import get_llm, parse_json_object
from app.services.resilience import LLM, call_with_retry

logger = logging.getLogger(__name__)

RISK_LEVELS = ("none", "low", "moderate", "high")

# phrases indicating suicidal ideation or self-harm
CRISIS_KEYWORDS = [
    "suicide", "suicidal", "kill myself", "end my life", "hurt myself", "want to die",
    "i wish i was dead", "no reason to live", "better off dead", "can't go on",
    "put an end to it", "cut myself", "self-harm", "self harm", "hurting myself",
    "harm myself", "self injury", "overdose", "hang myself", "don't want to be here anymore",
]

_CRISIS_RE = re.compile(
    r"\b(" + r"|".join(re.escape(k) for k in CRISIS_KEYWORDS) + r")\b",
    flags=re.IGNORECASE,
)

CRISIS_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You are a safety classifier for a mental health journaling app.
Decide whether the user's text indicates a risk of suicide, self-harm, or harm to others.

Respond with ONLY a JSON object, no other text:
{{"is_crisis": true or false, "risk_level": "none" | "low" | "moderate" | "high", "reason": "one short sentence"}}

Guidelines:
- is_crisis is true only for moderate or high risk
- ordinary sadness, stress, or frustration is "none" or "low"
- explicit intent, plans, or means is "high"
- figures of speech ("this deadline is killing me") are "none"
"""),
    ("human", "{text}"),
])

_crisis_chain = None


def get_crisis_chain():
    """get or create the crisis classification chain (deterministic, short output)"""
    global _crisis_chain
    if _crisis_chain is None:
        _crisis_chain = CRISIS_PROMPT | get_llm(temperature=0.0, max_output_tokens=150) | StrOutputParser()
    return _crisis_chain


def keyword_assessment(text: str) -> CrisisAssessment:
    """fallback scan for crisis phrases"""
    match = _CRISIS_RE.search(text or "")
    if not match:
        return CrisisAssessment(isCrisis=False, riskLevel="none", source="keywords")
    return CrisisAssessment(
        isCrisis=True,
        riskLevel="high",
        reason=f"Text contains the phrase \"{match.group(0)}\"",
        source="keywords",
    )


def _assessment_from_json(parsed: dict) -> Optional[CrisisAssessment]:
    risk_level = str(parsed.get("risk_level", "")).strip().lower()
    if risk_level not in RISK_LEVELS:
        return None
    is_crisis = parsed.get("is_crisis")
    if not isinstance(is_crisis, bool):
        is_crisis = risk_level in ("moderate", "high")
    reason = parsed.get("reason")
    return CrisisAssessment(
        isCrisis=is_crisis,
        riskLevel=risk_level,
        reason=str(reason) if reason else None,
        source="llm",
    )


async def assess(text: str) -> CrisisAssessment:
    """classify text with gemini, falling back to keywords on any failure"""
    if not text or not text.strip():
        return CrisisAssessment(isCrisis=False, riskLevel="none")

    try:
        chain = get_crisis_chain()
        raw = await call_with_retry(LLM, chain.ainvoke, {"text": text})
    except Exception as e:
        logger.warning(f"Crisis classification failed, using keyword scan: {e}")
        return keyword_assessment(text)

    parsed = parse_json_object(raw)
    assessment = _assessment_from_json(parsed) if parsed else None
    if assessment is None:
        logger.warning("Crisis classifier returned unusable output, using keyword scan")
        return keyword_assessment(text)

    if assessment.is_crisis:
        logger.warning(f"Crisis indicators detected (risk={assessment.risk_level})")
    return assessment


def to_alert(assessment: CrisisAssessment) -> Optional[CrisisAlert]:
    """attach hotline resources to a positive assessment, none otherwise"""
    if not assessment.is_crisis:
        return None
    return CrisisAlert(**assessment.model_dump(), resources=DEFAULT_RESOURCES)
