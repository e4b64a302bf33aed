# analysis service: sentiment, key phrases, summary and affirmation for a journal entry
#
# pipeline:
#   1. google cloud natural language: document sentiment + entities (key phrases)
#   2. gemini: a short personalised affirmation
#   3. template summary from the dominant sentiment
# all three external calls run concurrently

import asyncio
import logging
from typing import Optional

from google.cloud import language_v1
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from app.models.journal import JournalAnalysisResult
from app.services.llm import get_llm
from app.services.resilience import COGNITIVE, LLM, call_with_retry, run_blocking

logger = logging.getLogger(__name__)

# score thresholds for the dominant sentiment label
POSITIVE_THRESHOLD = 0.25
NEGATIVE_THRESHOLD = -0.25
MIXED_MAGNITUDE = 2.0
MAX_KEY_PHRASES = 10

FALLBACK_AFFIRMATION = (
    "You are valued, your feelings are valid, and you have the strength to navigate through this moment."
)

AFFIRMATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "You are a compassionate mental health assistant who provides supportive and encouraging "
               "affirmations. Your responses should be warm, validating, and help the user feel understood "
               "and supported."),
    ("human", """Read this journal entry and generate a kind, supportive, and personalized affirmation for the user.
The affirmation should be encouraging, empathetic, and help them feel validated and supported.
Keep it concise (1-2 sentences) and speak directly to them using 'you'.

Journal entry: "{journal_text}"
"""),
])

# singleton text analytics client (created on first use)
_language_client: Optional[language_v1.LanguageServiceClient] = None
_affirmation_chain = None


def get_language_client() -> language_v1.LanguageServiceClient:
    global _language_client
    if _language_client is None:
        _language_client = language_v1.LanguageServiceClient()
    return _language_client


def get_affirmation_chain():
    """get or create the affirmation generation chain"""
    global _affirmation_chain
    if _affirmation_chain is None:
        _affirmation_chain = AFFIRMATION_PROMPT | get_llm(temperature=0.7, max_output_tokens=200) | StrOutputParser()
    return _affirmation_chain


def classify_sentiment(score: float, magnitude: float) -> tuple[str, dict[str, float]]:
    """map a document score in [-1, 1] and its magnitude to a label and
    per-label confidences in [0, 1]"""
    confidences = {
        "positive": round((score + 1) / 2, 4),
        "negative": round((1 - score) / 2, 4),
        "neutral": round(1 - abs(score), 4),
    }
    if score >= POSITIVE_THRESHOLD:
        label = "positive"
    elif score <= NEGATIVE_THRESHOLD:
        label = "negative"
    elif magnitude >= MIXED_MAGNITUDE:
        # near-zero score with lots of emotion means the feelings cancel out
        label = "mixed"
    else:
        label = "neutral"
    return label, confidences


def build_summary(label: str, confidences: dict[str, float]) -> str:
    if label == "positive":
        return (f"This entry reflects a positive mindset with {confidences['positive']:.0%} confidence. "
                "You seem to be in good spirits.")
    if label == "negative":
        return (f"This entry shows some challenging emotions with {confidences['negative']:.0%} confidence. "
                "Remember that difficult feelings are temporary.")
    if label == "neutral":
        return (f"This entry maintains a balanced tone with {confidences['neutral']:.0%} confidence. "
                "You appear to be processing your thoughts thoughtfully.")
    if label == "mixed":
        return "This entry contains a mix of emotions, showing the complexity of your current experience."
    return f"This entry is mostly {label} in tone."


def extract_key_phrases(entities) -> list[str]:
    """entity names by salience, case-insensitively unique"""
    seen = set()
    phrases = []
    for entity in sorted(entities, key=lambda e: e.salience, reverse=True):
        name = entity.name.strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            phrases.append(name)
        if len(phrases) >= MAX_KEY_PHRASES:
            break
    return phrases


async def _analyze_sentiment(document: language_v1.Document):
    client = get_language_client()
    response = await run_blocking(
        COGNITIVE,
        client.analyze_sentiment,
        request={"document": document, "encoding_type": language_v1.EncodingType.UTF8},
    )
    return response.document_sentiment


async def _analyze_entities(document: language_v1.Document):
    client = get_language_client()
    response = await run_blocking(
        COGNITIVE,
        client.analyze_entities,
        request={"document": document, "encoding_type": language_v1.EncodingType.UTF8},
    )
    return list(response.entities)


async def generate_affirmation(text: str) -> str:
    """gemini affirmation, or a fixed fallback if generation fails"""
    try:
        logger.info("Generating affirmation for journal entry")
        chain = get_affirmation_chain()
        affirmation = await call_with_retry(LLM, chain.ainvoke, {"journal_text": text})
        affirmation = affirmation.strip()
        if not affirmation:
            return FALLBACK_AFFIRMATION
        logger.info("Generated affirmation successfully")
        return affirmation
    except Exception as e:
        logger.error(f"Error generating affirmation: {e}")
        return FALLBACK_AFFIRMATION


async def analyze(text: str) -> JournalAnalysisResult:
    """full analysis of a journal entry. raises ValueError for blank text;
    text analytics failures propagate after retries."""
    if not text or not text.strip():
        raise ValueError("Text cannot be null or empty")

    logger.info(f"Starting analysis for text with length: {len(text)}")
    document = language_v1.Document(content=text, type_=language_v1.Document.Type.PLAIN_TEXT)

    try:
        sentiment, entities, affirmation = await asyncio.gather(
            _analyze_sentiment(document),
            _analyze_entities(document),
            generate_affirmation(text),
        )
    except Exception as e:
        logger.error(f"Error analyzing journal entry text: {e}")
        raise

    label, confidences = classify_sentiment(sentiment.score, sentiment.magnitude)
    result = JournalAnalysisResult(
        sentiment=label,
        sentimentScore=confidences["positive"],
        keyPhrases=extract_key_phrases(entities),
        summary=build_summary(label, confidences),
        affirmation=affirmation,
    )
    logger.info(
        f"Analysis completed successfully. Sentiment: {result.sentiment}, "
        f"KeyPhrases count: {len(result.key_phrases)}"
    )
    return result
