# crisis models: hotline resources and risk assessments

from typing import Literal, Optional
from pydantic import BaseModel, Field

RiskLevel = Literal["none", "low", "moderate", "high"]


class CrisisResource(BaseModel):
    name: str
    phone_number: str = Field("", alias="phoneNumber")
    text_number: str = Field("", alias="textNumber")
    description: str = ""
    url: str = ""
    is_available_24_7: bool = Field(True, alias="isAvailable24_7")

    model_config = {"populate_by_name": True}


class CrisisAssessment(BaseModel):
    """verdict on a piece of user text"""
    is_crisis: bool = Field(False, alias="isCrisis")
    risk_level: RiskLevel = Field("none", alias="riskLevel")
    reason: Optional[str] = None
    source: Literal["llm", "keywords"] = "llm"

    model_config = {"populate_by_name": True}


class CrisisAlert(CrisisAssessment):
    """assessment plus the resources to show the user"""
    resources: list[CrisisResource] = Field(default_factory=list)


class CrisisCheckRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=10000)


# default us resources, shown whenever a crisis is flagged
DEFAULT_RESOURCES = [
    CrisisResource(
        name="988 Suicide & Crisis Lifeline",
        phoneNumber="988",
        textNumber="988",
        description="Free, confidential support 24/7 for people in distress, prevention and crisis resources.",
        url="https://988lifeline.org",
    ),
    CrisisResource(
        name="Crisis Text Line",
        phoneNumber="",
        textNumber="741741",
        description="Free, 24/7 support via text. Text HOME to 741741.",
        url="https://www.crisistextline.org",
    ),
    CrisisResource(
        name="SAMHSA National Helpline",
        phoneNumber="1-800-662-4357",
        textNumber="",
        description="Free, confidential, 24/7 treatment referral and information service.",
        url="https://www.samhsa.gov/find-help/national-helpline",
    ),
    CrisisResource(
        name="Veterans Crisis Line",
        phoneNumber="988 (Press 1)",
        textNumber="838255",
        description="Support for Veterans, service members, National Guard, Reserve, and their families.",
        url="https://www.veteranscrisisline.net",
    ),
    CrisisResource(
        name="The Trevor Project (LGBTQ Youth)",
        phoneNumber="1-866-488-7386",
        textNumber="678678",
        description="Crisis support for LGBTQ young people under 25.",
        url="https://www.thetrevorproject.org",
    ),
]
