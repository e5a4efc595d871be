"""
Database Schemas for Education Times Abroad

Each Pydantic model below maps to a MongoDB collection with the lowercase
name of the class (e.g., Enquiry -> "enquiry", College -> "college").
Nested section models are embedded documents, not collections.
"""

from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from validation import ValidationError

Interest = Literal["study-abroad", "mbbs-abroad"]
EnquiryStatus = Literal["pending", "contacted", "resolved", "closed"]
CollegeType = Literal["study_abroad", "mbbs_abroad"]

INTEREST_LABELS = {
    "study-abroad": "Study Abroad",
    "mbbs-abroad": "MBBS Abroad",
}

M = TypeVar("M", bound=BaseModel)


def parse_model(model_cls: Type[M], payload: Dict[str, Any]) -> M:
    """Validate a raw payload, reporting schema violations as a 400 ValidationError."""
    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        first = details[0] if details else {"field": "", "message": "invalid value"}
        raise ValidationError(f"Invalid {first['field']}: {first['message']}", {"errors": details})


class Enquiry(BaseModel):
    """
    Leads submitted from the website enquiry form
    Collection name: "enquiry"
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., max_length=100, description="Full name of the student")
    email: str = Field(..., max_length=100, description="Contact email, stored lower-cased")
    phone: str = Field(..., max_length=20, description="Contact phone number")
    city: str = Field(..., max_length=50, description="City the student lives in")
    interest: Interest = Field(..., description="Programme the student is interested in")
    message: str = Field("", max_length=1000, description="Optional free-text message")
    status: EnquiryStatus = Field("pending", description="Operator follow-up status")
    related_college_id: Optional[str] = Field(None, description="College the enquiry came from")
    related_exam_id: Optional[str] = Field(None, description="Exam the enquiry came from")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("message", mode="before")
    @classmethod
    def none_message(cls, v):
        return "" if v is None else v


class EnquiryStatusUpdate(BaseModel):
    status: EnquiryStatus


# ---------- College content sections ----------

class Feature(BaseModel):
    title: str = ""
    description: str = ""


class OverviewSection(BaseModel):
    title: str = "Overview"
    description: str = ""


class KeyHighlightsSection(BaseModel):
    title: str = "Key Highlights"
    description: str = ""
    features: List[str] = Field(default_factory=list)


class WhyChooseUsSection(BaseModel):
    title: str = "Why Choose Us"
    description: str = ""
    features: List[Feature] = Field(default_factory=list)


class RankingSection(BaseModel):
    title: str = "Ranking & Recognition"
    description: str = ""
    country_ranking: str = ""
    world_ranking: str = ""
    accreditation: List[str] = Field(default_factory=list)


class AdmissionProcessSection(BaseModel):
    title: str = "Admission Process"
    description: str = ""
    steps: List[str] = Field(default_factory=list)


class DocumentsRequiredSection(BaseModel):
    title: str = "Documents Required"
    description: str = ""
    documents: List[str] = Field(default_factory=list)


class FeeCourse(BaseModel):
    course_name: str
    duration: str = "N/A"
    annual_tuition_fee: str = "N/A"


class FeesStructureSection(BaseModel):
    title: str = "Fees Structure"
    description: str = ""
    courses: List[FeeCourse] = Field(default_factory=list)


class CampusHighlightsSection(BaseModel):
    title: str = "Campus Highlights"
    description: str = ""
    highlights: List[str] = Field(default_factory=list)


class College(BaseModel):
    """
    College listing shown in the study-abroad and MBBS-abroad catalogs
    Collection name: "college"

    `country_ref` arrives as a country slug and is stored as that
    country's ObjectId.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    college_type: CollegeType = "study_abroad"
    country_ref: str = Field(..., description="Country slug")
    exams: List[str] = Field(default_factory=list, description="Short names of accepted exams")

    overview: OverviewSection
    key_highlights: KeyHighlightsSection = Field(default_factory=KeyHighlightsSection)
    why_choose_us: WhyChooseUsSection = Field(default_factory=WhyChooseUsSection)
    ranking: RankingSection = Field(default_factory=RankingSection)
    admission_process: AdmissionProcessSection = Field(default_factory=AdmissionProcessSection)
    documents_required: DocumentsRequiredSection = Field(default_factory=DocumentsRequiredSection)
    fees_structure: Optional[FeesStructureSection] = None
    campus_highlights: CampusHighlightsSection = Field(default_factory=CampusHighlightsSection)

    # Legacy flat fields
    fees: Optional[float] = Field(None, ge=0)
    duration: Optional[str] = None
    establishment_year: Optional[int] = None
    banner_url: str = ""
    about_content: Optional[str] = None

    is_active: bool = True


class Country(BaseModel):
    """
    Destination country
    Collection name: "country"
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    flag: str = Field("", description="Flag emoji")
    description: str = ""
    is_active: bool = True
    display_order: int = 0


class Exam(BaseModel):
    """
    Entrance or language exam
    Collection name: "exam"

    `applicable_countries` arrives as country slugs and is stored as
    ObjectIds.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    short_name: str = ""
    exam_type: str = ""
    conducting_body: str = ""
    exam_mode: str = ""
    frequency: str = ""
    description: str = ""
    hero_section: Dict[str, Any] = Field(default_factory=dict)
    overview: Dict[str, Any] = Field(default_factory=dict)
    registration: Dict[str, Any] = Field(default_factory=dict)
    exam_pattern: Dict[str, Any] = Field(default_factory=dict)
    exam_dates: Dict[str, Any] = Field(default_factory=dict)
    result_statistics: Dict[str, Any] = Field(default_factory=dict)
    applicable_countries: List[str] = Field(default_factory=list)
    is_active: bool = True
    display_order: int = 0
