"""
Pydantic models for the job-hunting tracker
"""
from enum import Enum
from typing import Annotated, Any, Optional
from datetime import date, datetime
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _blank_if_null(value: Any) -> Any:
    return "" if value is None else value


def _clamp_motivation(value: Any) -> Any:
    """NULL or blank becomes 3; anything else is clamped to 1-5."""
    if value is None or value == "":
        return 3
    return min(5, max(1, int(value)))


# Text columns the database may hold as NULL
Text = Annotated[str, BeforeValidator(_blank_if_null)]
Motivation = Annotated[int, BeforeValidator(_clamp_motivation)]


class DeadlineKind(str, Enum):
    """Source of a deadline item"""
    TASK = "task"
    ES = "es"
    WEBTEST = "webtest"


class TemplateType(str, Enum):
    """Kind of reusable script"""
    ES = "es"
    INTERVIEW = "interview"


class TabCategory(str, Enum):
    """Tabs of the company analysis page"""
    BASIC = "basic"
    BUSINESS = "business"
    CULTURE = "culture"
    MEMO = "memo"


class Record(BaseModel):
    """Common shape of a stored row"""
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: Optional[datetime] = None


class Company(Record):
    """A company the user is applying to"""
    user_id: str
    name: Text
    industry: Text = ""
    location: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    mypage_id: Optional[str] = None
    mypage_password: Optional[str] = None
    selection_process: Optional[str] = None
    current_status: Optional[str] = None
    motivation_level: Motivation = Field(default=3, ge=1, le=5)
    next_selection_date: Optional[date] = None
    es_deadline: Optional[date] = None
    webtest_deadline: Optional[date] = None
    webtest_format: Optional[str] = None
    memo: Optional[str] = None
    personal_analysis_memo: Optional[str] = None

    # Built-in analysis fields
    revenue: Optional[str] = None
    employee_count: Optional[str] = None
    capital: Optional[str] = None
    hiring_count: Optional[str] = None
    average_salary: Optional[str] = None
    benefits: Optional[str] = None
    average_tenure: Optional[str] = None
    overtime_hours: Optional[str] = None
    business_content: Optional[str] = None
    products: Optional[str] = None
    department_operations: Optional[str] = None
    competitive_comparison: Optional[str] = None
    growth_potential: Optional[str] = None
    commercials: Optional[str] = None
    mid_term_plan: Optional[str] = None
    philosophy: Optional[str] = None
    company_culture: Optional[str] = None
    career_plan: Optional[str] = None

    updated_at: Optional[datetime] = None


class Task(Record):
    """A to-do item, optionally tied to a company"""
    user_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    completed: bool = False
    company_id: Optional[str] = None


class SelectionStep(Record):
    """One stage of a company's hiring process"""
    company_id: str
    step_name: str
    memo: Text = ""
    order_index: int = 0


class EntrySheet(Record):
    """A written-application answer for one company"""
    user_id: str
    company_id: str
    theme: str
    content: Text = ""
    updated_at: Optional[datetime] = None


class Template(Record):
    """A reusable entry-sheet or interview script"""
    user_id: str
    type: TemplateType = TemplateType.ES
    theme: str
    content: Text = ""
    updated_at: Optional[datetime] = None


class CustomAnalysisField(Record):
    """A user-defined analysis attribute"""
    user_id: str
    field_name: str
    field_key: str
    order_index: int = 0
    is_active: bool = True
    tab_category: TabCategory = TabCategory.BASIC


class CompanyCustomField(Record):
    """Value of a custom analysis attribute for one company"""
    company_id: str
    field_key: str
    value: Text = ""


class HiddenAnalysisField(Record):
    """A built-in analysis field the user chose to hide"""
    user_id: str
    field_key: str


class UserProfile(Record):
    """Profile shown on the account settings page"""
    full_name: Text = ""
    university: Text = ""
    department: Text = ""
    graduation_year: Optional[int] = None
    updated_at: Optional[datetime] = None


class DeadlineRef(BaseModel):
    """Tagged reference to the row a deadline item came from"""
    model_config = ConfigDict(frozen=True)

    kind: DeadlineKind
    source_id: str

    @property
    def key(self) -> str:
        return f"{self.kind.value}-{self.source_id}"


class DeadlineItem(BaseModel):
    """Unified view of a task, ES deadline or web-test deadline"""
    ref: DeadlineRef
    title: str
    due_date: Optional[date] = None
    company_id: Optional[str] = None
    company_name: str = ""
    completed: Optional[bool] = None

    @property
    def id(self) -> str:
        """Stable display key, unique across sources."""
        return self.ref.key

    @property
    def type(self) -> DeadlineKind:
        return self.ref.kind
