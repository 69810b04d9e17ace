from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class CamelModel(BaseModel):
    """Serializes with the camelCase field names the dashboard stores"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class PostUser(CamelModel):
    id: str = ""
    name: str = ""


class Attachment(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    id: Optional[str] = None
    url: Optional[str] = None
    thumbnail: Optional[str] = None
    ocr_text: Optional[str] = None


class RawPost(CamelModel):
    """Raw Facebook group post as delivered by a scraper"""

    text: Optional[str] = None
    content: Optional[str] = None
    facebook_url: str = ""
    url: Optional[str] = None
    user: Optional[PostUser] = None
    likes_count: int = 0
    comments_count: int = 0
    attachments: list[Attachment] = []

    @property
    def body(self) -> str:
        return self.text or self.content or ""

    @property
    def post_url(self) -> str:
        return self.facebook_url or self.url or ""


class ApplicationMethod(BaseModel):
    type: str
    value: str
    notes: str = ""


class ExtractedJob(CamelModel):
    """Structured job record pulled out of a post"""

    facebook_url: str = ""
    user: PostUser = PostUser()
    likes_count: int = 0
    comments_count: int = 0
    attachments: list[Attachment] = []
    original_post: str = ""

    job_title: str = ""
    company: str = ""
    location: str = ""
    salary: str = ""
    employment_type: str = ""
    description: str = ""
    technical_skills: list[str] = []
    tags: list[str] = []

    vacancies: int = 0
    experience_level: str = ""
    experience_required: str = ""
    remote_option: bool = False
    application_deadline: str = ""
    application_methods: list[ApplicationMethod] = []

    category: str = ""
    education: str = ""
    working_days_hours: str = ""
    nice_to_have_skills: list[str] = []
    soft_skills: list[str] = []
    job_summary: str = ""
    responsibilities: list[str] = []
    benefits: list[str] = []
    gender_eligibility: str = ""
    onsite_required: bool = False
    how_to_apply: str = ""


class FacebookGroup(CamelModel):
    """A group registered as a scrape target"""

    group_id: str
    name: str
    url: str
    is_active: bool = True
    last_scraped: Optional[datetime] = None
    total_posts_scraped: int = 0
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class DashboardStats(CamelModel):
    total_jobs: int
    today_jobs: int
    active_groups: int
    pending_posts: int
    last_update: datetime
