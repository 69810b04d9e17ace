"""Regex/keyword heuristics that turn raw Facebook group posts into job records.

Every field extractor walks an ordered pattern list and keeps the first match,
so the order of each list decides the output.
"""

import json
import re
from typing import Optional
from pydantic import ValidationError
from jobscan.filters import parse_experience_level
from jobscan.models import ApplicationMethod, Attachment, ExtractedJob, PostUser

MIN_POST_LENGTH = 30
DESCRIPTION_LENGTH = 500
DEFAULT_JOB_TITLE = "Job Opportunity"

JOB_KEYWORDS = [
    "job",
    "hiring",
    "position",
    "opening",
    "work",
    "remote",
    "developer",
    "engineer",
    "freelance",
    "contract",
    "full-time",
    "part-time",
    "opportunity",
    "role",
    "career",
    "looking for",
    "seeking",
    "need",
    "require",
    "join our team",
    "we are hiring",
    "frontend",
    "backend",
    "fullstack",
    "devops",
    "ui/ux",
    "designer",
    "programmer",
    "urgent",
]

TECH_KEYWORDS = [
    "javascript",
    "typescript",
    "python",
    "java",
    "react",
    "vue",
    "angular",
    "node",
    "express",
    "django",
    "flask",
    "laravel",
    "php",
    "ruby",
    "rails",
    "go",
    "rust",
    "c++",
    "c#",
    "swift",
    "kotlin",
    "flutter",
    "react native",
    "ios",
    "android",
    "html",
    "css",
    "sass",
    "scss",
    "bootstrap",
    "tailwind",
    "mysql",
    "postgresql",
    "mongodb",
    "redis",
    "aws",
    "azure",
    "gcp",
    "docker",
    "kubernetes",
    "git",
]

# (tag, pattern) pairs added on top of the tech keywords
MARKER_TAGS = [
    ("remote", re.compile(r"remote", re.I)),
    ("urgent", re.compile(r"urgent", re.I)),
    ("senior", re.compile(r"senior", re.I)),
    ("junior", re.compile(r"junior", re.I)),
    ("lead", re.compile(r"lead", re.I)),
    ("freelance", re.compile(r"freelance", re.I)),
    ("contract", re.compile(r"contract", re.I)),
]

TITLE_PATTERNS = [
    re.compile(
        r"(?:looking for|hiring|seeking|need)\s+(?:a\s+|an\s+)?([^.\n,]{10,60}?)"
        r"(?:\s+(?:developer|engineer|position|role|job))",
        re.I,
    ),
    re.compile(r"(?:position|role|job)(?:\s+(?:for|as))?\s*:?\s*([^.\n,]{5,50})", re.I),
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+(?:needed|required|wanted|developer|engineer)", re.I),
    re.compile(r"^([^.\n,]{5,50})\s*(?:position|role|job|opening)", re.I),
]

EMPLOYMENT_TYPES = [
    ("full-time", re.compile(r"full.?time", re.I)),
    ("part-time", re.compile(r"part.?time", re.I)),
    ("contract", re.compile(r"contract", re.I)),
    ("freelance", re.compile(r"freelance", re.I)),
    ("remote", re.compile(r"remote", re.I)),
    ("internship", re.compile(r"internship", re.I)),
]

LOCATION_PATTERNS = [
    re.compile(r"(?:location|based in|located in)\s*:?\s*([^.\n,]{3,40}?)(?:\s|$|,|\.|!)", re.I),
    re.compile(r"(remote|work from home)", re.I),
    # City, ST / City, Country
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s*,?\s*([A-Z]{2,3}|USA|UK|Canada)\b"),
]

COMPANY_PATTERNS = [
    re.compile(r"(?:company|at|for|with)\s+([A-Z][a-zA-Z\s&.,]{2,40}?)(?:\s|$|,|\.|!)", re.I),
    re.compile(r"([A-Z][a-zA-Z\s&.,]{2,40})\s+(?:is\s+)?(?:looking|seeking|hiring)", re.I),
]

_CURRENCY = r"[\$€£¥₹]"
_AMOUNT = r"[\d,]+(?:[.\d]+)?k?"
_PERIOD = (
    r"(?:(?:per|/)\s*)?"
    r"(?:annually|annum|yearly|year|yr|monthly|month|hourly|hour|hr|weekly|week|daily|day)"
)

SALARY_PATTERNS = [
    re.compile(
        rf"{_CURRENCY}{_AMOUNT}(?:\s*(?:-|–|to)\s*{_CURRENCY}?{_AMOUNT})?(?:\s*{_PERIOD})?",
        re.I,
    ),
    re.compile(rf"\d{{2,6}}\s*(?:k|thousand)?\s*(?:{_PERIOD}|per|/)", re.I),
    # Taka amounts common in Bangladeshi groups
    re.compile(r"(?:৳|\btk\b|\btaka\b|\bbdt\b)\s*\d[\d,]*(?:\s*-\s*\d[\d,]*)?", re.I),
    re.compile(r"\d[\d,]*(?:\s*-\s*\d[\d,]*)?\s*(?:৳|tk\b|taka\b|bdt\b)", re.I),
]

VACANCY_PATTERN = re.compile(r"(\d+)\s+(?:vacancy|vacancies|position|positions|opening|openings)", re.I)
EXPERIENCE_PATTERN = re.compile(r"(\d+[+\-]?)\s*(?:years?|yrs?)\s*(?:of\s+)?(?:experience|exp)", re.I)
REMOTE_PATTERN = re.compile(r"remote|work from home|wfh", re.I)

DEADLINE_PATTERNS = [
    re.compile(r"deadline:\s*([^.\n]+)", re.I),
    re.compile(r"apply (?:by|before|until)\s*([^.\n]+)", re.I),
    re.compile(r"last date:\s*([^.\n]+)", re.I),
]

EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")
PHONE_PATTERN = re.compile(r"(?:\+88)?[\s\-]?01[3-9]\d{8}")
WHATSAPP_PATTERN = re.compile(r"whatsapp|\bwa\b", re.I)
LINK_PATTERN = re.compile(r"(https?://[^\s]+)")

SUMMARY_LENGTH = 100
ONSITE_PATTERN = re.compile(r"onsite|office|in.person", re.I)

# Short abbreviations need whole-word matches or they hit "email", "three"...
CATEGORIES = [
    ("Software Development", re.compile(r"software development", re.I)),
    ("Web Development", re.compile(r"web development", re.I)),
    ("Mobile Development", re.compile(r"mobile development", re.I)),
    ("Data Science", re.compile(r"data science", re.I)),
    ("Machine Learning", re.compile(r"machine learning", re.I)),
    ("AI", re.compile(r"\bai\b", re.I)),
    ("Cybersecurity", re.compile(r"cybersecurity", re.I)),
    ("DevOps", re.compile(r"devops", re.I)),
    ("QA", re.compile(r"\bqa\b", re.I)),
    ("Testing", re.compile(r"\btesting", re.I)),
    ("UI/UX", re.compile(r"\bui/ux\b", re.I)),
    ("Design", re.compile(r"\bdesign", re.I)),
    ("Marketing", re.compile(r"\bmarketing", re.I)),
    ("Sales", re.compile(r"\bsales\b", re.I)),
    ("HR", re.compile(r"\bhr\b", re.I)),
    ("Finance", re.compile(r"\bfinance", re.I)),
    ("Operations", re.compile(r"\boperations\b", re.I)),
    ("Management", re.compile(r"\bmanagement\b", re.I)),
]

SOFT_SKILLS = [
    "communication",
    "teamwork",
    "leadership",
    "problem-solving",
    "analytical",
    "creative",
    "organized",
    "detail-oriented",
    "time management",
    "adaptability",
    "collaboration",
]

# Patterns whose whole match is the value
WORKING_HOURS_PATTERNS = [
    re.compile(r"(?:working hours?|office hours?):\s*[^.\n]+", re.I),
    re.compile(r"\d+\s*(?:hours?|hrs?)\s*(?:per|/)\s*(?:day|week)", re.I),
    re.compile(r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)[^.\n]*", re.I),
]

EDUCATION_PATTERNS = [
    re.compile(r"(?:education|qualification|degree):\s*[^.\n]+", re.I),
    re.compile(r"(?:bachelor|master|phd|diploma|certificate)[^.\n]*", re.I),
]

HOW_TO_APPLY_PATTERNS = [
    re.compile(r"(?:how to apply|apply|contact):\s*[^.\n]+", re.I),
    re.compile(r"(?:send|email|submit)[^.\n]*(?:cv|resume|application)[^.\n]*", re.I),
]

# Patterns whose first group is a delimited list
NICE_TO_HAVE_PATTERNS = [
    re.compile(r"(?:nice to have|preferred|bonus|plus):\s*([^.\n]+)", re.I),
    re.compile(r"(?:additional|extra)\s+skills?:\s*([^.\n]+)", re.I),
]

RESPONSIBILITY_PATTERNS = [
    re.compile(r"(?:responsibilities|duties|tasks):\s*([^.\n]+(?:\n[^.\n]+)*)", re.I),
    re.compile(r"(?:you will|responsibilities include)\s*:?\s*([^.\n]+(?:\n[^.\n]+)*)", re.I),
]

BENEFIT_PATTERNS = [
    re.compile(r"(?:benefits|perks|facilities):\s*([^.\n]+(?:\n[^.\n]+)*)", re.I),
    re.compile(r"(?:we offer|benefits include)\s*:?\s*([^.\n]+(?:\n[^.\n]+)*)", re.I),
]

BULLET_SPLIT = re.compile(r"[•\-*\n]")

MALE_ONLY_PATTERN = re.compile(r"\b(?:male|men) only\b", re.I)
FEMALE_ONLY_PATTERN = re.compile(r"\b(?:female|women) only\b", re.I)
OPEN_TO_ALL = "Open to all"


class InvalidInputError(ValueError):
    """Raised when the posts payload is not a JSON array"""


def post_text(post) -> str:
    """Body of a raw post, or empty string when it has none"""
    if not isinstance(post, dict):
        return ""
    text = post.get("text") or post.get("content") or ""
    return text.strip() if isinstance(text, str) else ""


def is_job_post(text: str) -> bool:
    if not text or len(text) <= MIN_POST_LENGTH:
        return False
    text_lower = text.lower()
    return any(keyword in text_lower for keyword in JOB_KEYWORDS)


def extract_job_title(text: str) -> str:
    for pattern in TITLE_PATTERNS:
        match = pattern.search(text)
        if match:
            return re.sub(r"[^\w\s\-/]", "", match.group(1).strip(), flags=re.ASCII)
    return DEFAULT_JOB_TITLE


def extract_employment_type(text: str) -> str:
    for employment_type, pattern in EMPLOYMENT_TYPES:
        if pattern.search(text):
            return employment_type
    return ""


def extract_location(text: str) -> str:
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return ""


def extract_company(text: str) -> str:
    for pattern in COMPANY_PATTERNS:
        match = pattern.search(text)
        if match:
            company = re.sub(r"[^\w\s&.,]", "", match.group(1).strip(), flags=re.ASCII)
            if 2 < len(company) < 50:
                return company
    return ""


def extract_salary(text: str) -> str:
    for pattern in SALARY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return ""


def extract_technical_skills(text: str) -> list[str]:
    text_lower = text.lower()
    return [skill for skill in TECH_KEYWORDS if skill in text_lower]


def extract_tags(text: str, skills: Optional[list[str]] = None) -> list[str]:
    tags = list(skills if skills is not None else extract_technical_skills(text))
    for tag, pattern in MARKER_TAGS:
        if pattern.search(text):
            tags.append(tag)
    # dedupe, first occurrence wins
    return list(dict.fromkeys(tags))


def extract_vacancies(text: str) -> int:
    match = VACANCY_PATTERN.search(text)
    return int(match.group(1)) if match else 0


def extract_experience_required(text: str) -> str:
    match = EXPERIENCE_PATTERN.search(text)
    return f"{match.group(1)} years" if match else ""


def extract_application_deadline(text: str) -> str:
    for pattern in DEADLINE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return ""


def extract_application_methods(text: str) -> list[ApplicationMethod]:
    methods = []

    email = EMAIL_PATTERN.search(text)
    if email:
        methods.append(ApplicationMethod(type="email", value=email.group(1)))

    phone = PHONE_PATTERN.search(text)
    if phone:
        kind = "whatsapp" if WHATSAPP_PATTERN.search(text) else "phone"
        methods.append(ApplicationMethod(type=kind, value=phone.group(0).strip()))

    link = LINK_PATTERN.search(text)
    if link:
        methods.append(ApplicationMethod(type="link", value=link.group(1)))

    return methods


def _first_full_match(patterns: list[re.Pattern], text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return ""


def _first_list_match(patterns: list[re.Pattern], text: str, separator: re.Pattern) -> list[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return [item.strip() for item in separator.split(match.group(1)) if item.strip()]
    return []


def extract_category(text: str) -> str:
    for category, pattern in CATEGORIES:
        if pattern.search(text):
            return category
    return ""


def extract_working_hours(text: str) -> str:
    return _first_full_match(WORKING_HOURS_PATTERNS, text)


def extract_education(text: str) -> str:
    return _first_full_match(EDUCATION_PATTERNS, text)


def extract_how_to_apply(text: str) -> str:
    return _first_full_match(HOW_TO_APPLY_PATTERNS, text)


def extract_nice_to_have_skills(text: str) -> list[str]:
    return _first_list_match(NICE_TO_HAVE_PATTERNS, text, re.compile(r"[,;]"))


def extract_soft_skills(text: str) -> list[str]:
    text_lower = text.lower()
    return [skill for skill in SOFT_SKILLS if skill in text_lower]


def extract_responsibilities(text: str) -> list[str]:
    return _first_list_match(RESPONSIBILITY_PATTERNS, text, BULLET_SPLIT)


def extract_benefits(text: str) -> list[str]:
    return _first_list_match(BENEFIT_PATTERNS, text, BULLET_SPLIT)


def extract_gender_eligibility(text: str) -> str:
    if MALE_ONLY_PATTERN.search(text):
        return "Male only"
    if FEMALE_ONLY_PATTERN.search(text):
        return "Female only"
    return OPEN_TO_ALL


def extract_job_summary(text: str) -> str:
    summary = text[:SUMMARY_LENGTH].replace("\n", " ").strip()
    return summary + ("..." if len(text) > SUMMARY_LENGTH else "")


def _truncate(text: str, limit: int = DESCRIPTION_LENGTH) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _count(value) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _post_user(post: dict) -> PostUser:
    user = post.get("user")
    if not isinstance(user, dict):
        return PostUser()
    return PostUser(id=str(user.get("id") or ""), name=str(user.get("name") or ""))


def _post_attachments(post: dict) -> list[Attachment]:
    attachments = post.get("attachments")
    if not isinstance(attachments, list):
        return []
    parsed = []
    for item in attachments:
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(Attachment.model_validate(item))
        except ValidationError:
            continue
    return parsed


def extract_post(post) -> Optional[ExtractedJob]:
    """Extract a single post, or None if it does not look like a job post"""
    text = post_text(post)
    if not is_job_post(text):
        return None

    url = post.get("facebookUrl") or post.get("url") or ""
    skills = extract_technical_skills(text)

    return ExtractedJob(
        facebook_url=url if isinstance(url, str) else "",
        user=_post_user(post),
        likes_count=_count(post.get("likesCount")),
        comments_count=_count(post.get("commentsCount")),
        attachments=_post_attachments(post),
        original_post=text,
        job_title=extract_job_title(text),
        company=extract_company(text),
        location=extract_location(text),
        salary=extract_salary(text),
        employment_type=extract_employment_type(text),
        description=_truncate(text),
        technical_skills=skills,
        tags=extract_tags(text, skills),
        vacancies=extract_vacancies(text),
        experience_level=parse_experience_level(text)["level"] or "",
        experience_required=extract_experience_required(text),
        remote_option=bool(REMOTE_PATTERN.search(text)),
        application_deadline=extract_application_deadline(text),
        application_methods=extract_application_methods(text),
        category=extract_category(text),
        education=extract_education(text),
        working_days_hours=extract_working_hours(text),
        nice_to_have_skills=extract_nice_to_have_skills(text),
        soft_skills=extract_soft_skills(text),
        job_summary=extract_job_summary(text),
        responsibilities=extract_responsibilities(text),
        benefits=extract_benefits(text),
        gender_eligibility=extract_gender_eligibility(text),
        onsite_required=bool(ONSITE_PATTERN.search(text)),
        how_to_apply=extract_how_to_apply(text),
    )


def load_posts(posts_json: str) -> list:
    """Parse a JSON array of posts, raising InvalidInputError otherwise"""
    try:
        posts = json.loads(posts_json)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Posts input is not valid JSON: {e}") from e
    if not isinstance(posts, list):
        raise InvalidInputError("Input must be a JSON array of posts")
    return posts


def extract_job_posts(posts_json: str) -> list[ExtractedJob]:
    """Extract structured jobs from a JSON array of raw posts.

    Posts that are too short, carry no job keywords, or have no text are
    dropped silently. Output keeps the input order.
    """
    jobs = []
    for post in load_posts(posts_json):
        job = extract_post(post)
        if job:
            jobs.append(job)
    return jobs
