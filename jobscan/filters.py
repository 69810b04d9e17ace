import re
from jobscan.models import ExtractedJob


def passes_type_filter(job: ExtractedJob, config: dict) -> bool:
    includes = [t.lower() for t in config.get("include", [])]
    if not includes:
        return True
    return job.employment_type.lower() in includes


def passes_tag_filter(job: ExtractedJob, config: dict) -> bool:
    """Check tags and technical skills against required/excluded terms"""
    if not config:
        return True

    job_tags = set(t.lower() for t in job.tags) | set(s.lower() for s in job.technical_skills)

    # Check exclusions first
    for excluded in config.get("exclude", []):
        if excluded.lower() in job_tags:
            return False

    required = config.get("require_any", [])
    if not required:
        return True

    return any(tag.lower() in job_tags for tag in required)


def passes_keyword_filter(job: ExtractedJob, config: dict) -> bool:
    text = f"{job.job_title} {job.company} {job.original_post or job.description}".lower()

    for exclude in config.get("exclude", []):
        if exclude.lower() in text:
            return False

    includes = config.get("include", [])
    if not includes:
        return True

    for include in includes:
        if include.lower() in text:
            return True
    return False


def parse_experience_level(text: str) -> dict:
    """Extract experience requirements from job description/title"""
    result = {"years_min": None, "years_max": None, "level": None}
    text_lower = text.lower()

    # Parse "X+ years" pattern
    plus_match = re.search(r"(\d+)\+?\s*(?:years?|yrs?)", text_lower)
    if plus_match:
        result["years_min"] = int(plus_match.group(1))

    # "X-Y years" overrides the plus pattern
    range_match = re.search(r"(\d+)\s*[-–]\s*(\d+)\s*(?:years?|yrs?)", text_lower)
    if range_match:
        result["years_min"] = int(range_match.group(1))
        result["years_max"] = int(range_match.group(2))

    if re.search(r"\b(?:junior|jr\.?|entry[- ]?level|fresher)\b", text_lower):
        result["level"] = "junior"
    elif re.search(r"\b(?:senior|sr\.?|lead|principal)\b", text_lower):
        result["level"] = "senior"
    elif re.search(r"\b(?:mid[- ]?level|intermediate)\b", text_lower):
        result["level"] = "mid"

    return result


def passes_experience_filter(job: ExtractedJob, config: dict) -> bool:
    """Check if job matches experience requirements"""
    if not config:
        return True

    max_years = config.get("max_years")
    allowed_levels = config.get("levels", [])

    title_exp = parse_experience_level(job.job_title)
    desc_exp = parse_experience_level(job.original_post or job.description)

    years_min = title_exp["years_min"] or desc_exp["years_min"]
    level = title_exp["level"] or desc_exp["level"] or job.experience_level or None

    # If no experience mentioned, pass the filter
    if years_min is None and level is None:
        return True

    if max_years is not None and years_min is not None:
        if years_min > max_years:
            return False

    if allowed_levels and level is not None:
        if level not in allowed_levels:
            return False

    return True


def filter_job(job: ExtractedJob, config: dict) -> bool:
    """Returns True if job passes all filters"""
    if not passes_type_filter(job, config.get("type", {})):
        return False
    if not passes_tag_filter(job, config.get("tags", {})):
        return False
    if not passes_keyword_filter(job, config.get("keywords", {})):
        return False
    if not passes_experience_filter(job, config.get("experience", {})):
        return False
    return True
