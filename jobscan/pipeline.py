import logging
import httpx
from datetime import datetime
from typing import Optional
from pydantic import ValidationError
from jobscan.ai_filter import ExternalJobFilter
from jobscan.config import load_filter_config, load_settings
from jobscan.db import JobDatabase
from jobscan.extractor import extract_post
from jobscan.filters import filter_job
from jobscan.models import ExtractedJob, FacebookGroup, RawPost
from jobscan.scrapers.apify import ApifyGroupScraper

logger = logging.getLogger(__name__)

REGEX_VERSION = "regex_v1"
AI_VERSION = "external_ai_v1"

settings = load_settings()
db = JobDatabase(settings.db_path)
ai = ExternalJobFilter(base_url=settings.ai_api_url, endpoint=settings.ai_endpoint)


def get_scraper(group_urls: list[str], max_posts: Optional[int] = None) -> ApifyGroupScraper:
    return ApifyGroupScraper(
        group_urls,
        token=settings.apify_api_token,
        max_posts=max_posts or settings.apify_max_posts,
    )


def ingest_posts(posts: list[RawPost], group: Optional[FacebookGroup] = None) -> tuple[int, int]:
    """Store raw posts and bump the group's scrape counters. Returns (saved, duplicates)."""
    if group:
        saved, duplicates = db.save_posts(posts, group.group_id, group.name)
        db.update_group(
            group.group_id,
            last_scraped=datetime.now(),
            total_posts_scraped=group.total_posts_scraped + saved,
        )
    else:
        saved, duplicates = db.save_posts(posts)
    logger.info("Stored %d new posts (%d duplicates)", saved, duplicates)
    return saved, duplicates


def scrape_groups(group_id: Optional[str] = None, max_posts: Optional[int] = None) -> dict:
    """Scrape one group, or every active group, and ingest the posts"""
    if group_id:
        group = db.get_group(group_id)
        if group is None:
            raise ValueError(f"Group with ID {group_id} not found")
        groups = [group]
    else:
        groups = db.find_groups(active_only=True)
        if not groups:
            raise ValueError("No active groups found")

    summary = {"groups": len(groups), "saved": 0, "duplicates": 0, "failed": 0}
    for group in groups:
        logger.info("Scraping group %s (%s)", group.name, group.url)
        try:
            posts = get_scraper([group.url], max_posts).scrape()
        except httpx.HTTPError as e:
            logger.error("Scraping %s failed: %s", group.name, e)
            summary["failed"] += 1
            continue

        saved, duplicates = ingest_posts(posts, group)
        summary["saved"] += saved
        summary["duplicates"] += duplicates

    return summary


def merge_jobs(base: ExtractedJob, refined: ExtractedJob) -> ExtractedJob:
    """Overlay the AI result on a job; empty AI values keep the base value"""
    updates = {}
    for name in refined.model_fields_set:
        value = getattr(refined, name)
        if value:
            updates[name] = value
    return base.model_copy(update=updates)


def _job_from_post(post: RawPost) -> ExtractedJob:
    return ExtractedJob(
        facebook_url=post.post_url,
        user=post.user or {},
        likes_count=post.likes_count,
        comments_count=post.comments_count,
        attachments=post.attachments,
        original_post=post.body,
    )


def refine_with_ai(pending: list[tuple[str, RawPost]], jobs: dict[str, tuple[ExtractedJob, str]]):
    """Run pending posts through the AI service and merge its results into jobs by post URL"""
    raw = [post.model_dump(by_alias=True, exclude_none=True) for _, post in pending]
    structured = ai.process_batch(raw, batch_size=settings.ai_batch_size, delay=settings.ai_batch_delay)

    posts_by_url = {post.post_url: (post_id, post) for post_id, post in pending if post.post_url}
    for item in structured:
        if not isinstance(item, dict):
            continue
        match = posts_by_url.get(item.get("facebookUrl") or item.get("url") or "")
        if match is None:
            logger.debug("AI result has no matching post: %s", item.get("jobTitle"))
            continue
        post_id, post = match

        # null means the AI found nothing; keep the local value
        item = {key: value for key, value in item.items() if value is not None}
        try:
            refined = ExtractedJob.model_validate(item)
        except ValidationError as e:
            logger.warning("Skipping invalid AI result for %s: %s", post.post_url, e.errors()[0]["msg"])
            continue

        base = jobs[post_id][0] if post_id in jobs else _job_from_post(post)
        jobs[post_id] = (merge_jobs(base, refined), AI_VERSION)


def process_pending(use_ai: bool = False, dry_run: bool = False, limit: Optional[int] = None) -> dict:
    """Extract jobs from every unprocessed post and store the ones passing the filter config"""
    filter_config = load_filter_config(settings.filters_path)
    pending = db.get_unprocessed_posts(limit)
    summary = {"posts": len(pending), "extracted": 0, "stored": 0, "filtered": 0}
    if not pending:
        return summary

    jobs = {}
    for post_id, post in pending:
        job = extract_post(post.model_dump(by_alias=True, exclude_none=True))
        if job:
            jobs[post_id] = (job, REGEX_VERSION)

    if use_ai:
        refine_with_ai(pending, jobs)

    summary["extracted"] = len(jobs)
    for post_id, (job, version) in jobs.items():
        if not filter_job(job, filter_config):
            summary["filtered"] += 1
            continue
        if dry_run:
            logger.info("[DRY RUN] Would store: %s - %s", job.company or "Unknown", job.job_title)
        else:
            db.save_job(job, post_id, version)
        summary["stored"] += 1

    if not dry_run:
        db.mark_posts_processed([post_id for post_id, _ in pending])

    return summary
