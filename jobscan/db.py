import hashlib
import sqlite_utils
from pathlib import Path
from sqlite_utils.db import NotFoundError
from datetime import datetime
from typing import Optional
from jobscan.models import DashboardStats, ExtractedJob, FacebookGroup, RawPost


def post_id_for(post: RawPost) -> str:
    """Stable id for a raw post, used to skip re-scraped duplicates"""
    user_id = post.user.id if post.user else ""
    key = f"{post.post_url}_{user_id}_{post.body}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


class JobDatabase:
    def __init__(self, db_path: str = "data/jobscan.db"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db = sqlite_utils.Database(db_path)
        self._init_tables()

    def _init_tables(self):
        tables = self.db.table_names()
        if "posts" not in tables:
            self.db["posts"].create(
                {
                    "post_id": str,
                    "group_id": str,
                    "group_name": str,
                    "facebook_url": str,
                    "text": str,
                    "data": str,  # JSON
                    "scraped_at": str,
                    "processed_at": str,
                },
                pk="post_id",
            )
        if "jobs" not in tables:
            self.db["jobs"].create(
                {
                    "post_id": str,
                    "facebook_url": str,
                    "job_title": str,
                    "company": str,
                    "employment_type": str,
                    "processing_version": str,
                    "data": str,  # JSON
                    "extracted_at": str,
                },
                pk="post_id",
            )
        if "fb_groups" not in tables:
            self.db["fb_groups"].create(
                {
                    "group_id": str,
                    "name": str,
                    "url": str,
                    "is_active": bool,
                    "last_scraped": str,
                    "total_posts_scraped": int,
                    "description": str,
                    "created_at": str,
                    "updated_at": str,
                },
                pk="group_id",
            )

    # Raw posts

    def save_posts(self, posts: list[RawPost], group_id: str = "", group_name: str = "") -> tuple[int, int]:
        """Store new raw posts. Returns (saved, duplicates)."""
        saved = 0
        duplicates = 0
        for post in posts:
            post_id = post_id_for(post)
            if self.get_post(post_id) is not None:
                duplicates += 1
                continue
            self.db["posts"].insert(
                {
                    "post_id": post_id,
                    "group_id": group_id,
                    "group_name": group_name,
                    "facebook_url": post.post_url,
                    "text": post.body,
                    "data": post.model_dump_json(by_alias=True, exclude_none=True),
                    "scraped_at": datetime.now().isoformat(),
                    "processed_at": None,
                }
            )
            saved += 1
        return saved, duplicates

    def get_post(self, post_id: str) -> Optional[dict]:
        try:
            return self.db["posts"].get(post_id)
        except NotFoundError:
            return None

    def get_unprocessed_posts(self, limit: Optional[int] = None) -> list[tuple[str, RawPost]]:
        rows = self.db["posts"].rows_where("processed_at is null", order_by="scraped_at", limit=limit)
        return [(row["post_id"], RawPost.model_validate_json(row["data"])) for row in rows]

    def mark_posts_processed(self, post_ids: list[str]):
        now = datetime.now().isoformat()
        for post_id in post_ids:
            self.db["posts"].update(post_id, {"processed_at": now})

    # Extracted jobs

    def save_job(self, job: ExtractedJob, post_id: str, processing_version: str = "regex_v1"):
        self.db["jobs"].insert(
            {
                "post_id": post_id,
                "facebook_url": job.facebook_url,
                "job_title": job.job_title,
                "company": job.company,
                "employment_type": job.employment_type,
                "processing_version": processing_version,
                "data": job.model_dump_json(by_alias=True),
                "extracted_at": datetime.now().isoformat(),
            },
            replace=True,
        )

    def get_job(self, post_id: str) -> Optional[ExtractedJob]:
        try:
            row = self.db["jobs"].get(post_id)
        except NotFoundError:
            return None
        return ExtractedJob.model_validate_json(row["data"])

    def find_jobs(self, limit: Optional[int] = None) -> list[ExtractedJob]:
        rows = self.db["jobs"].rows_where(order_by="extracted_at desc", limit=limit)
        return [ExtractedJob.model_validate_json(row["data"]) for row in rows]

    def count_jobs(self, since: Optional[datetime] = None) -> int:
        if since is None:
            return self.db["jobs"].count
        return self.db["jobs"].count_where("extracted_at >= ?", [since.isoformat()])

    def delete_job(self, post_id: str) -> bool:
        if self.get_job(post_id) is None:
            return False
        self.db["jobs"].delete(post_id)
        return True

    def clear_jobs(self) -> int:
        count = self.db["jobs"].count
        self.db["jobs"].delete_where()
        return count

    # Scrape targets

    def add_group(self, group: FacebookGroup):
        self.db["fb_groups"].insert(group.model_dump(mode="json"), replace=True)

    def get_group(self, group_id: str) -> Optional[FacebookGroup]:
        try:
            return FacebookGroup.model_validate(self.db["fb_groups"].get(group_id))
        except NotFoundError:
            return None

    def find_groups(self, active_only: bool = False) -> list[FacebookGroup]:
        where = "is_active = 1" if active_only else None
        return [FacebookGroup.model_validate(row) for row in self.db["fb_groups"].rows_where(where, order_by="created_at")]

    def update_group(self, group_id: str, **updates) -> Optional[FacebookGroup]:
        group = self.get_group(group_id)
        if group is None:
            return None
        updated = group.model_copy(update={**updates, "updated_at": datetime.now()})
        self.add_group(updated)
        return updated

    def delete_group(self, group_id: str) -> bool:
        if self.get_group(group_id) is None:
            return False
        self.db["fb_groups"].delete(group_id)
        return True

    def get_dashboard_stats(self) -> DashboardStats:
        today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
        return DashboardStats(
            total_jobs=self.count_jobs(),
            today_jobs=self.count_jobs(since=today),
            active_groups=self.db["fb_groups"].count_where("is_active = 1"),
            pending_posts=self.db["posts"].count_where("processed_at is null"),
            last_update=datetime.now(),
        )
