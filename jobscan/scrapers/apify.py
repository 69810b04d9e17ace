import logging
import os
import httpx
from typing import Optional
from pydantic import ValidationError
from jobscan.scrapers.base import BaseScraper
from jobscan.models import RawPost

logger = logging.getLogger(__name__)


class ApifyGroupScraper(BaseScraper):
    """
    Pulls posts from Facebook groups through the Apify facebook-groups-scraper actor.
    The actor runs synchronously and its dataset items come back in the response.
    """

    BASE_URL = "https://api.apify.com/v2"
    ACTOR_ID = "apify~facebook-groups-scraper"

    def __init__(
        self,
        group_urls: list[str],
        token: Optional[str] = None,
        max_posts: int = 50,
        max_photos: int = 5,
        timeout: float = 300.0,
    ):
        self.token = token or os.getenv("APIFY_API_TOKEN", "")
        if not self.token:
            raise ValueError("APIFY_API_TOKEN is required")
        self.group_urls = group_urls
        self.max_posts = max_posts
        self.max_photos = max_photos
        self.timeout = timeout

    def _build_request(self) -> tuple[str, dict, dict]:
        """Build actor run URL, query params and input payload"""
        url = f"{self.BASE_URL}/acts/{self.ACTOR_ID}/run-sync-get-dataset-items"
        params = {"token": self.token}
        payload = {
            "startUrls": [{"url": u} for u in self.group_urls],
            "maxPosts": self.max_posts,
            "maxComments": 0,
            "scrapeComments": False,
            "scrapePhotos": True,
            "maxPhotos": self.max_photos,
        }
        return url, params, payload

    def _parse_item(self, item: dict) -> Optional[RawPost]:
        try:
            post = RawPost.model_validate(item)
        except ValidationError as e:
            logger.warning("Skipping malformed Apify item: %s", e.errors()[0]["msg"])
            return None
        return post if post.body else None

    def scrape(self) -> list[RawPost]:
        """Run the actor for all configured groups"""
        if not self.group_urls:
            return []

        url, params, payload = self._build_request()
        logger.info("Starting Apify scrape of %d group(s)", len(self.group_urls))

        response = httpx.post(url, params=params, json=payload, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        items = data if isinstance(data, list) else []

        posts = []
        for item in items:
            if not isinstance(item, dict):
                continue
            post = self._parse_item(item)
            if post:
                posts.append(post)

        logger.info("Apify scrape returned %d posts (%d items)", len(posts), len(items))
        return posts
