import json
import logging
import re
import time
import httpx
from typing import Any, Optional
from pydantic import BaseModel

logger = logging.getLogger(__name__)

CODE_FENCE = re.compile(r"^```(?:json)?\n([\s\S]*?)\n```$", re.I)


class FilterResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None


def strip_code_fences(text: str) -> str:
    match = CODE_FENCE.match(text.strip())
    return match.group(1) if match else text


def _as_list(value) -> list[dict]:
    return value if isinstance(value, list) else [value]


class ExternalJobFilter:
    """Client for the external AI service that structures raw posts into jobs"""

    def __init__(self, base_url: str, endpoint: str = "/api/extract_job_posts", timeout: float = 120.0):
        self.base_url = base_url.rstrip("/")
        self.endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    def filter_and_structure(self, posts_json: str) -> FilterResult:
        """Send a JSON array of posts to the AI service. Never raises."""
        logger.info("Sending posts to external AI service at %s", self.url)
        try:
            response = httpx.post(
                self.url,
                json={"postsText": posts_json},
                headers={"Accept": "application/json, text/plain"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("External job filtering failed: %s", e)
            return FilterResult(success=False, error=str(e))

        # The service answers text/plain that is usually JSON
        try:
            data = response.json()
        except ValueError:
            data = response.text

        return FilterResult(success=True, data=data)

    def parse_response(self, data) -> list[dict]:
        """Normalize the different shapes the AI service returns into a list of job dicts"""
        try:
            if isinstance(data, list):
                return data

            if isinstance(data, str):
                return _as_list(json.loads(strip_code_fences(data)))

            if isinstance(data, dict):
                result = data.get("result")
                output = result.get("Output") if isinstance(result, dict) else None
                job_data = output.get("jobData") if isinstance(output, dict) else None
                if isinstance(job_data, list):
                    return job_data
                if isinstance(job_data, str):
                    try:
                        return _as_list(json.loads(strip_code_fences(job_data)))
                    except ValueError:
                        pass
                for key in ("data", "jobs", "result"):
                    if isinstance(data.get(key), list):
                        return data[key]
                return [data]
        except ValueError as e:
            logger.error("Could not parse external AI response: %s", e)
            return []

        logger.warning("Unexpected response format from external AI service: %s", type(data).__name__)
        return []

    def process_batch(self, posts: list[dict], batch_size: int = 10, delay: float = 1.0) -> list[dict]:
        """Run posts through the service in batches, skipping batches that fail"""
        structured = []
        total = (len(posts) + batch_size - 1) // batch_size

        for i in range(0, len(posts), batch_size):
            batch = posts[i : i + batch_size]
            logger.info("Processing batch %d/%d (%d posts)", i // batch_size + 1, total, len(batch))

            result = self.filter_and_structure(json.dumps(batch))
            if not result.success or result.data is None:
                logger.error("Batch processing failed: %s", result.error)
                continue

            structured.extend(self.parse_response(result.data))

            if i + batch_size < len(posts):
                time.sleep(delay)

        return structured
