import logging
import os
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

load_dotenv("config/.env")


class Settings(BaseModel):
    db_path: str = "data/jobscan.db"
    filters_path: str = "config/filters.yaml"
    log_level: str = "INFO"

    # External AI structuring service
    ai_api_url: str = "https://cmfwyhx1d1rtsjxgteybbbnme.agent.a.smyth.ai"
    ai_endpoint: str = "/api/extract_job_posts"
    ai_batch_size: int = 10
    ai_batch_delay: float = 1.0

    # Apify
    apify_api_token: str = ""
    apify_max_posts: int = 50


ENV_VARS = {
    "db_path": "JOBSCAN_DB_PATH",
    "filters_path": "JOBSCAN_FILTERS_PATH",
    "log_level": "LOG_LEVEL",
    "ai_api_url": "EXTERNAL_JOB_FILTER_API_URL",
    "ai_endpoint": "EXTERNAL_JOB_FILTER_ENDPOINT",
    "ai_batch_size": "EXTERNAL_JOB_FILTER_BATCH_SIZE",
    "ai_batch_delay": "EXTERNAL_JOB_FILTER_BATCH_DELAY",
    "apify_api_token": "APIFY_API_TOKEN",
    "apify_max_posts": "APIFY_MAX_POSTS",
}


def load_settings() -> Settings:
    """Settings from the environment, falling back to defaults"""
    values = {field: os.getenv(var) for field, var in ENV_VARS.items()}
    return Settings(**{k: v for k, v in values.items() if v})


def load_filter_config(path: str) -> dict:
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        logger.warning("Ignoring invalid filter config %s: %s", path, e)
        return {}
