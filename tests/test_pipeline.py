import pytest
import httpx
from unittest.mock import Mock, patch


@pytest.fixture
def pipeline_db(temp_db):
    from jobscan.db import JobDatabase

    db = JobDatabase(temp_db)
    with patch("jobscan.pipeline.db", db), patch("jobscan.pipeline.load_filter_config", return_value={}):
        yield db


@pytest.fixture
def stored_posts(pipeline_db, sample_post_data, non_job_post_data):
    from jobscan.models import RawPost

    pipeline_db.save_posts([RawPost.model_validate(sample_post_data), RawPost.model_validate(non_job_post_data)])
    return pipeline_db


class TestProcessPending:
    def test_extracts_and_stores_jobs(self, stored_posts):
        from jobscan.pipeline import process_pending

        summary = process_pending()

        assert summary == {"posts": 2, "extracted": 1, "stored": 1, "filtered": 0}
        jobs = stored_posts.find_jobs()
        assert len(jobs) == 1
        assert jobs[0].salary == "$2000-$3000/month"
        assert stored_posts.get_unprocessed_posts() == []

    def test_dry_run_does_not_store(self, stored_posts):
        from jobscan.pipeline import process_pending

        summary = process_pending(dry_run=True)

        assert summary["stored"] == 1
        assert stored_posts.count_jobs() == 0
        assert len(stored_posts.get_unprocessed_posts()) == 2

    def test_nothing_pending(self, pipeline_db):
        from jobscan.pipeline import process_pending

        assert process_pending() == {"posts": 0, "extracted": 0, "stored": 0, "filtered": 0}

    def test_filter_config_drops_jobs(self, stored_posts):
        from jobscan.pipeline import process_pending

        with patch("jobscan.pipeline.load_filter_config", return_value={"type": {"include": ["internship"]}}):
            summary = process_pending()

        assert summary["filtered"] == 1
        assert summary["stored"] == 0
        assert stored_posts.get_unprocessed_posts() == []

    def test_ai_refinement_overrides_non_empty_fields(self, stored_posts, sample_post_data):
        from jobscan.pipeline import process_pending

        ai_result = [
            {
                "facebookUrl": sample_post_data["facebookUrl"],
                "jobTitle": "Senior Backend Developer",
                "company": "Acme",
                "salary": "",
            }
        ]
        with patch("jobscan.pipeline.ai") as mock_ai:
            mock_ai.process_batch.return_value = ai_result
            process_pending(use_ai=True)

        job = stored_posts.find_jobs()[0]
        assert job.job_title == "Senior Backend Developer"
        assert job.company == "Acme"
        assert job.salary == "$2000-$3000/month"
        assert list(stored_posts.db["jobs"].rows)[0]["processing_version"] == "external_ai_v1"

    def test_ai_null_values_keep_local_fields(self, stored_posts, sample_post_data):
        from jobscan.pipeline import process_pending

        ai_result = [
            {
                "facebookUrl": sample_post_data["facebookUrl"],
                "jobTitle": "Senior Backend Developer",
                "company": "Acme",
                "salary": None,
                "benefits": None,
                "education": "BSc in CSE",
            }
        ]
        with patch("jobscan.pipeline.ai") as mock_ai:
            mock_ai.process_batch.return_value = ai_result
            process_pending(use_ai=True)

        job = stored_posts.find_jobs()[0]
        assert job.job_title == "Senior Backend Developer"
        assert job.company == "Acme"
        assert job.salary == "$2000-$3000/month"
        assert job.education == "BSc in CSE"

    def test_ai_can_add_jobs_the_regex_missed(self, stored_posts, non_job_post_data):
        from jobscan.pipeline import process_pending

        ai_result = [{"facebookUrl": non_job_post_data["facebookUrl"], "jobTitle": "Weather App Dev"}]
        with patch("jobscan.pipeline.ai") as mock_ai:
            mock_ai.process_batch.return_value = ai_result
            summary = process_pending(use_ai=True)

        assert summary["extracted"] == 2
        titles = sorted(job.job_title for job in stored_posts.find_jobs())
        assert titles == ["Senior Backend", "Weather App Dev"]

    def test_ai_results_without_match_or_invalid_are_skipped(self, stored_posts, sample_post_data):
        from jobscan.pipeline import process_pending

        ai_result = [
            "not a dict",
            {"facebookUrl": "https://facebook.com/unknown", "jobTitle": "Ghost"},
            {"facebookUrl": sample_post_data["facebookUrl"], "vacancies": "several"},
        ]
        with patch("jobscan.pipeline.ai") as mock_ai:
            mock_ai.process_batch.return_value = ai_result
            summary = process_pending(use_ai=True)

        assert summary["stored"] == 1
        assert stored_posts.find_jobs()[0].job_title == "Senior Backend"


class TestMergeJobs:
    def test_empty_values_keep_base(self):
        from jobscan.models import ExtractedJob
        from jobscan.pipeline import merge_jobs

        base = ExtractedJob(job_title="Dev", location="Dhaka", tags=["remote"])
        refined = ExtractedJob.model_validate({"jobTitle": "Backend Dev", "location": "", "tags": []})
        merged = merge_jobs(base, refined)

        assert merged.job_title == "Backend Dev"
        assert merged.location == "Dhaka"
        assert merged.tags == ["remote"]


class TestScrapeGroups:
    @pytest.fixture
    def group(self, pipeline_db):
        from jobscan.models import FacebookGroup

        group = FacebookGroup(group_id="devforhire", name="Dev For Hire", url="https://www.facebook.com/groups/devforhire")
        pipeline_db.add_group(group)
        return group

    def test_scrapes_active_groups_and_ingests(self, pipeline_db, group, sample_post_data):
        from jobscan.models import RawPost
        from jobscan.pipeline import scrape_groups

        mock_scraper = Mock()
        mock_scraper.scrape.return_value = [RawPost.model_validate(sample_post_data)]

        with patch("jobscan.pipeline.get_scraper", return_value=mock_scraper) as mock_get:
            summary = scrape_groups()

        mock_get.assert_called_once_with([group.url], None)
        assert summary == {"groups": 1, "saved": 1, "duplicates": 0, "failed": 0}
        stored = pipeline_db.get_group("devforhire")
        assert stored.total_posts_scraped == 1
        assert stored.last_scraped is not None

    def test_continues_when_scraper_fails(self, pipeline_db, group, sample_post_data):
        from jobscan.models import FacebookGroup, RawPost
        from jobscan.pipeline import scrape_groups

        pipeline_db.add_group(FacebookGroup(group_id="second", name="Second", url="https://www.facebook.com/groups/second"))

        failing = Mock()
        failing.scrape.side_effect = httpx.ConnectError("down")
        working = Mock()
        working.scrape.return_value = [RawPost.model_validate(sample_post_data)]

        with patch("jobscan.pipeline.get_scraper", side_effect=[failing, working]):
            summary = scrape_groups()

        assert summary["failed"] == 1
        assert summary["saved"] == 1
        failing.scrape.assert_called_once()
        working.scrape.assert_called_once()

    def test_unknown_group_raises(self, pipeline_db):
        from jobscan.pipeline import scrape_groups

        with pytest.raises(ValueError, match="not found"):
            scrape_groups("missing")

    def test_no_active_groups_raises(self, pipeline_db):
        from jobscan.pipeline import scrape_groups

        with pytest.raises(ValueError, match="No active groups"):
            scrape_groups()


class TestIngestPosts:
    def test_ingest_without_group(self, pipeline_db, sample_post_data):
        from jobscan.models import RawPost
        from jobscan.pipeline import ingest_posts

        post = RawPost.model_validate(sample_post_data)
        assert ingest_posts([post, post]) == (1, 1)
