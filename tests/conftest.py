import pytest


@pytest.fixture
def sample_post_data():
    return {
        "facebookUrl": "https://www.facebook.com/groups/devforhire/posts/123456",
        "user": {"id": "user123", "name": "John Doe"},
        "likesCount": 15,
        "commentsCount": 5,
        "attachments": [],
        "text": (
            "Looking for a Senior Backend Developer, full-time, remote. "
            "Location: Dhaka. Salary: $2000-$3000/month. Contact: jobs@acme.com"
        ),
    }


@pytest.fixture
def non_job_post_data():
    return {
        "facebookUrl": "https://www.facebook.com/groups/devforhire/posts/345678",
        "user": {"id": "user789", "name": "Not A Job"},
        "text": (
            "Just wanted to share my weekend coding project! Built a cool weather app "
            "using an open weather API. Thanks to this amazing community!"
        ),
    }


@pytest.fixture
def sample_job_data():
    return {
        "facebookUrl": "https://www.facebook.com/groups/devforhire/posts/123456",
        "jobTitle": "Senior Backend",
        "company": "Acme Corp",
        "location": "Dhaka",
        "salary": "$2000-$3000/month",
        "employmentType": "full-time",
        "description": "Python, PostgreSQL, AWS backend work",
        "originalPost": "Looking for a Senior Backend Developer. Python, PostgreSQL, AWS backend work",
        "technicalSkills": ["python", "postgresql", "aws"],
        "tags": ["python", "postgresql", "aws", "senior"],
    }


@pytest.fixture
def temp_db(tmp_path):
    return str(tmp_path / "jobscan.db")
