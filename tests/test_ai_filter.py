import json
import pytest
import respx
import httpx
from httpx import Response
from unittest.mock import patch

AI_URL = "https://ai.example.com/api/extract_job_posts"


@pytest.fixture
def ai_client():
    from jobscan.ai_filter import ExternalJobFilter

    return ExternalJobFilter(base_url="https://ai.example.com/")


class TestFilterAndStructure:
    def test_url_joins_base_and_endpoint(self, ai_client):
        assert ai_client.url == AI_URL

    @respx.mock
    def test_posts_text_payload(self, ai_client):
        route = respx.post(AI_URL).mock(return_value=Response(200, json=[{"jobTitle": "QA"}]))
        result = ai_client.filter_and_structure('[{"text": "hi"}]')

        assert result.success == True
        assert result.data == [{"jobTitle": "QA"}]
        body = json.loads(route.calls[0].request.content)
        assert body == {"postsText": '[{"text": "hi"}]'}

    @respx.mock
    def test_plain_text_response_kept_as_string(self, ai_client):
        respx.post(AI_URL).mock(return_value=Response(200, text="no jobs today"))
        result = ai_client.filter_and_structure("[]")
        assert result.success == True
        assert result.data == "no jobs today"

    @respx.mock
    def test_http_error_returns_failure(self, ai_client):
        respx.post(AI_URL).mock(return_value=Response(502))
        result = ai_client.filter_and_structure("[]")
        assert result.success == False
        assert "502" in result.error

    @respx.mock
    def test_transport_error_returns_failure(self, ai_client):
        respx.post(AI_URL).mock(side_effect=httpx.ConnectError("refused"))
        result = ai_client.filter_and_structure("[]")
        assert result.success == False
        assert result.error == "refused"


class TestParseResponse:
    def test_list_passthrough(self, ai_client):
        assert ai_client.parse_response([{"jobTitle": "A"}]) == [{"jobTitle": "A"}]

    def test_json_string_in_code_fences(self, ai_client):
        text = '```json\n[{"jobTitle": "A"}, {"jobTitle": "B"}]\n```'
        assert ai_client.parse_response(text) == [{"jobTitle": "A"}, {"jobTitle": "B"}]

    def test_single_object_string_wrapped(self, ai_client):
        assert ai_client.parse_response('{"jobTitle": "A"}') == [{"jobTitle": "A"}]

    def test_smyth_job_data_list(self, ai_client):
        data = {"id": "1", "result": {"Output": {"jobData": [{"jobTitle": "A"}]}}}
        assert ai_client.parse_response(data) == [{"jobTitle": "A"}]

    def test_smyth_job_data_string(self, ai_client):
        data = {"result": {"Output": {"jobData": '```\n[{"jobTitle": "A"}]\n```'}}}
        assert ai_client.parse_response(data) == [{"jobTitle": "A"}]

    def test_data_and_jobs_keys(self, ai_client):
        assert ai_client.parse_response({"data": [{"a": 1}]}) == [{"a": 1}]
        assert ai_client.parse_response({"jobs": [{"b": 2}]}) == [{"b": 2}]
        assert ai_client.parse_response({"result": [{"c": 3}]}) == [{"c": 3}]

    def test_plain_object_becomes_single_item(self, ai_client):
        assert ai_client.parse_response({"jobTitle": "A"}) == [{"jobTitle": "A"}]

    def test_unparseable_string_returns_empty(self, ai_client):
        assert ai_client.parse_response("sorry, I could not do that") == []

    def test_unexpected_type_returns_empty(self, ai_client):
        assert ai_client.parse_response(42) == []


class TestProcessBatch:
    @respx.mock
    def test_batches_and_collects(self, ai_client):
        route = respx.post(AI_URL).mock(
            side_effect=[
                Response(200, json=[{"jobTitle": "A"}, {"jobTitle": "B"}]),
                Response(200, json={"jobs": [{"jobTitle": "C"}]}),
            ]
        )
        posts = [{"text": str(i)} for i in range(3)]

        with patch("jobscan.ai_filter.time.sleep") as mock_sleep:
            result = ai_client.process_batch(posts, batch_size=2, delay=0.5)

        assert [r["jobTitle"] for r in result] == ["A", "B", "C"]
        assert route.call_count == 2
        mock_sleep.assert_called_once_with(0.5)

        first_batch = json.loads(json.loads(route.calls[0].request.content)["postsText"])
        assert len(first_batch) == 2

    @respx.mock
    def test_failed_batch_is_skipped(self, ai_client):
        respx.post(AI_URL).mock(
            side_effect=[Response(500), Response(200, json=[{"jobTitle": "C"}])]
        )
        posts = [{"text": str(i)} for i in range(4)]

        with patch("jobscan.ai_filter.time.sleep"):
            result = ai_client.process_batch(posts, batch_size=2)

        assert result == [{"jobTitle": "C"}]

    def test_empty_posts(self, ai_client):
        assert ai_client.process_batch([]) == []
