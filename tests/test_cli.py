"""Tests for CLI commands"""

import json
from unittest.mock import Mock, patch

import httpx
import pytest
from typer.testing import CliRunner

from cli.client.base import JobStreamError
from cli.client.endpoints import JobStreamClient
from cli.main import app
from cli.utils.config_manager import ConfigManager

JOB_ID = "6f1c3a52-9b7e-4d3e-8a0c-2f5b1d7e9c40"


def job_payload(**overrides):
    job = {
        "job_id": JOB_ID,
        "input": "Hello",
        "status": "completed",
        "result": "H1e1l2o1/SGVsbG8=",
        "created_at": "2026-01-01T00:00:00Z",
        "started_at": "2026-01-01T00:00:01Z",
        "completed_at": "2026-01-01T00:00:05Z",
        "error_message": None,
        "total_units": 17,
        "processed_units": 17,
        "progress_percentage": 100.0,
    }
    job.update(overrides)
    return job


# Test fixtures
@pytest.fixture
def runner():
    """CLI test runner"""
    return CliRunner()


@pytest.fixture
def mock_client():
    """Mock API client"""
    client = Mock()
    client.__enter__ = Mock(return_value=client)
    client.__exit__ = Mock(return_value=None)
    return client


@pytest.fixture
def temp_config(tmp_path):
    """Config manager writing to a temporary directory"""
    manager = ConfigManager(config_dir=tmp_path)
    with patch("cli.commands.config.config", manager), patch(
        "cli.commands.jobs.config", manager
    ):
        yield manager


class TestMainCommands:
    """Test main CLI commands"""

    def test_version(self, runner):
        """Test version option"""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "JobStream CLI v1.0.0" in result.stdout

    def test_quickstart(self, runner):
        """Test quickstart command"""
        result = runner.invoke(app, ["quickstart"])
        assert result.exit_code == 0
        assert "Quick Start Guide" in result.stdout
        assert "jobstream status" in result.stdout

    @patch("cli.main.JobStreamClient")
    def test_status_success(self, mock_client_class, runner, mock_client):
        """Test status command with successful connection"""
        mock_client.health_check.return_value = {
            "version": "1.0.0",
            "environment": "development",
            "worker": {"running": True, "active_jobs": 2, "queue_depth": 0},
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Connected Successfully" in result.stdout

    @patch("cli.main.JobStreamClient")
    def test_status_failure(self, mock_client_class, runner, mock_client):
        """Test status command with connection failure"""
        mock_client.health_check.side_effect = JobStreamError("Connection failed")
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "Connection Failed" in result.stdout


class TestJobCommands:
    """Test job commands"""

    @patch("cli.commands.jobs.JobStreamClient")
    def test_submit(self, mock_client_class, runner, mock_client):
        mock_client.create_job.return_value = {
            "job_id": JOB_ID,
            "status": "queued",
            "hub_url": "ws://localhost:8000/v1/hub/job-progress",
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "submit", "Hello"])

        assert result.exit_code == 0
        assert JOB_ID in result.stdout
        mock_client.create_job.assert_called_once_with("Hello")
        mock_client.get_job.assert_not_called()

    @patch("cli.commands.jobs.JobStreamClient")
    def test_submit_and_watch(self, mock_client_class, runner, mock_client, temp_config):
        temp_config.set("watch.poll_interval", 0)
        mock_client.create_job.return_value = {"job_id": JOB_ID, "status": "queued"}
        mock_client.get_job.side_effect = [
            job_payload(status="processing", result=None, progress_percentage=50.0),
            job_payload(),
        ]
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "submit", "Hello", "--watch"])

        assert result.exit_code == 0
        assert mock_client.get_job.call_count == 2
        assert "completed" in result.stdout

    @patch("cli.commands.jobs.JobStreamClient")
    def test_submit_failure(self, mock_client_class, runner, mock_client):
        mock_client.create_job.side_effect = JobStreamError("API Error 422")
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "submit", " "])

        assert result.exit_code == 1
        assert "Failed to submit job" in result.stdout

    @patch("cli.commands.jobs.JobStreamClient")
    def test_show(self, mock_client_class, runner, mock_client):
        mock_client.get_job.return_value = job_payload()
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "show", JOB_ID])

        assert result.exit_code == 0
        assert "H1e1l2o1/SGVsbG8=" in result.stdout

    @patch("cli.commands.jobs.JobStreamClient")
    def test_show_failed_job(self, mock_client_class, runner, mock_client):
        mock_client.get_job.return_value = job_payload(
            status="failed", result=None, error_message="Job processing failed: boom"
        )
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "show", JOB_ID])

        assert result.exit_code == 0
        assert "Job processing failed: boom" in result.stdout

    @patch("cli.commands.jobs.JobStreamClient")
    def test_list_empty(self, mock_client_class, runner, mock_client):
        mock_client.list_jobs.return_value = {"jobs": [], "total": 0}
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "list"])

        assert result.exit_code == 0
        assert "No jobs yet" in result.stdout

    @patch("cli.commands.jobs.JobStreamClient")
    def test_list(self, mock_client_class, runner, mock_client):
        mock_client.list_jobs.return_value = {"jobs": [job_payload()], "total": 1}
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "list"])

        assert result.exit_code == 0
        assert JOB_ID[:8] in result.stdout

    @patch("cli.commands.jobs.JobStreamClient")
    def test_cancel_success(self, mock_client_class, runner, mock_client):
        mock_client.cancel_job.return_value = {
            "success": True,
            "message": "Job cancelled successfully",
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "cancel", JOB_ID])

        assert result.exit_code == 0
        assert "Job cancelled successfully" in result.stdout
        mock_client.cancel_job.assert_called_once_with(JOB_ID)

    @patch("cli.commands.jobs.JobStreamClient")
    def test_cancel_rejected(self, mock_client_class, runner, mock_client):
        mock_client.cancel_job.return_value = {
            "success": False,
            "message": "Job cannot be cancelled. Current status: completed",
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "cancel", JOB_ID])

        assert result.exit_code == 1
        assert "cannot be cancelled" in result.stdout


class TestConfigCommands:
    """Test config commands"""

    def test_set_and_get(self, runner, temp_config):
        result = runner.invoke(app, ["config", "set", "api.base_url", "http://example.com"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["config", "get", "api.base_url"])
        assert result.exit_code == 0
        assert "http://example.com" in result.stdout
        assert temp_config.config_file.exists()

    def test_set_invalid_url(self, runner, temp_config):
        result = runner.invoke(app, ["config", "set", "api.base_url", "example.com"])

        assert result.exit_code == 1
        assert "must start with http" in result.stdout
        assert not temp_config.config_file.exists()

    def test_set_invalid_timeout(self, runner, temp_config):
        result = runner.invoke(app, ["config", "set", "api.timeout", "soon"])

        assert result.exit_code == 1

    def test_get_missing_key(self, runner, temp_config):
        result = runner.invoke(app, ["config", "get", "api.missing"])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_show(self, runner, temp_config):
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "base_url" in result.stdout
        assert "poll_interval" in result.stdout

    def test_reset(self, runner, temp_config):
        temp_config.set("api.base_url", "http://example.com")

        result = runner.invoke(app, ["config", "reset", "--yes"])

        assert result.exit_code == 0
        assert temp_config.get("api.base_url") != "http://example.com"


class TestAPIClient:
    """Test envelope handling against a mocked transport"""

    def make_client(self, handler) -> JobStreamClient:
        return JobStreamClient("http://testserver", transport=httpx.MockTransport(handler))

    def test_unwraps_success_envelope(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/v1/jobs/{JOB_ID}"
            return httpx.Response(200, json={"ok": True, "data": job_payload()})

        with self.make_client(handler) as client:
            assert client.get_job(JOB_ID)["status"] == "completed"

    def test_create_job_posts_input(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == "/v1/jobs"
            assert json.loads(request.content) == {"input": "Hello"}
            return httpx.Response(202, json={"ok": True, "data": {"job_id": JOB_ID}})

        with self.make_client(handler) as client:
            assert client.create_job("Hello") == {"job_id": JOB_ID}

    def test_error_envelope_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404,
                json={"ok": False, "error": {"message": "Job not found", "code": 404}},
            )

        with self.make_client(handler) as client:
            with pytest.raises(JobStreamError) as exc_info:
                client.get_job(JOB_ID)

        assert exc_info.value.status_code == 404
        assert "Job not found" in str(exc_info.value)

    def test_invalid_json_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with self.make_client(handler) as client:
            with pytest.raises(JobStreamError, match="Invalid JSON response: 502"):
                client.health_check()

    def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with self.make_client(handler) as client:
            with pytest.raises(JobStreamError, match="Connection failed"):
                client.list_jobs()
