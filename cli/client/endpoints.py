"""API Endpoint Wrappers - Type-safe API calls"""

from typing import Any

import httpx

from .base import APIClient, JobStreamError
from ..utils.config_manager import config

__all__ = ["JobStreamClient", "JobStreamError"]


class JobStreamClient:
    """High-level client with typed endpoint methods"""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        # Use config values if not provided
        api_config = config.load_config().get("api", {})
        final_base_url = base_url or api_config.get("base_url", "http://localhost:8000")

        self.api = APIClient(
            base_url=final_base_url,
            timeout=float(api_config.get("timeout", 30)),
            transport=transport,
        )

    def __enter__(self):
        self.api.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.api.__exit__(exc_type, exc_val, exc_tb)

    # Health Check
    def health_check(self) -> dict[str, Any]:
        """Check API health status"""
        return self.api.get("/healthz")

    # Job Endpoints
    def create_job(self, input: str) -> dict[str, Any]:
        """Queue a job for processing"""
        return self.api.post("/jobs", json={"input": input})

    def get_job(self, job_id: str) -> dict[str, Any]:
        """Get job status by ID"""
        return self.api.get(f"/jobs/{job_id}")

    def list_jobs(self) -> dict[str, Any]:
        """List all jobs"""
        return self.api.get("/jobs")

    def cancel_job(self, job_id: str) -> dict[str, Any]:
        """Request cancellation of a job"""
        return self.api.post(f"/jobs/{job_id}/cancel")
