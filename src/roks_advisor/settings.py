"""Runtime settings loaded from environment variables."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def _default_data_dir() -> Path:
    return Path.home() / ".roks-advisor"


class AdvisorSettings(BaseSettings):
    """Configuration for roks-advisor.

    Values are read from environment variables (case-insensitive) and
    optionally from a ``.env`` file in the working directory.  Cluster
    analysis is only available when ``IBM_CLOUD_API_KEY`` is set; the
    costing features never need credentials.
    """

    ibm_cloud_api_key: str = ""
    ibm_cloud_region: str = "us-south"
    ibm_iam_url: str = "https://iam.cloud.ibm.com/identity/token"
    ibm_containers_url: str = "https://containers.cloud.ibm.com/global/v1"

    data_dir: Path = Field(default_factory=_default_data_dir)
    reports_dir: Path | None = None
    cluster_fetch_workers: int = Field(default=4, ge=1, le=16)

    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_web_url: str = "https://github.com"
    github_owner: str = ""
    github_repo: str = ""
    github_default_branch: str = "main"
    tekton_pipeline_url: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cloud_configured(self) -> bool:
        return bool(self.ibm_cloud_api_key)

    @property
    def scenarios_file(self) -> Path:
        return self.data_dir / "scenarios.json"

    @property
    def downloads_dir(self) -> Path:
        return self.reports_dir or self.data_dir / "downloads"


settings = AdvisorSettings()
