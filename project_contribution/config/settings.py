from typing import Any, Optional, Union
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from project_contribution.models.records import ContributionRepositories, RepositoryRef

# Define the root directory of the project_contribution service
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (one level up from the service package)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent

DEFAULT_PROJECTS_REPOSITORY = RepositoryRef(
    owner="opensource-observer", repo="oss-directory", base_branch="main"
)
DEFAULT_LOGOS_REPOSITORY = RepositoryRef(
    owner="growthepie", repo="gtp-dna", base_branch="main"
)

TRUTHY_VALUES = {"1", "true", "yes", "on"}
FALSY_VALUES = {"0", "false", "no", "off"}


def parse_boolean(value: Any, default: bool) -> bool:
    """
    Parse a permissive truthy/falsy value.

    Unknown or empty values fall back to ``default`` instead of failing.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in TRUTHY_VALUES:
        return True
    if normalized in FALSY_VALUES:
        return False
    return default


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "ProjectContributionService"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8002

    # Security settings
    CORS_ORIGINS: Union[str, list[str]] = "http://localhost:3000"
    CORS_ALLOW_METHODS: Union[str, list[str]] = "GET,POST"
    CORS_ALLOW_HEADERS: Union[str, list[str]] = "*"

    # Rate limiting (fixed window per client address)
    RATE_LIMIT_MAX_REQUESTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS: int = 300

    # Intake limits
    MAX_LOGO_BASE64_CHARS: int = 700_000  # ~500 KB binary
    PROJECT_SCHEMA_VERSION: int = 7

    # GitHub
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TIMEOUT_SECONDS: float = 20.0
    OLI_GITHUB_TOKEN: Optional[str] = None
    GITHUB_TOKEN: Optional[str] = None
    OLI_GITHUB_TARGET_OWNER: Optional[str] = None
    OLI_GITHUB_AUTO_CREATE_FORK: bool = True
    OLI_GITHUB_BRANCH_PREFIX: Optional[str] = None

    # Record store (project YAML files)
    OLI_PROJECTS_REPO_OWNER: Optional[str] = None
    OLI_PROJECTS_REPO_NAME: Optional[str] = None
    OLI_PROJECTS_REPO_BASE_BRANCH: Optional[str] = None

    # Asset store (logos)
    OLI_LOGOS_REPO_OWNER: Optional[str] = None
    OLI_LOGOS_REPO_NAME: Optional[str] = None
    OLI_LOGOS_REPO_BASE_BRANCH: Optional[str] = None

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")

    @field_validator("OLI_GITHUB_AUTO_CREATE_FORK", mode="before")
    @classmethod
    def parse_auto_create_fork(cls, v: Any) -> bool:
        return parse_boolean(v, default=True)

    def model_post_init(self, __context) -> None:
        """Parse comma-separated strings into lists after model initialization."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

        if isinstance(self.CORS_ALLOW_METHODS, str):
            self.CORS_ALLOW_METHODS = [method.strip() for method in self.CORS_ALLOW_METHODS.split(',') if method.strip()]

        if isinstance(self.CORS_ALLOW_HEADERS, str):
            if self.CORS_ALLOW_HEADERS == "*":
                self.CORS_ALLOW_HEADERS = ["*"]
            else:
                self.CORS_ALLOW_HEADERS = [header.strip() for header in self.CORS_ALLOW_HEADERS.split(',') if header.strip()]

    def github_token(self) -> str:
        """Return the GitHub credential, preferring OLI_GITHUB_TOKEN over GITHUB_TOKEN."""
        return self.OLI_GITHUB_TOKEN or self.GITHUB_TOKEN or ""

    def resolve_repositories(self) -> ContributionRepositories:
        """
        Resolve the target repositories for project YAML files and logos.

        Each part (owner, name, base branch) of each repository can be
        overridden on its own; unset parts fall back to the built-in defaults.
        """
        return ContributionRepositories(
            projects=RepositoryRef(
                owner=self.OLI_PROJECTS_REPO_OWNER or DEFAULT_PROJECTS_REPOSITORY.owner,
                repo=self.OLI_PROJECTS_REPO_NAME or DEFAULT_PROJECTS_REPOSITORY.repo,
                base_branch=self.OLI_PROJECTS_REPO_BASE_BRANCH or DEFAULT_PROJECTS_REPOSITORY.base_branch,
            ),
            logos=RepositoryRef(
                owner=self.OLI_LOGOS_REPO_OWNER or DEFAULT_LOGOS_REPOSITORY.owner,
                repo=self.OLI_LOGOS_REPO_NAME or DEFAULT_LOGOS_REPOSITORY.repo,
                base_branch=self.OLI_LOGOS_REPO_BASE_BRANCH or DEFAULT_LOGOS_REPOSITORY.base_branch,
            ),
        )

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        env_ignore_empty=True,  # Empty overrides fall back to defaults
        extra='ignore'
    )


# Instantiate settings
settings = Settings()
