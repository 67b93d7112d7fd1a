"""
Minimal GitHub REST client for the research assistant.

Three sequential calls per analysis: repository metadata, raw README and
language breakdown. Only the metadata call is required; README and languages
degrade to placeholders.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

import httpx
from loguru import logger

USER_AGENT = "Nani-Research-Assistant"
NO_README = "No README available"

_REPO_URL = re.compile(r"github\.com/([^/\s]+)/([^/\s?#]+)")


class InvalidRepositoryUrl(ValueError):
    pass


class RepositoryNotFound(Exception):
    pass


@dataclass
class RepoSnapshot:
    """Everything the analyzer needs about one repository."""
    full_name: str
    description: Optional[str]
    language: Optional[str]
    stars: int
    forks: int
    open_issues: int
    created_at: datetime
    updated_at: datetime
    languages: Dict[str, int] = field(default_factory=dict)
    readme: str = NO_README

    @property
    def has_readme(self) -> bool:
        return bool(self.readme) and self.readme != NO_README

    def repo_info(self) -> Dict[str, object]:
        return {
            "name": self.full_name,
            "description": self.description or "No description available",
            "language": self.language or "Not specified",
            "stars": self.stars,
            "forks": self.forks,
        }


def parse_repo_url(repo_url: str) -> Tuple[str, str]:
    """
    Extract (owner, repo) from a GitHub URL.

    Example:
        >>> parse_repo_url("https://github.com/psf/requests.git")
        ('psf', 'requests')
    """
    match = _REPO_URL.search(repo_url or "")
    if not match:
        raise InvalidRepositoryUrl("Invalid GitHub URL format")
    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[:-len(".git")]
    return owner, repo


def _parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubClient:

    def __init__(self,
                 api_url: str = "https://api.github.com",
                 token: Optional[str] = None,
                 timeout: float = 15.0,
                 readme_char_limit: int = 3000,
                 transport: Optional[httpx.BaseTransport] = None
                 ):
        self.api_url = api_url.rstrip("/")
        self.readme_char_limit = readme_char_limit
        headers = {"User-Agent": USER_AGENT}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=self.api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_repository(self, owner: str, repo: str) -> dict:
        try:
            response = self._client.get(
                f"/repos/{owner}/{repo}",
                headers={"Accept": "application/vnd.github.v3+json"}
            )
        except httpx.HTTPError as e:
            logger.error(f"GitHub request failed for {owner}/{repo}: {e}")
            raise RepositoryNotFound("Repository not found or unable to access") from e

        if response.is_error:
            logger.warning(f"GitHub returned {response.status_code} for {owner}/{repo}")
            raise RepositoryNotFound("Repository not found or unable to access")
        return response.json()

    def fetch_readme(self, owner: str, repo: str) -> str:
        """Raw README, truncated; empty when the repository has none."""
        try:
            response = self._client.get(
                f"/repos/{owner}/{repo}/readme",
                headers={"Accept": "application/vnd.github.v3.raw"}
            )
        except httpx.HTTPError as e:
            logger.info(f"README not available for {owner}/{repo}: {e}")
            return NO_README

        if response.is_error:
            return ""
        return response.text[:self.readme_char_limit]

    def fetch_languages(self, owner: str, repo: str) -> Dict[str, int]:
        try:
            response = self._client.get(
                f"/repos/{owner}/{repo}/languages",
                headers={"Accept": "application/vnd.github.v3+json"}
            )
        except httpx.HTTPError as e:
            logger.info(f"Languages not available for {owner}/{repo}: {e}")
            return {}

        if response.is_error:
            return {}
        return response.json()

    def snapshot(self, repo_url: str) -> RepoSnapshot:
        owner, repo = parse_repo_url(repo_url)
        data = self.fetch_repository(owner, repo)
        readme = self.fetch_readme(owner, repo)
        languages = self.fetch_languages(owner, repo)

        return RepoSnapshot(
            full_name=data.get("full_name") or f"{owner}/{repo}",
            description=data.get("description"),
            language=data.get("language"),
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            created_at=_parse_time(data["created_at"]),
            updated_at=_parse_time(data["updated_at"]),
            languages=languages,
            readme=readme,
        )
