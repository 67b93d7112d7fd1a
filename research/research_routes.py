"""
Research assistant endpoint.

POST /api/analyze-repo - Summarize a GitHub repository and list fun facts
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from loguru import logger

from apps.config import get_settings
from research.adapters.interface import GeneratorAdapter
from research.adapters.openai_adapter import OpenAIAdapter
from research.analyzer import RepoAnalyzer
from research.github_client import GitHubClient, InvalidRepositoryUrl, RepositoryNotFound

router = APIRouter(prefix="/api", tags=["research"])

_analyzer: Optional[RepoAnalyzer] = None

# ==================== MODELS ====================

class AnalyzeRepoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_url: Optional[str] = Field(None, alias="repoUrl", max_length=2048)


class AnalyzeRepoResponse(BaseModel):
    summary: str
    fun_facts: List[str]
    repo_info: Dict[str, Any]
    using_fallback: bool
    model: Optional[Dict[str, Any]] = None

# ==================== DEPENDENCIES ====================

def build_generator() -> Optional[GeneratorAdapter]:
    settings = get_settings()
    if not settings.openai_api_key:
        return None
    return OpenAIAdapter(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        temperature=settings.openai_temperature,
        base_url=settings.openai_base_url,
    )


def get_analyzer() -> RepoAnalyzer:
    global _analyzer

    if _analyzer is None:
        settings = get_settings()
        github = GitHubClient(
            api_url=settings.github_api_url,
            token=settings.github_token,
            timeout=settings.github_timeout,
            readme_char_limit=settings.readme_char_limit,
        )
        _analyzer = RepoAnalyzer(github, build_generator())
    return _analyzer


def close_analyzer() -> None:
    """Release the GitHub connection pool (called on shutdown)."""
    global _analyzer

    if _analyzer is not None:
        _analyzer.github.close()
        _analyzer = None

# ==================== ENDPOINTS ====================

@router.post("/analyze-repo", response_model=AnalyzeRepoResponse)
def analyze_repo(
    data: AnalyzeRepoRequest,
    analyzer: RepoAnalyzer = Depends(get_analyzer)
):
    if not data.repo_url or not data.repo_url.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Repository URL is required")

    try:
        result = analyzer.analyze(data.repo_url.strip())

        logger.info(
            f"[ANALYZE] {result.repo_info['name']} analyzed "
            f"(fallback={result.using_fallback}, facts={len(result.fun_facts)})"
        )
        return AnalyzeRepoResponse(
            summary=result.summary,
            fun_facts=result.fun_facts,
            repo_info=result.repo_info,
            using_fallback=result.using_fallback,
            model=result.model_info,
        )

    except InvalidRepositoryUrl as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RepositoryNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ANALYZE] Error analyzing repository: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while analyzing the repository"
        )
