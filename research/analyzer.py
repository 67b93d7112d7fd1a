"""
Repository analysis: GitHub snapshot -> LLM summary + fun facts.

The model is optional. Without a configured generator, or when the call
fails, a templated summary built from the snapshot is returned instead and
the result is flagged with using_fallback.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from loguru import logger

from research.adapters.interface import GeneratorAdapter
from research.github_client import GitHubClient, RepoSnapshot
from research.prompts.render_template import render_messages
from monitoring.observability import log_metric, trace_request

MAX_FUN_FACTS = 5
README_PREVIEW_CHARS = 500

_SUMMARY = re.compile(r"SUMMARY:\s*([\s\S]*?)(?=FUN_FACTS:|$)")
_FUN_FACTS = re.compile(r"FUN_FACTS:\s*([\s\S]*?)$")
_NUMBERED = re.compile(r"^\d+\.\s*")


@dataclass
class AnalysisResult:
    summary: str
    fun_facts: List[str]
    repo_info: Dict[str, object]
    using_fallback: bool = False
    model_info: Optional[Dict[str, object]] = field(default=None)


def _date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def parse_analysis(text: str) -> Tuple[str, List[str]]:
    """
    Split a model reply into (summary, facts).

    Facts are the numbered lines under FUN_FACTS:, with the numbering removed.
    Missing sections give an empty summary or an empty list.
    """
    summary = ""
    facts: List[str] = []

    summary_match = _SUMMARY.search(text or "")
    if summary_match:
        summary = summary_match.group(1).strip()

    facts_match = _FUN_FACTS.search(text or "")
    if facts_match:
        for line in facts_match.group(1).strip().split("\n"):
            if not _NUMBERED.match(line):
                continue
            fact = _NUMBERED.sub("", line).strip()
            if fact:
                facts.append(fact)

    return summary, facts


def fallback_analysis(repo: RepoSnapshot, now: Optional[datetime] = None) -> Tuple[str, List[str]]:
    """Templated summary and five facts built only from repository metadata."""
    now = now or datetime.now(timezone.utc)
    languages = ", ".join(repo.languages) or repo.language or "multiple languages"
    readme_preview = repo.readme[:README_PREVIEW_CHARS].strip()

    if repo.description:
        focus = f"focused on {repo.description.lower()}"
    else:
        focus = "available on GitHub"
    summary = f"{repo.full_name} is a {repo.language or 'software'} project {focus}. "

    if repo.has_readme and readme_preview:
        summary += f"According to the repository documentation, {readme_preview}... "

    summary += (
        f"\n\nThe project has gained significant community interest with "
        f"{repo.stars:,} stars and {repo.forks:,} forks on GitHub. "
    )
    summary += (
        f"It was created on {_date(repo.created_at)} and remains actively maintained, "
        f"with the last update on {_date(repo.updated_at)}. "
    )
    if len(repo.languages) > 1:
        summary += (
            f"The repository uses multiple programming languages including {languages}, "
            f"demonstrating a diverse technology stack."
        )

    age_days = max((now - repo.created_at).days, 0)
    facts = [
        f"⭐ This repository has earned {repo.stars:,} stars from the GitHub community!",
        f"🔱 The project has been forked {repo.forks:,} times, showing active community participation",
        f"💻 Built primarily with {repo.language or 'multiple languages'}, showcasing {languages} in action",
        f"📅 First created on {_date(repo.created_at)}, the project has been evolving for {age_days} days",
        f"🔄 Last updated {_date(repo.updated_at)}, with {repo.open_issues} open issues being actively discussed",
    ]
    return summary, facts


def basic_facts(repo: RepoSnapshot) -> List[str]:
    return [
        f"⭐ This repository has {repo.stars:,} stars!",
        f"📅 The project was created on {_date(repo.created_at)}",
        f"💻 It uses {repo.language or 'multiple languages'} as its primary language",
        f"🔱 The community has created {repo.forks:,} forks",
        f"🔄 Last updated on {_date(repo.updated_at)}",
    ]


class RepoAnalyzer:

    def __init__(self, github: GitHubClient, generator: Optional[GeneratorAdapter] = None):
        self.github = github
        self.generator = generator

    def analyze(self, repo_url: str) -> AnalysisResult:
        """
        Analyze one repository.

        Raises:
            InvalidRepositoryUrl: URL does not name a GitHub repository
            RepositoryNotFound: metadata could not be fetched
        """
        with trace_request("research.analyze", {"repo_url": repo_url}):
            repo = self.github.snapshot(repo_url)
            logger.info(f"[ANALYZE] Fetched {repo.full_name} (readme={repo.has_readme}, languages={len(repo.languages)})")

            summary, facts, using_fallback = self._summarize(repo)

            if not facts:
                logger.info(f"[ANALYZE] No facts parsed for {repo.full_name}, using basic facts")
                facts = basic_facts(repo)

            log_metric("research.using_fallback", 1.0 if using_fallback else 0.0)

        return AnalysisResult(
            summary=summary,
            fun_facts=facts[:MAX_FUN_FACTS],
            repo_info=repo.repo_info(),
            using_fallback=using_fallback,
            model_info=None if using_fallback else self.generator.get_model_info(),
        )

    def _summarize(self, repo: RepoSnapshot) -> Tuple[str, List[str], bool]:
        if self.generator is None:
            logger.warning("[ANALYZE] No language model configured, using fallback analysis")
            summary, facts = fallback_analysis(repo)
            return summary, facts, True

        try:
            reply = self.generator.generate(render_messages(repo))
        except Exception as e:
            logger.warning(f"[ANALYZE] AI analysis unavailable, using fallback: {e}")
            summary, facts = fallback_analysis(repo)
            return summary, facts, True

        summary, facts = parse_analysis(reply)
        return summary, facts, False
