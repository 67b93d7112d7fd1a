from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Any
import yaml
from jinja2 import Template

from research.github_client import RepoSnapshot

PROMPTS_PATH = Path(__file__).resolve().parents[2] / "configs" / "prompts.yaml"


@lru_cache(maxsize=None)
def load_prompts(path: Path = PROMPTS_PATH) -> Dict[str, Dict[str, str]]:
    with open(path) as f:
        return yaml.safe_load(f)


def render_messages(repo: RepoSnapshot, template_name: str = "repo_analysis") -> List[Dict[str, Any]]:
    """
    Render a system+user message pair for analyzing one repository.
    """
    cfg = load_prompts()[template_name]

    system_msg = Template(cfg["system"]).render()
    user_msg = Template(cfg["user"]).render(
        repo=repo,
        languages=", ".join(repo.languages),
    )

    return [
        {"role": "system", "content": system_msg.strip()},
        {"role": "user",   "content": user_msg.strip()},
    ]
