import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from prwarden_core.errors import ConfigurationError

DEFAULT_CONFIG: dict = {
    "model": "openai",
    "max_comments": 3,
    "max_diff_chars": 60000,
    "guidelines": None,  # None = built-in prompt only; set to a path string to append extra rules
    "filter_design_comments": True,
    "review_draft_prs": False,
    "store": "file",  # file | sqlite | gist
    "workspace": ".",  # root directory for the file store
    "store_path": ".prwarden.db",
    "gist_id": None,
    "artifact_path": "review_comments.json",
}

PROVIDERS = ("openai", "anthropic")


def load_config(config_path: str = ".prwarden.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prwarden.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def load_guidelines(config: dict) -> str:
    """
    Load extra review guidelines appended to the model prompt.

    If ``guidelines`` is set in config, loads from that path (relative to cwd).
    Otherwise returns an empty string and the built-in prompt is used alone.
    """
    custom_path = config.get("guidelines")
    if not custom_path:
        return ""
    p = Path(custom_path)
    if not p.exists():
        raise ConfigurationError(f"Guidelines file not found: {custom_path}")
    return p.read_text()


@dataclass(frozen=True)
class ReviewTarget:
    """The pull request under review; also the key of its persisted state."""

    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def parse(cls, full_name: str, number: int) -> "ReviewTarget":
        owner, sep, repo = (full_name or "").partition("/")
        if not sep or not owner or not repo or "/" in repo:
            raise ConfigurationError(f"Repository must be in owner/name format, got {full_name!r}.")
        return cls(owner=owner, repo=repo, number=number)


@dataclass(frozen=True)
class Settings:
    """Immutable view of the merged configuration, built once at the entry point."""

    model: str
    github_token: Optional[str]
    openai_api_key: Optional[str]
    anthropic_api_key: Optional[str]
    max_comments: int
    max_diff_chars: int
    guidelines: str
    filter_design_comments: bool
    review_draft_prs: bool
    artifact_path: str

    def require_credentials(self, need_model: bool = True) -> None:
        """Raise ConfigurationError unless every credential the command needs is set."""
        if not self.github_token:
            raise ConfigurationError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")
        if not need_model:
            return
        if self.model == "anthropic" and not self.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set.")
        if self.model == "openai" and not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY environment variable is not set.")


def build_settings(config: dict) -> Settings:
    model = config.get("model", DEFAULT_CONFIG["model"])
    if model not in PROVIDERS:
        raise ConfigurationError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")
    try:
        max_comments = int(config.get("max_comments", DEFAULT_CONFIG["max_comments"]))
        max_diff_chars = int(config.get("max_diff_chars", DEFAULT_CONFIG["max_diff_chars"]))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e
    return Settings(
        model=model,
        github_token=config.get("github_token"),
        openai_api_key=config.get("openai_api_key"),
        anthropic_api_key=config.get("anthropic_api_key"),
        max_comments=max_comments,
        max_diff_chars=max_diff_chars,
        guidelines=load_guidelines(config),
        filter_design_comments=bool(config.get("filter_design_comments", True)),
        review_draft_prs=bool(config.get("review_draft_prs", False)),
        artifact_path=config.get("artifact_path") or DEFAULT_CONFIG["artifact_path"],
    )
