"""Settings for ticketlens.

Built-in defaults (checklist, estimation scale, models) are merged with
``.ticketlens.yml`` and CLI overrides. Credentials are read from the
environment only. The merged result is checked against CONFIG_SCHEMA with
jsonschema before anything uses it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from jsonschema import Draft202012Validator

from ticketlens_core.errors import ConfigurationInvalid
from ticketlens_core.models import ChecklistEntry

DEFAULT_MODEL = "llama3.3"

DEFAULT_CHECKLIST = [
    {"key": "clear_subject", "description": "Does the ticket have a clear subject?", "weight": 1.0},
    {"key": "expected_outcomes", "description": "Does the ticket body contain expected outcome(s)?", "weight": 4.0},
    {"key": "considerations", "description": "Does the ticket body contain any notable considerations?", "weight": 1.0},
    {
        "key": "examples",
        "description": "Does the ticket contain, reference, or link to any code snippets or example code?",
        "weight": 1.0,
    },
    {
        "key": "documentation",
        "description": "Does the ticket body contain any http links to resources such as documentation, "
        "another ticket, article, wiki, github, etc.?",
        "weight": 1.0,
    },
]

DEFAULT_SCALE = [
    {
        "points": 1,
        "examples": [
            "One line bug fix that doesn't need any updated tests or only 1 or 2 updated tests",
            "Configuration change",
            "Turning a feature flag on and off",
        ],
    },
    {
        "points": 2,
        "examples": [
            "Smaller bug fix or feature that requires testing",
            "More complicated config changes that require validation",
            "Vulnerability tasks",
            "Documentation",
        ],
    },
    {
        "points": 3,
        "examples": [
            "Implementing a small feature and testing",
            "Small investigations (e.g. figuring out how to add a small feature that already exists)",
        ],
    },
    {
        "points": 5,
        "examples": [
            "Medium investigation tasks (POC)",
            "Medium to large features requiring significant code changes",
            "Features requiring comprehensive end-to-end testing",
            "Tasks with many unknowns/uncertainties",
            "Work requiring coordination across multiple teams",
        ],
    },
    {
        "points": 8,
        "examples": [
            "Large investigations with multiple potential solutions and POCs",
            "Large features affecting multiple system components",
            "Complex features that ideally should be broken down into smaller tasks",
            "Work requiring significant architectural changes",
        ],
    },
]

DEFAULT_CONFIG: dict = {
    "tracker": "jira",
    "jira_url": None,
    "github_repo": None,
    "store": "sqlite",
    "store_path": "~/.ticketlens/ticketlens.db",
    "gist_id": None,
    "format": "yaml",
    "inference": {"provider": "ollama", "host": "http://localhost:11434"},
    "review": {
        "model": DEFAULT_MODEL,
        "comment": "Review the provided ticket according to this checklist",
        "checklist": DEFAULT_CHECKLIST,
    },
    "estimate": {
        "model": DEFAULT_MODEL,
        "confidence": {
            "comment": "Based on the amount of detail provided, what is your confidence in the ability of a "
            "human to accurately estimate the story points? Return a number between 0 and 100.",
            "description": "A percentage number between 0 and 100",
        },
        "story_points": {
            "comment": "Estimate the story points for the provided ticket using the provided scale.",
            "description": "The story points for the ticket as a fibonacci number between 1 and 8",
            "scale": DEFAULT_SCALE,
        },
    },
    "nitpick": {
        "model": DEFAULT_MODEL,
        "task": "Fill the template with the provided text, preserving the meaning but improving structure.",
        "instructions": [
            "Markdown output should exactly match the template",
            "If provided text is missing any information required for a section, "
            "add a TODO note to the empty section.",
        ],
        "template": "## Summary\n\n## Considerations\n\n## Expected Outcomes",
    },
}

_STRING = {"type": "string"}
_COMMENTED = {
    "type": "object",
    "required": ["comment", "description"],
    "properties": {"comment": _STRING, "description": _STRING},
}

CONFIG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["tracker", "store", "format", "inference", "review", "estimate", "nitpick"],
    "properties": {
        "tracker": {"enum": ["jira", "github"]},
        "jira_url": {"type": ["string", "null"]},
        "github_repo": {"type": ["string", "null"]},
        "store": {"enum": ["sqlite", "gist", "memory"]},
        "store_path": _STRING,
        "gist_id": {"type": ["string", "null"]},
        "format": {"enum": ["yaml", "json"]},
        "inference": {
            "type": "object",
            "required": ["provider"],
            "properties": {
                "provider": {"enum": ["ollama", "openai", "anthropic"]},
                "host": {"type": ["string", "null"]},
            },
        },
        "review": {
            "type": "object",
            "required": ["model", "comment", "checklist"],
            "properties": {
                "model": _STRING,
                "comment": _STRING,
                "checklist": {
                    "type": "array",
                    "minItems": 1,
                    "items": {
                        "type": "object",
                        "required": ["key", "description", "weight"],
                        "properties": {
                            "key": {"type": "string", "minLength": 1},
                            "description": _STRING,
                            "weight": {"type": "number", "exclusiveMinimum": 0},
                        },
                    },
                },
            },
        },
        "estimate": {
            "type": "object",
            "required": ["model", "confidence", "story_points"],
            "properties": {
                "model": _STRING,
                "confidence": _COMMENTED,
                "story_points": {
                    "type": "object",
                    "required": ["comment", "description", "scale"],
                    "properties": {
                        "comment": _STRING,
                        "description": _STRING,
                        "scale": {
                            "type": "array",
                            "minItems": 1,
                            "items": {
                                "type": "object",
                                "required": ["points", "examples"],
                                "properties": {
                                    "points": {"type": "number"},
                                    "examples": {"type": "array", "items": _STRING},
                                },
                            },
                        },
                    },
                },
            },
        },
        "nitpick": {
            "type": "object",
            "required": ["model", "task", "instructions", "template"],
            "properties": {
                "model": _STRING,
                "task": _STRING,
                "instructions": {"type": "array", "items": _STRING},
                "template": _STRING,
            },
        },
    },
}

_SECTIONS = ("inference", "review", "estimate", "nitpick")


def _merge(config: dict, overrides: dict) -> None:
    """Shallow-merge ``overrides`` into ``config``, one level deep for mapping sections."""
    for key, value in overrides.items():
        if key in _SECTIONS and isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key] = {**config[key], **value}
        else:
            config[key] = value


def load_config(config_path: str = ".ticketlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .ticketlens.yml in the current directory
      3. CLI argument overrides

    The merged document is validated before it is returned, so a bad checklist
    or scale fails here rather than halfway through a review.
    """
    config = {key: (dict(value) if isinstance(value, dict) else value) for key, value in DEFAULT_CONFIG.items()}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationInvalid(f"{config_path} is not valid YAML: {e}")
        if not isinstance(file_config, dict):
            raise ConfigurationInvalid(f"{config_path} must contain a YAML mapping")
        _merge(config, file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Credentials never live in the settings file.
    config["jira_url"] = os.environ.get("JIRA_URL") or config.get("jira_url")
    config["jira_username"] = os.environ.get("JIRA_USERNAME")
    config["jira_api_token"] = os.environ.get("JIRA_API_TOKEN")
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    if os.environ.get("OLLAMA_HOST") and isinstance(config.get("inference"), dict):
        config["inference"]["host"] = os.environ["OLLAMA_HOST"]

    validate_config(config)
    return config


def validate_config(config: dict) -> None:
    """Raise ConfigurationInvalid when the settings cannot drive a review."""
    validator = Draft202012Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(config), key=lambda e: str(e.path))
    if errors:
        formatted = []
        for error in errors:
            path = "$"
            for part in error.path:
                path += f"[{part!r}]" if isinstance(part, int) else f".{part}"
            formatted.append(f"{path}: {error.message}")
        raise ConfigurationInvalid("Invalid settings:\n  " + "\n  ".join(formatted))

    entries = config["review"]["checklist"]
    keys = [entry["key"] for entry in entries]
    if len(set(keys)) != len(keys):
        raise ConfigurationInvalid("review.checklist keys must be unique")
    if sum(entry["weight"] for entry in entries) <= 0:
        raise ConfigurationInvalid("review.checklist total weight must be greater than zero")

    points = scale_points(config)
    if any(b <= a for a, b in zip(points, points[1:])):
        raise ConfigurationInvalid("estimate.story_points.scale must be strictly ascending")


def checklist_entries(config: dict) -> list[ChecklistEntry]:
    return [ChecklistEntry.from_dict(entry) for entry in config["review"]["checklist"]]


def scale_points(config: dict) -> list[float]:
    return [step["points"] for step in config["estimate"]["story_points"]["scale"]]
