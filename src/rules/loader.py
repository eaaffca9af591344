import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILENAME = "rules.yaml"
RULES_PATH_ENV = "ANALYTICS_RULES_PATH"


def default_rules_path() -> Path:
    """Rules path from the environment, else rules.yaml in the working dir."""
    return Path(os.environ.get(RULES_PATH_ENV, DEFAULT_RULES_FILENAME))


def extract_yaml(content: str) -> str:
    """
    Return the first ```yaml fenced block, or the whole text if none.

    Lets the rules live inside a markdown document.
    """
    yaml_lines = []
    in_block = False
    found_block = False

    for line in content.splitlines():
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    if found_block:
        return "\n".join(yaml_lines)
    return content


def parse_rules(content: str) -> Rules:
    """
    Parse and validate rules text.
    Raises ValueError on invalid YAML or schema.
    """
    try:
        data = yaml.safe_load(extract_yaml(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if syntax or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    rules = parse_rules(content)
    logger.info("Loaded rules %s (version %s)", path, rules.project.rules_version)
    return rules
