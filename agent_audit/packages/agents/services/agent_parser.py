"""
Agent definition loading.

Agent definitions are Markdown files with a YAML front matter block. Only the
fields the audit and progress stages need are validated here.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from agent_audit.common.core.exceptions import AgentDefinitionParseError
from agent_audit.common.core.telemetry import get_logger, trace_span
from agent_audit.packages.agents.models.agent_definition import (
    AgentDefinition,
    DiagnosticSeverity,
    ParseDiagnostic,
    ParseResult,
)

logger = get_logger(__name__)

FRONTMATTER_DELIMITER = "---"


def split_frontmatter(content: str) -> tuple[str, str]:
    """Split a Markdown document into (front matter, body).

    Raises:
        ValueError: If the document has no closed front matter block
    """
    lines = content.splitlines()
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise ValueError("Missing frontmatter block")

    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_DELIMITER:
            return "\n".join(lines[1:index]), "\n".join(lines[index + 1 :])

    raise ValueError("Unterminated frontmatter block")


def parse_content(content: str) -> ParseResult:
    """Parse agent definition text into a ParseResult with diagnostics."""
    try:
        frontmatter, body = split_frontmatter(content)
    except ValueError as e:
        return ParseResult(errors=[ParseDiagnostic(field="frontmatter", message=str(e))])

    try:
        data = yaml.safe_load(frontmatter) or {}
    except yaml.YAMLError as e:
        return ParseResult(
            errors=[ParseDiagnostic(field="frontmatter", message=f"Invalid YAML: {e}")]
        )

    if not isinstance(data, dict):
        return ParseResult(
            errors=[
                ParseDiagnostic(
                    field="frontmatter", message="Frontmatter must be a mapping"
                )
            ]
        )

    # PyYAML reads a bare `on:` key as boolean True
    if True in data and "on" not in data:
        data["on"] = data.pop(True)

    try:
        agent = AgentDefinition.model_validate(data)
    except ValidationError as e:
        return ParseResult(
            errors=[
                ParseDiagnostic(
                    field=".".join(str(part) for part in err["loc"]) or "frontmatter",
                    message=err["msg"],
                )
                for err in e.errors()
            ]
        )

    warnings = []
    if not body.strip():
        warnings.append(
            ParseDiagnostic(
                field="body",
                message="Agent instructions are empty",
                severity=DiagnosticSeverity.WARNING,
            )
        )

    return ParseResult(agent=agent, errors=warnings)


@trace_span
def parse_file(path: str | Path) -> ParseResult:
    """
    Load an agent definition file.

    Args:
        path: Path to the agent Markdown file

    Returns:
        ParseResult with the agent (if valid) and any diagnostics
    """
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ParseResult(
            errors=[ParseDiagnostic(field="file", message=f"Cannot read {file_path}: {e}")]
        )

    result = parse_content(content)
    for diagnostic in result.errors:
        logger.debug(
            f"{file_path}: {diagnostic.severity} in {diagnostic.field}: {diagnostic.message}"
        )
    return result


def load_agent_definition(path: str | Path) -> AgentDefinition:
    """
    Load an agent definition, failing on any error-severity diagnostic.

    Raises:
        AgentDefinitionParseError: If the definition cannot be used
    """
    result = parse_file(path)
    if result.has_errors:
        raise AgentDefinitionParseError(
            str(path),
            [
                f"{e.field}: {e.message}"
                for e in result.errors
                if e.severity == DiagnosticSeverity.ERROR
            ]
            or ["No agent definition found"],
        )
    return result.agent
