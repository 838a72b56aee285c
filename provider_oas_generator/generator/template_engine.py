"""
Provider Schema Generator

This module serializes the extraction result into the provider schema and
metadata documents and uses Jinja2 templates to render a Markdown summary.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Final

from jinja2 import Environment, FileSystemLoader, select_autoescape

from provider_oas_generator.extractor.schema_spec import ExtractionResult, split_token
from provider_oas_generator.generator.filters import FILTERS

logger = logging.getLogger(__name__)

SCHEMA_FILE_NAME: Final = "schema.json"
METADATA_FILE_NAME: Final = "metadata.json"
SUMMARY_FILE_NAME: Final = "SUMMARY.md"
SUMMARY_TEMPLATE: Final = "summary.md.j2"

_JSON_INDENT: Final = 2


def to_json(document: dict[str, Any]) -> str:
    """Serialize a document with stable key order and a trailing newline."""
    return json.dumps(document, indent=_JSON_INDENT, sort_keys=True) + "\n"


class SchemaTemplateEngine:
    """Template engine for rendering provider schema documentation."""

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(FILTERS)

    def render_template(self, template_name: str, context: dict[str, Any]) -> str:
        """Render a template with the given context."""
        template = self.env.get_template(template_name)
        return template.render(**context)


class ProviderSchemaGenerator:
    """Writes the provider schema, its metadata and a summary from an extraction result."""

    def __init__(self, template_dir: Path | None = None) -> None:
        self.template_engine = SchemaTemplateEngine(template_dir)

    def generate(
        self,
        result: ExtractionResult,
        output_dir: Path,
        *,
        include_summary: bool = True,
    ) -> dict[Path, str]:
        """Generate the output files.

        Args:
            result: The extraction result.
            output_dir: Directory the files are placed in.
            include_summary: Also render ``SUMMARY.md``.

        Returns:
            Dictionary mapping file paths to their content.
        """
        files = {
            output_dir / SCHEMA_FILE_NAME: to_json(result.package.to_dict()),
            output_dir / METADATA_FILE_NAME: to_json(result.metadata.to_dict()),
        }

        if include_summary:
            files[output_dir / SUMMARY_FILE_NAME] = self.template_engine.render_template(
                SUMMARY_TEMPLATE, self._create_summary_context(result)
            )

        logger.info("Generated %d files for package %s", len(files), result.package.name)
        return files

    @staticmethod
    def _create_summary_context(result: ExtractionResult) -> dict[str, Any]:
        package = result.package
        modules: dict[str, dict[str, list[str]]] = defaultdict(lambda: {"resources": [], "functions": [], "types": []})

        for kind, tokens in (
            ("resources", package.resources),
            ("functions", package.functions),
            ("types", package.types),
        ):
            for token in sorted(tokens):
                modules[split_token(token)[1]][kind].append(token)

        return {
            "package": package,
            "metadata": result.metadata,
            "modules": dict(sorted(modules.items())),
            "csharp_namespaces": result.csharp_namespaces,
        }
