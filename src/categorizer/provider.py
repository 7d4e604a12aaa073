"""
File Categorization Module
==========================

This module turns one uploaded file plus the user's project and tag lists
into a single structured-output request to an OpenAI-compatible model, and
turns the reply back into a `CategorizationResult`.

Whatever the model answers, the result handed back to the caller only ever
names a project from the project list (or "Uncategorized") and tags from the
tag list. Values outside the lists are dropped without raising.
"""

from __future__ import annotations

import json
from typing import Sequence

import structlog

from common.config import Settings
from common.llm import OpenAIChatMixin

from .errors import CategorizationFailedError, UnsupportedMediaTypeError
from .models import CategorizationResult, UploadedFile, is_image_type, is_text_type

log = structlog.get_logger(__name__)

FALLBACK_PROJECT = Settings.FALLBACK_PROJECT

SYSTEM_INSTRUCTION_TEMPLATE = """
You are an intelligent knowledge base assistant. Your task is to analyze the provided file and suggest a categorization.

Analyze the file's content, name, and type. If the file is an image (like a screenshot or document), analyze any text within it.

File Name: {file_name}

You MUST suggest exactly one project from the provided project list that best fits the file.
You MUST suggest one or more relevant tags from the provided tag list. If no tags seem relevant, return an empty array for tags.

Strictly adhere to the provided JSON schema for your response. Only use the projects and tags from the lists below.

Available Projects:
{projects}

Available Tags:
{tags}
""".strip()


def file_to_content_part(file: UploadedFile) -> dict:
    """
    Build the single user content part for a file.

    Text is sent verbatim under a "File Content:" label; images are sent as a
    base64 data URL carrying their declared media type.
    """
    if is_text_type(file.media_type):
        return {"type": "text", "text": f"File Content:\n```\n{file.content}\n```"}
    if is_image_type(file.media_type):
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{file.media_type};base64,{file.content}"},
        }
    raise UnsupportedMediaTypeError(file.media_type)


def build_system_instruction(
    file: UploadedFile, projects: Sequence[str], tags: Sequence[str]
) -> str:
    return SYSTEM_INSTRUCTION_TEMPLATE.format(
        file_name=file.name,
        projects=", ".join(projects),
        tags=", ".join(tags),
    )


def build_response_schema(projects: Sequence[str], tags: Sequence[str]) -> dict:
    """JSON schema for the reply: a required project string and a tag array."""
    return {
        "type": "object",
        "properties": {
            "project": {
                "type": "string",
                "description": (
                    "The single most relevant project for the file, chosen "
                    f"exclusively from this list: [{', '.join(projects)}]"
                ),
            },
            "tags": {
                "type": "array",
                "description": (
                    "An array of relevant tags for the file, chosen exclusively "
                    f"from this list: [{', '.join(tags)}]"
                ),
                "items": {"type": "string"},
            },
        },
        "required": ["project", "tags"],
    }


def _extract_json(text: str) -> dict:
    """Parse JSON from raw model output, trimming surrounding text if needed."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end == -1 or end <= start:
            raise
        return json.loads(text[start : end + 1])


def parse_categorization_response(text: str) -> CategorizationResult:
    """
    Parse the model reply into a `CategorizationResult`.

    Raises `ValueError` (including `json.JSONDecodeError`) when the reply is
    not JSON or does not match the response schema. No allow-list filtering
    happens here; see `sanitize_categorization`.
    """
    raw = text.strip()
    if not raw:
        raise ValueError("Categorization response is empty.")

    data = _extract_json(raw)
    if not isinstance(data, dict):
        raise ValueError("Categorization response is not a JSON object.")

    project = data.get("project")
    if not isinstance(project, str):
        raise ValueError("Categorization response has no string 'project'.")

    tags = data.get("tags")
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValueError("Categorization response has no string array 'tags'.")

    return CategorizationResult(project=project, tags=list(tags))


def sanitize_categorization(
    result: CategorizationResult,
    projects: Sequence[str],
    tags: Sequence[str],
) -> CategorizationResult:
    """
    Force a result onto the allow-lists.

    Matching is exact and case-sensitive. An unknown project becomes
    "Uncategorized"; unknown tags are dropped and the rest keep their order.
    """
    allowed_projects = set(projects)
    allowed_tags = set(tags)
    project = result.project if result.project in allowed_projects else FALLBACK_PROJECT
    return CategorizationResult(
        project=project,
        tags=[tag for tag in result.tags if tag in allowed_tags],
    )


class CategorizationProvider(OpenAIChatMixin):
    """
    Categorization provider that uses OpenAI-compatible chat completions.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def categorize(
        self,
        file: UploadedFile,
        projects: Sequence[str],
        tags: Sequence[str],
    ) -> CategorizationResult:
        """
        Ask the model for a project and tags for `file`.

        Raises `CategorizationFailedError` for anything that goes wrong,
        including files that are neither images nor text. Those fail before
        any request is made.
        """
        try:
            content_part = file_to_content_part(file)
        except UnsupportedMediaTypeError as e:
            log.error(
                "Cannot categorize file of this type",
                file_name=file.name,
                media_type=file.media_type,
            )
            raise CategorizationFailedError() from e

        projects = list(projects)
        tags = list(tags)

        messages = [
            {"role": "system", "content": build_system_instruction(file, projects, tags)},
            {"role": "user", "content": [content_part]},
        ]
        params = {
            "model": self.settings.AI_MODEL,
            "messages": messages,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "categorization",
                    "schema": build_response_schema(projects, tags),
                },
            },
        }
        if self.settings.REQUEST_TIMEOUT is not None:
            params["timeout"] = self.settings.REQUEST_TIMEOUT

        log.info(
            "Requesting categorization",
            file_name=file.name,
            media_type=file.media_type,
            size_bytes=file.size_bytes,
            model=self.settings.AI_MODEL,
        )
        try:
            response = self._create_completion(**params)
            content = response.choices[0].message.content or ""
            suggested = parse_categorization_response(content)
        except Exception as e:
            log.error(
                "Error categorizing file",
                file_name=file.name,
                model=self.settings.AI_MODEL,
                error=repr(e),
            )
            raise CategorizationFailedError() from e

        result = sanitize_categorization(suggested, projects, tags)
        if result != suggested:
            log.info(
                "Dropped suggestions outside the allow-lists",
                file_name=file.name,
                suggested_project=suggested.project,
                suggested_tags=suggested.tags,
                project=result.project,
                tags=result.tags,
            )
        return result
