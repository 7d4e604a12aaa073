"""
Sorter Session
==============

This module defines the `SorterSession`, the in-memory state behind one
user sorting files: the project and tag allow-lists, the current file, the
model's suggestion and the user's edits to it.

Each file selection starts a new generation. A categorization attempt is
tied to the generation it was started in, and its outcome is only applied
if that generation is still current when the model answers. Selecting a
new file or clearing the current one therefore makes any in-flight answer
stale without needing to cancel it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Protocol, Sequence

import structlog

from categorizer.errors import CategorizationError, EmptyAllowListError
from categorizer.models import CategorizationResult, UploadedFile
from categorizer.provider import FALLBACK_PROJECT

from .allow_list import AllowList

log = structlog.get_logger(__name__)


class Categorizer(Protocol):
    def categorize(
        self,
        file: UploadedFile,
        projects: Sequence[str],
        tags: Sequence[str],
    ) -> CategorizationResult: ...


@dataclass(frozen=True)
class CategorizationAttempt:
    generation: int
    file: UploadedFile


class SorterSession:
    """
    Holds the state of one sorting session and applies user actions to it.
    """

    def __init__(
        self,
        categorizer: Categorizer,
        projects: Iterable[str] = (),
        tags: Iterable[str] = (),
    ):
        self.categorizer = categorizer
        self.projects = AllowList("Projects", projects)
        self.tags = AllowList("Tags", tags)
        self.file: UploadedFile | None = None
        self.suggestion: CategorizationResult | None = None
        self.edited: CategorizationResult | None = None
        self.last_confirmed: CategorizationResult | None = None
        self.is_loading = False
        self.is_categorized = False
        self.error: str | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, attempt: CategorizationAttempt) -> bool:
        return attempt.generation == self._generation and attempt.file is self.file

    # --- File lifecycle ---

    def clear_file(self) -> None:
        """Drop the current file and everything derived from it."""
        if self.file is not None:
            self.file.release()
        self.file = None
        self.suggestion = None
        self.edited = None
        self.error = None
        self.is_loading = False
        self.is_categorized = False
        self._generation += 1

    def select_file(self, file: UploadedFile) -> CategorizationAttempt:
        """Make `file` the current file and return the attempt to categorize it."""
        self.clear_file()
        self.file = file
        self.is_loading = True
        log.info(
            "Selected file",
            file_name=file.name,
            media_type=file.media_type,
            generation=self._generation,
        )
        return CategorizationAttempt(generation=self._generation, file=file)

    def categorize(self, attempt: CategorizationAttempt) -> CategorizationResult | None:
        """
        Run `attempt` and apply its outcome if it is still current.

        Returns the suggestion, or None when the attempt failed or went stale.
        Failures are stored in `error` as a message for the user.
        """
        if not self.is_current(attempt):
            log.info("Skipping stale categorization attempt", generation=attempt.generation)
            return None

        if not self.projects or not self.tags:
            self.error = str(EmptyAllowListError())
            self.is_loading = False
            return None

        try:
            result = self.categorizer.categorize(
                attempt.file, self.projects.as_list(), self.tags.as_list()
            )
        except CategorizationError as e:
            if not self.is_current(attempt):
                log.info(
                    "Ignoring failure of stale categorization attempt",
                    generation=attempt.generation,
                    error=str(e),
                )
                return None
            self.error = str(e)
            self.is_loading = False
            return None

        if not self.is_current(attempt):
            log.info(
                "Discarding stale categorization",
                file_name=attempt.file.name,
                generation=attempt.generation,
                current_generation=self._generation,
            )
            return None

        self.suggestion = result
        self.edited = result
        self.is_loading = False
        return result

    def process_file(self, file: UploadedFile) -> CategorizationResult | None:
        return self.categorize(self.select_file(file))

    # --- Editing the allow-lists ---

    def add_project(self, name: str) -> bool:
        return self.projects.add(name)

    def remove_project(self, name: str) -> bool:
        """Remove a project; a suggestion naming it falls back to "Uncategorized"."""
        if not self.projects.remove(name):
            return False
        if self.edited is not None and self.edited.project == name:
            self.edited = replace(self.edited, project=FALLBACK_PROJECT)
        return True

    def add_tag_option(self, name: str) -> bool:
        return self.tags.add(name)

    def remove_tag_option(self, name: str) -> bool:
        """Remove a tag from the tag list and from the edited suggestion."""
        if not self.tags.remove(name):
            return False
        if self.edited is not None and name in self.edited.tags:
            self.edited = replace(
                self.edited, tags=[t for t in self.edited.tags if t != name]
            )
        return True

    # --- Editing the suggestion ---

    def _require_edited(self) -> CategorizationResult:
        if self.edited is None:
            raise RuntimeError("There is no suggestion to edit.")
        return self.edited

    def set_project(self, project: str) -> CategorizationResult:
        edited = self._require_edited()
        if project not in self.projects:
            raise ValueError(f"Unknown project: {project}")
        self.edited = replace(edited, project=project)
        return self.edited

    def add_tag(self, tag: str) -> CategorizationResult:
        edited = self._require_edited()
        if not tag or tag in edited.tags:
            return edited
        if tag not in self.tags:
            raise ValueError(f"Unknown tag: {tag}")
        self.edited = replace(edited, tags=[*edited.tags, tag])
        return self.edited

    def remove_tag(self, tag: str) -> CategorizationResult:
        edited = self._require_edited()
        self.edited = replace(edited, tags=[t for t in edited.tags if t != tag])
        return self.edited

    def unselected_tags(self) -> list[str]:
        selected = set(self.edited.tags) if self.edited is not None else set()
        return [tag for tag in self.tags if tag not in selected]

    # --- Finishing ---

    def confirm(self) -> CategorizationResult:
        """Accept the edited categorization and get ready for the next file."""
        confirmed = self._require_edited()
        log.info(
            "Confirmed categorization",
            file_name=self.file.name if self.file else None,
            project=confirmed.project,
            tags=confirmed.tags,
        )
        self.clear_file()
        self.last_confirmed = confirmed
        self.is_categorized = True
        return confirmed

    def reject(self) -> None:
        log.info("Rejected categorization", file_name=self.file.name if self.file else None)
        self.clear_file()
