"""Removal of subscription sources from the configuration document."""

import logging
from pathlib import Path
from typing import Any, Iterable, List

import yaml

from subcheck_cli.lifecycle._files import write_atomic
from subcheck_cli.lifecycle.exceptions import MalformedSourceListError, SourceListEditError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_LIST_KEY = "sub-urls"


class SourceListEditor:
    """Remove identifiers from the source list of a YAML config document.

    The document is loaded as a plain mapping so keys this editor knows
    nothing about are written back untouched. Only string entries of the
    list are matched (exact, case-sensitive); anything else in the list is
    passed through as-is.

    Example:
        editor = SourceListEditor()
        removed = editor.remove_sources(Path("config.yaml"), ["https://dead.example/sub"])
    """

    def __init__(self, list_key: str = DEFAULT_SOURCE_LIST_KEY) -> None:
        self._list_key = list_key

    @property
    def list_key(self) -> str:
        return self._list_key

    def remove_sources(self, config_path: Path, ids_to_remove: Iterable[str]) -> int:
        """Remove ``ids_to_remove`` from the source list.

        The file is only rewritten when at least one entry was removed.

        Args:
            config_path: Path to the YAML configuration document
            ids_to_remove: Source identifiers to drop

        Returns:
            Number of list entries removed

        Raises:
            MalformedSourceListError: If the list field is not a list
            SourceListEditError: If the document cannot be read, parsed
                or written
        """
        config_path = Path(config_path)
        remove_set = set(ids_to_remove)
        if not remove_set:
            return 0

        document = self._read(config_path)

        if self._list_key not in document:
            logger.debug(f"No '{self._list_key}' field in {config_path}, nothing to remove")
            return 0

        entries = document[self._list_key]
        if not isinstance(entries, list):
            raise MalformedSourceListError(
                f"Malformed source list field '{self._list_key}': "
                f"expected a list, got {type(entries).__name__}",
                str(config_path),
            )

        kept: List[Any] = []
        removed = 0
        for entry in entries:
            if isinstance(entry, str) and entry in remove_set:
                removed += 1
            else:
                kept.append(entry)

        if removed == 0:
            return 0

        document[self._list_key] = kept
        self._write(config_path, document)

        logger.info(
            f"Removed {removed} subscription(s) from {config_path}, {len(kept)} remaining"
        )
        return removed

    def _read(self, config_path: Path) -> dict:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except OSError as e:
            raise SourceListEditError(f"Failed to read configuration: {e}", str(config_path)) from e
        except yaml.YAMLError as e:
            raise SourceListEditError(f"Failed to parse configuration: {e}", str(config_path)) from e

        if document is None:
            return {}
        if not isinstance(document, dict):
            raise SourceListEditError("Configuration document is not a mapping", str(config_path))
        return document

    def _write(self, config_path: Path, document: dict) -> None:
        try:
            content = yaml.safe_dump(
                document,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
            write_atomic(config_path, content)
        except (OSError, yaml.YAMLError) as e:
            raise SourceListEditError(f"Failed to write configuration: {e}", str(config_path)) from e
