"""
Entity file loader.

Reads a YAML or JSON document listing entity annotations:

    entities:
      - name: Post
        rest_api: {table: post, db: sqlite}
        require_role: {read: user, update: user, delete: user}
        fields:
          - {name: id, type: integer}
          - {name: title, type: text}

Environment variable:
    RESTGEN_ENTITIES_FILE - path used when no explicit path is given.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml

from restgen.core.entity.extractor import extract_entity
from restgen.core.entity.models import EntityDescriptor
from restgen.core.errors import MalformedAnnotation

_log = logging.getLogger("restgen.config")


def _resolve_path(path: Optional[Path]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.getenv("RESTGEN_ENTITIES_FILE", "").strip()
    if env_path:
        return Path(env_path)
    return None


def parse_entities(data: Any, source: str = "<memory>") -> List[EntityDescriptor]:
    if isinstance(data, dict):
        data = data.get("entities")
    if not isinstance(data, list):
        raise MalformedAnnotation(source, "expected an 'entities' list")
    return [extract_entity(raw) for raw in data]


def load_entities(path: Optional[Path] = None) -> List[EntityDescriptor]:
    """
    Load and compile every entity in the file.

    A missing path yields no entities. A malformed entity aborts loading.
    """
    resolved = _resolve_path(path)
    if resolved is None:
        return []

    raw_text = resolved.read_text(encoding="utf-8")
    if resolved.suffix.lower() == ".json":
        data = json.loads(raw_text)
    else:
        data = yaml.safe_load(raw_text)

    entities = parse_entities(data, source=str(resolved))
    _log.info("Loaded %d entities from %s", len(entities), resolved)
    return entities
