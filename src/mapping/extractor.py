"""Candidate extraction from lookup service responses.

Two response shapes are accepted:

- exact-name search (``/projects/?search=<name>&exact=1``): a mapping of
  project name to a list of package records. Only the first non-null project
  entry is considered.
- project by identifier (``/project/<name>``): a bare list of package records.

Anything else (empty body, ``{}``, invalid JSON, scalars) yields no
candidates. Errors are never raised from here.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional

from mapping.models import LookupCandidate

logger = logging.getLogger(__name__)

# Package-record fields that may carry the installable name, in preference order.
NAME_FIELDS = ("binname", "srcname", "visiblename", "name")


def _decode(body: Optional[str]) -> Any:
    if not body or not body.strip():
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError, ValueError):
        logger.debug("Lookup response is not valid JSON; treating as no result.")
        return None


def _first_project(data: Any) -> Optional[List[Any]]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for packages in data.values():
            if packages is not None:
                return packages if isinstance(packages, list) else None
    return None


def _record_name(record: dict) -> Optional[str]:
    for field_name in NAME_FIELDS:
        value = record.get(field_name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_candidates(body: Optional[str]) -> List[LookupCandidate]:
    """Return candidates from a response body, in response order."""
    packages = _first_project(_decode(body))
    if not packages:
        return []
    candidates = []
    for record in packages:
        if not isinstance(record, dict):
            continue
        repo = record.get("repo")
        name = _record_name(record)
        if not isinstance(repo, str) or not repo or name is None:
            continue
        candidates.append(LookupCandidate(repository=repo, name=name))
    return candidates


def select_candidate(
    candidates: Iterable[LookupCandidate], primary: str, community: str
) -> Optional[str]:
    """Pick the first primary-repository name, else the first community one."""
    fallback = None
    for candidate in candidates:
        if candidate.repository == primary:
            return candidate.name
        if fallback is None and candidate.repository == community:
            fallback = candidate.name
    return fallback


def extract_target_name(body: Optional[str], primary: str, community: str) -> Optional[str]:
    """Parse body and apply the precedence policy in one step."""
    return select_candidate(parse_candidates(body), primary, community)


def is_empty_project_set(body: Optional[str]) -> bool:
    """True when the service answered with an empty project mapping ("{}")."""
    data = _decode(body)
    return isinstance(data, dict) and not data
