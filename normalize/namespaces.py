from typing import Any, Iterable, List


def namespace_name(raw: Any) -> str:
    """Accept either a plain name or a Namespace object."""
    if isinstance(raw, dict):
        metadata = raw.get('metadata')
        return (metadata.get('name') if isinstance(metadata, dict) else None) or ''
    return str(raw) if raw is not None else ''


def filter_namespaces(namespaces: Iterable[Any], ignore: Iterable[str]) -> List[str]:
    """
    Return the analyzable namespaces: input order preserved, duplicates
    dropped, members of `ignore` removed.

    Ignoring a namespace that is not present is a no-op.
    """
    ignored = set(ignore or [])
    seen = set()
    result: List[str] = []
    for raw in namespaces or []:
        ns = namespace_name(raw)
        if not ns or ns in seen or ns in ignored:
            continue
        seen.add(ns)
        result.append(ns)
    return result
