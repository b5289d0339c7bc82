import re
from typing import Iterable, List

_SLUG_SEPARATORS = re.compile(r"[\s\W_-]+")


def slugify(title: str) -> str:
    """
    Lowercase and trim ``title``, collapse every run of whitespace,
    punctuation or dashes into one dash, and strip dashes at both ends.

    >>> slugify("  Hello, World -- Again! ")
    'hello-world-again'
    """
    slug = _SLUG_SEPARATORS.sub("-", title.lower().strip())
    return slug.strip("-")


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Trimmed, lowercased, de-duplicated tags in first-seen order."""
    seen = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def split_csv(value: str) -> List[str]:
    return [item for item in (part.strip() for part in value.split(",")) if item]


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return (
        value.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )
