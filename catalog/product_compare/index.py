"""
Bag Index - Pair DB records with their catalog attributes.

Catalog attributes are looked up by business identifier (the A2V code).
We build the lookup dictionary once:
- by_identifier: O(1) exact match on the normalized identifier

Records whose identifier lacks the catalog prefix are not compared at all.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional

from .models import DbRecord, WebAttributes, WebBag

DEFAULT_PREFIX = "A2V"


def normalize_identifier(raw: Any) -> str:
    """Trim and upper-case an identifier cell value."""
    if raw is None:
        return ""
    return str(raw).strip().upper()


def is_valid_identifier(raw: Any, prefix: str = DEFAULT_PREFIX) -> bool:
    """True if the identifier starts with the catalog prefix (case-insensitive)."""
    identifier = normalize_identifier(raw)
    prefix = normalize_identifier(prefix)
    return bool(prefix) and identifier.startswith(prefix) and len(identifier) > len(prefix)


@dataclass
class BagIndex:
    """
    Indexed catalog attributes for fast lookups.

    Attributes:
        by_identifier: Dict mapping normalized identifier -> WebAttributes
            (last write wins for dupes)
        record_count: Number of bags indexed, duplicates included
    """
    by_identifier: dict[str, WebAttributes] = field(default_factory=dict)
    record_count: int = 0

    def lookup(self, identifier: Any) -> Optional[WebAttributes]:
        """Look up attributes by identifier."""
        return self.by_identifier.get(normalize_identifier(identifier))

    def __len__(self) -> int:
        return len(self.by_identifier)


def build_bag_index(bags: Mapping[str, WebBag] | Iterable[WebBag]) -> BagIndex:
    """
    Build lookup index from catalog attribute bags.

    Args:
        bags: Mapping of identifier -> bag, or an iterable of bags that
            carry their own identifier

    Returns:
        BagIndex keyed by normalized identifier
    """
    index = BagIndex()

    if isinstance(bags, Mapping):
        items = [(key, WebAttributes.from_bag(bag)) for key, bag in bags.items()]
    else:
        items = []
        for bag in bags:
            attrs = WebAttributes.from_bag(bag)
            items.append((attrs.identifier, attrs))

    for key, attrs in items:
        identifier = normalize_identifier(key)
        if not identifier:
            continue
        index.by_identifier[identifier] = attrs
        index.record_count += 1

    return index


def unique_identifiers(records: Iterable[DbRecord], prefix: str = DEFAULT_PREFIX) -> list[str]:
    """Valid identifiers of the records, deduplicated, first occurrence order."""
    seen: dict[str, None] = {}
    for record in records:
        if is_valid_identifier(record.identifier, prefix):
            seen.setdefault(normalize_identifier(record.identifier), None)
    return list(seen)


def pair_records(
    records: Iterable[DbRecord],
    index: BagIndex,
    prefix: str = DEFAULT_PREFIX,
) -> Iterator[tuple[DbRecord, WebAttributes]]:
    """
    Pair each DB record with its catalog attributes.

    Records without a valid identifier are skipped. Records whose
    identifier was never retrieved get empty attributes, so all their
    fields come out missing.
    """
    for record in records:
        if not is_valid_identifier(record.identifier, prefix):
            continue
        identifier = normalize_identifier(record.identifier)
        attrs = index.lookup(identifier)
        if attrs is None:
            attrs = WebAttributes(identifier=identifier)
        yield record, attrs
