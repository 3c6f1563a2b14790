"""Parser for the ticket search box.

A query is a whitespace separated list of sentences. Each sentence is either a
bare word (shorthand for ``title:<word>``) or ``key:value1,value2``. Sentences
are AND'ed together; the values of one ``label:`` sentence are OR'ed, the
values of one ``title:`` sentence must all appear in the title.

Keys are case-sensitive. Empty values are dropped; an empty ``label:`` then
matches no ticket and an empty ``title:`` matches every ticket.

>>> parse_tag_query("label:bug,request printer")
[Tag(key='label', values=['bug', 'request']), Tag(key='title', values=['printer'])]
"""

from __future__ import annotations

from typing import NamedTuple

from ..core.errors import InvalidSearchQuery

TITLE = "title"
LABEL = "label"
KNOWN_KEYS = frozenset({TITLE, LABEL})


class Tag(NamedTuple):
    key: str
    values: list[str]


def _parse_sentence(sentence: str) -> Tag:
    parts = sentence.split(":")
    if len(parts) == 1:
        key, raw_values = TITLE, parts[0]
    elif len(parts) == 2:
        key, raw_values = parts[0], parts[1]
    else:
        raise InvalidSearchQuery(sentence)
    if key not in KNOWN_KEYS:
        raise InvalidSearchQuery(key)
    values = [value.strip() for value in raw_values.split(",") if value.strip()]
    return Tag(key=key, values=values)


def parse_tag_query(q: str | None) -> list[Tag]:
    if not q:
        return []
    return [_parse_sentence(sentence) for sentence in q.split()]


__all__ = ["KNOWN_KEYS", "LABEL", "TITLE", "Tag", "parse_tag_query"]
