"""Claim text tree built from the ``<claims>`` section of a patent document.

USPTO claims nest arbitrarily: ``claim`` > ``claim-text`` > ``claim-text``
with inline ``claim-ref``, ``b``, ``i`` and similar markup in between. The
tree keeps only text, in document order, so that flattening is a plain walk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union
from xml.etree.ElementTree import Element


@dataclass(frozen=True)
class ClaimText:
    text: str


@dataclass
class ClaimGroup:
    tag: str
    children: list["ClaimNode"] = field(default_factory=list)


ClaimNode = Union[ClaimText, ClaimGroup]


def build_claim_tree(element: Element) -> ClaimGroup:
    """Convert an XML element into a claim tree, dropping attribute data."""
    group = ClaimGroup(tag=element.tag)
    if element.text and element.text.strip():
        group.children.append(ClaimText(element.text))
    for child in element:
        group.children.append(build_claim_tree(child))
        if child.tail and child.tail.strip():
            group.children.append(ClaimText(child.tail))
    return group


def collect_fragments(node: ClaimNode, accumulator: list[str]) -> list[str]:
    if isinstance(node, ClaimText):
        accumulator.append(node.text)
        return accumulator
    for child in node.children:
        collect_fragments(child, accumulator)
    return accumulator


def flatten_claims(node: ClaimNode) -> str:
    """Join every text leaf with single spaces and collapse whitespace runs."""
    return " ".join(" ".join(collect_fragments(node, [])).split())
