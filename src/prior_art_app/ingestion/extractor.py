"""Patent record extraction from USPTO bulk XML files."""

from __future__ import annotations

import re
from html.entities import name2codepoint
from typing import Iterator
from xml.etree import ElementTree
from xml.etree.ElementTree import Element

from pydantic import ValidationError

from prior_art_app.config.logging import get_logger
from prior_art_app.ingestion.claims import build_claim_tree, flatten_claims
from prior_art_app.ingestion.schemas import ExtractionResult, PatentRecord

LOGGER = get_logger(__name__)

PATENT_ROOTS = {"us-patent-grant", "us-patent-application"}
# Bulk files are many XML documents glued together, each with its own declaration.
DOCUMENT_BOUNDARY = re.compile(rb"(?=<\?xml[\s?])")

ID_PATHS = (
    ".//publication-reference/document-id/doc-number",
    ".//application-reference/document-id/doc-number",
)
FILING_DATE_PATH = ".//application-reference/document-id/date"
# The grant DTDs declare the HTML named entities; expat never loads them.
NAMED_ENTITIES = {name: chr(codepoint) for name, codepoint in name2codepoint.items()}


class RecordParseError(ValueError):
    """A single patent document could not be turned into a record."""


def split_documents(content: bytes) -> Iterator[bytes]:
    for part in DOCUMENT_BOUNDARY.split(content):
        if part.strip():
            yield part


def _entity_aware_parser() -> ElementTree.XMLParser:
    parser = ElementTree.XMLParser()
    parser.entity.update(NAMED_ENTITIES)
    return parser


def _normalize(text: str) -> str:
    return " ".join(text.split())


def _element_text(element: Element | None) -> str:
    if element is None:
        return ""
    return _normalize("".join(element.itertext()))


def _first_text(root: Element, paths: tuple[str, ...]) -> str:
    for path in paths:
        value = _element_text(root.find(path))
        if value:
            return value
    return ""


def parse_patent_element(root: Element) -> PatentRecord:
    patent_id = _first_text(root, ID_PATHS)
    if not patent_id:
        raise RecordParseError("document has no publication or application number")

    claims = root.find("claims")
    try:
        return PatentRecord(
            id=patent_id,
            title=_element_text(root.find(".//invention-title")),
            abstract=_element_text(root.find("abstract")),
            claims=flatten_claims(build_claim_tree(claims)) if claims is not None else "",
            filing_date=_element_text(root.find(FILING_DATE_PATH)),
        )
    except ValidationError as exc:
        raise RecordParseError(str(exc)) from exc


def extract_records(content: bytes | str, *, source: str = "<memory>") -> ExtractionResult:
    """Parse every patent document in ``content``.

    Documents that are not well-formed or lack an identifier are skipped and
    counted; other roots (sequence listings, DTD fragments) are ignored.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    result = ExtractionResult()
    for index, document in enumerate(split_documents(content)):
        try:
            root = ElementTree.fromstring(document, parser=_entity_aware_parser())
        except ElementTree.ParseError as exc:
            result.skipped += 1
            LOGGER.warning(
                "Skipping malformed XML document",
                extra={"source": source, "document": index, "error": str(exc)},
            )
            continue

        if root.tag not in PATENT_ROOTS:
            LOGGER.debug("Ignoring non-patent document", extra={"source": source, "tag": root.tag})
            continue

        try:
            result.records.append(parse_patent_element(root))
        except RecordParseError as exc:
            result.skipped += 1
            LOGGER.warning(
                "Skipping unparseable patent record",
                extra={"source": source, "document": index, "error": str(exc)},
            )

    return result
