"""
SOAP Parser - Split a model response into SOAP sections

Each section runs from its header to the next recognised header, or to the
end of the text. Two header forms are recognised:

    - Line headers: the section name alone on its line, optionally wrapped
      in markdown emphasis, with or without a colon
    - Inline headers: "NAME:" opening a line or following sentence
      punctuation, e.g. "SUBJECTIVE: cough. OBJECTIVE: afebrile."

A line header always wins over an inline header for the same section, so
"diet plan: low sodium" in the history never displaces a real PLAN line.
Only the first occurrence of each header counts. A missing header leaves
its field empty; parsing never raises.

Author: Shubham Singh
Date: December 2025
"""

import re
from typing import Dict, List, Tuple

from loguru import logger

from clinical_document_evaluation.core.enums import SOAPSection
from clinical_document_evaluation.core.models import SOAPDocument


_SECTION_NAMES = "|".join(section.value for section in SOAPSection)

_LINE_HEADER = re.compile(
    rf"^[ \t]*[#*_>]*[ \t]*(?P<name>{_SECTION_NAMES})[ \t]*[*_]*[ \t]*:?[ \t]*[*_]*[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

_INLINE_HEADER = re.compile(
    rf"(?:^[ \t]*[#*_>]*[ \t]*|(?<=[.!?;])[ \t]+[*_]*)"
    rf"(?P<name>{_SECTION_NAMES})[ \t]*[*_]*[ \t]*:[*_]*",
    re.IGNORECASE | re.MULTILINE,
)


def find_section_headers(content: str) -> List[Tuple[SOAPSection, int, int]]:
    """
    Locate the first header of each SOAP section.

    Line headers are collected first; inline headers only fill in sections
    that have no line header.

    Returns:
        (section, header start, header end) triples ordered by position
    """
    first_seen: Dict[SOAPSection, Tuple[int, int]] = {}

    for pattern in (_LINE_HEADER, _INLINE_HEADER):
        found: Dict[SOAPSection, Tuple[int, int]] = {}
        for match in pattern.finditer(content):
            section = SOAPSection(match.group("name").lower())
            if section not in first_seen and section not in found:
                found[section] = (match.start(), match.end())
        first_seen.update(found)

    return sorted(
        ((section, start, end) for section, (start, end) in first_seen.items()),
        key=lambda header: header[1],
    )


def parse_soap_document(content: str) -> SOAPDocument:
    """
    Parse a raw model response into a SOAPDocument.

    Args:
        content: Raw response text

    Returns:
        SOAPDocument with one field per section and the original text
    """
    content = content or ""
    headers = find_section_headers(content)
    sections: Dict[SOAPSection, str] = {section: "" for section in SOAPSection}

    for index, (section, _, body_start) in enumerate(headers):
        body_end = headers[index + 1][1] if index + 1 < len(headers) else len(content)
        sections[section] = content[body_start:body_end].strip()

    missing = [section.header for section in SOAPSection if not sections[section]]
    if missing:
        logger.warning(f"SOAP response missing or empty sections: {', '.join(missing)}")

    return SOAPDocument(
        subjective=sections[SOAPSection.SUBJECTIVE],
        objective=sections[SOAPSection.OBJECTIVE],
        assessment=sections[SOAPSection.ASSESSMENT],
        plan=sections[SOAPSection.PLAN],
        full_document=content,
    )
