from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union
from xml.etree import ElementTree as ET
import re

from Assessor.app.logging_utils import get_logger, safe_json
from Assessor.app.models import ReferenceArticle


WHITESPACE_PATTERN = re.compile(r"\s+")
DEFAULT_ARTICLE_ID = "Unbekannt"


def load_reference_articles(path: Path) -> Tuple[ReferenceArticle, ...]:
    logger = get_logger("legal.articles")
    try:
        xml_data = path.read_bytes()
    except OSError as exc:
        logger.warning(
            "reference_articles_unavailable %s",
            safe_json({"path": str(path), "error": str(exc)}),
        )
        return ()
    try:
        articles = parse_reference_articles(xml_data)
    except (ET.ParseError, ValueError) as exc:
        logger.warning(
            "reference_articles_malformed %s",
            safe_json({"path": str(path), "error": str(exc)}),
        )
        return ()
    logger.info(
        "reference_articles_loaded %s",
        safe_json({"path": str(path), "count": len(articles)}),
    )
    return tuple(articles)


def parse_reference_articles(xml_data: Union[bytes, str]) -> List[ReferenceArticle]:
    """Parse Fedlex-style article elements.

    Bytes are decoded according to the XML declaration, so Latin-1 exports
    load as well as UTF-8 ones.
    """
    root = ET.fromstring(xml_data)
    articles = []
    for element in root.iter():
        if _local(element.tag) != "article":
            continue
        articles.append(_parse_article(element))
    return articles


def _parse_article(element: ET.Element) -> ReferenceArticle:
    number = _first_child(element, {"number", "num"})
    heading = _first_child(element, {"heading"})
    article_id = _normalize(_text_of(number)) if number is not None else ""
    heading_text = _normalize(_text_of(heading)) if heading is not None else ""
    paragraphs = [
        _normalize(_text_of(node))
        for node in _descendants(element, "paragraph")
    ]
    paragraphs = [text for text in paragraphs if text]
    if paragraphs:
        body = " ".join(paragraphs)
    else:
        body = _normalize(_text_of(element))
    return ReferenceArticle(
        id=article_id or DEFAULT_ARTICLE_ID,
        heading=heading_text or None,
        text=body,
    )


def _first_child(element: ET.Element, names: set) -> Optional[ET.Element]:
    for child in element:
        if _local(child.tag) in names:
            return child
    return None


def _descendants(element: ET.Element, name: str) -> Iterable[ET.Element]:
    for node in element.iter():
        if node is not element and _local(node.tag) == name:
            yield node


def _text_of(element: ET.Element) -> str:
    return " ".join(element.itertext())


def _normalize(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def _local(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.split("}")[-1] if "}" in tag else tag
