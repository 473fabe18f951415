"""HTML to plain-text extraction for website and .html sources.

Strips non-content elements (scripts, landmarks, ad/menu/cookie containers)
before any text is read, turns block-level boundaries into line breaks so
paragraph and table-row structure survives, and prepends meta descriptions
and image alt text as extra signal.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, NavigableString, Tag

from vault_rag.documents.schemas import ExtractedPage, PageMetadata

logger = logging.getLogger(__name__)

MIN_CONTENT_CHARS = 50

_REMOVED_TAGS = ["script", "style", "noscript", "svg", "nav", "header", "footer", "aside"]

# Never removed by class/id matching, even if named e.g. "main-nav-layout"
_PROTECTED_TAGS = {"html", "body", "main", "article"}

_BOILERPLATE_NAME_RE = re.compile(
    r"(?:^|[\s_-])(?:"
    r"nav|navbar|navigation|menu|sidebar"
    r"|ad|ads|advert|advertisement"
    r"|cookie|cookies|popup|banner|promo"
    r")(?:$|[\s_-])",
    re.IGNORECASE,
)

# Separators inserted after block elements, before tags are flattened
_BLOCK_SEPARATORS: list[tuple[list[str], str]] = [
    (["p", "h1", "h2", "h3", "h4", "h5", "h6"], "\n\n"),
    (["br", "div", "li", "tr"], "\n"),
    (["td", "th"], " | "),
]

_HORIZONTAL_WS_RE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE_RE = re.compile(r" ?\n ?")
_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")


def extract_html(html: str) -> ExtractedPage:
    """Extract clean prose and head metadata from raw HTML.

    Never raises; unparseable input yields an empty page, which callers
    treat as insufficient content.
    """
    if not html or not html.strip():
        return ExtractedPage(text="")

    try:
        soup = BeautifulSoup(html, "html.parser")
        metadata = _extract_metadata(soup)
        meta_texts = _meta_descriptions(soup)

        root = soup.body or soup
        _remove_boilerplate(root)
        alt_texts = [
            img["alt"].strip()
            for img in root.find_all("img", alt=True)
            if img["alt"].strip()
        ]
        _insert_block_separators(root)

        text = _normalize_whitespace(root.get_text())
    except Exception:
        logger.exception("HTML extraction failed; returning empty text")
        return ExtractedPage(text="")

    additional = meta_texts + alt_texts
    if additional:
        text = ("\n".join(additional) + "\n\n" + text).strip()

    return ExtractedPage(text=text, metadata=metadata)


def extract_metadata(html: str) -> PageMetadata:
    """Extract only the head metadata (title, description, author, date)."""
    try:
        return _extract_metadata(BeautifulSoup(html, "html.parser"))
    except Exception:
        logger.exception("HTML metadata extraction failed")
        return PageMetadata()


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _remove_boilerplate(root: Tag) -> None:
    for tag in root.find_all(_REMOVED_TAGS):
        if not tag.decomposed:
            tag.decompose()

    flagged = [
        tag for tag in root.find_all(True)
        if tag.name not in _PROTECTED_TAGS and _looks_like_boilerplate(tag)
    ]
    for tag in flagged:
        if not tag.decomposed:
            tag.decompose()


def _looks_like_boilerplate(tag: Tag) -> bool:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    names = " ".join([*classes, tag.get("id") or ""])
    return bool(names.strip()) and bool(_BOILERPLATE_NAME_RE.search(names))


def _insert_block_separators(root: Tag) -> None:
    for tag_names, separator in _BLOCK_SEPARATORS:
        for tag in root.find_all(tag_names):
            if tag.parent is not None:
                tag.insert_after(NavigableString(separator))


def _normalize_whitespace(text: str) -> str:
    text = _HORIZONTAL_WS_RE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE_RE.sub("\n", text)
    text = _EXCESS_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> str | None:
    tag = soup.find("meta", attrs={attr: re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _meta_descriptions(soup: BeautifulSoup) -> list[str]:
    texts: list[str] = []
    description = _meta_content(soup, "name", "description")
    if description:
        texts.append(description)
    og_description = _meta_content(soup, "property", "og:description")
    if og_description and og_description != description:
        texts.append(og_description)
    return texts


def _extract_metadata(soup: BeautifulSoup) -> PageMetadata:
    title = None
    if soup.title and soup.title.string:
        title = soup.title.string.strip() or None

    description = (
        _meta_content(soup, "name", "description")
        or _meta_content(soup, "property", "og:description")
    )
    author = (
        _meta_content(soup, "name", "author")
        or _meta_content(soup, "property", "article:author")
    )
    published = (
        _meta_content(soup, "property", "article:published_time")
        or _meta_content(soup, "name", "date")
    )
    if published is None:
        time_tag = soup.find("time", attrs={"datetime": True})
        if time_tag is not None:
            published = time_tag["datetime"].strip() or None

    return PageMetadata(
        title=title,
        description=description,
        author=author,
        published_date=published,
    )
