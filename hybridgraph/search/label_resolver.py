"""Human-readable node labels and lexical match summaries."""
import re
from typing import Any, Dict, List, Optional, Set

from ..types import Node


LABEL_METADATA_KEYS = ("label", "title", "name", "keyword", "heading", "topic")
LABEL_WORD_LIMIT = 3
LABEL_CHAR_LIMIT = 40
UNKNOWN_LABEL = "Unknown"

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def _metadata_label(metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    if not isinstance(metadata, dict):
        return None

    for key in LABEL_METADATA_KEYS:
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    keywords = metadata.get("keywords")
    if isinstance(keywords, list):
        for keyword in keywords:
            if isinstance(keyword, str) and keyword.strip():
                return keyword.strip()

    return None


def derive_label(node: Optional[Node]) -> str:
    """
    Resolve the display label of a node.

    Priority: metadata label/title/name/keyword/heading/topic, then the first
    entry of metadata keywords, then the first three words of the content
    (cut to 40 characters), then the node id.
    """
    if node is None:
        return UNKNOWN_LABEL

    label = _metadata_label(node.metadata)
    if label:
        return label

    words = (node.content or "").split()
    if words:
        snippet = " ".join(words[:LABEL_WORD_LIMIT])
        if len(snippet) > LABEL_CHAR_LIMIT:
            return snippet[:LABEL_CHAR_LIMIT].strip() + "..."
        return snippet

    return node.id


def tokenize(text: Optional[str]) -> Set[str]:
    """Lowercased alphanumeric tokens of text as a set."""
    return set(_TOKEN_PATTERN.findall((text or "").lower()))


def _ordered_tokens(text: str) -> List[str]:
    return _TOKEN_PATTERN.findall(text.lower())


def split_sentences(content: str) -> List[str]:
    sentences = (sentence.strip() for sentence in _SENTENCE_BOUNDARY.split(content))
    return [sentence for sentence in sentences if sentence]


def extract_matching_sentence(content: Optional[str], query_tokens: Set[str]) -> Optional[str]:
    """First sentence sharing a token with the query, else the first sentence."""
    if not content or not query_tokens:
        return None

    sentences = split_sentences(content)
    for sentence in sentences:
        if tokenize(sentence) & query_tokens:
            return sentence

    return sentences[0] if sentences else None


def extract_matching_words(content: Optional[str], query_tokens: Set[str]) -> List[str]:
    """Content tokens that appear in the query, deduplicated in first-occurrence order."""
    if not content or not query_tokens:
        return []

    matches = []
    for token in _ordered_tokens(content):
        if token in query_tokens and token not in matches:
            matches.append(token)
    return matches
