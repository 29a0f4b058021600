"""Rule corpus extraction and indexing."""

from .extract import TAG_RE, RuleDocument, extract_tag, parse_rule_document, read_rule_document
from .scanner import CorpusIndex, merge_document, scan_corpus

__all__ = [
    "TAG_RE",
    "CorpusIndex",
    "RuleDocument",
    "extract_tag",
    "merge_document",
    "parse_rule_document",
    "read_rule_document",
    "scan_corpus",
]
