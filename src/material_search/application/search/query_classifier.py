"""
MaterialQueryClassifier - Local analysis of raw-material queries.

Extracts what the backends need to build a good lookup from a chatty,
often mixed Thai/English question:

1. Material codes (RM000123, RC00A008, RDSAM00171, ABC-123)
2. Quoted or capitalised material names ("Hyaluronic Acid")
3. Benefit/property keywords (moisturizing, ความชุ่มชื้น)
4. Query language (thai / english / mixed)
5. Search terms with intent words and Thai particles removed
6. Expanded query variants (Thai keywords -> English equivalents)

Architecture Decision:
    Like the router, the classifier is stateless and does no I/O. It does
    not decide collections; routing stays in CollectionRouter.

Example:
    >>> classifier = MaterialQueryClassifier()
    >>> result = classifier.classify("มี Vitamin C ไหม?")
    >>> result.search_terms
    ['vitamin c']
    >>> result.language
    <QueryLanguage.MIXED: 'mixed'>
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from enum import Enum
from typing import Any


class QueryLanguage(Enum):
    THAI = "thai"
    ENGLISH = "english"
    MIXED = "mixed"


class MaterialQueryType(Enum):
    """
    EXACT_CODE: query contains a material code -> exact lookup
    NAME_SEARCH: quoted or capitalised material name
    PROPERTY_SEARCH: benefit/property driven ("ช่วยความชุ่มชื้น")
    GENERIC: anything else
    """

    EXACT_CODE = "exact_code"
    NAME_SEARCH = "name_search"
    PROPERTY_SEARCH = "property_search"
    GENERIC = "generic"


@dataclass
class ClassifiedQuery:
    """Result of query classification."""

    original_query: str
    query_type: MaterialQueryType
    language: QueryLanguage
    codes: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)
    search_terms: list[str] = field(default_factory=list)
    expanded_queries: list[str] = field(default_factory=list)

    @property
    def has_codes(self) -> bool:
        return bool(self.codes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_query": self.original_query,
            "query_type": self.query_type.value,
            "language": self.language.value,
            "codes": self.codes,
            "names": self.names,
            "properties": self.properties,
            "search_terms": self.search_terms,
            "expanded_queries": self.expanded_queries,
        }


# Material code formats used by suppliers and the internal stock system.
CODE_PATTERNS = [
    re.compile(r"\bRM[-_]?\d{6}\b", re.IGNORECASE),
    re.compile(r"\bRC[A-Z0-9]{6,}\b", re.IGNORECASE),
    re.compile(r"\bRD[A-Z]{2,}\d{3,}\b", re.IGNORECASE),
    re.compile(r"\b[A-Z]{2,4}[-_]?\d{3,6}\b"),
]

NAME_PATTERNS = [
    re.compile(r'"([^"]{3,})"'),
    re.compile(r"'([^']{3,})'"),
    re.compile(r"\b[A-Z][a-z]+\s+(?:[A-Z][a-z]+|Extract|Acid|Oil)\b"),
]

PROPERTY_KEYWORDS = {
    "moisturizing": ["moisturiz", "hydrat", "ความชุ่มชื้น", "ชุ่มชื้น"],
    "anti-aging": ["anti-aging", "anti aging", "anti-wrinkle", "ต้านริ้วรอย", "ลดริ้วรอย", "ริ้วรอย"],
    "whitening": ["whiten", "brighten", "กระจ่างใส", "ผิวขาว"],
    "soothing": ["soothing", "calming", "ลดการระคายเคือง"],
    "firming": ["firming", "ยกกระชับ", "กระชับ"],
    "anti-acne": ["acne", "สิว"],
    "nourishing": ["nourish", "บำรุง"],
}

# Thai -> English expansions for catalog text, which is mostly English.
KEYWORD_EXPANSION = {
    "วัตถุดิบ": ["raw material", "ingredient"],
    "สารสกัด": ["extract"],
    "ความชุ่มชื้น": ["moisturizing", "hydrating"],
    "ริ้วรอย": ["anti-aging", "wrinkle"],
    "กระจ่างใส": ["brightening", "whitening"],
    "สิว": ["acne"],
    "ซัพพลายเออร์": ["supplier"],
    "ราคา": ["price", "cost"],
}

# Words that carry intent, not material content.
ENGLISH_STOPWORDS = {
    "a", "an", "the", "for", "of", "to", "in", "on", "with", "and", "or",
    "is", "are", "do", "does", "we", "you", "i", "me", "have", "has",
    "any", "some", "all", "can", "get", "find", "search", "show", "looking",
    "stock", "available", "inventory", "order", "purchase", "buy",
    "recommend", "suggest", "ingredient", "ingredients", "material",
    "materials", "raw", "what", "which", "that", "helps", "help", "please",
    "fda", "registered", "approved", "catalog", "catalogue", "more",
}

THAI_STOPWORDS = sorted(
    [
        "ในสต็อก", "สต็อก", "ทั้งหมด", "วัตถุดิบ", "ค้นหา", "แนะนำ", "หรือเปล่า",
        "ไหม", "มั้ย", "หน่อย", "บ้าง", "อะไร", "ที่", "ครับ", "ค่ะ", "คะ", "นะ",
        "ช่วย", "หา", "ขอ", "อยาก", "ได้", "มี", "สาร", "สำหรับ", "ของที่มี",
    ],
    key=len,
    reverse=True,
)

# Thai is written without spaces, so a stopword can also be the start or
# end of a content word. These words are never cut at their edges.
THAI_PROTECTED_WORDS = [
    "ปัญหา", "ของ", "ขอบ", "พื้นที่", "สารสกัด", "สารกันเสีย", "สารละลาย",
    "หาง", "มีด", "ได้รับ",
]

_THAI_CHAR = re.compile(r"[\u0E00-\u0E7F]")
_LATIN_CHAR = re.compile(r"[A-Za-z]")
_TOKEN = re.compile(r"[A-Za-z0-9][A-Za-z0-9\-+.]*|[\u0E00-\u0E7F]+")


def detect_language(query: str) -> QueryLanguage:
    """Classify by the share of Thai and Latin characters."""
    if not query:
        return QueryLanguage.ENGLISH
    thai_ratio = len(_THAI_CHAR.findall(query)) / len(query)
    latin_ratio = len(_LATIN_CHAR.findall(query)) / len(query)
    if thai_ratio > 0.3 and latin_ratio > 0.1:
        return QueryLanguage.MIXED
    if thai_ratio > 0.3:
        return QueryLanguage.THAI
    if thai_ratio > 0 and latin_ratio > 0:
        return QueryLanguage.MIXED
    return QueryLanguage.ENGLISH


def normalize_code(code: str) -> str:
    """RM-000123 / rm_000123 -> RM000123."""
    return re.sub(r"[-_\s]", "", code).upper()


def strip_thai_stopwords(run: str) -> str:
    """
    Remove stopwords from the edges of a Thai run.

    Only leading and trailing stopwords are removed; the middle of a run is
    left intact so that "ลดปัญหาสิว" keeps its "หา". A stopword that begins
    (or ends) a protected word such as "ของ" or "พื้นที่" is kept.
    """
    changed = True
    while run and changed:
        changed = False
        for stop in THAI_STOPWORDS:
            if run.startswith(stop) and not any(
                w.startswith(stop) and run.startswith(w) for w in THAI_PROTECTED_WORDS
            ):
                run, changed = run[len(stop):], True
                break
            if run.endswith(stop) and not any(
                w.endswith(stop) and run.endswith(w) for w in THAI_PROTECTED_WORDS
            ):
                run, changed = run[: -len(stop)], True
                break
    return run


def fuzzy_match_score(a: str, b: str) -> float:
    """
    Similarity in [0, 1] between two names.

    Equal strings score 1.0, containment 0.8, otherwise the difflib ratio.
    """
    s1, s2 = a.casefold().strip(), b.casefold().strip()
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.8
    return SequenceMatcher(None, s1, s2).ratio()


class MaterialQueryClassifier:
    """
    Stateless classifier for raw-material queries.

    Usage:
        classifier = MaterialQueryClassifier()
        result = classifier.classify("RM000123 ราคาเท่าไหร่")
        result.codes  # ['RM000123']
    """

    def classify(self, query: str) -> ClassifiedQuery:
        query = (query or "").strip()
        codes = self.extract_codes(query)
        names = self.extract_names(query)
        properties = self.extract_properties(query)

        if codes:
            query_type = MaterialQueryType.EXACT_CODE
        elif names:
            query_type = MaterialQueryType.NAME_SEARCH
        elif properties:
            query_type = MaterialQueryType.PROPERTY_SEARCH
        else:
            query_type = MaterialQueryType.GENERIC

        return ClassifiedQuery(
            original_query=query,
            query_type=query_type,
            language=detect_language(query),
            codes=codes,
            names=names,
            properties=properties,
            search_terms=self.extract_search_terms(query),
            expanded_queries=self.expand_query(query),
        )

    def extract_codes(self, query: str) -> list[str]:
        codes: list[str] = []
        for pattern in CODE_PATTERNS:
            for match in pattern.finditer(query):
                code = normalize_code(match.group())
                if code not in codes:
                    codes.append(code)
        return codes

    def extract_names(self, query: str) -> list[str]:
        names: list[str] = []
        for pattern in NAME_PATTERNS:
            for match in pattern.finditer(query):
                name = (match.group(1) if match.groups() else match.group()).strip()
                if name not in names:
                    names.append(name)
        return names

    def extract_properties(self, query: str) -> list[str]:
        text = query.casefold()
        return [
            prop
            for prop, keywords in PROPERTY_KEYWORDS.items()
            if any(k in text for k in keywords)
        ]

    def extract_search_terms(self, query: str) -> list[str]:
        """
        Content-bearing terms, lower-cased.

        Single-letter tokens are attached to the previous word so that
        "Vitamin C" or "Vitamin B3" stay one term.
        """
        terms: list[str] = []
        previous_was_content = False
        for token in _TOKEN.findall(query):
            lowered = token.casefold().strip(".")
            if _THAI_CHAR.match(lowered):
                cleaned = strip_thai_stopwords(lowered)
                if len(cleaned) > 1 and cleaned not in terms:
                    terms.append(cleaned)
                previous_was_content = False
                continue
            if not lowered or lowered in ENGLISH_STOPWORDS:
                previous_was_content = False
                continue
            if len(lowered) <= 2 and previous_was_content and terms:
                terms[-1] = f"{terms[-1]} {lowered}"
                continue
            if lowered not in terms:
                terms.append(lowered)
            previous_was_content = True
        return terms

    def expand_query(self, query: str) -> list[str]:
        expanded = [query] if query else []
        for thai, variants in KEYWORD_EXPANSION.items():
            if thai in query:
                for eng in variants:
                    candidate = query.replace(thai, f" {eng} ").strip()
                    if candidate not in expanded:
                        expanded.append(candidate)
        return expanded
