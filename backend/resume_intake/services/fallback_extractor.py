"""
Fallback Extractor — pattern-matching substitute for the LLM extraction.

Used only when the structured extraction service fails. It never raises:
every field may come back None / []. Sections that are found but whose
sub-fields cannot be parsed are filled with NOT_SPECIFIED, so "section
found" stays distinguishable from "section missing".

Works on both line-structured text and the single-line text produced by
normalize(); section headings are located by keyword either way.
"""

from __future__ import annotations

import logging
import re

from resume_intake.models.resume_models import CandidateFields, EducationEntry, ExperienceEntry

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"

MAX_SKILLS = 15
MAX_ENTRIES = 5
MAX_SUMMARY_LENGTH = 300
NAME_SCAN_LINES = 5

SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "summary": ("professional summary", "summary", "objective", "profile", "about me", "about"),
    "skills": ("technical skills", "core competencies", "skills", "technologies"),
    "experience": ("work experience", "professional experience", "work history", "employment", "experience"),
    "education": ("academic background", "education", "qualifications"),
}

SKILL_VOCABULARY = (
    "python", "java", "javascript", "typescript", "c++", "c#", "ruby", "php", "swift", "kotlin",
    "rust", "scala", "sql", "html", "css", "react", "angular", "vue", "node.js", "django", "flask",
    "fastapi", "spring", "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "git", "linux",
    "mongodb", "postgresql", "mysql", "redis", "graphql", "machine learning", "deep learning",
    "data analysis", "pandas", "numpy", "tensorflow", "pytorch", "excel", "tableau", "power bi",
    "agile", "scrum", "jira", "project management", "communication", "leadership",
)

_DOCUMENT_LABELS = ("resume", "résumé", "curriculum vitae", "cv")
_LABEL_PREFIX_RE = re.compile(r"^(?:" + "|".join(_DOCUMENT_LABELS) + r")\b[\s:\-|]*", re.IGNORECASE)

_ROLE_WORDS = (
    "engineer", "developer", "manager", "analyst", "designer", "consultant", "intern", "architect",
    "scientist", "specialist", "director", "administrator", "coordinator", "lead", "officer",
    "associate", "assistant", "programmer",
)

_DEGREE_PATTERN = (
    r"(?:Bachelor(?:'s)?|Master(?:'s)?|Ph\.?\s?D\.?|Doctorate|Associate(?:'s)? Degree|Diploma|MBA"
    r"|B\.?\s?Sc\.?|M\.?\s?Sc\.?|B\.?\s?Tech|M\.?\s?Tech|B\.?\s?E\.?|B\.S\.|M\.S\.|B\.A\.|M\.A\.|BSc|MSc|BS|MS|BA|MA)"
)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(?<![\d+])(?:\+?\d{1,3}[\s.\-]?)?\(?\d{3}\)?[\s.\-]?\d{3}[\s.\-]?\d{4}(?!\d)")
_LOCATION_STATE_RE = re.compile(r"\b([A-Z][a-zA-Z]+(?: [A-Z][a-zA-Z]+){0,2}), ([A-Z]{2})\b")
_LOCATION_PLACE_RE = re.compile(r"\b([A-Z][a-z]+(?: [A-Z][a-z]+){0,2}), ([A-Z][a-z]+(?: [A-Z][a-z]+){0,2})\b")
_NAME_RE = re.compile(r"^([A-Z][a-zA-Z'\-]+(?:\s+[A-Z][a-zA-Z'\-]*\.?){1,3})")
_ROLE_RE = re.compile(
    r"\b(?:(?:Senior|Junior|Lead|Principal|Staff|Chief|Head)\s+)?"
    r"(?:(?!Present\b|Current\b|Now\b)[A-Z][a-zA-Z]+\s+){0,2}(?:"
    + "|".join(w.capitalize() for w in _ROLE_WORDS)
    + r")\b"
)
_DEGREE_RE = re.compile(r"\b" + _DEGREE_PATTERN + r"(?![A-Za-z])")
_INSTITUTION_RE = re.compile(
    r"\b((?:[A-Z][a-zA-Z&\-]+\s+){0,4}(?:University|College|Institute|School|Academy)"
    r"(?:\s+of(?:\s+[A-Z][a-zA-Z&\-]+){1,4})?)"
)
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_DURATION_RE = re.compile(
    r"\b((?:[A-Z][a-z]{2,8}\.?\s+)?(?:19|20)\d{2}\s*(?:-|to)\s*"
    r"(?:(?:[A-Z][a-z]{2,8}\.?\s+)?(?:19|20)\d{2}|Present|Current|Now))",
    re.IGNORECASE,
)
_CAPITALIZED_START_RE = re.compile(r"[A-Z0-9(]")
_HEADING_RE = re.compile(
    r"(?:^|(?<=\n)|(?<=\s))("
    + "|".join(
        re.escape(k) for k in sorted({k for ks in SECTION_KEYWORDS.values() for k in ks}, key=len, reverse=True)
    )
    + r")\b\s*(:)?",
    re.IGNORECASE,
)


# ── Public API ───────────────────────────────────────────────────────────────


def fallback_extract(cleaned_text: str) -> CandidateFields:
    """Derive a minimal candidate record from text by pattern matching. Never raises."""
    text = cleaned_text or ""
    chunks = split_sections(text)
    preamble = chunks[0][1] if chunks and chunks[0][0] is None else ""

    full_name = extract_name(preamble or text)
    fields = CandidateFields(
        full_name=full_name,
        email=_first_match(EMAIL_RE, text),
        phone=_first_match(PHONE_RE, text),
        location=extract_location(preamble, text, full_name),
        summary=extract_summary(chunks),
        skills=extract_skills(chunks, text),
        experience=extract_experience(chunks),
        education=extract_education(chunks),
    )
    logger.info(
        f"Fallback extraction: name={fields.full_name!r} email={fields.email is not None} "
        f"skills={len(fields.skills)} experience={len(fields.experience)} education={len(fields.education)}"
    )
    return fields


# ── Sections ─────────────────────────────────────────────────────────────────


def _section_for(keyword: str) -> str:
    keyword = keyword.lower()
    for section, keywords in SECTION_KEYWORDS.items():
        if keyword in keywords:
            return section
    return ""


def _looks_like_heading(text: str, match: re.Match) -> bool:
    """
    A keyword is a heading at a line start, before a colon, or in capitals.
    Flattened text has no line starts, so a title-case keyword directly
    followed by a capitalized word counts as well.
    """
    start = match.start(1)
    at_line_start = start == 0 or text[start - 1] == "\n"
    has_colon = match.group(2) is not None
    is_caps = match.group(1).isupper()
    is_title = match.group(1)[0].isupper() and _CAPITALIZED_START_RE.match(text, match.end()) is not None
    return at_line_start or has_colon or is_caps or is_title


def split_sections(text: str) -> list[tuple[str | None, str]]:
    """
    Split text into (section, body) chunks. The first chunk has section None
    and holds everything before the first heading.
    """
    headings = [m for m in _HEADING_RE.finditer(text) if _looks_like_heading(text, m)]

    chunks: list[tuple[str | None, str]] = [(None, text[:headings[0].start(1)] if headings else text)]
    for i, match in enumerate(headings):
        end = headings[i + 1].start(1) if i + 1 < len(headings) else len(text)
        chunks.append((_section_for(match.group(1)), text[match.end():end].strip()))
    return chunks


def _section_bodies(chunks: list[tuple[str | None, str]], section: str) -> list[str]:
    return [body for name, body in chunks if name == section and body]


def _lines(body: str) -> list[str]:
    if "\n" in body:
        return [line.strip() for line in body.splitlines() if line.strip()]
    return [part.strip() for part in re.split(r"\s\|\s|;\s", body) if part.strip()]


def _first_match(pattern: re.Pattern, text: str) -> str | None:
    match = pattern.search(text)
    return match.group(0).strip() if match else None


# ── Fields ───────────────────────────────────────────────────────────────────


def extract_name(text: str) -> str | None:
    """First capitalized 2-4 word run at the start of one of the first lines."""
    lines = [line.strip() for line in text.splitlines() if line.strip()][:NAME_SCAN_LINES]
    for line in lines:
        line = _LABEL_PREFIX_RE.sub("", line)

        match = _NAME_RE.match(line)
        if not match:
            continue

        words: list[str] = []
        for word in match.group(1).split():
            if word.lower().rstrip(".") in _ROLE_WORDS or word.lower() in ("senior", "junior"):
                break
            words.append(word)
        name = " ".join(words)

        if len(words) < 2 or not 3 <= len(name) <= 50:
            continue
        if any(label in name.lower().split() for label in _DOCUMENT_LABELS):
            continue
        if _section_for(words[0]) or _section_for(name):
            continue
        return name
    return None


def extract_location(preamble: str, text: str, full_name: str | None) -> str | None:
    for pattern in (_LOCATION_STATE_RE, _LOCATION_PLACE_RE):
        for source in (preamble, text):
            for match in pattern.finditer(source):
                place = match.group(0)
                if full_name and place.startswith(full_name):
                    place = place[len(full_name):].strip()
                left, _, right = place.partition(", ")
                if not left or left.lower() in SKILL_VOCABULARY or right.lower() in SKILL_VOCABULARY:
                    continue
                if _section_for(left.split()[-1]):
                    continue
                return place
    return None


def extract_summary(chunks: list[tuple[str | None, str]]) -> str | None:
    bodies = _section_bodies(chunks, "summary")
    if not bodies:
        return None
    summary = " ".join(bodies[0].split())
    if len(summary) > MAX_SUMMARY_LENGTH:
        cut = summary.rfind(" ", 0, MAX_SUMMARY_LENGTH)
        summary = summary[:cut if cut > 0 else MAX_SUMMARY_LENGTH].rstrip(" ,;")
    return summary or None


def extract_skills(chunks: list[tuple[str | None, str]], text: str) -> list[str]:
    """Vocabulary matches, preferring a skills section; order of first appearance."""
    sources = _section_bodies(chunks, "skills") or [text]
    found: list[tuple[int, str]] = []
    seen: set[str] = set()
    for offset, source in enumerate(sources):
        for skill in SKILL_VOCABULARY:
            if skill in seen:
                continue
            match = re.search(r"(?<![\w+#.])" + re.escape(skill) + r"(?![\w+#])", source, re.IGNORECASE)
            if match:
                seen.add(skill)
                found.append((offset * len(text) + match.start(), skill))
    found.sort()
    return [skill.title() for _, skill in found[:MAX_SKILLS]]


def extract_experience(chunks: list[tuple[str | None, str]]) -> list[ExperienceEntry]:
    entries: list[ExperienceEntry] = []
    for body in _section_bodies(chunks, "experience"):
        for line in _lines(body):
            matches = list(_ROLE_RE.finditer(line))
            for i, match in enumerate(matches):
                tail = line[match.end():matches[i + 1].start() if i + 1 < len(matches) else len(line)]
                duration = _DURATION_RE.search(tail)
                description = tail.strip(" ,-|:")
                entries.append(ExperienceEntry(
                    title=match.group(0).strip(),
                    company=NOT_SPECIFIED,
                    duration=duration.group(1) if duration else NOT_SPECIFIED,
                    description=description[:200] if description else NOT_SPECIFIED,
                ))
                if len(entries) >= MAX_ENTRIES:
                    return entries
    return entries


def extract_education(chunks: list[tuple[str | None, str]]) -> list[EducationEntry]:
    entries: list[EducationEntry] = []
    for body in _section_bodies(chunks, "education"):
        for line in _lines(body):
            matches = list(_DEGREE_RE.finditer(line))
            for i, match in enumerate(matches):
                segment = line[match.start():matches[i + 1].start() if i + 1 < len(matches) else len(line)]
                degree = re.split(r",|\s(?:from|at)\s|\s-\s|\(|\b(?:19|20)\d{2}\b", segment, maxsplit=1)[0]
                institution = _INSTITUTION_RE.search(segment)
                years = _YEAR_RE.findall(segment)
                entries.append(EducationEntry(
                    degree=degree.strip()[:120] or NOT_SPECIFIED,
                    institution=institution.group(1).strip() if institution else NOT_SPECIFIED,
                    year=years[-1] if years else NOT_SPECIFIED,
                ))
                if len(entries) >= MAX_ENTRIES:
                    return entries
    return entries
