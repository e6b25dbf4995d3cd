"""Client for the external CV parsing service and payload conversion."""

import logging
from typing import Any, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from talent_engine.config import ParserConfig
from talent_engine.cv_import.merge import ParsedCV, ParsedSkill
from talent_engine.errors import CollaboratorError
from talent_engine.profile.models import (
    CertificationRecord,
    EducationRecord,
    ExperienceRecord,
    LanguageRecord,
)

logger = logging.getLogger("talent_engine.cv_import.parser")

SUPPORTED_SUFFIXES = (".pdf", ".docx", ".txt", ".md")


class DocumentParser(Protocol):
    def parse(self, document: bytes, filename: str) -> ParsedCV:
        ...


def create_session(max_retries: int = 2, backoff_factor: float = 1.0) -> requests.Session:
    """Create a requests session with retry logic.

    Retries belong to this client; the engine itself never retries a parse.
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["POST"],
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({"Accept": "application/json"})
    return session


class HttpCvParser:
    """Posts a document to the parsing endpoint and converts the JSON reply."""

    def __init__(self, config: ParserConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or create_session(max_retries=config.max_retries)

    def parse(self, document: bytes, filename: str) -> ParsedCV:
        if not self.config.endpoint_url:
            raise CollaboratorError("parse_cv", "no parser endpoint configured")
        if not filename.lower().endswith(SUPPORTED_SUFFIXES):
            raise CollaboratorError(
                "parse_cv", f"unsupported document type: {filename} (supported: {', '.join(SUPPORTED_SUFFIXES)})"
            )

        headers = {}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        try:
            response = self.session.post(
                self.config.endpoint_url,
                files={"file": (filename, document)},
                headers=headers,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("CV parser request failed for %s: %s", filename, e)
            raise CollaboratorError("parse_cv", str(e)) from e

        parsed = parse_cv_payload(payload)
        if parsed.confidence == "failed":
            raise CollaboratorError("parse_cv", "parser could not extract reliable data from the document")
        if parsed.confidence == "low":
            logger.warning("CV parser returned low-confidence data for %s", filename)

        logger.info(
            "Parsed %s: %d experiences, %d education, %d skills",
            filename, len(parsed.experiences), len(parsed.education), len(parsed.skills),
        )
        return parsed


def parse_cv_payload(payload: Any) -> ParsedCV:
    """Convert the parser's JSON into a ParsedCV. Items get sort_order by position."""
    if not isinstance(payload, dict):
        raise CollaboratorError("parse_cv", f"unexpected payload type {type(payload).__name__}")

    experiences = []
    for raw in _objects(payload.get("experiences")):
        company, role = _text(raw.get("company")), _text(raw.get("role"))
        if not company and not role:
            continue
        experiences.append(ExperienceRecord(
            company=company,
            role=role,
            start_date=raw.get("start_date") or raw.get("startDate"),
            end_date=raw.get("end_date") or raw.get("endDate"),
            is_current=bool(raw.get("is_current") or raw.get("isCurrent")),
            description=_text(raw.get("description")),
            sort_order=len(experiences),
        ))

    education = []
    for raw in _objects(payload.get("education")):
        institution, degree = _text(raw.get("institution")), _text(raw.get("degree"))
        if not institution and not degree:
            continue
        education.append(EducationRecord(
            institution=institution,
            degree=degree,
            field_of_study=_text(raw.get("field_of_study") or raw.get("field")),
            end_year=_year(raw.get("end_year") or raw.get("year")),
            sort_order=len(education),
        ))

    certifications = []
    for raw in _entries(payload.get("certifications")):
        if isinstance(raw, dict):
            name, issuer = _text(raw.get("name")), _text(raw.get("issuing_organization") or raw.get("issuer"))
        else:
            name, issuer = _text(raw), ""
        if name:
            certifications.append(CertificationRecord(name=name, issuing_organization=issuer, sort_order=len(certifications)))

    languages = []
    for raw in _entries(payload.get("languages")):
        if isinstance(raw, dict):
            language, proficiency = _text(raw.get("language")), _text(raw.get("proficiency"))
        else:
            language, proficiency = _text(raw), ""
        if language:
            languages.append(LanguageRecord(language=language, proficiency=proficiency, sort_order=len(languages)))

    skills = []
    for raw in _entries(payload.get("skills")):
        name = _text(raw.get("name") if isinstance(raw, dict) else raw)
        if name:
            skills.append(ParsedSkill(name=name, sort_order=len(skills)))

    return ParsedCV(
        experiences=experiences,
        education=education,
        certifications=certifications,
        languages=languages,
        skills=skills,
        confidence=_text(payload.get("confidence")) or "high",
    )


def _entries(value: Any) -> list:
    """List entries that are plain strings or objects; anything else is dropped."""
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, (str, dict))]


def _objects(value: Any) -> list[dict]:
    return [v for v in _entries(value) if isinstance(v, dict)]


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _year(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None
