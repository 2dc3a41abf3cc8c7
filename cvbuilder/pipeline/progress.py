from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from ..models import CVData

MIN_SUMMARY_LENGTH = 20


def _filled(*values: str) -> bool:
    return all(str(value or "").strip() for value in values)


def _personal_complete(data: CVData) -> bool:
    info = data.personal_info
    return _filled(info.full_name, info.email, info.phone)


def _summary_complete(data: CVData) -> bool:
    return len(data.summary or "") > MIN_SUMMARY_LENGTH


def _experience_complete(data: CVData) -> bool:
    return any(_filled(exp.job_title, exp.company, exp.start_date) for exp in data.work_experience)


def _education_complete(data: CVData) -> bool:
    return any(_filled(edu.degree, edu.institution) for edu in data.education)


def _skills_complete(data: CVData) -> bool:
    return any(_filled(skill.name) for skill in data.skills)


SECTION_CHECKS: Tuple[Tuple[str, Callable[[CVData], bool]], ...] = (
    ("Personal Information", _personal_complete),
    ("Summary", _summary_complete),
    ("Work Experience", _experience_complete),
    ("Education", _education_complete),
    ("Skills", _skills_complete),
)


@dataclass(frozen=True)
class SectionProgress:
    name: str
    complete: bool


@dataclass(frozen=True)
class Progress:
    percentage: int
    sections: List[SectionProgress] = field(default_factory=list)

    @property
    def completed(self) -> List[str]:
        return [section.name for section in self.sections if section.complete]

    @property
    def missing(self) -> List[str]:
        return [section.name for section in self.sections if not section.complete]


def evaluate_progress(data: CVData) -> Progress:
    """Score how much of the CV is filled in, over five fixed sections."""
    sections = [SectionProgress(name, check(data)) for name, check in SECTION_CHECKS]
    done = sum(1 for section in sections if section.complete)
    return Progress(percentage=round(done / len(sections) * 100), sections=sections)
