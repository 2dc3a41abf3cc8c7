from __future__ import annotations

from typing import Dict, List

from sqlmodel import Field, SQLModel

from . import config


SKILL_LEVELS = ("Beginner", "Intermediate", "Advanced", "Expert")


class PersonalInfo(SQLModel):
    full_name: str = ""
    job_title: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    website: str = ""
    photo_url: str = ""


class WorkExperience(SQLModel):
    id: str
    job_title: str = ""
    company: str = ""
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    responsibilities: List[str] = Field(default_factory=list)


class Education(SQLModel):
    id: str
    degree: str = ""
    field_of_study: str = ""
    institution: str = ""
    start_date: str = ""
    end_date: str = ""
    grade: str = ""


class Skill(SQLModel):
    id: str
    name: str = ""
    # free text: unknown levels are rendered at the default bar width
    level: str = "Intermediate"


class Language(SQLModel):
    id: str
    name: str = ""
    proficiency: str = "Conversational"


class Certification(SQLModel):
    id: str
    name: str = ""
    issuer: str = ""
    date: str = ""
    expiry_date: str = ""


class Reference(SQLModel):
    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    organization: str = ""


class CVData(SQLModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str = ""
    work_experience: List[WorkExperience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    languages: List[Language] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)


class Template(SQLModel):
    id: str
    name: str = ""
    columns: int = 1
    has_photo: bool = True
    color: str = config.DEFAULT_TEMPLATE_COLOR

    def with_color(self, color: str) -> "Template":
        return self.model_copy(update={"color": color})


TEMPLATES: Dict[str, Template] = {
    "professional": Template(
        id="professional", name="Professional Modern", columns=2, has_photo=True, color="blue"
    ),
    "creative": Template(
        id="creative", name="Creative Portfolio", columns=1, has_photo=True, color="purple"
    ),
    "executive": Template(
        id="executive", name="Executive Elite", columns=2, has_photo=True, color="green"
    ),
    "minimal": Template(
        id="minimal", name="Minimalist Clean", columns=1, has_photo=False, color="gray"
    ),
}


def get_template(template_id: str) -> Template:
    try:
        return TEMPLATES[template_id]
    except KeyError:
        raise KeyError(f"Unknown template: {template_id}") from None
