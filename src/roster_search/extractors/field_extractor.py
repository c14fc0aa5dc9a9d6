"""
Field Extractor
Projects person records into searchable field values and the compact CSV used in prompts
"""

import csv
import io
from typing import Dict, Iterable, List

from ..core.models import LocalizedText, PersonRecord


SEARCH_FIELDS = (
    "skills", "role", "name", "interests", "ideas", "team",
    "github_bio", "github_company", "github_languages", "github_repos",
)

CSV_HEADER = "id,name,roles,team,skills,interests,ideas"


def _label_values(labels: Iterable[LocalizedText]) -> List[str]:
    values: List[str] = []
    for label in labels:
        values.extend(label.values())
    return values


def extract_search_fields(record: PersonRecord) -> Dict[str, List[str]]:
    """Field name to searchable values; each language side is its own value."""
    fields: Dict[str, List[str]] = {
        "skills": _label_values(record.specialties),
        "role": _label_values(record.roles),
        "name": record.name.values(),
        "interests": _label_values(record.interests),
        "ideas": _label_values(record.ideas),
        "team": record.team.values(),
        "github_bio": [],
        "github_company": [],
        "github_languages": [],
        "github_repos": [],
    }

    enrichment = record.enrichment
    if enrichment is None:
        return fields

    if enrichment.bio:
        fields["github_bio"].append(enrichment.bio)
    if enrichment.company:
        fields["github_company"].append(enrichment.company)

    languages = list(enrichment.top_languages)
    for repo in enrichment.repositories:
        fields["github_repos"].append(repo.name)
        if repo.description:
            fields["github_repos"].append(repo.description)
        if repo.language and repo.language not in languages:
            languages.append(repo.language)
    fields["github_languages"] = languages

    return fields


def profile_completeness(record: PersonRecord) -> float:
    """Share of the core profile sections that are filled in."""
    sections = [
        bool(record.name.values()),
        bool(record.team.values()),
        bool(record.roles),
        bool(record.specialties),
        bool(record.interests),
        bool(record.ideas),
    ]
    return sum(sections) / len(sections)


def _csv_cell(labels: Iterable[LocalizedText]) -> str:
    return " ".join(label.joined() for label in labels).strip()


def build_csv_projection(records: Iterable[PersonRecord]) -> str:
    """Compact CSV of every record's searchable fields, one quoted row per record."""
    buffer = io.StringIO()
    buffer.write(CSV_HEADER + "\n")
    # ids stay bare, every text cell is quoted
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for record in records:
        writer.writerow([
            record.id,
            _csv_cell([record.name]),
            _csv_cell(record.roles),
            _csv_cell([record.team]),
            _csv_cell(record.specialties),
            _csv_cell(record.interests),
            _csv_cell(record.ideas),
        ])
    return buffer.getvalue().rstrip("\n")
