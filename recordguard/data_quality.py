"""
Batch data quality checks for student imports: duplicates and inconsistent values.

Runs over a whole batch before promotion. High severity issues should block
the import, medium ones warrant a warning an admin can override.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from recordguard.official_records import get_audit_email

# Reference lists for accepted values
VALID_GRADES = ["1", "2", "3", "4", "5", "6", "A", "B", "C", "D", "E", "F"]
VALID_SECTIONS = ["A", "B", "C", "D", "E", "F", "G", "H", "I", "J",
                  "1", "2", "3", "4", "5", "6", "7", "8", "9", "10"]
VALID_BLOCKS = ["STEM", "HUMSS", "ABM", "GA", "TVL", "SPORTS", "ARTS",
                "A", "B", "C", "D", "E", "F", "G", "H"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class DuplicateEntry:
    type: str  # student_id | name_combination | email
    value: str
    row_indices: List[int]
    records: List[dict]
    severity: str
    message: str


@dataclass
class InconsistencyEntry:
    row_index: int
    field: str
    value: Any
    severity: str
    issue: str
    suggestion: Optional[str] = None


@dataclass
class DataQualityResult:
    is_clean: bool
    duplicates: List[DuplicateEntry] = field(default_factory=list)
    inconsistencies: List[InconsistencyEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_issues: int = 0
    summary: Dict[str, int] = field(default_factory=dict)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _rows(indices: List[int]) -> str:
    return ", ".join(str(i + 1) for i in indices)


def levenshtein_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def detect_duplicates(records: List[dict]) -> List[DuplicateEntry]:
    by_id: Dict[str, List[int]] = {}
    by_name: Dict[str, List[int]] = {}
    by_email: Dict[str, List[int]] = {}

    for index, record in enumerate(records):
        student_id = _text(record.get("student_id")).lower()
        if student_id:
            by_id.setdefault(student_id, []).append(index)

        first, last = _text(record.get("first_name")), _text(record.get("last_name"))
        if first and last:
            by_name.setdefault(f"{first.lower()} {last.lower()}", []).append(index)

        email = _text(record.get("email")).lower()
        if email:
            by_email.setdefault(email, []).append(index)

    duplicates: List[DuplicateEntry] = []
    for value, indices in by_id.items():
        if len(indices) > 1:
            duplicates.append(DuplicateEntry(
                type="student_id",
                value=value,
                row_indices=indices,
                records=[records[i] for i in indices],
                severity="high",
                message=f'Student ID "{value}" appears {len(indices)} times (rows {_rows(indices)})',
            ))

    for value, indices in by_name.items():
        if len(indices) < 2:
            continue
        ids = {_text(records[i].get("student_id")) for i in indices}
        # Same name under the same id is already reported as an id duplicate
        if len(ids) > 1 or "" in ids:
            duplicates.append(DuplicateEntry(
                type="name_combination",
                value=value,
                row_indices=indices,
                records=[records[i] for i in indices],
                severity="medium",
                message=(
                    f'Name "{value}" appears {len(indices)} times with different or missing IDs '
                    f"(rows {_rows(indices)})"
                ),
            ))

    for value, indices in by_email.items():
        if len(indices) > 1:
            duplicates.append(DuplicateEntry(
                type="email",
                value=value,
                row_indices=indices,
                records=[records[i] for i in indices],
                severity="medium",
                message=f'Email "{value}" appears {len(indices)} times (rows {_rows(indices)})',
            ))

    return duplicates


def _suggest(value: str, options: List[str]) -> Optional[str]:
    for option in options:
        if option.lower() == value.lower():
            return option
    return None


def _find_similar_names(record: dict, records: List[dict], index: int) -> List[str]:
    first, last = _text(record.get("first_name")), _text(record.get("last_name"))
    if not first or not last:
        return []
    current = f"{first.lower()} {last.lower()}"
    similar = []
    for other_index, other in enumerate(records):
        other_first, other_last = _text(other.get("first_name")), _text(other.get("last_name"))
        if other_index == index or not other_first or not other_last:
            continue
        distance = levenshtein_distance(current, f"{other_first.lower()} {other_last.lower()}")
        if 0 < distance <= 2:
            similar.append(f"{other_first} {other_last} (row {other_index + 1})")
    return similar


def check_record_inconsistencies(record: dict, row_index: int, records: List[dict]) -> List[InconsistencyEntry]:
    found: List[InconsistencyEntry] = []

    checks = (
        ("grade", VALID_GRADES, "high", "grades"),
        ("section", VALID_SECTIONS, "medium", "sections"),
        ("block", VALID_BLOCKS, "medium", "blocks"),
    )
    for field_name, options, severity, plural in checks:
        raw = _text(record.get(field_name))
        if raw and raw.upper() not in options:
            found.append(InconsistencyEntry(
                row_index=row_index,
                field=field_name,
                value=record.get(field_name),
                severity=severity,
                issue=f'Invalid {field_name} "{raw}". Valid {plural} are: {", ".join(options)}',
                suggestion=_suggest(raw, options),
            ))

    email = _text(record.get("email"))
    if email and not EMAIL_PATTERN.match(email):
        found.append(InconsistencyEntry(
            row_index, "email", record.get("email"), "low", f'Email format appears invalid: "{email}"'
        ))

    year = _text(record.get("year"))
    if year and not year.isdigit():
        found.append(InconsistencyEntry(
            row_index, "year", record.get("year"), "low", f'Year should be numeric, got "{year}"'
        ))

    similar = _find_similar_names(record, records, row_index)
    if similar:
        found.append(InconsistencyEntry(
            row_index,
            "name",
            f"{_text(record.get('first_name'))} {_text(record.get('last_name'))}",
            "low",
            f"Name is similar to: {', '.join(similar)}. Possible typo or duplicate?",
        ))

    return found


def check_data_quality(records: List[dict]) -> DataQualityResult:
    duplicates = detect_duplicates(records)
    inconsistencies: List[InconsistencyEntry] = []
    for index, record in enumerate(records):
        inconsistencies.extend(check_record_inconsistencies(record, index, records))

    severities = [d.severity for d in duplicates] + [i.severity for i in inconsistencies]
    return DataQualityResult(
        is_clean=not duplicates and not inconsistencies,
        duplicates=duplicates,
        inconsistencies=inconsistencies,
        warnings=[],
        total_issues=len(duplicates) + len(inconsistencies),
        summary={
            "duplicate_count": len(duplicates),
            "inconsistency_count": len(inconsistencies),
            "high_severity_count": severities.count("high"),
            "medium_severity_count": severities.count("medium"),
            "low_severity_count": severities.count("low"),
        },
    )


def check_data_quality_with_logging(
    records: List[dict],
    admin_id: str,
    admin_email: Optional[str],
    action_logger,
) -> DataQualityResult:
    """Run check_data_quality, then log one quality_check entry (plus duplicate_detection when needed)."""
    result = check_data_quality(records)
    admin_email = get_audit_email(admin_id, admin_email)

    action_logger.log_quality_check(
        admin_id,
        admin_email,
        len(records),
        {
            "duplicates": result.summary["duplicate_count"],
            "inconsistencies": result.summary["inconsistency_count"],
            "typos": 0,
            "total": result.total_issues,
        },
        result.is_clean,
    )

    if result.duplicates:
        action_logger.log_duplicate_detection(
            admin_id,
            admin_email,
            student_id_duplicates=[d.value for d in result.duplicates if d.type == "student_id"],
            name_duplicates=[d.value for d in result.duplicates if d.type == "name_combination"],
            email_duplicates=[d.value for d in result.duplicates if d.type == "email"],
        )

    return result


def get_quality_summary(result: DataQualityResult) -> str:
    if result.is_clean:
        return "✓ All data is clean and consistent"
    parts = []
    if result.summary["duplicate_count"]:
        parts.append(f"{result.summary['duplicate_count']} duplicate issue(s)")
    if result.summary["inconsistency_count"]:
        parts.append(f"{result.summary['inconsistency_count']} inconsistency/ies")
    if result.summary["high_severity_count"]:
        parts.append(f"{result.summary['high_severity_count']} high severity")
    return " | ".join(parts)


def get_recommended_action(result: DataQualityResult) -> str:
    """'block' on any high severity issue, 'warn' on medium, else 'allow'."""
    if result.summary["high_severity_count"]:
        return "block"
    if result.summary["medium_severity_count"]:
        return "warn"
    return "allow"
