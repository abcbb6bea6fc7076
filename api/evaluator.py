"""
Result evaluation for a single sheet row.

A row ("record") maps column names to raw cell text. Subject columns are
named <Subject>_<Component>, where the component ends in Obtained or
Max_Marks, e.g. Hindi_Periodic_Test_Obtained. Everything before the first
underscore is the base subject ("Hindi").
"""
import re
import math
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from api.config import TotalMarksPolicy
from api.errors import ConfigurationDefect, Forbidden, InvalidInput, NotFound
from api.models import ResultSummary, SubjectComponent, SubjectTotal

logger = logging.getLogger(__name__)

ROLL_NUMBER = "Roll_Number"
SCHOOL_CODE = "School_Code"

# column -> ResultSummary field
PROFILE_FIELDS = {
    "Name": "name",
    "Class": "class_name",
    "School_Name": "school",
    "Exam_Name": "exam_name",
    "DOB": "dob",
    "Father_Name": "father_name",
    "Mother_Name": "mother_name",
    "Signature": "signature",
}
IDENTITY_FIELDS = (ROLL_NUMBER, SCHOOL_CODE) + tuple(PROFILE_FIELDS)

OBTAINED = "_Obtained"
MAX_MARKS = "_Max_Marks"

MARKS_PER_SUBJECT = 100
PASS_PERCENTAGE = 33

GRADE_THRESHOLDS = [
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C"),
    (33, "D"),
]
FAIL_GRADE = "F"

_LEADING_INT = re.compile(r"^\s*\+?(\d+)")


# --- IDENTITY ---

def validate_request(roll_number: Optional[str], school_code: Optional[str]):
    if not roll_number or not str(roll_number).strip():
        raise InvalidInput("missing roll number")
    if not school_code or not str(school_code).strip():
        raise InvalidInput("missing school code")


def find_record(records: Sequence[Mapping[str, str]], roll_number: str) -> Mapping[str, str]:
    for record in records:
        if str(record.get(ROLL_NUMBER, "")) == roll_number:
            return record
    raise NotFound(f"no row with {ROLL_NUMBER}={roll_number}")


def authorize(record: Mapping[str, str], school_code: str):
    """Raise Forbidden unless the row's School_Code matches (both trimmed).

    A row with no stored school code is rejected, never treated as open.
    """
    stored = str(record.get(SCHOOL_CODE) or "").strip()
    if not stored:
        logger.error("Configuration defect: row %s has an empty %s, rejecting lookup",
                     record.get(ROLL_NUMBER), SCHOOL_CODE)
        raise Forbidden("empty stored school code")
    if stored != str(school_code).strip():
        raise Forbidden("school code mismatch")


# --- SUBJECT SCHEMA ---

def is_subject_column(name: str) -> bool:
    return OBTAINED in name or MAX_MARKS in name


def base_subject(name: str) -> str:
    return name.split("_", 1)[0]


@dataclass(frozen=True)
class SubjectSchema:
    """Subject columns declared by a header row, in header order."""
    columns: Tuple[str, ...]
    skipped: Tuple[str, ...] = ()

    @classmethod
    def from_header(cls, header: Sequence[str]) -> "SubjectSchema":
        names = [str(h).strip() for h in header]

        seen = set()
        for name in names:
            if not name:
                continue
            if name in seen:
                raise ConfigurationDefect(f"duplicate column '{name}' in header")
            seen.add(name)

        for required in (ROLL_NUMBER, SCHOOL_CODE):
            if required not in seen:
                raise ConfigurationDefect(f"column '{required}' missing from header")

        return cls._build(n for n in names if n)

    @classmethod
    def from_record(cls, record: Mapping[str, str]) -> "SubjectSchema":
        return cls._build(str(k) for k in record)

    @classmethod
    def _build(cls, names) -> "SubjectSchema":
        columns, skipped = [], []
        for name in names:
            if name in IDENTITY_FIELDS:
                continue
            if is_subject_column(name) and base_subject(name):
                columns.append(name)
                continue
            if is_subject_column(name):
                logger.warning("Skipping column '%s': no subject before the first underscore", name)
            else:
                logger.debug("Skipping column '%s': not a subject column", name)
            skipped.append(name)
        return cls(columns=tuple(columns), skipped=tuple(skipped))

    @property
    def subjects(self) -> List[str]:
        return list(dict.fromkeys(base_subject(c) for c in self.columns))


# --- EXTRACTION ---

def parse_marks(value) -> int:
    """Best-effort integer: leading digits win, anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(int(value), 0)
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        # longer than the interpreter's int conversion limit
        return 0


def extract_subjects(record: Mapping[str, str],
                     schema: Optional[SubjectSchema] = None) -> List[SubjectComponent]:
    if schema is None:
        schema = SubjectSchema.from_record(record)
    return [SubjectComponent(name=column, obtained=parse_marks(record.get(column)))
            for column in schema.columns]


# --- AGGREGATION ---

def aggregate(components: Sequence[SubjectComponent]) -> Tuple[List[SubjectTotal], int]:
    """Sum the Obtained components per base subject.

    Max_Marks components name a subject but add nothing to its total.
    """
    bases = list(dict.fromkeys(base_subject(c.name) for c in components))
    totals = []
    for base in bases:
        obtained = sum(c.obtained for c in components
                       if c.name.startswith(base + "_") and OBTAINED in c.name)
        totals.append(SubjectTotal(subject=base, obtained=obtained))
    return totals, sum(t.obtained for t in totals)


def total_marks_for(subject_count: int, policy: TotalMarksPolicy) -> int:
    if policy == TotalMarksPolicy.FIXED:
        return MARKS_PER_SUBJECT
    return MARKS_PER_SUBJECT * subject_count


# --- SCORING ---

def compute_percentage(total_obtained: int, total_marks: int) -> float:
    if total_marks <= 0:
        logger.warning("Total marks is %s, reporting 0%%", total_marks)
        return 0.0
    return round(total_obtained / total_marks * 100, 2)


def letter_grade(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return FAIL_GRADE


def pass_result(percentage: float) -> str:
    return "PASS" if percentage >= PASS_PERCENTAGE else "FAIL"


def evaluate(record: Mapping[str, str],
             schema: Optional[SubjectSchema] = None,
             policy: TotalMarksPolicy = TotalMarksPolicy.PER_SUBJECT) -> ResultSummary:
    if schema is None:
        schema = SubjectSchema.from_record(record)
    components = extract_subjects(record, schema)
    subject_totals, total_obtained = aggregate(components)
    total_marks = total_marks_for(len(schema.subjects), policy)
    percentage = compute_percentage(total_obtained, total_marks)

    profile: Dict[str, str] = {field: str(record.get(column) or "").strip()
                               for column, field in PROFILE_FIELDS.items()}

    return ResultSummary(
        roll_number=str(record.get(ROLL_NUMBER, "")),
        subjects=components,
        subject_totals=subject_totals,
        total_obtained=total_obtained,
        total_marks=total_marks,
        percentage=percentage,
        grade=letter_grade(percentage),
        result=pass_result(percentage),
        **profile,
    )
