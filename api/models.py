from typing import List

from pydantic import BaseModel, ConfigDict, Field


class SubjectComponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    obtained: int


class SubjectTotal(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: str
    obtained: int


class ResultSummary(BaseModel):
    """What the student sees. Built once per request, never stored."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    roll_number: str = Field(alias="rollNumber")
    name: str = ""
    class_name: str = Field("", alias="class")
    school: str = ""
    exam_name: str = Field("", alias="examName")
    dob: str = ""
    father_name: str = Field("", alias="fatherName")
    mother_name: str = Field("", alias="motherName")
    signature: str = ""
    subjects: List[SubjectComponent] = Field(default_factory=list)
    subject_totals: List[SubjectTotal] = Field(default_factory=list, alias="subjectTotals")
    total_obtained: int = Field(alias="totalObtained")
    total_marks: int = Field(alias="totalMarks")
    percentage: float
    grade: str
    result: str
