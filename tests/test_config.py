import pytest

from api.config import TotalMarksPolicy, load_settings
from api.errors import ConfigurationDefect


def test_defaults():
    settings = load_settings({})
    assert settings.total_marks_policy == TotalMarksPolicy.PER_SUBJECT
    assert settings.worksheet_index == 0
    assert settings.worksheet_name is None
    assert settings.allowed_origins == ["*"]
    assert settings.log_level == "INFO"
    assert settings.google_credentials is None


def test_reads_environment():
    settings = load_settings({
        "GOOGLE_CREDENTIALS": '{"type": "service_account"}',
        "SHEET_ID": " abc123 ",
        "WORKSHEET_NAME": "Results 2024",
        "WORKSHEET_INDEX": "2",
        "TOTAL_MARKS_POLICY": "FIXED",
        "ALLOWED_ORIGINS": "https://a.example, https://b.example,",
        "LOG_LEVEL": "debug",
    })
    assert settings.sheet_id == "abc123"
    assert settings.worksheet_name == "Results 2024"
    assert settings.worksheet_index == 2
    assert settings.total_marks_policy == TotalMarksPolicy.FIXED
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.log_level == "DEBUG"


def test_blank_values_are_unset():
    settings = load_settings({"SHEET_NAME": "   ", "WORKSHEET_INDEX": ""})
    assert settings.sheet_name is None
    assert settings.worksheet_index == 0


@pytest.mark.parametrize("env", [
    {"TOTAL_MARKS_POLICY": "per_student"},
    {"WORKSHEET_INDEX": "first"},
    {"LOG_LEVEL": "LOUD"},
])
def test_bad_values(env):
    with pytest.raises(ConfigurationDefect):
        load_settings(env)
