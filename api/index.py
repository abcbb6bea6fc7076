import logging
from typing import Optional, Tuple

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import Settings, load_settings
from api.errors import ConfigurationDefect, Forbidden, ResultLookupError, UpstreamFailure
from api.evaluator import SubjectSchema, authorize, evaluate, find_record, validate_request
from api.sheets import SheetSource

load_dotenv()
_startup = load_settings()

logging.basicConfig(level=_startup.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Student Result Lookup")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_startup.allowed_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# --- DEPENDENCIES ---
def get_settings() -> Settings:
    return load_settings()


def get_sheet_source(settings: Settings = Depends(get_settings)) -> SheetSource:
    return SheetSource(settings)


@app.exception_handler(ResultLookupError)
async def lookup_error_handler(request: Request, exc: ResultLookupError):
    if isinstance(exc, ConfigurationDefect):
        logger.error("Configuration defect on %s: %s", request.url.path, exc.detail, exc_info=exc)
    elif isinstance(exc, UpstreamFailure):
        logger.error("Upstream failure on %s: %s", request.url.path, exc.detail, exc_info=exc)
    elif isinstance(exc, Forbidden):
        logger.warning("Rejected %s: %s", request.url.path, exc.detail)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code,
                        content={"success": False, "message": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unexpected error on %s: %s", request.url.path, type(exc).__name__, exc_info=exc)
    return JSONResponse(status_code=UpstreamFailure.status_code,
                        content={"success": False, "message": UpstreamFailure.message})


@app.get("/")
async def health(): return {"status": "Live"}


def student_query(roll_number: str, school_code: Optional[str] = None) -> Tuple[str, str]:
    validate_request(roll_number, school_code)
    return roll_number, school_code


@app.get("/api/student/{roll_number}")
async def get_student_result(
    query: Tuple[str, str] = Depends(student_query),
    settings: Settings = Depends(get_settings),
    source: SheetSource = Depends(get_sheet_source),
):
    roll_number, school_code = query

    table = await run_in_threadpool(source.fetch_table)
    schema = SubjectSchema.from_header(table.header)

    student = find_record(table.records, roll_number)
    authorize(student, school_code)

    summary = evaluate(student, schema, settings.total_marks_policy)
    logger.info("Result served for roll %s: %s (%s)", roll_number, summary.result, summary.grade)
    return {"success": True, "data": summary.model_dump(by_alias=True)}
