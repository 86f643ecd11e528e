import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import amplifier.database as database
from amplifier.auth import UserService
from amplifier.constants import SYSTEM_PROMPT
from amplifier.database import (
    init_db,
    save_file_history,
    get_file_history,
    delete_file_history,
)
from amplifier.dependencies import (
    get_chat_client,
    get_current_user_id,
    get_optional_user_id,
    get_settings,
    get_submission_service,
    get_user_service,
)
from amplifier.execution import ExecutionError, ExecutionTimeout, SubmissionService, language_id_for
from amplifier.files import corrected_file_name, group_by_folder, read_upload
from amplifier.generators import ChatClient, ChatCompletionError
from amplifier.models import (
    AnalyzeRequest,
    HistoryCreate,
    HistoryRecord,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    RunRequest,
    RunResponse,
    UploadResponse,
    UserPublic,
    ValidateRequest,
    ValidationResult,
)
from amplifier.observability import setup_logging
from amplifier.validation import collect_results, validate_files

settings = get_settings()
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

# Initialize Limiter
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.DB_NAME = settings.DB_NAME
    init_db()

    chat = get_chat_client()
    if await chat.ping():
        logging.info(f"Connected to chat endpoint at {chat.url}")
    else:
        logging.warning(f"Unable to reach chat endpoint at {chat.url}. Ensure it's running.")
    yield


app = FastAPI(
    title="Code Amplifier API",
    description="Upload source files, get an LLM quality score with feedback and corrected code, and run code remotely.",
    version="1.0.0",
    lifespan=lifespan,
)

# Register Limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logging.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid request data",
            "errors": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                }
                for e in exc.errors()
            ],
        },
    )


def record_history(user_id: Optional[str]):
    """Build an on_result callback that stores each result for user_id."""
    if not user_id:
        return None

    def _save(result: ValidationResult):
        save_file_history(
            user_id=int(user_id),
            file_name=result.file_name,
            file_path=result.path,
            score=result.score,
            feedback=result.result,
            corrected_code=result.corrected_code,
        )

    return _save


# ============ Health ============

@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "service": "code-amplifier", "version": app.version}


# ============ Files ============

@app.post("/files/upload", response_model=UploadResponse, tags=["Files"])
async def upload_files(files: List[UploadFile] = File(...)):
    """Read uploaded files as text and group them by folder."""
    contents = [await read_upload(f) for f in files]
    folders = group_by_folder(contents)
    return UploadResponse(
        files=contents,
        folders={folder: [f.path for f in items] for folder, items in folders.items()},
    )


@app.post("/files/corrected", tags=["Files"])
async def download_corrected(result: ValidationResult):
    """Serve a result's corrected code as a file download."""
    if not result.corrected_code:
        raise HTTPException(status_code=400, detail="No corrected code available")

    filename = corrected_file_name(result.path)
    quoted = quote(filename)
    if quoted != filename:
        disposition = f"attachment; filename*=utf-8''{quoted}"
    else:
        disposition = f'attachment; filename="{filename}"'

    return Response(
        content=result.corrected_code,
        media_type="text/plain",
        headers={"Content-Disposition": disposition},
    )


# ============ Analysis ============

@app.post("/analyze", tags=["Proxy Route"])
@limiter.limit(settings.RATE_LIMIT)
async def analyze(
    request: Request,
    request_data: AnalyzeRequest,
    chat: ChatClient = Depends(get_chat_client),
):
    """Forward chat messages to the model with the analyzer system prompt."""
    if not request_data.messages:
        raise HTTPException(status_code=400, detail="Messages are required")

    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    messages += [m.model_dump() for m in request_data.messages]

    try:
        content = await chat.complete(messages)
    except ChatCompletionError as e:
        logging.error(f"Analysis Error: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to analyze code")

    return {"choices": [{"message": {"content": content}}]}


@app.post("/analyze/stream", tags=["Proxy Route"])
@limiter.limit(settings.RATE_LIMIT)
async def analyze_stream(
    request: Request,
    request_data: AnalyzeRequest,
    chat: ChatClient = Depends(get_chat_client),
):
    """Streaming variant of /analyze; failures arrive in-band as [SERVER_ERROR] text."""
    if not request_data.messages:
        raise HTTPException(status_code=400, detail="Messages are required")

    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    messages += [m.model_dump() for m in request_data.messages]

    async def generate_stream() -> AsyncGenerator[str, None]:
        async for chunk in chat.stream(messages):
            yield chunk

    return StreamingResponse(generate_stream(), media_type="text/plain")


@app.post("/validate", response_model=List[ValidationResult], tags=["Analysis"])
@limiter.limit(settings.RATE_LIMIT)
async def validate(
    request: Request,
    request_data: ValidateRequest,
    chat: ChatClient = Depends(get_chat_client),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """Analyze every file in order and return one result per file."""
    return await collect_results(
        chat,
        request_data.files,
        request_data.user_prompt,
        on_result=record_history(user_id),
        max_tokens=settings.VALIDATE_MAX_TOKENS,
    )


@app.post("/validate/stream", tags=["Analysis"])
@limiter.limit(settings.RATE_LIMIT)
async def validate_stream(
    request: Request,
    request_data: ValidateRequest,
    chat: ChatClient = Depends(get_chat_client),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """Same as /validate, streamed as newline-delimited JSON events."""

    async def generate_stream() -> AsyncGenerator[str, None]:
        async for event in validate_files(
            chat,
            request_data.files,
            request_data.user_prompt,
            on_result=record_history(user_id),
            max_tokens=settings.VALIDATE_MAX_TOKENS,
        ):
            yield event.model_dump_json(by_alias=True) + "\n"

    return StreamingResponse(generate_stream(), media_type="application/x-ndjson")


# ============ Execution ============

@app.post("/run", response_model=RunResponse, tags=["Execution"])
@limiter.limit(settings.RATE_LIMIT)
async def run_code(
    request: Request,
    request_data: RunRequest,
    service: SubmissionService = Depends(get_submission_service),
):
    language_id = request_data.language_id or language_id_for(request_data.extension)

    try:
        result = await service.run(request_data.source_code, language_id, request_data.stdin)
    except ExecutionTimeout as e:
        logging.error(f"Execution Timeout: {e}")
        raise HTTPException(status_code=504, detail="Execution timed out")
    except ExecutionError as e:
        logging.error(f"Execution Error: {e}")
        raise HTTPException(status_code=500, detail="Execution failed")

    return result


# ============ Accounts ============

@app.post("/api/register", status_code=201, response_model=RegisterResponse, tags=["Auth"])
async def register(
    request_data: RegisterRequest,
    users: UserService = Depends(get_user_service),
):
    result = users.register(request_data.username, request_data.email, request_data.password)
    if "error" in result:
        raise HTTPException(status_code=400, detail=result["error"])

    return {"message": "User registered successfully", "user": result["user"]}


@app.post("/api/login", response_model=LoginResponse, tags=["Auth"])
async def login(
    request_data: LoginRequest,
    users: UserService = Depends(get_user_service),
):
    result = users.login(request_data.email, request_data.password)
    if not result:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return result


@app.get("/api/user/me", response_model=UserPublic, tags=["Auth"])
async def get_me(
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
):
    profile = users.get_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return profile


# ============ History ============

@app.get("/api/history", response_model=List[HistoryRecord], tags=["History"])
async def list_history(user_id: str = Depends(get_current_user_id)):
    """Most recent analysis records of the caller, newest first."""
    rows = get_file_history(int(user_id), limit=settings.HISTORY_LIMIT)
    return [HistoryRecord.from_row(row) for row in rows]


@app.get("/api/history/{owner_id}", response_model=List[HistoryRecord], tags=["History"])
async def list_history_for_user(owner_id: str, user_id: str = Depends(get_current_user_id)):
    if owner_id != user_id:
        raise HTTPException(status_code=403, detail="Access denied.")
    rows = get_file_history(int(user_id), limit=settings.HISTORY_LIMIT)
    return [HistoryRecord.from_row(row) for row in rows]


@app.post("/api/history", status_code=201, response_model=HistoryRecord, tags=["History"])
async def create_history(entry: HistoryCreate, user_id: str = Depends(get_current_user_id)):
    row = save_file_history(
        user_id=int(user_id),
        file_name=entry.file_name,
        file_path=entry.file_path,
        score=entry.analysis_result.score,
        feedback=entry.analysis_result.feedback,
        corrected_code=entry.analysis_result.corrected_code,
    )
    if not row:
        raise HTTPException(status_code=400, detail="Failed to save history")
    return HistoryRecord.from_row(row)


@app.delete("/api/history/{entry_id}", status_code=204, tags=["History"])
async def remove_history(entry_id: int, user_id: str = Depends(get_current_user_id)):
    if not delete_file_history(int(user_id), entry_id):
        raise HTTPException(status_code=404, detail="History entry not found")
    return Response(status_code=204)
