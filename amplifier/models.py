"""
Request and response models shared by the API and the services.

JSON keys are camelCase to match the browser client; Python code uses
snake_case attribute names.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    # sqlite CURRENT_TIMESTAMP is "YYYY-MM-DD HH:MM:SS" in UTC
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileWithContent(CamelModel):
    name: str = Field(..., description="Base name of the uploaded file.")
    path: str = Field(..., description="Client-relative path of the file.")
    content: str = Field("", description="Decoded text content.")
    extension: str = Field("", description="Text after the last dot of the name.")


class ValidationResult(CamelModel):
    file_name: str
    path: str
    code: str
    result: str
    score: int = Field(0, ge=0, le=100)
    corrected_code: Optional[str] = None
    has_corrections: bool = False


class ValidateRequest(CamelModel):
    files: List[FileWithContent] = Field(default_factory=list)
    user_prompt: Optional[str] = Field(
        None, description="Optional extra instructions appended to every file prompt."
    )


class ProgressEvent(CamelModel):
    event: Literal["progress"] = "progress"
    is_analyzing: bool = True
    current_file: str
    current_step: str


class ResultEvent(CamelModel):
    event: Literal["result"] = "result"
    result: ValidationResult


class DoneEvent(CamelModel):
    event: Literal["done"] = "done"
    count: int = 0


StreamEvent = Union[ProgressEvent, ResultEvent, DoneEvent]


class ChatMessage(BaseModel):
    role: str
    content: str


class AnalyzeRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)


class RunRequest(BaseModel):
    source_code: str = Field(..., description="Source code to execute.")
    language_id: Optional[int] = Field(None, description="Execution service language id.")
    extension: Optional[str] = Field(
        None, description="File extension used to pick the language when no id is given."
    )
    stdin: str = ""


class RunResponse(BaseModel):
    output: str
    status: str
    status_id: Optional[int] = None
    token: Optional[str] = None
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    time: Optional[str] = None
    memory: Optional[int] = None


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserPublic(BaseModel):
    id: str
    username: str
    email: str


class RegisterResponse(BaseModel):
    message: str
    user: UserPublic


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class AnalysisResult(CamelModel):
    score: int = Field(..., ge=0, le=100)
    feedback: str
    corrected_code: Optional[str] = None


class HistoryCreate(CamelModel):
    file_name: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    analysis_result: AnalysisResult


class HistoryRecord(CamelModel):
    id: str
    user_id: str
    file_name: str
    file_path: str
    analysis_result: AnalysisResult
    analyzed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "HistoryRecord":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            file_name=row["file_name"],
            file_path=row["file_path"],
            analysis_result=AnalysisResult(
                score=row["score"],
                feedback=row["feedback"],
                corrected_code=row.get("corrected_code"),
            ),
            analyzed_at=_parse_timestamp(row.get("analyzed_at")),
        )


class UploadResponse(BaseModel):
    files: List[FileWithContent]
    folders: Dict[str, List[str]]
