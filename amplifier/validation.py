"""
Per-file analysis workflow.

Files are analyzed one at a time in upload order. Each file produces a
progress event before its request and a result event after it; a failed
request turns into an error result instead of stopping the batch.
"""

import logging
from typing import AsyncGenerator, Callable, List, Optional

from amplifier.analysis import build_analysis_prompt, parse_analysis
from amplifier.constants import ANALYSIS_FAILED, WORKING_STEP
from amplifier.generators import ChatClient, ChatCompletionError
from amplifier.models import (
    DoneEvent,
    FileWithContent,
    ProgressEvent,
    ResultEvent,
    StreamEvent,
    ValidationResult,
)

ResultCallback = Callable[[ValidationResult], None]


async def analyze_file(
    chat: ChatClient,
    file: FileWithContent,
    user_prompt: Optional[str] = None,
    max_tokens: Optional[int] = None,
) -> ValidationResult:
    prompt = build_analysis_prompt(file.extension, file.content, user_prompt)

    try:
        text = await chat.complete([{"role": "user", "content": prompt}], max_tokens=max_tokens)
    except ChatCompletionError as e:
        logging.error(f"Error validating {file.path}: {e}")
        return ValidationResult(
            file_name=file.name,
            path=file.path,
            code=file.content,
            result=ANALYSIS_FAILED,
            score=0,
            has_corrections=False,
        )

    outcome = parse_analysis(text)
    return ValidationResult(
        file_name=file.name,
        path=file.path,
        code=file.content,
        result=outcome.feedback,
        score=outcome.score,
        corrected_code=outcome.corrected_code,
        has_corrections=outcome.has_corrections,
    )


async def validate_files(
    chat: ChatClient,
    files: List[FileWithContent],
    user_prompt: Optional[str] = None,
    on_result: Optional[ResultCallback] = None,
    max_tokens: Optional[int] = None,
) -> AsyncGenerator[StreamEvent, None]:
    count = 0
    for file in files:
        yield ProgressEvent(current_file=file.path, current_step=WORKING_STEP)

        result = await analyze_file(chat, file, user_prompt, max_tokens)
        count += 1
        if on_result:
            on_result(result)

        yield ResultEvent(result=result)

    yield DoneEvent(count=count)


async def collect_results(
    chat: ChatClient,
    files: List[FileWithContent],
    user_prompt: Optional[str] = None,
    on_result: Optional[ResultCallback] = None,
    max_tokens: Optional[int] = None,
) -> List[ValidationResult]:
    results = []
    async for event in validate_files(chat, files, user_prompt, on_result, max_tokens):
        if isinstance(event, ResultEvent):
            results.append(event.result)
    return results
