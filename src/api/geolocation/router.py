from fastapi import APIRouter, File, Form, Header, Request, UploadFile

from src.api.core.constants import (
    MAX_PREFERENCE_LENGTH,
    MAX_UPLOAD_SIZE_BYTES,
    SESSION_HEADER,
)
from src.api.core.dependencies import (
    EngineSettingsDep,
    OrchestratorDep,
    SubmissionRegistryDep,
)
from src.api.core.messages import APIResponse, MessageCode
from src.api.geolocation.schemas import (
    EngineChainResponse,
    EngineSummary,
    LocateResponse,
)
from src.api.geolocation.validators import normalize_preference, validate_image_upload
from src.modules.geolocation.application.use_cases import (
    LocationResult,
    locate_image_from_upload,
)

router = APIRouter(prefix="/geolocation", tags=["geolocation"])


@router.post("/locate", response_model=LocateResponse)
async def locate(
    request: Request,
    orchestrator: OrchestratorDep,
    submissions: SubmissionRegistryDep,
    engine_settings: EngineSettingsDep,
    file: UploadFile = File(...),
    preference: str | None = Form(default=None, max_length=MAX_PREFERENCE_LENGTH),
    session_id: str | None = Header(default=None, alias=SESSION_HEADER),
) -> APIResponse[LocationResult]:
    """
    Locate where a photo was taken.

    Tries each remote engine in priority order and falls back to the local
    heuristic engine. The optional preference biases every engine and
    narrows the displayed radius.
    """
    file_content = await validate_image_upload(file, MAX_UPLOAD_SIZE_BYTES)

    result = await locate_image_from_upload(
        image_data=file_content,
        orchestrator=orchestrator,
        preference=normalize_preference(preference),
        request_id=getattr(request.state, "request_id", None),
        low_confidence_threshold=engine_settings.LOW_CONFIDENCE_THRESHOLD,
        submissions=submissions,
        session_id=session_id,
    )

    message_code = (
        MessageCode.LOW_CONFIDENCE_LOCATION
        if result.display.low_confidence
        else MessageCode.LOCATION_FOUND
    )
    return APIResponse.success(
        message_code=message_code,
        message=result.display.status_message,
        data=result,
    )


@router.get("/engines", response_model=EngineChainResponse)
async def list_engines(orchestrator: OrchestratorDep) -> APIResponse[list[EngineSummary]]:
    """Engines in the order they are tried."""
    chain = [*orchestrator.remote_engines, orchestrator.local_engine]
    return APIResponse.success(
        data=[
            EngineSummary(
                name=engine.name,
                source_label=engine.source_label,
                remote=engine.config.remote,
            )
            for engine in chain
        ]
    )
