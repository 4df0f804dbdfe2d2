"""API endpoints driving the playground session from a display layer."""

from fastapi import APIRouter

from ylang_playground.dependencies.session import SessionDep
from ylang_playground.schemas.api import ApiResponse
from ylang_playground.schemas.compiler import ValidateResponse
from ylang_playground.schemas.playground import (
    AutoCompileRequest,
    BackendStatus,
    CompileTriggerRequest,
    PlaygroundState,
    SourceUpdateRequest,
)


router = APIRouter(prefix="/playground", tags=["playground"])


@router.get("", response_model=ApiResponse[PlaygroundState])
async def get_state(session: SessionDep) -> ApiResponse[PlaygroundState]:
    """Current source version, per-target results and overall status."""
    return ApiResponse(data=session.state(), message="Playground state")


@router.put(
    "/source",
    response_model=ApiResponse[PlaygroundState],
    summary="Replace the source text",
    description=(
        "Stores a new version of the Y Language source. When auto-compile is "
        "enabled a compile of every target is scheduled once edits pause."
    ),
)
async def update_source(
    request: SourceUpdateRequest, session: SessionDep
) -> ApiResponse[PlaygroundState]:
    version = session.edit(request.code)
    return ApiResponse(
        data=session.state(), message=f"Source updated to version {version}"
    )


@router.put("/auto-compile", response_model=ApiResponse[PlaygroundState])
async def set_auto_compile(
    request: AutoCompileRequest, session: SessionDep
) -> ApiResponse[PlaygroundState]:
    session.set_auto_compile(request.enabled)
    return ApiResponse(
        data=session.state(),
        message="Auto-compile enabled" if request.enabled else "Auto-compile disabled",
    )


@router.post(
    "/compile",
    response_model=ApiResponse[PlaygroundState],
    summary="Compile the current source",
    description=(
        "Compiles the current source for the requested targets (all configured "
        "targets by default) concurrently and responds once every target has "
        "settled. Compiler failures are reported in the per-target results, "
        "not as HTTP errors."
    ),
    responses={400: {"description": "Unsupported compile target"}},
)
async def compile_source(
    session: SessionDep, request: CompileTriggerRequest | None = None
) -> ApiResponse[PlaygroundState]:
    targets = request.targets if request is not None else None
    await session.compile_targets(targets)
    return ApiResponse(data=session.state(), message="Compilation finished")


@router.post("/clear", response_model=ApiResponse[PlaygroundState])
async def clear_results(session: SessionDep) -> ApiResponse[PlaygroundState]:
    session.clear()
    return ApiResponse(data=session.state(), message="Results cleared")


@router.post("/validate", response_model=ApiResponse[ValidateResponse])
async def validate_source(session: SessionDep) -> ApiResponse[ValidateResponse]:
    result = await session.validate()
    return ApiResponse(
        data=result,
        message="Source is valid" if result.valid else "Source has errors",
    )


@router.get("/backend", response_model=ApiResponse[BackendStatus])
async def backend_status(session: SessionDep) -> ApiResponse[BackendStatus]:
    """Health and metadata of the remote compiler service."""
    backend = await session.backend_status()
    if backend.healthy:
        message = "Compiler backend reachable"
    else:
        message = "Compiler backend unavailable"
    return ApiResponse(data=backend, message=message)
