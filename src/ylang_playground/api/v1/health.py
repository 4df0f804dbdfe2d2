from fastapi import APIRouter

from ylang_playground.schemas.api import ApiResponse


router = APIRouter()


@router.get("/health", response_model=ApiResponse[dict[str, str]])
def health_check() -> ApiResponse[dict[str, str]]:
    """Liveness of the playground itself; the compiler backend is not contacted."""
    return ApiResponse(
        success=True,
        data={"status": "healthy", "message": "Y Language Playground is running"},
        message="Health check successful",
    )
