from fastapi import APIRouter, Request

router = APIRouter()


@router.get("")
async def health(request: Request):
    """Liveness plus embedding provider status"""
    embedding_service = getattr(request.app.state, "embedding_service", None)
    return {
        "status": "ok",
        "embedding_provider": embedding_service.get_model_info() if embedding_service else None,
    }
