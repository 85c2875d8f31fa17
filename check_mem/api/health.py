from fastapi import APIRouter

router = APIRouter()


@router.get("", summary="Liveness probe")
async def health() -> dict:
    return {"status": "ok"}
