from fastapi import APIRouter
from classcast.api import broadcast

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


router.include_router(broadcast.router)
