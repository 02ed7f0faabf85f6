from fastapi import APIRouter
from loguru import logger

from .utils import ApiFailure, ApiSuccess, make_response
from ..storage.mongo import get_mongo_client


router = APIRouter()


@router.get('/health', response_model=ApiSuccess)
async def health():
    return ApiSuccess(results="OK")


@router.get('/health/ready')
async def ready(label: str = 'flc_primary'):
    try:
        await get_mongo_client(label).admin.command('ping')
    except Exception as e:
        logger.warning('readiness ping failed for mongo label {}: {}', label, e)
        return make_response(ApiFailure(errmesg=f'mongo {label} unavailable'), status_code=503)

    return ApiSuccess(results="READY")
