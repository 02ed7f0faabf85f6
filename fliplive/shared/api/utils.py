import inspect
from functools import lru_cache
from importlib import import_module
from os import environ
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field
from redis.asyncio import Redis

from .errors import E_INTERNAL, E_INVALID_PARAMS


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException
    return ''.join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get('BUILD_COMMIT', 'dev'))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    errkind: str = 'Internal'
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    errmesg: str = 'We are sorry, an error occurred.'
    details: dict[str, Any] | None = None


def api_failure(errcode: str = None, errmesg: Exception | str = None, *, errkind: str = None, trace: Any = None):
    if not errcode:
        errcode = ApiFailure.model_fields['errcode'].default

    if not errkind:
        errkind = 'InvalidInput' if errcode == E_INVALID_PARAMS else ApiFailure.model_fields['errkind'].default

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = ApiFailure.model_fields['errmesg'].default

    failure = ApiFailure(errcode=errcode, errkind=errkind, errmesg=errmesg)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f'{failure.errcode} {failure.erresid}\n{failure.errmesg} '
        f'caller={caller_info} trace={trace}'
    )

    return failure


def make_response(results, *, status_code: int = None):
    if isinstance(results, Exception):
        response = api_failure(errmesg=format_error(results))
        if status_code is None:
            status_code = 500
    elif isinstance(results, ApiFailure):
        response = results
        if status_code is None:
            status_code = 500 if results.errcode == E_INTERNAL else 400
    else:
        response = results
        if status_code is None:
            status_code = 200

    return ORJSONResponse(
        status_code=status_code,
        content=response.model_dump() if hasattr(response, 'model_dump') else response
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path, request.method, errors
    )

    failure = api_failure(E_INVALID_PARAMS, errmesg=str(errors))
    return ORJSONResponse(status_code=422, content=failure.model_dump())


def load_routes(app: FastAPI, prefix: str):
    from ..config import config

    disabled_routes = [x.strip() for x in config.get('API_DISABLED', '').split(',') if x.strip()]
    logger.debug('disabled routes: {}', disabled_routes)

    package_root = Path(__file__).parent.parent.parent
    folders = [
        (package_root / 'shared' / 'api', ''),
        (package_root / 'api' / 'routers', prefix),
    ]

    for folder, folder_prefix in folders:
        for x in sorted(folder.glob('*.py')):
            if x.name == '__init__.py':
                continue

            name = '.'.join((package_root.name, *x.relative_to(package_root).with_suffix('').parts))
            if any(f'.{disabled}' in name for disabled in disabled_routes):
                logger.warning('disabled route module {}', name)
                continue

            module = import_module(name)
            if hasattr(module, 'router'):
                app.include_router(module.router, prefix=folder_prefix)
                logger.info('Added routes in {}', name)

    for route in app.routes:
        if hasattr(route, 'methods'):
            methods = ','.join(sorted(route.methods))
            logger.info('Loaded route: {:<12} {:<60} {}', methods, route.path, route.name)


@lru_cache
def get_worker_info():
    project_root = Path(__file__).parent.parent.parent.parent
    worker_name = environ.get('WORKER_NAME', project_root.name)

    parts = environ.get('BUILD_COMMIT', '').split('-')
    commit_id = parts[1] if len(parts) > 1 else 'dev'

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import sys
    from ..config import config

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if config.get_bool('DEBUG'):
        logger_level = 'DEBUG'
        logger_format = (
            f'<yellow>{worker_name}:{commit_id}</yellow> | '
            '<green>{time:MM-DD HH:mm:ss.SSS}</green> | '
            '<level>{level: <8}</level> | '
            '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
            '<level>{message}</level>'
        )
    else:
        logger_level = 'INFO'
        logger_format = (
            f'{worker_name}:{commit_id} | '
            '{time:MM-DD HH:mm:ss.SSS} | '
            '{level: <8} | '
            '{name}:{function}:{line} | '
            '{message}'
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)


def get_redis_major_client(request: Request) -> Redis:
    return request.app.state.redis_manager.get_cache_client('default')
