from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.auth import load_permission_table
from app.config import settings
from app.db import init_db
from app.errors import ServiceError
from app.routers import alerts, delivery, dispatches, inventory, stock_requests, users
from app.security.headers import API_HEADERS, install_security_headers

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_schema:
        init_db()
        logger.info('Database schema verified')
    yield


configure_logging()

app = FastAPI(title='Warehouse Operations Portal', lifespan=lifespan)
app.state.permission_table = load_permission_table(settings.role_permissions_file)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)
install_security_headers(app)


def _error_body(message: str, details=None) -> dict:
    body = {'error': message}
    if details is not None:
        body['details'] = details
    return body


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(_error_body(exc.message, exc.details)))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg')}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content=_error_body('Invalid request body', details))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception('Database error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=_error_body('Unexpected database error'))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled exception on %s %s', request.method, request.url.path, exc_info=exc)
    # Sent outside the security header middleware.
    return JSONResponse(status_code=500, content=_error_body('Internal server error'), headers=API_HEADERS)


@app.get('/health')
def health_check():
    return {'status': 'healthy'}


app.include_router(stock_requests.router)
app.include_router(inventory.router)
app.include_router(dispatches.router)
app.include_router(delivery.router)
app.include_router(alerts.router)
app.include_router(users.router)


if __name__ == '__main__':
    import uvicorn

    uvicorn.run('app.main:app', host='0.0.0.0', port=8000, log_level=settings.log_level.lower())
