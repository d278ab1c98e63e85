import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.errors import TuitionFinderError
from backend.database import Base, engine, ensure_application_schema, ensure_tuition_schema
from backend.models import application, payment, tuition, user  # noqa: F401
from backend.routes import (
    application_routes,
    auth_routes,
    payment_routes,
    stats_routes,
    tuition_routes,
    user_routes,
)

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title='Tuition Finder API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_tuition_schema()
        ensure_application_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(TuitionFinderError)
async def tuition_finder_error_handler(request: Request, exc: TuitionFinderError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message})


@app.get('/')
def root():
    return {'status': 'Tuition Finder API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(user_routes.router, prefix='/users')
app.include_router(user_routes.tutors_router)
app.include_router(tuition_routes.router, prefix='/tuitions')
app.include_router(application_routes.router, prefix='/applications')
app.include_router(stats_routes.router, prefix='/stats')
app.include_router(payment_routes.router, prefix='/payments')
