import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from course_api.core import config
from course_api.database import Base, engine, ensure_grade_schema
from course_api.models import course, grade, user  # noqa: F401  (register tables)
from course_api.routes import auth_routes, course_routes, enrollment_routes, grade_routes

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Course API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials='*' not in config.CORS_ALLOW_ORIGINS,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({'error': exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info('Rejected %s %s: %s', request.method, request.url.path, exc.errors())
    return JSONResponse({'error': 'Invalid request body'}, status_code=status.HTTP_400_BAD_REQUEST)


@app.on_event('startup')
def initialize_database() -> None:
    if config.uses_default_secret():
        logger.warning('JWT_SECRET_KEY is not set; using the insecure development default.')
    try:
        Base.metadata.create_all(bind=engine)
        ensure_grade_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Course API Running'}


app.include_router(auth_routes.router)
app.include_router(course_routes.router)
app.include_router(enrollment_routes.router)
app.include_router(grade_routes.router)


def run() -> None:
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == '__main__':
    run()
