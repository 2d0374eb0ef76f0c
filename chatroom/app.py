import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Body, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from chatroom.errors import ChatError, ValidationError
from chatroom.logging_config import setup_logging
from chatroom.messages import MessageLog
from chatroom.participants import ParticipantRegistry
from chatroom.reaper import PresenceReaper
from chatroom.settings import Settings
from chatroom.storage import StorageGateway

logger = logging.getLogger(__name__)

router = APIRouter()


def get_participants(request: Request) -> ParticipantRegistry:
    return request.app.state.participants


def get_messages(request: Request) -> MessageLog:
    return request.app.state.messages


@router.get('/')
async def index():
    return HTMLResponse('<h3>Chat backend running. Register with POST /participants</h3>')


@router.get('/health')
async def health(request: Request):
    await request.app.state.storage.ping()
    return {'status': 'healthy'}


@router.post('/participants', status_code=201)
async def register(
    payload: dict = Body(...),
    participants: ParticipantRegistry = Depends(get_participants),
):
    participant = await participants.register(payload.get('name'))
    return participant.model_dump()


@router.get('/participants')
async def list_participants(participants: ParticipantRegistry = Depends(get_participants)):
    return [p.model_dump() for p in await participants.list()]


@router.post('/messages', status_code=201)
async def post_message(
    payload: dict = Body(...),
    user: str | None = Header(default=None),
    messages: MessageLog = Depends(get_messages),
):
    message = await messages.post(
        user, payload.get('to'), payload.get('text'), payload.get('type')
    )
    return message.to_document()


@router.get('/messages')
async def list_messages(
    limit: str | None = None,
    user: str | None = Header(default=None),
    messages: MessageLog = Depends(get_messages),
):
    return [m.to_document() for m in await messages.list(user, limit)]


@router.post('/status')
async def heartbeat(
    user: str | None = Header(default=None),
    participants: ParticipantRegistry = Depends(get_participants),
):
    await participants.heartbeat(user)
    return {'status': 'ok'}


def create_app(settings: Settings | None = None, storage: StorageGateway | None = None) -> FastAPI:
    """Build the FastAPI app.

    ``storage`` may be injected (tests do); otherwise a Motor-backed gateway is
    created from ``settings`` at startup and closed at shutdown.
    """
    settings = settings or Settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_PATH, settings.LOG_FORMAT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gateway = storage or StorageGateway.from_settings(settings)
        await gateway.init()
        app.state.storage = gateway
        app.state.participants = ParticipantRegistry(gateway)
        app.state.messages = MessageLog(gateway)
        app.state.reaper = PresenceReaper(
            gateway,
            interval=settings.SWEEP_INTERVAL_SECONDS,
            timeout=settings.INACTIVITY_TIMEOUT_SECONDS,
        )
        app.state.reaper.start()
        logger.info('Chat backend started')
        try:
            yield
        finally:
            await app.state.reaper.stop()
            if storage is None:
                gateway.close()
            logger.info('Chat backend stopped')

    app = FastAPI(title='Chat Presence Backend', lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials='*' not in settings.CORS_ORIGINS,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError):
        content = {'error': exc.message}
        if isinstance(exc, ValidationError):
            content['details'] = exc.errors
        if exc.status_code >= 500:
            logger.error('%s %s failed: %s', request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422, content={'error': 'invalid request', 'details': details}
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return JSONResponse(status_code=500, content={'error': 'internal server error'})

    app.include_router(router)
    return app
