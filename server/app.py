"""FastAPI server for hanyu application."""

import asyncio
import logging
import random
import secrets
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from core.challenges import DailyChallengeService
from core.config import SPEED_CHALLENGE_MIN_LEARNED_WORDS
from core.errors import (
    ConflictError, DeliveryError, ExternalServiceError, HanyuError,
    NotFoundError, ValidationError
)
from core.interfaces import EmailSender, SpeechSynthesizer, Storage, VOCABULARY
from core.mistakes import MistakeTracker
from core.progress import ProgressStore
from core.quiz import QuizService
from core.reminders import ReminderService
from core.sessions import SessionProgressEngine
from core.speed import SpeedChallengeScorer
from core.stats import StatsAggregator
from core.users import UserService
from core.utils import utc_now
from core.vocabulary import seed_vocabulary

from server.email_sender import LogEmailSender, SmtpEmailSender
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage
from server.settings import Settings
from server.tts_provider import GTTSSynthesizer

logger = logging.getLogger(__name__)


# Pydantic models for API
class RegisterRequest(BaseModel):
    email: str
    username: str


class LogActivityRequest(BaseModel):
    type: str
    duration: int


class SessionProgressUpdate(BaseModel):
    current_session: Optional[int] = None
    total_study_time: Optional[int] = None


class RecordMistakeRequest(BaseModel):
    word_id: str
    test_type: str


class SpeedScoreRequest(BaseModel):
    score: int
    time_used: int


class StartQuizRequest(BaseModel):
    kind: str
    recent: bool = False


class AnswerRequest(BaseModel):
    question_id: str
    answer: str = ''


class SpeedAnswerRequest(BaseModel):
    question_id: str
    answer: str = ''
    skip: bool = False


class FinishQuizRequest(BaseModel):
    duration: Optional[int] = None


class ReminderSettingsRequest(BaseModel):
    enabled: bool


class Services:
    """Domain services sharing one storage backend."""

    def __init__(self, storage: Storage, email_sender: EmailSender, synthesizer: SpeechSynthesizer,
                 settings: Settings, clock=utc_now, rng: random.Random = None):
        self.storage = storage
        self.settings = settings
        self.synthesizer = synthesizer
        self.users = UserService(storage, clock)
        self.progress = ProgressStore(storage, clock)
        self.sessions = SessionProgressEngine(storage, clock)
        self.mistakes = MistakeTracker(storage, clock)
        self.stats = StatsAggregator(storage, self.sessions, clock)
        self.quizzes = QuizService(storage, self.progress, self.mistakes, self.stats, clock, rng)
        self.speed = SpeedChallengeScorer(storage, self.progress, clock, rng)
        self.challenges = DailyChallengeService(storage, clock)
        self.reminders = ReminderService(storage, self.stats, email_sender, settings.frontend_url, clock)


# Global state, set by configure()
services: Services = None


def build_storage(settings: Settings) -> Storage:
    if settings.storage == 'file':
        logger.info("Using file storage")
        return FileStorage(settings.state_file)
    logger.info("Using PostgreSQL storage")
    return PostgresStorage(settings.database_url)


def build_email_sender(settings: Settings) -> EmailSender:
    if settings.email == 'smtp':
        logger.info(f"Sending email through {settings.smtp_host}:{settings.smtp_port}")
        return SmtpEmailSender(
            settings.smtp_host, settings.smtp_port,
            username=settings.smtp_user, password=settings.smtp_password,
            sender=settings.email_from
        )
    logger.info("Email delivery disabled, reminders are only logged")
    return LogEmailSender()


def configure(storage: Storage = None, email_sender: EmailSender = None,
              synthesizer: SpeechSynthesizer = None, settings: Settings = None,
              clock=utc_now, rng: random.Random = None) -> Services:
    """Wire the services. Missing collaborators are built from settings."""
    global services
    settings = settings or Settings.from_env()
    services = Services(
        storage or build_storage(settings),
        email_sender or build_email_sender(settings),
        synthesizer or GTTSSynthesizer(settings.tts_language),
        settings,
        clock=clock,
        rng=rng
    )
    return services


def get_services() -> Services:
    if services is None:
        raise RuntimeError("Services are not configured")
    return services


def current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """The calling user, taken from the X-User-Id header."""
    if not x_user_id or not get_services().users.exists(x_user_id):
        raise HTTPException(status_code=401, detail="Unknown or missing user")
    return x_user_id


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None),
                       authorization: Optional[str] = Header(None)) -> None:
    expected = get_services().settings.cron_secret
    provided = x_cron_secret
    if not provided and authorization and authorization.startswith('Bearer '):
        provided = authorization[len('Bearer '):]
    if not expected or not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="Invalid cron secret")


app = FastAPI(title="Hanyu API", description="Mandarin vocabulary learning API")

ERROR_STATUS = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (ConflictError, 409),
    (DeliveryError, 502),
    (ExternalServiceError, 502),
)


@app.exception_handler(HanyuError)
async def hanyu_error_handler(request: Request, exc: HanyuError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
    return JSONResponse(status_code=status_code,
                        content={"detail": exc.message, "error_code": exc.error_code})


@app.on_event("startup")
async def startup():
    """Build services from the environment and seed an empty vocabulary."""
    if services is None:
        configure()
    if services.storage.count(VOCABULARY) == 0:
        seed_vocabulary(services.storage)


@app.get("/")
async def root():
    return {"message": "Hanyu API is running"}


# User Endpoints
@app.post("/api/users", status_code=201)
async def register_user(request: RegisterRequest):
    """Create a user. The returned id is used as the X-User-Id header."""
    return get_services().users.register(request.email, request.username)


@app.get("/api/users/me")
async def get_me(user_id: str = Depends(current_user_id)):
    return get_services().users.get(user_id)


# Vocabulary Endpoints
@app.get("/api/vocabulary")
async def list_vocabulary(user_id: str = Depends(current_user_id)):
    """All words with the caller's learned flag, in study order."""
    words = get_services().progress.all_words_with_learned_flag(user_id)
    return [w.to_dict() for w in words]


@app.get("/api/vocabulary/recently-learned")
async def recently_learned(user_id: str = Depends(current_user_id)):
    return [w.to_dict() for w in get_services().progress.recently_learned(user_id)]


@app.get("/api/vocabulary/sessions/{session_index}")
async def session_words(session_index: int, user_id: str = Depends(current_user_id)):
    return [w.to_dict() for w in get_services().progress.session_words(user_id, session_index)]


@app.post("/api/vocabulary/reset")
async def reset_progress(user_id: str = Depends(current_user_id)):
    get_services().progress.reset_all(user_id)
    return {"success": True}


@app.post("/api/vocabulary/log-activity")
async def log_activity(request: LogActivityRequest, user_id: str = Depends(current_user_id)):
    return get_services().progress.log_activity(user_id, request.type, request.duration)


@app.post("/api/vocabulary/{word_id}/learn")
async def mark_learned(word_id: str, user_id: str = Depends(current_user_id)):
    return get_services().progress.mark_learned(user_id, word_id)


# Session Progress Endpoints
@app.get("/api/session-progress")
async def get_session_progress(user_id: str = Depends(current_user_id)):
    return get_services().sessions.get(user_id).to_dict()


@app.put("/api/session-progress")
async def update_session_progress(request: SessionProgressUpdate,
                                  user_id: str = Depends(current_user_id)):
    progress = get_services().sessions.update(
        user_id,
        current_session=request.current_session,
        total_study_time=request.total_study_time
    )
    return progress.to_dict()


@app.delete("/api/session-progress")
@app.post("/api/session-progress/reset")
async def reset_session_progress(user_id: str = Depends(current_user_id)):
    get_services().sessions.reset(user_id)
    return {"success": True}


@app.post("/api/session-progress/complete")
async def complete_session(user_id: str = Depends(current_user_id)):
    """Move to the next session if every word of the current one is learned."""
    progress, advanced = get_services().sessions.complete_session(user_id)
    return {"progress": progress.to_dict(), "advanced": advanced}


# Mistake Endpoints
@app.post("/api/mistakes/record")
async def record_mistake(request: RecordMistakeRequest, user_id: str = Depends(current_user_id)):
    svc = get_services()
    svc.progress.get_word(request.word_id)
    recorded = svc.mistakes.record_mistake(user_id, request.word_id, request.test_type)
    return {"recorded": recorded}


@app.get("/api/mistakes")
async def list_mistakes(user_id: str = Depends(current_user_id)):
    return get_services().mistakes.list_mistakes(user_id)


@app.get("/api/mistakes/count")
async def mistake_count(user_id: str = Depends(current_user_id)):
    return {"count": get_services().mistakes.count(user_id)}


@app.get("/api/mistakes/unique-words")
async def mistake_words(user_id: str = Depends(current_user_id)):
    svc = get_services()
    word_ids = svc.mistakes.unique_word_ids(user_id)
    return [w.to_dict() for w in svc.progress.all_words_with_learned_flag(user_id)
            if w.id in word_ids]


@app.delete("/api/mistakes")
async def clear_mistakes(user_id: str = Depends(current_user_id)):
    get_services().mistakes.clear(user_id)
    return {"success": True}


# Stats Endpoints
@app.get("/api/stats")
async def get_stats(user_id: str = Depends(current_user_id)):
    return get_services().stats.compute_stats(user_id).to_dict()


@app.get("/api/stats/gates")
async def get_gates(user_id: str = Depends(current_user_id)):
    return get_services().stats.gates(user_id)


@app.post("/api/stats/test-completed")
async def test_completed(user_id: str = Depends(current_user_id)):
    return get_services().stats.record_test_completed(user_id).to_dict()


@app.post("/api/stats/speed-challenge")
async def save_speed_score(request: SpeedScoreRequest, user_id: str = Depends(current_user_id)):
    return get_services().speed.save_score(user_id, request.score, request.time_used)


@app.get("/api/stats/speed-challenge/high-score")
async def speed_high_score(user_id: str = Depends(current_user_id)):
    return asdict(get_services().speed.high_score(user_id))


# Quiz Endpoints
@app.post("/api/quizzes", status_code=201)
async def start_quiz(request: StartQuizRequest, user_id: str = Depends(current_user_id)):
    quizzes = get_services().quizzes
    session = quizzes.start(user_id, request.kind, request.recent)
    if session is None:
        raise HTTPException(status_code=403,
                            detail=quizzes.locked_reason(user_id, request.kind, request.recent))
    return session.public_dict()


@app.get("/api/quizzes/{session_id}")
async def get_quiz(session_id: str, user_id: str = Depends(current_user_id)):
    return get_services().quizzes.quizzes.load(user_id, session_id).public_dict()


@app.post("/api/quizzes/{session_id}/answers")
async def answer_quiz(session_id: str, request: AnswerRequest,
                      user_id: str = Depends(current_user_id)):
    return get_services().quizzes.submit_answer(user_id, session_id, request.question_id, request.answer)


@app.post("/api/quizzes/{session_id}/finish")
async def finish_quiz(session_id: str, request: Optional[FinishQuizRequest] = None,
                      user_id: str = Depends(current_user_id)):
    duration = request.duration if request else None
    return get_services().quizzes.finish(user_id, session_id, duration)


@app.get("/api/quizzes/{session_id}/questions/{question_id}/audio")
async def question_audio(session_id: str, question_id: str,
                         user_id: str = Depends(current_user_id)):
    """Spoken Chinese for a question, so listening tests never expose the characters."""
    svc = get_services()
    word = svc.quizzes.quizzes.word_for(user_id, session_id, question_id)
    loop = asyncio.get_event_loop()
    audio = await loop.run_in_executor(None, lambda: svc.synthesizer.synthesize(word.chinese))
    return Response(content=audio, media_type="audio/mpeg")


# Speed Challenge Endpoints
@app.post("/api/speed-challenge", status_code=201)
async def start_speed_challenge(user_id: str = Depends(current_user_id)):
    speed = get_services().speed
    session = speed.start(user_id)
    if session is None:
        raise HTTPException(status_code=403,
                            detail=f"You need at least {SPEED_CHALLENGE_MIN_LEARNED_WORDS} learned words "
                                   "to unlock the speed challenge.")
    return {**session.public_dict(), "remaining": speed.remaining_seconds(session)}


@app.post("/api/speed-challenge/{session_id}/answers")
async def answer_speed_challenge(session_id: str, request: SpeedAnswerRequest,
                                 user_id: str = Depends(current_user_id)):
    return get_services().speed.submit_answer(
        user_id, session_id, request.question_id, request.answer, skip=request.skip
    )


@app.post("/api/speed-challenge/{session_id}/finish")
async def finish_speed_challenge(session_id: str, user_id: str = Depends(current_user_id)):
    return get_services().speed.finish(user_id, session_id)


# Daily Challenge Endpoints
@app.get("/api/daily-challenges")
async def daily_challenges(user_id: str = Depends(current_user_id)):
    return get_services().challenges.today(user_id).to_dict()


@app.post("/api/daily-challenges/{step_index}/complete")
async def complete_daily_challenge(step_index: int, user_id: str = Depends(current_user_id)):
    return get_services().challenges.mark_complete(user_id, step_index).to_dict()


# Text-to-speech
@app.get("/api/tts")
async def text_to_speech(text: str, user_id: str = Depends(current_user_id)):
    synthesizer = get_services().synthesizer
    loop = asyncio.get_event_loop()
    audio = await loop.run_in_executor(None, lambda: synthesizer.synthesize(text))
    return Response(content=audio, media_type="audio/mpeg")


# Email Reminder Endpoints
@app.get("/api/email-reminders/settings")
async def get_reminder_settings(user_id: str = Depends(current_user_id)):
    return get_services().reminders.get_settings(user_id)


@app.put("/api/email-reminders/settings")
async def update_reminder_settings(request: ReminderSettingsRequest,
                                   user_id: str = Depends(current_user_id)):
    return get_services().reminders.update_settings(user_id, request.enabled)


@app.post("/api/email-reminders/send-daily", dependencies=[Depends(verify_cron_secret)])
async def send_daily_reminders():
    """Cron entry point for the daily reminder sweep."""
    return get_services().reminders.send_daily_reminders().to_dict()
