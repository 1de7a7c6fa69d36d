"""FastAPI routes for game sessions: start, resume, guess and reset."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from controllers.game_controller import reset_game, resume_game, start_game, submit_guess
from models.errors import ConfigurationError, GenerationFailure, MalformedPayloadError, SessionNotFoundError
from models.image_record import Difficulty
from models.session_models import DEFAULT_MAX_ATTEMPTS, DEFAULT_WIN_THRESHOLD

router = APIRouter(prefix="/games")


class SetupPayload(BaseModel):
	topic: str
	difficulty: Difficulty = Difficulty.EASY
	style: str = "any"
	age: Optional[int] = Field(default=None, ge=1)
	attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, le=50)
	win_threshold: int = Field(default=DEFAULT_WIN_THRESHOLD, ge=1, le=20)
	session_key: Optional[str] = None

	@field_validator("topic")
	@classmethod
	def _topic_not_blank(cls, value: str) -> str:
		value = value.strip()
		if not value:
			raise ValueError("topic must not be blank")
		return value

	@field_validator("style")
	@classmethod
	def _style_default(cls, value: str) -> str:
		return value.strip() or "any"


class GuessPayload(BaseModel):
	guess: str
	image_id: str
	sequence: Optional[int] = Field(default=None, ge=1)

	@field_validator("guess", "image_id")
	@classmethod
	def _not_blank(cls, value: str) -> str:
		if not value.strip():
			raise ValueError("must not be blank")
		return value


def _translate(exc: Exception) -> HTTPException:
	if isinstance(exc, ConfigurationError):
		return HTTPException(status_code=422, detail=str(exc))
	if isinstance(exc, MalformedPayloadError):
		return HTTPException(status_code=400, detail=str(exc))
	if isinstance(exc, SessionNotFoundError):
		return HTTPException(status_code=404, detail=str(exc))
	if isinstance(exc, GenerationFailure):
		return HTTPException(status_code=503, detail=str(exc))
	return HTTPException(status_code=500, detail=str(exc))


@router.post("")
async def start_game_route(request: Request, payload: SetupPayload):
	try:
		return await start_game(
			request,
			topic=payload.topic,
			difficulty=payload.difficulty,
			style=payload.style,
			age=payload.age,
			attempts=payload.attempts,
			win_threshold=payload.win_threshold,
			session_key=payload.session_key,
		)
	except HTTPException:
		raise
	except Exception as exc:
		raise _translate(exc)


@router.get("/{session_key}")
async def resume_game_route(request: Request, session_key: str, image_id: Optional[str] = None):
	try:
		return await resume_game(request, session_key, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise _translate(exc)


@router.post("/{session_key}/guesses")
async def submit_guess_route(request: Request, session_key: str, payload: GuessPayload):
	try:
		return await submit_guess(request, session_key, payload.guess, payload.image_id, payload.sequence)
	except HTTPException:
		raise
	except Exception as exc:
		raise _translate(exc)


@router.delete("/{session_key}")
async def reset_game_route(request: Request, session_key: str):
	try:
		return await reset_game(request, session_key)
	except HTTPException:
		raise
	except Exception as exc:
		raise _translate(exc)
