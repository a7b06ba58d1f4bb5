from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
from pydantic import BaseModel, ConfigDict, Field

from characters.core.memory import CharacterMemoryStore, ChatTurn, MemoryEntry
from characters.core.parser import parse_model_output, to_chat_reply, to_generated_character
from characters.core.prompt import build_chat_prompt, build_generate_prompt, build_train_prompt
from characters.gateway import ModelGateway
from characters.media import avatar_url, resolve_image
from config.settings import get_settings


settings = get_settings()

logging.basicConfig(level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("character_relay")

VERSION = "1.0.0"
API_ENDPOINTS = ["/api/chat", "/api/train", "/api/generate"]

CHAT_ERROR = {
    "error": "حدث خطأ في المعالجة",
    "text": "عذراً، حدث خطأ. حاول مرة أخرى.",
}
TRAIN_ERROR = {"error": "خطأ في التدريب"}
GENERATE_ERROR = {"error": "خطأ في التوليد"}
REQUEST_ERRORS = {
    "/api/chat": CHAT_ERROR,
    "/api/train": TRAIN_ERROR,
    "/api/generate": GENERATE_ERROR,
}

app = FastAPI(title="AI Character Server", version=VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def api_validation_error(request: Request, exc: RequestValidationError):
    body = REQUEST_ERRORS.get(request.url.path)
    if body is None:
        return await request_validation_exception_handler(request, exc)
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=500, content=body)


@lru_cache(maxsize=1)
def get_memory_store() -> CharacterMemoryStore:
    current = get_settings()
    return CharacterMemoryStore(
        max_turns=current.memory_max_turns,
        max_characters=current.memory_max_characters,
    )


@lru_cache(maxsize=1)
def get_model_gateway() -> ModelGateway:
    return ModelGateway(get_settings())


class Character(BaseModel):
    name: str = Field(..., description="Character name, also the memory key")
    personality: str = ""
    story: str = ""
    scene: str = Field("", description="Current location description")


class ChatTurnIn(BaseModel):
    role: str = Field("", description="'user' or the character's side")
    content: str = ""


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    character: Character
    message: str = Field(..., description="User's latest message")
    history: Optional[List[ChatTurnIn]] = Field(
        default_factory=list,
        description="Prior turns managed by the client; the last 3 are used as context",
    )
    api_key: Optional[str] = Field(None, alias="apiKey")


class TrainRequest(BaseModel):
    character: Character


class GenerateRequest(BaseModel):
    action: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = Field(None, description="'real', 'anime' or anything else for fictional")
    base_story: Optional[str] = None


@app.post("/api/chat")
async def chat(
    req: ChatRequest,
    store: CharacterMemoryStore = Depends(get_memory_store),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    character = req.character
    history = [turn.model_dump() for turn in (req.history or [])]
    try:
        logger.info(
            "Incoming chat: character=%s history_turns=%s message_len=%s",
            character.name,
            len(history),
            len(req.message),
        )
        prompt = build_chat_prompt(character.model_dump(), req.message, history)
        response = await gateway.generate(prompt, api_key=req.api_key)
        reply = to_chat_reply(parse_model_output(response), character.name, character.scene)
        image = resolve_image(reply.image_prompt)

        store.get_or_create(character.name, character.personality, character.story)
        entry = store.append_turn(character.name, ChatTurn(user=req.message, ai=reply.text))
        logger.info(
            "Chat reply: character=%s emotion=%s stored_turns=%s",
            character.name,
            reply.emotion,
            len(entry.conversations),
        )
        return {
            "text": reply.text,
            "emotion": reply.emotion,
            "scene": reply.scene,
            "image": image,
        }
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return JSONResponse(status_code=500, content=CHAT_ERROR)


@app.post("/api/train")
async def train(
    req: TrainRequest,
    store: CharacterMemoryStore = Depends(get_memory_store),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    character = req.character
    try:
        logger.info("Incoming training: character=%s", character.name)
        response = await gateway.generate(build_train_prompt(character.model_dump()))
        store.set(
            character.name,
            MemoryEntry(
                personality=character.personality,
                story=character.story,
                training=response,
            ),
        )
        return {"success": True, "message": "تم تدريب الشخصية"}
    except Exception as e:
        logger.exception("Training failed: %s", e)
        return JSONResponse(status_code=500, content=TRAIN_ERROR)


@app.post("/api/generate")
async def generate(
    req: GenerateRequest,
    gateway: ModelGateway = Depends(get_model_gateway),
):
    try:
        logger.info(
            "Incoming generation: action=%s type=%s elaborate=%s",
            req.action,
            req.type,
            bool(req.base_story),
        )
        prompt = build_generate_prompt(req.type or "", name=req.name, base_story=req.base_story)
        response = await gateway.generate(prompt)
        generated = to_generated_character(parse_model_output(response), req.name)
        generated.image = avatar_url(generated.name)
        return {"character": generated.model_dump(by_alias=True)}
    except Exception as e:
        logger.exception("Generation failed: %s", e)
        return JSONResponse(status_code=500, content=GENERATE_ERROR)


@app.get("/")
def root() -> Dict[str, Any]:
    return {
        "status": "AI Character Server Running",
        "version": VERSION,
        "endpoints": API_ENDPOINTS,
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# Registered last so the API routes above take precedence.
_static_dir = Path(settings.static_dir)
if _static_dir.is_dir():
    app.mount("/", StaticFiles(directory=_static_dir, html=True), name="static")
