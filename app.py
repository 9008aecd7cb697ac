# app.py
import os
import uuid
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from schemas import (
    AnalysisRequest,
    AnalysisResult,
    BioRequest,
    BioSuggestions,
    ConversationStarterRequest,
    ConversationStarters,
    ExtractionSource,
    MessageSuggestionRequest,
    MessageSuggestions,
    PromptPunchUpRequest,
    PromptResponses,
)
from services import firestore_client
from services.auth import require_user
from services.errors import AnalysisValidationError
from services.openai_review import InvokerConfig
from services.pipeline import (
    analyze_profile,
    conversation_starters,
    generate_bio,
    prompt_punchup,
    suggest_messages,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

# Storage adapter constants
STORAGE_PROVIDER = os.getenv("STORAGE_PROVIDER", "local").lower()
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
ALLOWED_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}

os.makedirs(UPLOAD_DIR, exist_ok=True)

app = FastAPI(title="Dating profile review API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGIN", "*").split(",")],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

# mount local uploads for dev
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


@app.exception_handler(AnalysisValidationError)
async def validation_error_handler(request: Request, exc: AnalysisValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def get_invoker_config() -> InvokerConfig:
    return InvokerConfig.from_env()


# --- Storage helpers ------------------------------------------------------
def _local_save(data: bytes, ext: str) -> str:
    """Save bytes to uploads/ and return the stored filename."""
    fname = f"{uuid.uuid4().hex}{ext}"
    with (Path(UPLOAD_DIR) / fname).open("wb") as f:
        f.write(data)
    return fname


def _local_public_url(request: Request, fname: str) -> str:
    base = str(request.base_url).rstrip("/")
    return f"{base}/uploads/{fname}"


async def save_upload_and_get_url(request: Request, file: UploadFile) -> str:
    """
    Unified save function. Returns a URL the completion service can fetch.
    - local: saves to uploads/ and returns http://<host>/uploads/<file>
    - gcs: uploads bytes to the bucket and returns its public (or signed) URL
    """
    content_type = file.content_type or "image/jpeg"
    if content_type not in ALLOWED_TYPES:
        raise HTTPException(status_code=400, detail=f"unsupported image type {content_type}")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail=f"{file.filename} is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"{file.filename} is larger than {MAX_UPLOAD_BYTES} bytes")
    ext = Path(file.filename or "").suffix or ".jpg"

    if STORAGE_PROVIDER == "local":
        return _local_public_url(request, _local_save(data, ext))

    if STORAGE_PROVIDER == "gcs":
        from services.gcs_client import upload_photo

        _, url = upload_photo(data, f"uploads/{uuid.uuid4().hex}{ext}", content_type)
        return url

    raise HTTPException(status_code=500, detail="Unsupported STORAGE_PROVIDER")


# --- Routes ---------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/upload")
async def upload(request: Request, file: UploadFile = File(...), user_id: str = Depends(require_user)):
    try:
        url = await save_upload_and_get_url(request, file)
    except HTTPException:
        raise
    except Exception as e:
        log.exception("upload failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=f"save failed: {e}")
    return {"url": url}


@app.post("/api/analyze-profile", response_model=AnalysisResult)
async def analyze_profile_json(
    body: AnalysisRequest,
    background: BackgroundTasks,
    user_id: str = Depends(require_user),
    config: InvokerConfig = Depends(get_invoker_config),
):
    """Analyze already-uploaded photo URLs plus optional text."""
    result = await analyze_profile(body, config)
    background.add_task(firestore_client.record_analysis, user_id, body, result)
    return result


@app.post("/api/analyze", response_model=AnalysisResult)
async def analyze_upload(
    request: Request,
    background: BackgroundTasks,
    files: Optional[List[UploadFile]] = File(None),
    bio: Optional[str] = Form(None),
    goals: Optional[str] = Form(None),
    preferences: Optional[str] = Form(None),
    tone: Optional[str] = Form(None),
    promptText: Optional[str] = Form(None),
    user_id: str = Depends(require_user),
    config: InvokerConfig = Depends(get_invoker_config),
):
    """Store the uploaded photos, then analyze them in upload order."""
    draft = AnalysisRequest(bio=bio, goals=goals, preferences=preferences, tone=tone, promptText=promptText)
    files = files or []
    if not files and not draft.has_content():
        raise AnalysisValidationError("At least one photo, a bio or a prompt answer is required")

    urls = []
    for f in files:
        try:
            urls.append(await save_upload_and_get_url(request, f))
        except HTTPException:
            raise
        except Exception as e:
            log.exception("upload failed for user %s", user_id)
            raise HTTPException(status_code=500, detail=f"save failed: {e}")

    body = draft.model_copy(update={"images": urls})
    result = await analyze_profile(body, config)
    background.add_task(firestore_client.record_analysis, user_id, body, result)
    return result


@app.post("/api/generate-bio", response_model=BioSuggestions)
async def generate_bio_route(
    body: BioRequest,
    background: BackgroundTasks,
    user_id: str = Depends(require_user),
    config: InvokerConfig = Depends(get_invoker_config),
):
    result = await generate_bio(body, config)
    if result.source != ExtractionSource.SAMPLE:
        background.add_task(firestore_client.record, firestore_client.BIO_SUGGESTIONS, user_id,
                            {"suggestions": result.bios, "input": body.model_dump()})
    return result


@app.post("/api/conversation-starters", response_model=ConversationStarters)
async def conversation_starters_route(
    body: ConversationStarterRequest,
    background: BackgroundTasks,
    user_id: str = Depends(require_user),
    config: InvokerConfig = Depends(get_invoker_config),
):
    result = await conversation_starters(body, config)
    if result.source != ExtractionSource.SAMPLE:
        match = body.model_dump(include={"interests", "bio", "photoUrl"}, exclude_none=True)
        background.add_task(firestore_client.record, firestore_client.CONVERSATION_STARTERS, user_id,
                            {"matchProfile": match, "suggestions": result.messages,
                             "followUps": result.followUps, "tips": result.tips})
    return result


@app.post("/api/suggest-messages", response_model=MessageSuggestions)
async def suggest_messages_route(
    body: MessageSuggestionRequest,
    user_id: str = Depends(require_user),
    config: InvokerConfig = Depends(get_invoker_config),
):
    return await suggest_messages(body, config)


@app.post("/api/prompt-punchup", response_model=PromptResponses)
async def prompt_punchup_route(
    body: PromptPunchUpRequest,
    background: BackgroundTasks,
    user_id: str = Depends(require_user),
    config: InvokerConfig = Depends(get_invoker_config),
):
    result = await prompt_punchup(body, config)
    if result.source != ExtractionSource.SAMPLE:
        background.add_task(firestore_client.record, firestore_client.PROMPT_RESPONSES, user_id,
                            {"prompt": body.prompt, "responses": result.responses, "tone": body.tone})
    return result


# If run directly for local dev
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=int(os.getenv("PORT", 8001)), reload=True)
