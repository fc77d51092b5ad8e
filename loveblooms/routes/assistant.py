# loveblooms/routes/assistant.py
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from ..errors import AIError
from ..schemas.assistant import AutofillIn, ChatIn, ChatOut, CopyIn, CopyOut
from ..services import product_assistant
from ..services.product_assistant import ProductSuggestion
from .deps import http_error, require_admin

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/autofill", response_model=ProductSuggestion, dependencies=[Depends(require_admin)])
async def autofill(body: AutofillIn):
    """Suggest name, description, price, category and tags from a product photo."""
    try:
        return await product_assistant.analyze_product_image(body.image, body.mimeType)
    except AIError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/copy", response_model=CopyOut, dependencies=[Depends(require_admin)])
async def marketing_copy(body: CopyIn):
    return CopyOut(text=await product_assistant.generate_marketing_copy(body.name, body.tags))

@router.post("/chat", response_model=ChatOut)
async def chat(body: ChatIn):
    session = product_assistant.get_session(body.sessionId)
    try:
        reply = await session.send(body.message)
    except AIError as e:
        raise http_error(e)
    return ChatOut(sessionId=session.id, reply=reply)
