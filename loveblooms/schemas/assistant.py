# loveblooms/schemas/assistant.py
from typing import List, Optional
from pydantic import BaseModel, Field

class AutofillIn(BaseModel):
    image: str = Field(..., min_length=1)   # base64, with or without a data: prefix
    mimeType: str = "image/jpeg"

class CopyIn(BaseModel):
    name: str = Field(..., min_length=1)
    tags: List[str] = []

class CopyOut(BaseModel):
    text: str

class ChatIn(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    sessionId: Optional[str] = None

class ChatOut(BaseModel):
    sessionId: str
    reply: str
