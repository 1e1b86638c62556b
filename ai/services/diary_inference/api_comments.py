# -*- coding: utf-8 -*-
"""
Diary Comments API
------------------
- POST /api/comment          one "diary psychologist" comment for a text
- POST /api/comments-batch   one comment per {id, content}, in order

Failure policy:
- /api/comment: 500 with a placeholder comment (never the oracle's error).
- /api/comments-batch: a failing item gets the placeholder and the batch goes
  on. Only an unusable request (no entries list) fails the whole call.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from diary_analysis import Oracle, batch_comments, generate_comment
from ui_text_templates import ui_text

logger = logging.getLogger("diary_comments")


# ---------- Pydantic models ----------


class CommentRequest(BaseModel):
    content: Optional[str] = Field(default=None, description="Text to comment on")


class CommentResponse(BaseModel):
    comment: str


class BatchCommentItem(BaseModel):
    id: Any = Field(default=None, description="Client-side entry id, echoed back")
    content: Optional[str] = Field(default=None, description="Text to comment on")


class BatchCommentsRequest(BaseModel):
    entries: Optional[List[BatchCommentItem]] = Field(default=None, description="Items to comment, in order")


class BatchCommentResult(BaseModel):
    id: Any = None
    comment: str


class BatchCommentsResponse(BaseModel):
    results: List[BatchCommentResult]


# ---------- Route registration ----------


def register_comment_routes(app: FastAPI, *, oracle: Oracle) -> None:
    """Register /api/comment and /api/comments-batch on ``app``."""

    @app.post("/api/comment", response_model=CommentResponse)
    async def comment(payload: CommentRequest):
        try:
            text = await generate_comment(oracle, payload.content or "")
        except Exception as exc:
            logger.error("Comment generation failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"comment": ui_text("comment_unavailable")})
        return CommentResponse(comment=text)

    @app.post("/api/comments-batch", response_model=BatchCommentsResponse)
    async def comments_batch(payload: BatchCommentsRequest):
        try:
            if payload.entries is None:
                raise ValueError("entries list is required")
            results = await batch_comments(
                oracle,
                [it.model_dump() for it in payload.entries],
                placeholder=ui_text("batch_item_unavailable"),
            )
        except Exception as exc:
            logger.error("Comment batch failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("batch_failed")})
        return BatchCommentsResponse(results=[BatchCommentResult(**r) for r in results])
