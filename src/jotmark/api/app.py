"""FastAPI application for the jotmark JSON API."""

import logging
import secrets
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from .. import __version__
from ..core.checkbox import checklist_progress, toggle_checkbox
from ..core.errors import (
    DuplicateFolder,
    FolderNotEmpty,
    InvalidIndex,
    InvalidName,
    NotAChecklistLine,
    NotFound,
)
from ..core.model import Note, block_to_dict
from ..core.render import render

logger = logging.getLogger(__name__)

RenderFormat = Literal["blocks", "html"]


class RenderRequest(BaseModel):
    content: str
    format: RenderFormat = "blocks"


class ToggleRequest(BaseModel):
    content: str
    line: int
    strict: bool = False


class FolderIn(BaseModel):
    name: str


class NoteIn(BaseModel):
    title: str = ""
    content: str = ""
    folder_id: int | None = None


class NoteUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    folder_id: int | None = None


class NoteOrderItem(BaseModel):
    id: int
    order: int


class NoteOrder(BaseModel):
    note_order: list[NoteOrderItem] = Field(alias="noteOrder")


class CheckboxRequest(BaseModel):
    line: int
    checked: bool | None = None  # None flips the current state
    strict: bool = False


def _rendered(content: str, fmt: RenderFormat, runtime: Any) -> dict[str, Any]:
    blocks = render(content)
    done, total = checklist_progress(content)
    out: dict[str, Any] = {"checklist": {"done": done, "total": total}}
    if fmt == "html":
        out["html"] = runtime.html.render_blocks(blocks)
    else:
        out["blocks"] = [block_to_dict(b) for b in blocks]
    return out


def _note_with_render(note: Note, runtime: Any) -> dict[str, Any]:
    return {"note": note.to_dict(), **_rendered(note.content, "blocks", runtime)}


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with store and renderers
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="jotmark API",
        description="JSON API for jotmark notes",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(FolderNotEmpty)
    @app.exception_handler(DuplicateFolder)
    async def conflict(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(InvalidIndex)
    @app.exception_handler(NotAChecklistLine)
    @app.exception_handler(InvalidName)
    async def bad_request(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or not secrets.compare_digest(credentials.credentials, token):
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    store = runtime.store

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    # Stateless core

    @app.post("/render")
    async def render_content(
        body: RenderRequest, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        """Render markup without storing it."""
        return _rendered(body.content, body.format, runtime)

    @app.post("/toggle")
    async def toggle_content(
        body: ToggleRequest, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        """Toggle one checklist line of unsaved markup."""
        return {"content": toggle_checkbox(body.content, body.line, strict=body.strict)}

    # Folders

    @app.get("/folders")
    async def list_folders(auth: None = Depends(verify_token)) -> dict[str, Any]:
        folders = [f.to_dict() for f in store.list_folders()]
        return {"folders": folders, "count": len(folders)}

    @app.post("/folders", status_code=201)
    async def create_folder(body: FolderIn, auth: None = Depends(verify_token)) -> dict[str, Any]:
        return {"folder": store.create_folder(body.name).to_dict()}

    @app.put("/folders/{folder_id}")
    async def rename_folder(
        folder_id: int, body: FolderIn, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        return {"folder": store.rename_folder(folder_id, body.name).to_dict()}

    @app.delete("/folders/{folder_id}")
    async def delete_folder(folder_id: int, auth: None = Depends(verify_token)) -> dict[str, Any]:
        store.delete_folder(folder_id)
        return {"message": "Folder deleted"}

    @app.get("/folders/{folder_id}/notes")
    async def folder_notes(folder_id: int, auth: None = Depends(verify_token)) -> dict[str, Any]:
        notes = [n.to_dict() for n in store.list_notes(folder_id=folder_id)]
        return {"notes": notes, "count": len(notes)}

    @app.post("/folders/{folder_id}/notes", status_code=201)
    async def create_folder_note(
        folder_id: int, body: NoteIn, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        return {"note": store.create_note(body.title, body.content, folder_id).to_dict()}

    @app.put("/folders/{folder_id}/notes/order")
    async def reorder_notes(
        folder_id: int, body: NoteOrder, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        updated = store.reorder_notes(folder_id, {item.id: item.order for item in body.note_order})
        return {"updated": updated}

    # Notes

    @app.get("/notes")
    async def list_notes(
        q: str | None = Query(None, description="Substring filter on title and content"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        notes = [n.to_dict() for n in store.list_notes(query=q)]
        return {"notes": notes, "count": len(notes)}

    @app.post("/notes", status_code=201)
    async def create_note(body: NoteIn, auth: None = Depends(verify_token)) -> dict[str, Any]:
        return {"note": store.create_note(body.title, body.content, body.folder_id).to_dict()}

    @app.get("/notes/{note_id}")
    async def get_note(note_id: int, auth: None = Depends(verify_token)) -> dict[str, Any]:
        return {"note": store.get_note(note_id).to_dict()}

    @app.put("/notes/{note_id}")
    async def update_note(
        note_id: int, body: NoteUpdate, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        # only fields present in the request are changed; an explicit
        # "folder_id": null moves the note out of its folder
        changes = body.model_dump(exclude_unset=True)
        return {"note": store.update_note(note_id, **changes).to_dict()}

    @app.delete("/notes/{note_id}")
    async def delete_note(note_id: int, auth: None = Depends(verify_token)) -> dict[str, Any]:
        store.delete_note(note_id)
        return {"message": "Note deleted"}

    @app.get("/notes/{note_id}/render")
    async def render_note(
        note_id: int,
        format: RenderFormat = Query("blocks", description="blocks or html"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        note = store.get_note(note_id)
        return {"id": note.id, "title": note.title, **_rendered(note.content, format, runtime)}

    @app.post("/notes/{note_id}/checkbox")
    async def note_checkbox(
        note_id: int, body: CheckboxRequest, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        """Toggle (or set) a checklist line and return the note re-rendered."""
        if body.checked is None:
            note = store.toggle_checkbox(note_id, body.line, strict=body.strict)
        else:
            note = store.set_checkbox(note_id, body.line, body.checked, strict=body.strict)
        logger.debug("Checkbox on line %d of note %d via API", body.line, note_id)
        return _note_with_render(note, runtime)

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
