"""Editor diff and diagnostics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from assistant_gateway.api.dependencies import envelope_response, get_facade, json_body
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.handlers import editor
from assistant_gateway.core.schemas import EditorDiffRequest

router = APIRouter()


@router.post("/editor/diff")
async def get_diff(body: EditorDiffRequest = Depends(json_body(EditorDiffRequest))):
    """Line diff between two texts"""
    return envelope_response(await editor.get_diff(body))


@router.get("/editor/diagnostics")
async def get_diagnostics(
    path: Optional[str] = None,
    severity: Optional[str] = None,
    facade: SessionFacade = Depends(get_facade),
):
    """Workspace diagnostics, optionally filtered by path and severity"""
    return envelope_response(await editor.get_diagnostics(facade, path, severity))
