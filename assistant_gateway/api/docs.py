"""Machine-readable API catalogue.

The catalogue is derived from the registered routes, so it cannot drift from
what the router actually serves. Request schemas come from the pydantic models
attached to each route's body dependency.
"""

import inspect
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.routing import APIRoute
from pydantic import BaseModel

from assistant_gateway.api.dependencies import get_gateway
from assistant_gateway.core.context import GatewayContext

router = APIRouter()


def _body_model(route: APIRoute) -> Optional[Type[BaseModel]]:
    for dependency in route.dependant.dependencies:
        model = getattr(dependency.call, "model", None)
        if model is not None:
            return model
    return None


def _description(route: APIRoute) -> str:
    doc = inspect.getdoc(route.endpoint) or ""
    return doc.splitlines()[0] if doc else route.name


def build_catalogue(app: FastAPI, version: str, base_url: str) -> Dict[str, Any]:
    endpoints: List[Dict[str, Any]] = []
    definitions: Dict[str, Any] = {}
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        model = _body_model(route)
        for method in sorted(route.methods - {"HEAD"}):
            entry: Dict[str, Any] = {
                "path": route.path,
                "method": method,
                "description": _description(route),
            }
            if model is not None:
                entry["body"] = model.__name__
                definitions[model.__name__] = model.model_json_schema(by_alias=True)
            endpoints.append(entry)
    return {
        "version": version,
        "baseUrl": base_url,
        "endpoints": endpoints,
        "schema": {"definitions": definitions},
    }


@router.get("/api-docs")
async def api_docs(request: Request, gateway: GatewayContext = Depends(get_gateway)):
    """Get API documentation"""
    return build_catalogue(
        request.app, gateway.settings.extension_version, gateway.settings.base_url
    )
