"""Configuration, custom instructions and settings endpoints."""

from fastapi import APIRouter, Depends

from assistant_gateway.api.dependencies import envelope_response, get_facade, json_body
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.handlers import config, settings
from assistant_gateway.core.schemas import (
    ConfigurationRequest,
    CustomInstructionsRequest,
    DebugOptionsRequest,
    ResetStateRequest,
)

router = APIRouter()


@router.get("/config")
async def get_configuration(facade: SessionFacade = Depends(get_facade)):
    """Current provider configuration and available models"""
    return envelope_response(await config.get_configuration(facade))


@router.post("/config")
async def update_configuration(
    body: ConfigurationRequest = Depends(json_body(ConfigurationRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Update provider configuration (unspecified fields are kept)"""
    return envelope_response(await config.update_configuration(facade, body))


@router.get("/custom-instructions")
async def get_custom_instructions(facade: SessionFacade = Depends(get_facade)):
    """Get custom instructions"""
    return envelope_response(await settings.get_custom_instructions(facade))


@router.post("/custom-instructions")
async def set_custom_instructions(
    body: CustomInstructionsRequest = Depends(json_body(CustomInstructionsRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Set custom instructions"""
    return envelope_response(await settings.set_custom_instructions(facade, body))


@router.post("/settings/reset")
async def reset_state(
    body: ResetStateRequest = Depends(json_body(ResetStateRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Reset history, configuration and/or custom instructions"""
    return envelope_response(await settings.reset_state(facade, body))


@router.post("/settings/debug")
async def update_debug_options(
    body: DebugOptionsRequest = Depends(json_body(DebugOptionsRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Update debug options"""
    return envelope_response(await settings.update_debug_options(facade, body))
