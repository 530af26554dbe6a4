"""Settings handlers: custom instructions, state reset and debug options."""

import logging

from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.schemas import (
    CustomInstructionsRequest,
    DebugOptionsRequest,
    ResetStateRequest,
)

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "assistant_gateway"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


async def get_custom_instructions(facade: SessionFacade) -> Envelope:
    async def run():
        return {"instructions": await facade.get_custom_instructions() or ""}

    return await handle_request(run)


async def set_custom_instructions(
    facade: SessionFacade, request: CustomInstructionsRequest
) -> Envelope:
    async def run():
        await facade.set_custom_instructions(request.value)
        return {"message": "Custom instructions updated"}

    return await handle_request(run)


async def reset_state(facade: SessionFacade, request: ResetStateRequest) -> Envelope:
    """Clear the selected parts of host state. ``all`` selects every part."""

    async def run():
        applied = request.reset_options.selected()
        if "history" in applied:
            await facade.clear_history()
        if "configuration" in applied:
            await facade.reset_configuration()
        if "customInstructions" in applied:
            await facade.set_custom_instructions("")
        logger.info(f"State reset: {', '.join(applied) or 'nothing selected'}")
        return {"message": "State reset successful", "reset": applied}

    return await handle_request(run)


async def update_debug_options(facade: SessionFacade, request: DebugOptionsRequest) -> Envelope:
    async def run():
        options = request.options.model_dump(by_alias=True, exclude_none=True)
        await facade.update_debug_options(options)
        if request.options.log_level:
            logging.getLogger(PACKAGE_LOGGER).setLevel(_LOG_LEVELS[request.options.log_level])
            logger.info(f"Log level set to {request.options.log_level}")
        return {"message": "Debug options updated successfully", "options": options}

    return await handle_request(run)
