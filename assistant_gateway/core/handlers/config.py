"""Provider configuration handlers."""

import logging

from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.schemas import ConfigurationRequest

logger = logging.getLogger(__name__)


async def get_configuration(facade: SessionFacade) -> Envelope:
    async def run():
        return {
            "current": await facade.get_configuration(),
            "availableModels": await facade.get_available_models(),
        }

    return await handle_request(run)


async def update_configuration(facade: SessionFacade, request: ConfigurationRequest) -> Envelope:
    """Merge the supplied keys into the configuration; absent keys are kept."""

    async def run():
        changes = request.model_dump(by_alias=True, exclude_none=True)
        current = await facade.update_configuration(changes)
        logger.info(f"Configuration updated: {', '.join(sorted(changes)) or 'no changes'}")
        return {"current": current}

    return await handle_request(run)
