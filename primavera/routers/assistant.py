# primavera/routers/assistant.py

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic_ai.models import Model

from primavera.agent import AssistantDeps, agent
from primavera.config import get_settings
from primavera.dependencies import CurrentCustomer, SessionDep
from primavera.schemas import ChatRequest, ChatResponse
from primavera.search import MenuIndex, get_menu_index

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


# Build the Agent Dependencies
# This bundles the CUSTOMER + DB into the object the agent needs
async def get_assistant_deps(
    session: SessionDep,
    customer: CurrentCustomer,
    index: Optional[MenuIndex] = Depends(get_menu_index),
) -> AssistantDeps:
    return AssistantDeps(customer_id=customer.id, db=session, menu_index=index)


def get_assistant_model() -> Union[str, Model]:
    return get_settings().assistant_model


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    deps: AssistantDeps = Depends(get_assistant_deps),
    model: Union[str, Model] = Depends(get_assistant_model),
):
    """
    1. FastAPI resolves the customer and the database session
    2. The context is passed to the agent
    3. The agent's answer is returned to the customer
    """
    try:
        # we use run() for async/ await support in FastAPI
        result = await agent.run(request.message, deps=deps, model=model)
    except Exception as exc:
        logger.exception("Assistant failed for customer %s", deps.customer_id)
        raise HTTPException(status_code=502, detail=f"Assistant unavailable: {exc}") from exc

    return ChatResponse(response=result.output)
