import asyncio
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from loguru import logger
from strawberry.fastapi import GraphQLRouter

from config.layout_config import load_layout
from config.settings import settings
from logistic_loop.api import schema
from logistic_loop.layout import DEFAULT_LAYOUT
from logistic_loop.loop_model import LogisticLoopModel
from logistic_loop.loop_presenter import LoopPresenter

logger.remove()
logger.add(sys.stderr, level=settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    layout = load_layout(settings.layout_path) if settings.layout_path else DEFAULT_LAYOUT
    model = LogisticLoopModel(layout=layout, tun_base=settings.tun_base)

    # One presenter per process, commands serialized through one lock
    app.state.presenter = LoopPresenter(model)
    app.state.lock = asyncio.Lock()
    logger.info("Logistic loop ready with {} nodes", len(model.nodes))
    try:
        yield
    finally:
        logger.info("Logistic loop stopped after {} ticks", model.tick)

async def get_context(request):
    return {
        "request": request,
        "presenter": request.app.state.presenter,
        "lock": request.app.state.lock,
    }

# Create GraphQL router with context getter
# Note: The schema is already created in logistic_loop.api.schema
graphql_app = GraphQLRouter(schema, context_getter=get_context)

app = FastAPI(lifespan=lifespan)
app.include_router(graphql_app, prefix="/graphql")


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.reload)
