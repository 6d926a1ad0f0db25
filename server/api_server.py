"""FastAPI application entry point for the vector memory bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientErrors import ClientRequestError
from shared.clients.extras.ExtrasClientInterface import ExtrasClientInterface
from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.VectorClientManager import VectorClientManager
from shared.clients.files.FileClientManager import FileClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.extras.ExtrasClientManager import ExtrasClientManager
from services.vector_memory.ChatContext import ChatContext
from services.vector_memory.NotificationLog import NotificationLog
from services.vector_memory.PromptSlotRegistry import PromptSlotRegistry
from services.vector_memory.RetrievalService import RetrievalService
from services.vector_memory.SettingsStore import SettingsStore
from services.vector_memory.SummarizeService import SummarizeService
from services.vector_memory.SyncService import SyncService
from server.routers.SettingsRouter import router as settings_router
from server.routers.MemoryRouter import router as memory_router
from server.routers.FilesRouter import router as files_router
from server.routers.DataBankRouter import router as databank_router

logging = setup_logging()
helper_config = HelperConfig(logger=logging)
app_version = helper_config.get_string_val("APP_VERSION", default="unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = helper_config

    vector_client = VectorClientManager(helper_config=app.state.helper_config).get_client()
    file_client = FileClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()
    extras_client = ExtrasClientManager(helper_config=app.state.helper_config).get_client()
    clients = [client for client in (vector_client, file_client, llm_client, extras_client) if client is not None]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.", color="green")

    await prepare_vector_client(vector_client, extras_client)

    app.state.settings_store = SettingsStore(helper_config=app.state.helper_config)
    app.state.chat_context = ChatContext()
    app.state.prompt_slots = PromptSlotRegistry()
    app.state.notifications = NotificationLog(helper_config=app.state.helper_config)
    summarizer = SummarizeService(
        helper_config=app.state.helper_config,
        llm_client=llm_client,
        extras_client=extras_client,
    )
    app.state.sync_service = SyncService(
        helper_config=app.state.helper_config,
        vector_client=vector_client,
        file_client=file_client,
        settings_store=app.state.settings_store,
        chat_context=app.state.chat_context,
        notifications=app.state.notifications,
        summarizer=summarizer,
    )
    app.state.retrieval_service = RetrievalService(
        helper_config=app.state.helper_config,
        vector_client=vector_client,
        sync_service=app.state.sync_service,
        settings_store=app.state.settings_store,
        prompt_slots=app.state.prompt_slots,
        notifications=app.state.notifications,
        summarizer=summarizer,
    )

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="vector_memory_bridge",
    description=(
        "Vector memory for AI character chats. Chat messages, Data Bank files and "
        "World Info entries are mirrored into a vector store by hash diffing, and the "
        "most relevant content is injected into the outgoing prompt by the generation "
        "interceptor at POST /interceptor/rearrange."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=helper_config.get_list_val("APP_CORS_ORIGINS", default=["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(settings_router)
app.include_router(memory_router)
app.include_router(files_router)
app.include_router(databank_router)


async def prepare_vector_client(
    vector_client: VectorClientInterface,
    extras_client: ExtrasClientInterface | None,
) -> None:
    """Load the remote state the vector client validates sources against.

    Failures are non-fatal. The vector client re-reads the state when a
    request fails its source check, so a key stored later is still picked up.
    """
    try:
        secret_state = await vector_client.do_refresh_secret_state()
        logging.info("Vector server stores %d API keys.", sum(1 for stored in secret_state.values() if stored))
    except ClientRequestError as e:
        logging.warning("Could not read the secret state of the vector server: %s", e)

    if extras_client is None:
        return
    vector_client.set_extras_modules_loader(extras_client.do_fetch_modules)
    try:
        modules = await extras_client.do_fetch_modules()
        vector_client.set_extras_modules(modules)
        logging.info("Extras API modules: %s", ", ".join(modules) or "none")
    except ClientRequestError as e:
        logging.warning("Extras API is not reachable: %s", e)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting vector_memory_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
