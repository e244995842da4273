from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from verisponsor.config import get_settings
from verisponsor.database.connection import close_mongo_connection, connect_to_mongo
from verisponsor.logging_config import configure_logging
from verisponsor.repositories.conversation_repository import MongoConversationRepository
from verisponsor.repositories.message_repository import MongoMessageRepository
from verisponsor.routers.chat import router as chat_router
from verisponsor.routers.conversations import router as conversations_router
from verisponsor.routers.users import router as users_router
from verisponsor.utils.realtime_bus import close_bus


@asynccontextmanager
async def lifespan(app: FastAPI):

    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.uses_mongo:
        db = await connect_to_mongo(settings)
        await MongoConversationRepository(db).ensure_indexes()
        await MongoMessageRepository(db).ensure_indexes()
    logger.info("VeriSponsor messaging started with {} storage", settings.storage_backend)
    try:
        yield
    finally:
        await close_bus()
        if settings.uses_mongo:
            await close_mongo_connection()


app = FastAPI(title="VeriSponsor Messaging", lifespan=lifespan)


app.include_router(users_router)
app.include_router(conversations_router)
app.include_router(chat_router)


@app.get("/")
async def root():

    return {"message": "VeriSponsor messaging is running", "storage": get_settings().storage_backend}
