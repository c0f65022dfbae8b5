from fastapi import APIRouter, Depends, Request

from jevah.auth.dependencies import get_current_user
from jevah.chatbot.gemini import get_gemini_client
from jevah.chatbot.schemas import ChatMessageRequest
from jevah.chatbot.services import ChatbotService
from jevah.db.mongo import get_database
from jevah.utils.rate_limit import chatbot_limit

router = APIRouter(prefix="/api/ai-chatbot", tags=["ai-chatbot"])


@router.post("/message")
@chatbot_limit
async def send_message(
    request: Request,
    data: ChatMessageRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
    client=Depends(get_gemini_client),
):
    return {"success": True, "data": await ChatbotService(db, client).send_message(current_user, data.message)}


@router.get("/history")
async def chat_history(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "messages": await ChatbotService(db).get_history(current_user["_id"])}


@router.delete("/history")
async def clear_history(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    await ChatbotService(db).clear_history(current_user["_id"])
    return {"success": True, "message": "Chat history cleared"}


@router.get("/stats")
async def session_stats(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "stats": await ChatbotService(db).get_session_stats(current_user["_id"])}
