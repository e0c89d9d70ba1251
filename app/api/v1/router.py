from fastapi import APIRouter

# Public: seat map, holds
from app.api.v1.public.sessions import sessions_router, holds_router

# Public: payments (settlement)
from app.api.v1.public.payments import router as payments_router

# Public: tickets & cancellation
from app.api.v1.public.tickets import router as tickets_router

api_router = APIRouter()

# --- Public: seat map & holds ---
api_router.include_router(sessions_router)
api_router.include_router(holds_router)

# --- Public: payments ---
api_router.include_router(payments_router)

# --- Public: tickets ---
api_router.include_router(tickets_router)
