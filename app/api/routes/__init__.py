"""API routes."""

from fastapi import APIRouter

from app.api.routes import contacts, handoffs, leads, reminders, reviewers

api_router = APIRouter()

# Web form
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(handoffs.router, prefix="/handoffs", tags=["handoffs"])

# Bot
api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(reviewers.router, prefix="/reviewers", tags=["reviewers"])
api_router.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
