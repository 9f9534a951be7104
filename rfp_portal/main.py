from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.config import get_settings
from .core.database import create_db_and_tables
from .core.errors import register_exception_handlers
from .api.companies import router as company_router
from .api.invitations import router as invitation_router
from .api.join_requests import router as join_request_router
from .api.ndas import router as nda_router
from .api.registrations import router as registration_router
from .api.documents import router as document_router
from .api.notifications import router as notification_router

settings = get_settings()

app = FastAPI(
    title="RFP Portal API",
    description="Company membership, NDA and document entitlement workflows for the RFP portal",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
async def on_startup():
    create_db_and_tables()


@app.get("/api/health", tags=['Health Check'])
async def health_check():
    return {"status": "ok", "message": "RFP Portal API is running"}

app.include_router(company_router, prefix='/api/companies', tags=['Companies'])
app.include_router(invitation_router, prefix='/api/invitations', tags=['Invitations'])
app.include_router(join_request_router, prefix='/api/join-requests', tags=['Join Requests'])
app.include_router(nda_router, prefix='/api/ndas', tags=['NDAs'])
app.include_router(registration_router, prefix='/api/registrations', tags=['Registrations'])
app.include_router(document_router, prefix='/api/documents', tags=['Documents'])
app.include_router(notification_router, prefix='/api/notifications', tags=['Notifications'])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rfp_portal.main:app", host="0.0.0.0", port=8000, reload=True)
