from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assessment_import.core.config import settings
from assessment_import.core.exceptions import register_exception_handlers
from assessment_import.routers import admin_imports as admin_imports_router


app = FastAPI(title=settings.app_name)

origins = [o.strip() for o in (settings.cors_allowed_origins or "").split(",") if o.strip()]
if not origins:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3100",
        "http://127.0.0.1:3100",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"status": "ok", "service": settings.app_name}


app.include_router(admin_imports_router.router)

register_exception_handlers(app)
