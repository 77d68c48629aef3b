import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from faxsign.config import Settings, get_settings
from faxsign.create_tables import create_tables
from faxsign.database import SessionLocal
from faxsign.errors import register_error_handlers
from faxsign.modules.auth.controllers.auth_controller import router as auth_router
from faxsign.modules.auth.services.auth_service import AuthService
from faxsign.modules.faxes.controllers.comment_controller import router as comment_router
from faxsign.modules.faxes.controllers.fax_controller import router as fax_router
from faxsign.modules.users.controllers.department_controller import router as department_router
from faxsign.modules.users.controllers.user_controller import router as user_router
from faxsign.modules.users.models import Department, User, UserRole
from faxsign.modules.workflows.controllers.signature_controller import router as signature_router
from faxsign.modules.workflows.controllers.workflow_controller import router as workflow_router

logger = logging.getLogger("faxsign")


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def seed_defaults(session: Session, settings: Settings):
    """Creates the default departments and accounts that are missing"""
    departments = {d.name: d for d in session.query(Department).all()}
    for name in settings.default_departments:
        if name not in departments:
            departments[name] = Department(name=name)
            session.add(departments[name])
    session.flush()

    for account in settings.default_accounts:
        if session.query(User).filter(User.username == account.username).first():
            continue
        department = departments.get(account.department) if account.department else None
        session.add(User(
            username=account.username,
            email=account.email,
            password_hash=AuthService.get_password_hash(account.password),
            full_name=account.full_name,
            role=UserRole(account.role),
            department_id=department.id if department else None,
        ))
        logger.info("Seeded account %s (%s)", account.username, account.role)
    session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting %s", settings.app_name)
    create_tables()
    os.makedirs(settings.upload_dir, exist_ok=True)
    if settings.seed_defaults:
        with SessionLocal() as session:
            seed_defaults(session, settings)
    logger.info("Database: %s | uploads: %s", settings.database_url, settings.upload_dir)
    yield
    logger.info("%s stopped", settings.app_name)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Accept", "Content-Type", "Authorization", "X-Requested-With", "Origin"],
    )
    register_error_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(department_router)
    app.include_router(fax_router)
    app.include_router(comment_router)
    app.include_router(workflow_router)
    app.include_router(signature_router)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("faxsign.main:app", host="0.0.0.0", port=8000, reload=True)
