"""Auth API routes: passwordless sign-in, verify, dev login, me."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from intranet.application.services import auth_service
from intranet.config import get_settings
from intranet.core.exceptions import EntityNotFoundException
from intranet.domain.models.user import User
from intranet.domain.schemas.auth import SignInRequest, UserRead, VerifyRequest
from intranet.infrastructure.email_client import ResendEmailClient
from intranet.interfaces.api.deps import get_current_user
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db, get_email_client

settings = get_settings()
router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/signin", status_code=status.HTTP_202_ACCEPTED)
def sign_in(
    body: SignInRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_client: ResendEmailClient = Depends(get_email_client),
):
    token = auth_service.issue_verification_token(db, body.email)
    url = auth_service.sign_in_url(body.email, token)
    background_tasks.add_task(auth_service.send_sign_in_email, email_client, body.email, url)
    return ok(message="Check your email for a sign-in link")


@router.post("/verify")
def verify(body: VerifyRequest, request: Request, db: Session = Depends(get_db)):
    result = auth_service.verify_sign_in(db, body.email, body.token, request)
    return ok(result.to_wire())


@router.post("/dev-login")
def dev_login(body: SignInRequest, request: Request, db: Session = Depends(get_db)):
    if settings.ENVIRONMENT != "development":
        raise EntityNotFoundException("Not found")
    result = auth_service.dev_login(db, body.email, request)
    return ok(result.to_wire())


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return ok(UserRead.model_validate(user).to_wire())
