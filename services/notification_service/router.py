from fastapi import APIRouter, Depends

from shared.security import require_admin_session

from .schemas import EmailRequest, EmailSent
from .service import EmailService

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin Email"],
    dependencies=[Depends(require_admin_session)],
)


@router.post("/send-email", response_model=EmailSent)
async def send_email(payload: EmailRequest):
    await EmailService.send(payload)
    return EmailSent()
