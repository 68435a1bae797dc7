from typing import Any
from fastapi import APIRouter, Request

from app.api.deps import DojahDep, SessionDep
from app.core.errors import ValidationError
from app.core.rate_limit import limiter
from app.schemas.kyc import PhotoIdVerificationRequest
from app.schemas.response import APIResponse
from app.schemas.dojah import PhotoIdVerdict
from app.services import accounts

router = APIRouter()

@router.post("/photo_id_verify", response_model=APIResponse[PhotoIdVerdict])
@limiter.limit("5/minute")
async def photo_id_verify(request: Request, session: SessionDep, dojah: DojahDep, verify_in: PhotoIdVerificationRequest) -> Any:
    """
    Compare a selfie against a photo ID and mark the user KYC-verified on a match.
    """
    await accounts.get_user(session, verify_in.user_id)
    verdict = await dojah.verify_photo_id(photoid_image=verify_in.photoid_image, selfie_image=verify_in.selfie_image)
    if not verdict.selfie.match:
        raise ValidationError("Selfie does not match the photo ID", result=verdict.model_dump())

    await accounts.record_kyc_verdict(session, verify_in.user_id, matched=True)
    return APIResponse(message="Verification successful", result=verdict)
