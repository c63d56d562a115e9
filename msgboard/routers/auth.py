from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from msgboard.schemas.auth import LoginIn, RegisterIn, SendCodeIn, UpdatePasswordIn, VerifyCodeIn
from msgboard.services.auth_flow import AuthWorkflow
from msgboard.services.authz import get_auth_workflow, get_reset_workflow, get_token
from msgboard.services.errors import NotFoundError
from msgboard.services.password_reset import PasswordResetWorkflow

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", status_code=201)
def register(payload: RegisterIn, auth: AuthWorkflow = Depends(get_auth_workflow)):
    user_id = auth.register(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return {"success": True, "message": "Registration successful", "userId": user_id}


@router.post("/login")
def login(payload: LoginIn, auth: AuthWorkflow = Depends(get_auth_workflow)):
    try:
        result = auth.login(payload.username, payload.password)
    except NotFoundError as e:
        # unknown user is a credentials failure at this endpoint
        return JSONResponse(status_code=401, content=e.to_dict())

    return {
        "success": True,
        "message": "Login successful",
        "token": result.token,
        "user": result.user.to_public(),
    }


@router.get("/verify-token")
def verify_token(token: str | None = Depends(get_token), auth: AuthWorkflow = Depends(get_auth_workflow)):
    user = auth.verify_token(token)
    return {"success": True, "user": user.to_public()}


@router.post("/logout")
def logout(token: str | None = Depends(get_token), auth: AuthWorkflow = Depends(get_auth_workflow)):
    auth.logout(token)
    return {"success": True, "message": "Logged out"}


@router.post("/password-reset/send-code")
def send_code(
    payload: SendCodeIn,
    req: Request,
    reset: PasswordResetWorkflow = Depends(get_reset_workflow),
):
    issued = reset.request_code(payload.email)

    if issued.delivered:
        body = {"success": True, "message": "Verification code sent to your email"}
        if req.app.state.settings.expose_debug_codes:
            body["debugCode"] = issued.code
        return body

    return {
        "success": False,
        "message": "Email delivery failed, use the debug code instead",
        "debugCode": issued.code,
        "error": issued.delivery_error.message,
    }


@router.post("/password-reset/verify-code")
def verify_code(payload: VerifyCodeIn, reset: PasswordResetWorkflow = Depends(get_reset_workflow)):
    reset_token = reset.verify_code(payload.email, payload.verification_code)
    return {"success": True, "message": "Verification successful", "resetToken": reset_token}


@router.post("/password-reset/update")
def update_password(payload: UpdatePasswordIn, reset: PasswordResetWorkflow = Depends(get_reset_workflow)):
    reset.update_password(
        email=payload.email,
        reset_token=payload.reset_token,
        new_password=payload.new_password,
        confirm_password=payload.confirm_password,
    )
    return {"success": True, "message": "Password updated"}
