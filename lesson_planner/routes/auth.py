import os

from fastapi import APIRouter, HTTPException
from fastapi.responses import RedirectResponse
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .. import config
from ..models import AuthStatus

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _oauth_flow() -> Flow:
    if not os.path.exists(config.CAL_CLIENT_JSON):
        raise HTTPException(
            status_code=500,
            detail=f"credentials.json not found at: {config.CAL_CLIENT_JSON}",
        )

    return Flow.from_client_secrets_file(
        config.CAL_CLIENT_JSON,
        scopes=config.SCOPES,
        redirect_uri=config.OAUTH_REDIRECT_URI,
    )


@router.get("/google/url")
def get_google_auth_url():
    flow = _oauth_flow()
    auth_url, _ = flow.authorization_url(
        access_type="offline",
        include_granted_scopes="true",
        prompt="consent",
    )
    return {"url": auth_url}


@router.get("/google/callback")
def google_auth_callback(code: str):
    flow = _oauth_flow()
    flow.fetch_token(code=code)
    creds = flow.credentials

    cal_id = None
    try:
        service = build("calendar", "v3", credentials=creds)
        primary_cal = service.calendarList().get(calendarId="primary").execute()
        cal_id = primary_cal.get("id")
    except HttpError:
        cal_id = None

    config.store_google_creds(creds.to_json(), email=cal_id, calendar_id=cal_id)

    return RedirectResponse(url=f"{config.FRONTEND_ORIGIN}?connected=1")


@router.get("/status", response_model=AuthStatus)
def auth_status():
    if not config.GLOBAL_CREDS_JSON:
        return AuthStatus(connected=False)
    return AuthStatus(connected=True, email=config.GLOBAL_EMAIL)


@router.post("/logout")
def google_logout():
    config.clear_google_creds()
    return {"ok": True}
