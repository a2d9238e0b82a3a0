import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from dayplanner.config import APP_DEBUG
from dayplanner.services.zoho_mail import ZohoMailError, ZohoMailService, get_mail_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Zoho"], include_in_schema=False)


def require_debug():
    """Operator routes exist only while APP_DEBUG is on."""
    if not APP_DEBUG:
        raise HTTPException(status_code=404, detail="Not Found")


# Step 1: Redirect the operator to Zoho's consent screen
@router.get("/zoho/authorize", response_class=RedirectResponse, dependencies=[Depends(require_debug)])
def zoho_authorize(mailer: ZohoMailService = Depends(get_mail_service)):
    return RedirectResponse(mailer.authorization_url(), status_code=302)


# Step 2: Exchange the authorization code for a refresh token
@router.get("/callback", dependencies=[Depends(require_debug)])
def zoho_callback(request: Request, mailer: ZohoMailService = Depends(get_mail_service)):
    """
    Handles the Zoho OAuth redirect and shows the refresh token to put in .env.
    """
    code = request.query_params.get("code")
    if not code:
        logger.error("No authorization code provided in Zoho OAuth callback")
        return JSONResponse({"status": "error", "message": "No authorization code provided"}, status_code=400)

    try:
        tokens = mailer.exchange_code(code)
    except ZohoMailError as e:
        logger.error("Zoho token exchange failed: %s", e)
        return JSONResponse({"status": "error", "message": str(e)}, status_code=502)

    logger.info("Zoho OAuth tokens obtained")
    return {
        "status": "success",
        "message": "Add ZOHO_REFRESH_TOKEN to your .env file",
        "refresh_token": tokens.get("refresh_token"),
        "expires_in": tokens.get("expires_in"),
    }
