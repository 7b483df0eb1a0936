# app/users/auth_emails.py
import logging

import resend

from config.appconfig import settings
from config.clinicconfig import clinic_settings

logger = logging.getLogger(__name__)

resend.api_key = settings.RESEND_API_KEY


# =================================================
# ✅ send registration email with verification code
# =================================================
def send_registration_email_with_verification_code(email, verification_code, full_name="User"):
    if not full_name:
        full_name = "User"

    resend.Emails.send(
        {
            "from": settings.EMAIL_FROM,
            "to": email,
            "subject": "Verify your email!",
            "html": f"<p>Hello {full_name}. Welcome to {clinic_settings.CLINIC_NAME}. "
            "To verify your staff account, enter the code below when prompted. "
            "Do not share this code with anyone.</p>"
            f"<p><strong> {verification_code} </strong></p>"
            f"<p><strong> {clinic_settings.CLINIC_NAME} </strong></p>",
        }
    )
    logger.info(f"📧 Verification code sent to {email}")


# =================================================
# ✅ send reset password link with token in email
# =================================================
def send_reset_password_link_with_token_in_email(email, reset_link, full_name="User"):
    if not full_name:
        full_name = "User"

    resend.Emails.send(
        {
            "from": settings.EMAIL_FROM,
            "to": email,
            "subject": "Reset your password!",
            "html": f"<p>Hello {full_name}. To reset your {clinic_settings.CLINIC_NAME} "
            "password, click the link below</p>"
            f"<p><a href='{reset_link}'>{reset_link}</a></p>"
            "<p>You can only use this link once. Do not share it with anyone.</p>"
            f"<p><strong> {clinic_settings.CLINIC_NAME} </strong></p>",
        }
    )
    logger.info(f"📧 Password reset link sent to {email}")
