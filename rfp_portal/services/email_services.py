import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from ..core.config import get_settings
from ..core.template_engine import render_template_string
from ..models.types import CompanyRole

logger = logging.getLogger(__name__)
settings = get_settings()


INVITATION_TEMPLATE = """
<html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #2C5282;">Invitation to {{ company_name }}</h2>
            <p>{{ inviter_name }} has invited you to join <strong>{{ company_name }}</strong>
            on the RFP portal as <strong>{{ role }}</strong>.</p>
            {% if custom_message %}
            <p style="background-color: #F7FAFC; padding: 15px; border-radius: 5px;">{{ custom_message }}</p>
            {% endif %}
            <p><a href="{{ accept_url }}">Accept the invitation</a></p>
            <ul style="padding-left: 20px;">
                <li>This invitation expires in {{ expire_days }} days</li>
                <li>It can only be used once, by {{ to_email }}</li>
                <li>As {{ role }}, you will be able to {{ role_description }}</li>
            </ul>
        </div>
    </body>
</html>
"""

INVITATION_CANCELLED_TEMPLATE = """
<h2>Invitation cancelled</h2>
<p>Your invitation to join {{ company_name }} has been cancelled.</p>
<p>If you think this is a mistake, contact the company administrator.</p>
"""


class EmailService:
    def __init__(self):
        self.smtp_server = settings.MAIL_SERVER
        self.smtp_port = settings.MAIL_PORT
        self.username = settings.MAIL_USERNAME
        self.password = settings.MAIL_PASSWORD
        self.from_email = settings.MAIL_FROM

    def _send_email(self, to_email: str, subject: str, html_content: str) -> None:
        message = MIMEMultipart()
        message["From"] = self.from_email
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(html_content, "html"))

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except Exception:
            logger.exception(f"Error sending email to {to_email}")

    @staticmethod
    def _get_role_description(role: CompanyRole) -> str:
        descriptions = {
            CompanyRole.ADMIN: "manage members, invitations and NDAs for the company",
            CompanyRole.MEMBER: "access RFP documents covered by the company's NDAs",
        }
        return descriptions.get(role, "access basic features")

    def render_invitation_email(
        self,
        to_email: str,
        company_name: str,
        inviter_name: str,
        invitation_token: str,
        role: CompanyRole,
        custom_message: Optional[str] = None,
    ) -> str:
        return render_template_string(
            INVITATION_TEMPLATE,
            to_email=to_email,
            company_name=company_name,
            inviter_name=inviter_name,
            role=role.value,
            role_description=self._get_role_description(role),
            custom_message=custom_message,
            accept_url=f"{settings.FRONTEND_URL}/invitations/{invitation_token}",
            expire_days=settings.INVITATION_EXPIRE_DAYS,
        )

    def send_invitation_email(
        self,
        to_email: str,
        company_name: str,
        inviter_name: str,
        invitation_token: str,
        role: CompanyRole,
        custom_message: Optional[str] = None,
    ) -> None:
        html_content = self.render_invitation_email(
            to_email=to_email,
            company_name=company_name,
            inviter_name=inviter_name,
            invitation_token=invitation_token,
            role=role,
            custom_message=custom_message,
        )
        self._send_email(
            to_email=to_email,
            subject=f"Invitation to join {company_name}",
            html_content=html_content,
        )

    def send_invitation_cancelled_email(self, to_email: str, company_name: str) -> None:
        self._send_email(
            to_email=to_email,
            subject=f"Invitation to {company_name} cancelled",
            html_content=render_template_string(
                INVITATION_CANCELLED_TEMPLATE, company_name=company_name
            ),
        )


email_service = EmailService()
