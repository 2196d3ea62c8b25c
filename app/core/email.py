"""HTML email delivery over SMTP"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

logger = logging.getLogger("app")

CODE_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background: #f5f6f8; padding: 24px;">
    <div style="max-width: 480px; margin: auto; background: #ffffff; border-radius: 8px; padding: 32px;">
      <h2 style="color: #222;">{heading}</h2>
      <p>Hi {name},</p>
      <p>{intro}</p>
      <p style="font-size: 32px; letter-spacing: 8px; font-weight: bold; text-align: center;">{code}</p>
      <p>This code expires in {minutes} minutes. If you did not request it, you can ignore this email.</p>
    </div>
  </body>
</html>
"""


class EmailSender:
    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str,
        use_tls: bool = True,
        timeout: float = 15.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.use_tls = use_tls
        self.timeout = timeout

    def send_html(self, to_email: str, subject: str, html: str) -> bool:
        """Send one HTML email; returns False instead of raising so callers can fire and forget"""
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = to_email
        message.attach(MIMEText(html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.from_email, [to_email], message.as_string())
            logger.info(f"Sent '{subject}' email to {to_email}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' email to {to_email}: {e}")
            return False

    def send_verification_code(self, to_email: str, name: str, code: str) -> bool:
        html = CODE_TEMPLATE.format(
            heading="Verify your email",
            name=name,
            intro="Use this code to verify your email address:",
            code=code,
            minutes=10,
        )
        return self.send_html(to_email, "Your verification code", html)

    def send_password_reset_code(self, to_email: str, name: str, code: str) -> bool:
        html = CODE_TEMPLATE.format(
            heading="Reset your password",
            name=name,
            intro="Use this code to reset your password:",
            code=code,
            minutes=10,
        )
        return self.send_html(to_email, "Your password reset code", html)
