import logging
import threading
from smtplib import SMTP, SMTPException, SMTPServerDisconnected
from typing import Optional

from config import Config

from relaybox.errors import DeliveryFailed


logger = logging.getLogger(__name__)


class Remailer:
    """
    Provides a simple wrapper around the python mail code that is context
    aware, allows for re-use and will default the envelope sender.

    Configuration is via the following keys:
    * `smtp_host` (defaults to "localhost") as the host to send via
    * `smtp_port` (defaults to 25) as the port to connect to on the `smtp_host`
    * `smtp_starttls` (defaults to False) to upgrade the connection with STARTTLS
    * `smtp_username` and `smtp_password` (optional) to log in before sending
    * `remail_sender` (defaults to "<>") as the default envelope sender

    Entering the context takes a lock, so concurrent releases share the
    connection one at a time.
    """

    def __init__(self, app_config: Config):
        self.host = app_config.get("smtp_host", "localhost")
        self.port = app_config.get("smtp_port", 25)
        self.starttls = app_config.get("smtp_starttls", False)
        self.username = app_config.get("smtp_username", None)
        self.password = app_config.get("smtp_password", None)
        self.sender_from = app_config.get("remail_sender", "<>")

        self.smtp = None
        self.lock = threading.RLock()

    def get_connection(self) -> SMTP:
        if not self._check_smtp_connection():
            self._init_smtp_connection()

        return self.smtp

    def sendmail(self, recipients: list[str], message: bytes, sender: Optional[str] = None) -> dict:
        """
        Sends the message as-is. Any SMTP or socket failure is raised as
        `DeliveryFailed` carrying the underlying error text.
        """
        sender = sender or self.sender_from

        # Non-ASCII addresses can only be sent to servers that offer SMTPUTF8
        mail_options = []
        if not all(address.isascii() for address in [sender, *recipients]):
            mail_options.append("SMTPUTF8")

        try:
            connection = self.get_connection()
            return connection.sendmail(sender, recipients, message, mail_options=mail_options)
        except (SMTPException, OSError, UnicodeError) as e:
            logger.error("Exception in SMTP: %(reason)s", {"reason": str(e)})
            raise DeliveryFailed(f"SMTP error: {e}") from e

    def __enter__(self) -> "Remailer":
        self.lock.acquire()
        return self

    def __exit__(self, type, value, traceback) -> bool:
        try:
            if self.smtp:
                try:
                    self.smtp.quit()
                except (SMTPServerDisconnected, OSError):
                    pass

                self.smtp = None
        finally:
            self.lock.release()

        return False

    def _check_smtp_connection(self) -> bool:
        if not self.smtp:
            return False

        try:
            self.smtp.docmd("NOOP")
            return True

        except SMTPServerDisconnected:
            self.smtp = None
            return False

    def _init_smtp_connection(self) -> None:
        smtp = SMTP(host=self.host, port=self.port)

        try:
            if self.starttls:
                smtp.starttls()

            if self.username:
                smtp.login(self.username, self.password or "")
        except Exception:
            smtp.close()
            raise

        self.smtp = smtp
