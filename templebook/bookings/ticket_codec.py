import base64
import os
import re
from io import BytesIO

import qrcode
from qrcode import constants
from PIL import Image
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from templebook.bookings.schemas import TicketFacts, IssuedTicket
from templebook.errors import InvalidTicketError, TicketEncodingError
from templebook.logging_config import get_logger

logger = get_logger()

IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32

_HEX_PART = re.compile(r"^[0-9a-f]+$")


class TicketCodec:
    """Turns booking facts into an encrypted, authenticated ticket token and back.

    Tokens have the form ``hex(iv):hex(tag):hex(ciphertext)`` under AES-256-GCM.
    The key is derived once from the configured secret with scrypt
    (N=2**14, r=8, p=1), so a codec instance is bound to one secret and two
    codecs built from different secrets cannot read each other's tokens.
    """

    def __init__(self, secret: str, salt: str = "salt", qr_size: int = 400):
        if not secret:
            raise ValueError("Ticket secret must not be empty")

        kdf = Scrypt(salt=salt.encode(), length=KEY_LENGTH, n=2 ** 14, r=8, p=1)
        self._aead = AESGCM(kdf.derive(secret.encode()))
        self.qr_size = qr_size

    def encode(self, facts: TicketFacts) -> IssuedTicket:
        """Encrypt ``facts`` and render the token as a QR code image"""
        try:
            token = self.encrypt(facts.model_dump_json())
            image = self.render_qr_image(token)
        except Exception as exc:
            logger.error(f"Ticket encoding failed for booking {facts.booking_number}: {exc.__class__.__name__}")
            raise TicketEncodingError() from exc

        return IssuedTicket(token=token, image=image)

    def decode(self, token: str) -> TicketFacts:
        """Authenticate and decrypt ``token``.

        Every failure, whatever the cause, raises the same InvalidTicketError.
        """
        try:
            plaintext = self.decrypt(token)
            return TicketFacts.model_validate_json(plaintext)
        except (ValueError, InvalidTag, UnicodeDecodeError) as exc:
            logger.debug(f"Ticket decode failed: {exc.__class__.__name__}")
            raise InvalidTicketError() from None

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        parts = token.strip().split(":")
        if len(parts) != 3 or not all(_HEX_PART.match(part) for part in parts):
            raise ValueError("Malformed ticket token")

        iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
        if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
            raise ValueError("Malformed ticket token")

        return self._aead.decrypt(iv, ciphertext + tag, None).decode("utf-8")

    def render_qr_image(self, token: str) -> str:
        """Render ``token`` as a PNG data URL"""
        qr = qrcode.QRCode(
            version=None,
            error_correction=constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(token)
        qr.make(fit=True)

        qr_image = qr.make_image(fill_color="black", back_color="white")
        qr_image = qr_image.resize((self.qr_size, self.qr_size), Image.LANCZOS)

        buffer = BytesIO()
        qr_image.save(buffer, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()
