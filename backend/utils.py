import uuid
import random
import time
from datetime import datetime, timezone
import qrcode
from io import BytesIO
import base64

import config


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_session_code(rng: random.Random = None) -> str:
    """Draws a 4-letter session code from the unambiguous alphabet."""
    rng = rng or random
    return "".join(rng.choice(config.CODE_ALPHABET) for _ in range(config.CODE_LENGTH))


def get_utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_iso() -> str:
    return get_utc_now().isoformat().replace("+00:00", "Z")


def now_ms() -> int:
    """Wall clock in milliseconds, used for toast press timestamps."""
    return int(time.time() * 1000)


def generate_qr_code_base64(data: str) -> str:
    """Generates a QR code and returns it as a base64 encoded string."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, format="PNG")
    img_str = base64.b64encode(buffered.getvalue()).decode("utf-8")
    return img_str


def get_frontend_url() -> str:
    """Base URL of the web client, used for join links and QR codes."""
    if config.FRONTEND_URL:
        return config.FRONTEND_URL.rstrip("/")
    origins = config.get_cors_origins()
    # Prefer a configured (non-localhost) origin when one exists
    for origin in reversed(origins):
        if "localhost" not in origin:
            return origin
    return origins[0]
