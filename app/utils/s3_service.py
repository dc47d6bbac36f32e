import os
import io
import uuid
from functools import lru_cache
from typing import List, Optional
from PIL import Image, UnidentifiedImageError
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from app.errors import StorageFailure, ValidationError


BUCKET = os.getenv("R2_BUCKET")
ITEM_FOLDER = "item-images"
PROOF_FOLDER = "verification-proofs"
URL = f"https://{os.getenv('CLOUDFLARE_ACCOUNT_ID')}.r2.cloudflarestorage.com"
PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "").rstrip("/")

MAX_UPLOAD_SIZE_MB = 5
MAX_UPLOAD_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".heic"}


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client(
        service_name="s3",
        endpoint_url=URL,
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        region_name="auto",
    )


def compress_image(data: bytes, max_width=1400, quality=80):
    try:
        img = Image.open(io.BytesIO(data))
        img = img.convert("RGB")
    except UnidentifiedImageError:
        raise ValidationError("Uploaded file is not a valid image")

    # Resize while keeping aspect ratio
    w, h = img.size
    if w > max_width:
        new_height = int(h * (max_width / w))
        img = img.resize((max_width, new_height), Image.LANCZOS)

    # Try WebP first
    buffer = io.BytesIO()

    try:
        img.save(buffer, format="WEBP", quality=quality, method=6)
        ext = "webp"
    except (OSError, KeyError) as e:
        logger.warning(f"WebP failed, falling back to JPEG: {e}")

        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=80, optimize=True)
        ext = "jpg"

    buffer.seek(0)
    return buffer, ext


def public_url(key: str) -> str:
    return f"{PUBLIC_URL}/{key}"


def key_from_url(url: str) -> Optional[str]:
    prefix = f"{PUBLIC_URL}/"
    if not url.startswith(prefix):
        return None
    return url[len(prefix):]


def upload_to_s3(buffer: io.BytesIO, ext: str, original_name: str, folder: str = ITEM_FOLDER) -> str:
    base = os.path.splitext(os.path.basename(original_name or "upload"))[0]
    key = f"{folder}/{base}-{uuid.uuid4().hex[:12]}.{ext}"

    try:
        get_s3_client().upload_fileobj(buffer, BUCKET, key)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Upload of {key} failed: {e}")
        raise StorageFailure("File upload failed, please try again")

    return public_url(key)


def store_upload(data: bytes, filename: str, folder: str) -> str:
    """
    Upload one user file and return its public URL. Images are compressed,
    anything else (e.g. a PDF receipt) is stored as-is.
    """
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds {MAX_UPLOAD_SIZE_MB}MB limit")

    ext = os.path.splitext(filename or "")[1].lower()

    if ext in IMAGE_EXTENSIONS:
        buffer, new_ext = compress_image(data)
        return upload_to_s3(buffer, new_ext, filename, folder)

    return upload_to_s3(io.BytesIO(data), ext.lstrip(".") or "bin", filename, folder)


def store_uploads(files: List[tuple], folder: str) -> List[str]:
    """Upload (data, filename) pairs in order; any failure aborts the batch."""
    urls = []

    try:
        for data, filename in files:
            urls.append(store_upload(data, filename, folder))
    except (StorageFailure, ValidationError):
        # Don't leave half a submission behind
        for url in urls:
            delete_s3_object(url)
        raise

    return urls


def delete_s3_object(url: str):
    key = key_from_url(url)
    if key is None:
        return

    try:
        get_s3_client().delete_object(Bucket=BUCKET, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Error deleting S3 object {key}: {e}")
