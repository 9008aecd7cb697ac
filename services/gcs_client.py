import os
from datetime import timedelta
from typing import Tuple
from google.cloud import storage

GCS_SIGNED_EXPIRES = int(os.getenv("GCS_SIGNED_EXPIRES", "3600"))

_bucket = None

def _bucket_handle():
    global _bucket
    if _bucket is None:
        client = storage.Client()
        _bucket = client.bucket(os.environ["GCS_BUCKET"])
    return _bucket

def upload_photo(data: bytes, dest_path: str, content_type: str) -> Tuple[str, str]:
    """Store a profile photo; returns (gs:// uri, URL the completion service can fetch)."""
    b = _bucket_handle()
    blob = b.blob(dest_path)
    blob.upload_from_string(data, content_type=content_type)

    # the model fetches the image itself, so it needs a URL it can read
    if os.getenv("GCS_SIGNED_URL", "false").lower() == "true":
        return f"gs://{b.name}/{dest_path}", blob.generate_signed_url(expiration=timedelta(seconds=GCS_SIGNED_EXPIRES))
    blob.acl.save_predefined("publicRead")
    return f"gs://{b.name}/{dest_path}", blob.public_url
