import os
from io import BytesIO

from flask import current_app
import boto3
from botocore.client import Config


def _ensure_local_dir():
    d = current_app.config['LOCAL_STORAGE_DIR']
    os.makedirs(d, exist_ok=True)
    return d


def _s3_client():
    s3_kwargs = {}
    endpoint = current_app.config.get('S3_ENDPOINT')
    if endpoint:
        s3_kwargs['endpoint_url'] = endpoint
    region = current_app.config.get('S3_REGION')
    if region:
        s3_kwargs['region_name'] = region
    return boto3.client(
        's3',
        aws_access_key_id=current_app.config.get('S3_ACCESS_KEY'),
        aws_secret_access_key=current_app.config.get('S3_SECRET_KEY'),
        config=Config(signature_version='s3v4', s3={'addressing_style': 'virtual'}),
        **s3_kwargs,
    )


def _save_local(stream, key):
    d = _ensure_local_dir()
    path = os.path.join(d, key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        f.write(stream.read())
    return f"file://{os.path.abspath(path)}"


def _save(stream, key):
    if current_app.config.get('STORAGE_BACKEND', 'local') != 's3':
        return _save_local(stream, key)
    bucket = current_app.config.get('S3_BUCKET')
    try:
        _s3_client().upload_fileobj(stream, bucket, key)
        return f"s3://{bucket}/{key}"
    except Exception:
        current_app.logger.exception('S3 upload failed, falling back to local storage')
        if hasattr(stream, "seek"):
            stream.seek(0)
        return _save_local(stream, key)


def save_bytes(data: bytes, key: str):
    """Store bytes under key on the configured backend (local dir or S3); returns a file:// or s3:// URL."""
    return _save(BytesIO(data), key)
