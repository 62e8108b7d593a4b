import logging

from minio import Minio
from minio.error import S3Error

from .config import settings

logger = logging.getLogger(__name__)


def build_minio_client() -> Minio:
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_SECURE,
    )

# Constructing the client does not open a connection.
minio_client = build_minio_client()

def initialize_minio_bucket(client: Minio = minio_client, bucket: str = settings.MINIO_BUCKET) -> bool:
    """Create the upload bucket when missing; returns True if it was created."""
    try:
        if client.bucket_exists(bucket):
            logger.info("Bucket '%s' already exists", bucket)
            return False
        client.make_bucket(bucket)
    except S3Error as e:
        logger.error("MinIO error while preparing bucket '%s': %s", bucket, e)
        raise RuntimeError(f"Failed to initialize MinIO bucket: {e}") from e
    logger.info("Bucket '%s' created successfully", bucket)
    return True
