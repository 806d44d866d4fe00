import boto3
from botocore.exceptions import BotoCoreError, ClientError
from app.core.config import settings
from app.core.errors import ExternalServiceError
import logging

logger = logging.getLogger(__name__)

s3_client = boto3.client(
    's3',
    endpoint_url=settings.S3_ENDPOINT_URL,
    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    region_name=settings.AWS_REGION
)


def ensure_bucket_exists():
    try:
        s3_client.head_bucket(Bucket=settings.S3_BUCKET_NAME)
        logger.info(f"bucket {settings.S3_BUCKET_NAME} already exists")
    except ClientError as e:
        error_code = e.response['Error']['Code']
        if error_code in ('404', 'NoSuchBucket'):
            try:
                s3_client.create_bucket(Bucket=settings.S3_BUCKET_NAME)
                logger.info(f"created bucket {settings.S3_BUCKET_NAME}")
            except ClientError as create_error:
                logger.error(f"failed to create bucket: {create_error}")
                raise
        else:
            logger.error(f"error checking bucket: {e}")
            raise


def public_url(file_key: str) -> str:
    return f"{settings.S3_PUBLIC_URL}/{settings.S3_BUCKET_NAME}/{file_key}"


def upload_file(file_content: bytes, file_key: str, content_type: str) -> str:
    """Store ``file_content`` under ``file_key`` and return its public URL."""
    try:
        ensure_bucket_exists()
        s3_client.put_object(
            Bucket=settings.S3_BUCKET_NAME,
            Key=file_key,
            Body=file_content,
            ContentType=content_type
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"failed to upload file {file_key}: {e}")
        raise ExternalServiceError(f"Failed to upload file to storage: {e}")

    file_url = public_url(file_key)
    logger.info(f"file uploaded successfully: {file_url}")
    return file_url
