### app/utils/s3_utils.py

# Standard library imports
import io
from typing import Optional

# Third party imports
import boto3
from botocore.exceptions import BotoCoreError, ClientError

# Local imports
from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


class S3Utils:
    """Utility class for interacting with s3"""
    def __init__(self, bucket_name: Optional[str] = None, s3_client=None):
        """Initialize S3 client with AWS credentials"""
        self.s3_client = s3_client or boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = bucket_name if bucket_name is not None else settings.s3_bucket_name

    @property
    def is_configured(self) -> bool:
        """Whether a target bucket is configured"""
        return bool(self.bucket_name)

    def upload_bytes(self, data: bytes, key: str, content_type: Optional[str] = None) -> bool:
        """
        Upload raw bytes to S3

        Args:
            data: Content to upload
            key: S3 key (path) where the object will be stored
            content_type: Optional content type of the object

        Returns:
            bool: True if upload was successful, False otherwise
        """
        extra_args = {}
        if content_type:
            extra_args['ContentType'] = content_type
        try:
            self.s3_client.upload_fileobj(
                io.BytesIO(data),
                self.bucket_name,
                key,
                ExtraArgs=extra_args
            )
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error("Error uploading file to S3", key=key, error_message=str(e))
            return False

    def generate_presigned_url(self, key: str, expiration: int = 3600) -> Optional[str]:
        """
        Generate a presigned URL for temporary access to an S3 object

        Args:
            key: S3 key (path) of the file
            expiration: URL expiration time in seconds (default: 1 hour)

        Returns:
            str: Presigned URL if successful, None otherwise
        """
        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': key
                },
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Error generating presigned URL", key=key, error_message=str(e))
            return None


s3_utils = S3Utils()
