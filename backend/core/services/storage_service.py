# ------------------------------ IMPORTS ------------------------------
import os
import uuid
from pathlib import Path
from typing import Optional
import logging

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from core.config.settings import settings, StorageConfig
from core.errors import StorageError

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

# ------------------------------ BASE ------------------------------

class StagingService:
    """Stage uploads, then promote them to durable storage or discard them.

    Paths are relative keys such as ``temp/<uuid>.jpg``; promotion swaps the
    staged prefix for the durable one.
    """

    def __init__(self, config: StorageConfig):
        self.config = config

    def _generate_staged_key(self, original_filename: str) -> str:
        extension = os.path.splitext(original_filename or "")[1].lower()
        return f"{self.config.staged_prefix}{uuid.uuid4()}{extension}"

    def durable_key_for(self, staged_key: str) -> str:
        if staged_key.startswith(self.config.staged_prefix):
            return self.config.durable_prefix + staged_key[len(self.config.staged_prefix):]
        return staged_key

    def staged_key_for(self, durable_key: str) -> str:
        if durable_key.startswith(self.config.durable_prefix):
            return self.config.staged_prefix + durable_key[len(self.config.durable_prefix):]
        return durable_key

    def public_url(self, key: str) -> str:
        return f"{self.config.public_base_url.rstrip('/')}/uploads/{key}"

    def stage(self, content: bytes, original_filename: str, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    def promote(self, staged_key: str) -> str:
        raise NotImplementedError

    def demote(self, durable_key: str) -> str:
        """Move a promoted file back to the staging area."""
        raise NotImplementedError

    def discard(self, staged_key: str) -> bool:
        raise NotImplementedError

    def delete_durable(self, durable_key: str) -> bool:
        raise NotImplementedError

# ------------------------------ LOCAL FILESYSTEM ------------------------------

class LocalStagingService(StagingService):
    """Staging area on the local uploads directory."""

    def __init__(self, config: StorageConfig, root: Optional[Path] = None):
        super().__init__(config)
        self.root = Path(root or config.uploads_dir)

    def _path(self, key: str) -> Path:
        return self.root / key

    def stage(self, content: bytes, original_filename: str, content_type: Optional[str] = None) -> str:
        key = self._generate_staged_key(original_filename)
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to stage {original_filename}: {e}")
            raise StorageError("Failed to store uploaded image")
        logger.info(f"Staged upload at {key}")
        return key

    def promote(self, staged_key: str) -> str:
        durable_key = self.durable_key_for(staged_key)
        target = self._path(durable_key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(self._path(staged_key), target)
        except OSError as e:
            logger.error(f"Failed to promote {staged_key}: {e}")
            raise StorageError(f"Failed to promote staged file {staged_key}")
        logger.info(f"Promoted {staged_key} to {durable_key}")
        return durable_key

    def demote(self, durable_key: str) -> str:
        staged_key = self.staged_key_for(durable_key)
        try:
            os.replace(self._path(durable_key), self._path(staged_key))
        except OSError as e:
            logger.error(f"Failed to demote {durable_key}: {e}")
            raise StorageError(f"Failed to demote durable file {durable_key}")
        logger.info(f"Demoted {durable_key} to {staged_key}")
        return staged_key

    def discard(self, staged_key: str) -> bool:
        try:
            self._path(staged_key).unlink()
            logger.info(f"Discarded staged file {staged_key}")
            return True
        except FileNotFoundError:
            logger.warning(f"Staged file already gone: {staged_key}")
            return False
        except OSError as e:
            logger.warning(f"Could not delete staged file {staged_key}: {e}")
            return False

    def delete_durable(self, durable_key: str) -> bool:
        try:
            self._path(durable_key).unlink()
            logger.info(f"Deleted durable file {durable_key}")
            return True
        except FileNotFoundError:
            logger.warning(f"Durable file already gone: {durable_key}")
            return False
        except OSError as e:
            logger.warning(f"Could not delete durable file {durable_key}: {e}")
            return False

# ------------------------------ S3 ------------------------------

class S3StagingService(StagingService):
    """Staging area inside an S3 bucket."""

    def __init__(self, config: StorageConfig, s3_client=None):
        super().__init__(config)
        self.s3_client = s3_client or self._initialize_client()

    def _initialize_client(self):
        """Initialize S3 client with credentials."""
        try:
            client = boto3.client(
                "s3",
                aws_access_key_id=self.config.access_key_id or None,
                aws_secret_access_key=self.config.secret_access_key or None,
                region_name=self.config.region,
            )
            logger.info("S3 client initialized successfully")
            return client
        except NoCredentialsError:
            logger.error("AWS credentials not found")
            raise StorageError("AWS credentials not configured")

    def public_url(self, key: str, expiration: int = 3600) -> str:
        """Generate presigned URL for file access."""
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.config.bucket_name, "Key": key},
                ExpiresIn=expiration,
            )
        except ClientError as e:
            logger.error(f"Failed to generate presigned URL: {e}")
            return ""

    def stage(self, content: bytes, original_filename: str, content_type: Optional[str] = None) -> str:
        key = self._generate_staged_key(original_filename)
        try:
            self.s3_client.put_object(
                Bucket=self.config.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type or "application/octet-stream",
                Metadata={"original_filename": original_filename or ""},
            )
        except ClientError as e:
            logger.error(f"S3 upload error: {e}")
            raise StorageError("Failed to upload image to S3")
        logger.info(f"Staged upload at s3://{self.config.bucket_name}/{key}")
        return key

    def promote(self, staged_key: str) -> str:
        durable_key = self.durable_key_for(staged_key)
        try:
            self.s3_client.copy_object(
                Bucket=self.config.bucket_name,
                Key=durable_key,
                CopySource={"Bucket": self.config.bucket_name, "Key": staged_key},
            )
            self.s3_client.delete_object(Bucket=self.config.bucket_name, Key=staged_key)
        except ClientError as e:
            logger.error(f"S3 promote error for {staged_key}: {e}")
            raise StorageError(f"Failed to promote staged file {staged_key}")
        logger.info(f"Promoted {staged_key} to {durable_key}")
        return durable_key

    def demote(self, durable_key: str) -> str:
        staged_key = self.staged_key_for(durable_key)
        try:
            self.s3_client.copy_object(
                Bucket=self.config.bucket_name,
                Key=staged_key,
                CopySource={"Bucket": self.config.bucket_name, "Key": durable_key},
            )
            self.s3_client.delete_object(Bucket=self.config.bucket_name, Key=durable_key)
        except ClientError as e:
            logger.error(f"S3 demote error for {durable_key}: {e}")
            raise StorageError(f"Failed to demote durable file {durable_key}")
        logger.info(f"Demoted {durable_key} to {staged_key}")
        return staged_key

    def discard(self, staged_key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.config.bucket_name, Key=staged_key)
            logger.info(f"Discarded staged file {staged_key}")
            return True
        except ClientError as e:
            logger.warning(f"S3 delete error for {staged_key}: {e}")
            return False

    def delete_durable(self, durable_key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.config.bucket_name, Key=durable_key)
            logger.info(f"Deleted durable file {durable_key}")
            return True
        except ClientError as e:
            logger.warning(f"S3 delete error for {durable_key}: {e}")
            return False

# ------------------------------ FACTORY ------------------------------

_staging_service: Optional[StagingService] = None

def get_staging_service() -> StagingService:
    """FastAPI dependency returning the configured staging backend."""
    global _staging_service
    if _staging_service is None:
        if settings.storage.backend == "s3":
            _staging_service = S3StagingService(settings.storage)
        else:
            _staging_service = LocalStagingService(settings.storage)
    return _staging_service

# ------------------------------ END OF FILE ------------------------------
