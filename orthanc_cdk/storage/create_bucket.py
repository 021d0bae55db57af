from aws_cdk import (
    Duration,
    RemovalPolicy,
    aws_s3 as s3,
)
from constructs import Construct

from ..outputs import ObjectStore
from .create_keys import create_storage_key

LIFECYCLE_DAYS = 30


def create_dicom_bucket(scope: Construct) -> ObjectStore:
    """
    Create the S3 bucket used as the DICOM image store.

    The bucket is KMS-encrypted under its own rotating key, fully private, TLS-only
    and versioned. One lifecycle rule cleans up abandoned multipart uploads and
    moves objects to Intelligent-Tiering after 30 days.
    """
    kms_key = create_storage_key(scope, "OrthancBucketKey", "Orthanc DICOM bucket encryption key")

    bucket = s3.Bucket(
        scope,
        "OrthancBucket",
        encryption=s3.BucketEncryption.KMS,
        encryption_key=kms_key,
        block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
        enforce_ssl=True,
        versioned=True,
        removal_policy=RemovalPolicy.RETAIN,  # medical images outlive the stack
        lifecycle_rules=[
            s3.LifecycleRule(
                abort_incomplete_multipart_upload_after=Duration.days(LIFECYCLE_DAYS),
                transitions=[
                    s3.Transition(
                        storage_class=s3.StorageClass.INTELLIGENT_TIERING,
                        transition_after=Duration.days(LIFECYCLE_DAYS),
                    ),
                ],
            ),
        ],
    )

    return ObjectStore(bucket=bucket, kms_key=kms_key)
