from aws_cdk import (
    RemovalPolicy,
    aws_kms as kms,
)
from constructs import Construct


def create_storage_key(scope: Construct, id: str, description: str) -> kms.Key:
    """Create a dedicated customer managed key with yearly automatic rotation."""
    return kms.Key(
        scope,
        id,
        description=description,
        enable_key_rotation=True,
        removal_policy=RemovalPolicy.RETAIN,
    )
