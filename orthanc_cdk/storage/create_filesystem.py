from aws_cdk import (
    RemovalPolicy,
    aws_ec2 as ec2,
    aws_efs as efs,
)
from constructs import Construct

from ..outputs import SharedFilesystem
from .create_keys import create_storage_key

ACCESS_POINT_PATH = "/orthanc"
# Fixed non-root POSIX identity for everything the service writes
ORTHANC_UID = "1000"
ORTHANC_GID = "1000"


def create_dicom_filesystem(scope: Construct, vpc: ec2.IVpc, security_group: ec2.ISecurityGroup) -> SharedFilesystem:
    """
    Create the EFS file system used as the DICOM image store when S3 is disabled.

    Mount targets live in the private subnets behind ``security_group``. The service
    only ever mounts through the single access point, never the file system root.
    """
    kms_key = create_storage_key(scope, "OrthancFileSystemKey", "Orthanc EFS encryption key")

    file_system = efs.FileSystem(
        scope,
        "OrthancFileSystem",
        vpc=vpc,
        vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
        security_group=security_group,
        encrypted=True,
        kms_key=kms_key,
        lifecycle_policy=efs.LifecyclePolicy.AFTER_14_DAYS,
        performance_mode=efs.PerformanceMode.GENERAL_PURPOSE,
        throughput_mode=efs.ThroughputMode.BURSTING,
        removal_policy=RemovalPolicy.RETAIN,
    )

    access_point = file_system.add_access_point(
        "NFSAccessPoint",
        path=ACCESS_POINT_PATH,
        create_acl=efs.Acl(owner_uid=ORTHANC_UID, owner_gid=ORTHANC_GID, permissions="750"),
        posix_user=efs.PosixUser(uid=ORTHANC_UID, gid=ORTHANC_GID),
    )

    return SharedFilesystem(file_system=file_system, access_point=access_point, kms_key=kms_key)
