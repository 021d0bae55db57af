"""
Deployment configuration for the Orthanc topology.

Every recognized option is enumerated here with its default. Values are read
once, at composition start, from CDK context (``cdk deploy -c key=value`` or
``cdk.json``) with an environment-variable fallback, then frozen.
"""
import os
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import aws_cdk as cdk
from constructs import Construct

from .errors import ConfigurationConflict

DEFAULT_ENVIRONMENT = "dev"
DEFAULT_ORTHANC_IMAGE = "orthancteam/orthanc:24.12.0"

# context key -> environment variable fallback
FLAG_SOURCES = {
    "enable_dicom_s3_storage": "ORTHANC_ENABLE_DICOM_S3_STORAGE",
    "enable_multi_az": "ORTHANC_ENABLE_MULTI_AZ",
    "enable_rds_backup": "ORTHANC_ENABLE_RDS_BACKUP",
    "enable_vpc_flow_logs": "ORTHANC_ENABLE_VPC_FLOW_LOGS",
}
ACCESS_LOGS_CONTEXT_KEY = "access_logs_bucket_arn"
ACCESS_LOGS_ENV_VAR = "ORTHANC_ACCESS_LOGS_BUCKET_ARN"

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off", ""}

_S3_BUCKET_ARN = re.compile(r"^arn:aws[a-z-]*:s3:::[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
# CloudFront only accepts ACM certificates issued in us-east-1
_VIEWER_CERTIFICATE_ARN = re.compile(r"^arn:aws[a-z-]*:acm:us-east-1:\d{12}:certificate/[A-Za-z0-9-]+$")


@dataclass(frozen=True)
class FeatureFlags:
    use_object_storage_backend: bool = True
    enable_multi_az: bool = False
    enable_backup: bool = False
    enable_flow_logs: bool = False
    access_log_bucket_arn: Optional[str] = None

    def __post_init__(self):
        validate_access_log_bucket_arn(self.access_log_bucket_arn)


@dataclass(frozen=True)
class DeploymentConfig:
    flags: FeatureFlags = field(default_factory=FeatureFlags)
    environment: str = DEFAULT_ENVIRONMENT
    account: Optional[str] = None
    region: Optional[str] = None
    orthanc_image: str = DEFAULT_ORTHANC_IMAGE
    domain_name: Optional[str] = None
    certificate_arn: Optional[str] = None

    def __post_init__(self):
        validate_viewer_certificate(self.domain_name, self.certificate_arn)

    @property
    def cdk_environment(self) -> Optional[cdk.Environment]:
        # Environment-agnostic synthesis when neither is known, as `cdk synth` does by default
        if not self.account and not self.region:
            return None
        return cdk.Environment(account=self.account, region=self.region)


def parse_flag(name: str, value: Any, default: bool) -> bool:
    """Interpret a context/env value as a boolean. CLI context always arrives as a string."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationConflict(f"{name} must be a boolean, got {value!r}")


def validate_access_log_bucket_arn(arn: Optional[str]) -> Optional[str]:
    """
    Return the ARN unchanged if it is empty or a well-formed S3 bucket ARN.

    An empty value means access logging is off. Anything else that does not
    look like ``arn:<partition>:s3:::<bucket>`` is rejected.
    """
    if not arn:
        return arn
    if not _S3_BUCKET_ARN.match(arn):
        raise ConfigurationConflict(f"access log bucket must be an S3 bucket ARN, got {arn!r}")
    return arn


def validate_viewer_certificate(domain_name: Optional[str], certificate_arn: Optional[str]) -> None:
    """
    Check the optional custom domain for the CloudFront front door.

    Both values are needed together: CloudFront serves an ACM certificate only for
    the aliases it lists. Without them the default certificate is used and no
    minimum TLS version can be enforced.
    """
    if bool(domain_name) != bool(certificate_arn):
        raise ConfigurationConflict("domain_name and certificate_arn must be set together")
    if certificate_arn and not _VIEWER_CERTIFICATE_ARN.match(certificate_arn):
        raise ConfigurationConflict(f"certificate_arn must be an ACM certificate in us-east-1, got {certificate_arn!r}")


def _lookup(scope: Construct, context_key: str, *env_vars: str) -> Any:
    value = scope.node.try_get_context(context_key)
    if value is not None:
        return value
    for env_var in env_vars:
        if os.getenv(env_var) is not None:
            return os.getenv(env_var)
    return None


def _optional(scope: Construct, context_key: str, *env_vars: str) -> Optional[str]:
    # blank strings from cdk.json or the shell mean "not set"
    value = _lookup(scope, context_key, *env_vars)
    if value is None:
        return None
    return str(value).strip() or None


def _flag(scope: Construct, context_key: str, default: bool) -> bool:
    return parse_flag(context_key, _lookup(scope, context_key, FLAG_SOURCES[context_key]), default)


def load_feature_flags(scope: Construct) -> FeatureFlags:
    defaults = FeatureFlags()
    access_logs = _optional(scope, ACCESS_LOGS_CONTEXT_KEY, ACCESS_LOGS_ENV_VAR)
    return FeatureFlags(
        use_object_storage_backend=_flag(scope, "enable_dicom_s3_storage", defaults.use_object_storage_backend),
        enable_multi_az=_flag(scope, "enable_multi_az", defaults.enable_multi_az),
        enable_backup=_flag(scope, "enable_rds_backup", defaults.enable_backup),
        enable_flow_logs=_flag(scope, "enable_vpc_flow_logs", defaults.enable_flow_logs),
        access_log_bucket_arn=access_logs,
    )


def load_config(app: cdk.App) -> DeploymentConfig:
    """Resolve the full deployment configuration from CDK context and the environment."""
    return DeploymentConfig(
        flags=load_feature_flags(app),
        environment=_lookup(app, "environment", "CDK_ENVIRONMENT") or DEFAULT_ENVIRONMENT,
        account=_lookup(app, "account", "CDK_DEFAULT_ACCOUNT", "CDK_ACCOUNT"),
        region=_lookup(app, "region", "CDK_DEFAULT_REGION", "CDK_REGION"),
        orthanc_image=_lookup(app, "orthanc_image", "ORTHANC_IMAGE") or DEFAULT_ORTHANC_IMAGE,
        domain_name=_optional(app, "domain_name", "ORTHANC_DOMAIN_NAME"),
        certificate_arn=_optional(app, "certificate_arn", "ORTHANC_CERTIFICATE_ARN"),
    )
