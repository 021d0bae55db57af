from typing import Optional

from aws_cdk import (
    Annotations,
    aws_certificatemanager as acm,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_elasticloadbalancingv2 as elbv2,
)
from constructs import Construct

from ..config import validate_viewer_certificate
from ..logger import get_logger

logger = get_logger(__name__)

TLS_FLOOR_WARNING = (
    "No viewer certificate configured; the distribution uses the default CloudFront "
    "certificate and cannot enforce TLSv1.2_2021. Set domain_name and certificate_arn."
)

# Answers CORS preflight at the edge; every other request goes on to the origin.
CORS_PREFLIGHT_HANDLER = """
function handler(event) {
    var request = event.request;
    if (request.method !== 'OPTIONS') {
        return request;
    }
    var origin = request.headers.origin ? request.headers.origin.value : '*';
    return {
        statusCode: 204,
        statusDescription: 'No Content',
        headers: {
            'access-control-allow-origin': { value: origin },
            'access-control-allow-methods': { value: 'GET, HEAD, OPTIONS, PUT, PATCH, POST, DELETE' },
            'access-control-allow-headers': { value: 'authorization, content-type, accept, origin, x-requested-with' },
            'access-control-allow-credentials': { value: 'true' },
            'access-control-max-age': { value: '86400' },
            'vary': { value: 'Origin' }
        }
    };
}
"""


def create_cors_preflight_function(scope: Construct) -> cloudfront.Function:
    return cloudfront.Function(
        scope,
        "OrthancCorsPreflightFunction",
        code=cloudfront.FunctionCode.from_inline(CORS_PREFLIGHT_HANDLER),
        comment="Answer CORS preflight requests for Orthanc at the edge",
    )


def create_origin_request_policy(scope: Construct) -> cloudfront.OriginRequestPolicy:
    """Forward every header, cookie and query string; Orthanc sessions depend on all of them."""
    return cloudfront.OriginRequestPolicy(
        scope,
        "OriginRequestPolicy",
        comment="Policy optimised for Orthanc",
        cookie_behavior=cloudfront.OriginRequestCookieBehavior.all(),
        header_behavior=cloudfront.OriginRequestHeaderBehavior.all(),
        query_string_behavior=cloudfront.OriginRequestQueryStringBehavior.all(),
    )


def create_distribution(
    scope: Construct,
    load_balancer: elbv2.IApplicationLoadBalancer,
    *,
    domain_name: Optional[str] = None,
    certificate_arn: Optional[str] = None,
) -> cloudfront.Distribution:
    """
    Create the CloudFront front door.

    The origin is always the load balancer, never the task itself. Responses are
    per-session, so caching is disabled and all methods pass through.

    The TLS 1.2 floor only reaches the template when the distribution serves its
    own certificate. On the default ``*.cloudfront.net`` certificate CloudFront
    still negotiates TLSv1, so that case is reported as a synth warning.
    """
    validate_viewer_certificate(domain_name, certificate_arn)

    cors_preflight = create_cors_preflight_function(scope)
    origin_request_policy = create_origin_request_policy(scope)

    viewer_certificate = {}
    if certificate_arn:
        viewer_certificate = {
            "certificate": acm.Certificate.from_certificate_arn(scope, "OrthancViewerCertificate", certificate_arn),
            "domain_names": [domain_name],
            "minimum_protocol_version": cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
        }
    else:
        logger.warning(TLS_FLOOR_WARNING)
        Annotations.of(scope).add_warning_v2("orthanc:tlsFloorNotEnforced", TLS_FLOOR_WARNING)

    return cloudfront.Distribution(
        scope,
        "OrthancDistribution",
        comment="Orthanc front door",
        default_behavior=cloudfront.BehaviorOptions(
            origin=origins.LoadBalancerV2Origin(
                load_balancer,
                protocol_policy=cloudfront.OriginProtocolPolicy.HTTP_ONLY,
            ),
            viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
            cache_policy=cloudfront.CachePolicy.CACHING_DISABLED,
            origin_request_policy=origin_request_policy,
            function_associations=[
                cloudfront.FunctionAssociation(
                    function=cors_preflight,
                    event_type=cloudfront.FunctionEventType.VIEWER_REQUEST,
                )
            ],
        ),
        **viewer_certificate,
    )
