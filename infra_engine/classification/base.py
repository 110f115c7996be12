# infra_engine/classification/base.py
"""
Base classification data for the built-in providers.

Keyed by "<provider>:<type>:".
"""

from typing import Dict

from .models import Classification


def _c(*tags: str) -> Classification:
    return Classification(is_=list(tags))


BASE_CLASSIFICATIONS: Dict[str, Classification] = {
    "aws:app_runner_service:": _c("compute", "serverless"),
    "aws:cloudfront_distribution:": _c("network", "cdn"),
    "aws:ec2_instance:": _c("compute", "instance"),
    "aws:ecr_image:": _c("container_image"),
    "aws:ecs_cluster:": _c("cluster"),
    "aws:ecs_service:": _c("compute"),
    "aws:dynamodb_table:": _c("storage", "kv", "nosql"),
    "aws:efs_file_system:": _c("storage", "filesystem"),
    "aws:eks_cluster:": _c("cluster", "kubernetes"),
    "aws:elasticache_cluster:": _c("storage", "redis", "cache"),
    "aws:lambda_function:": _c("compute", "serverless"),
    "aws:load_balancer:": _c("network", "loadbalancer"),
    "aws:rds_instance:": _c("storage", "relational"),
    "aws:rds_proxy:": _c("proxy"),
    "aws:rest_api:": _c("api"),
    "aws:route53_hosted_zone:": _c("network", "dns"),
    "aws:s3_bucket:": _c("storage", "blob"),
    "aws:sns_topic:": _c("messaging", "pubsub"),
    "aws:sqs_queue:": _c("messaging", "queue"),
    "aws:secret:": _c("storage", "secret"),
    "aws:vpc:": _c("network"),
    "docker:image:": _c("container_image"),
    "kubernetes:deployment:": _c("compute", "kubernetes"),
    "kubernetes:helm_chart:": _c("kubernetes"),
    "kubernetes:pod:": _c("compute", "kubernetes"),
}
