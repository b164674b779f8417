"""Canonical identity helpers for ECS clusters, services and task definitions.

ECS and CodeDeploy report the same cluster either as a bare name or as a full
ARN. Every equality comparison between identities goes through these helpers
so the snapshot reader and the CodeDeploy driver match identically.
"""

from __future__ import annotations

ARN_PREFIX = "arn:"


def normalize_cluster(cluster: str) -> str:
    """Return the bare cluster name for a name or cluster ARN.

    >>> normalize_cluster("arn:aws:ecs:ap-northeast-1:123456789012:cluster/default")
    'default'
    >>> normalize_cluster("default")
    'default'
    """
    value = cluster.strip()
    if value.startswith(ARN_PREFIX):
        resource = value.split(":", 5)[-1]
        return resource.rsplit("/", 1)[-1]
    return value


def normalize_service(service: str) -> str:
    """Return the bare service name for a name or service ARN.

    Handles both the long ARN format (``service/<cluster>/<name>``) and the
    legacy short one (``service/<name>``).
    """
    value = service.strip()
    if value.startswith(ARN_PREFIX):
        resource = value.split(":", 5)[-1]
        return resource.rsplit("/", 1)[-1]
    return value


def same_service(
    cluster_a: str, service_a: str, cluster_b: str, service_b: str
) -> bool:
    """Compare two cluster+service pairs under normalization."""
    return normalize_cluster(cluster_a) == normalize_cluster(
        cluster_b
    ) and normalize_service(service_a) == normalize_service(service_b)


def parse_task_definition(reference: str) -> tuple[str, int | None]:
    """Split a task definition ARN or ``family:revision`` into its parts.

    Returns:
        Tuple of (family, revision); revision is None for a bare family
    """
    value = reference.strip()
    if value.startswith(ARN_PREFIX):
        value = value.split(":", 5)[-1].rsplit("/", 1)[-1]
    family, sep, revision = value.rpartition(":")
    if not sep:
        return value, None
    if not revision.isdigit():
        return value, None
    return family, int(revision)


def scalable_resource_id(cluster: str, service: str) -> str:
    """Return the Application Auto Scaling resource id for an ECS service."""
    return f"service/{normalize_cluster(cluster)}/{normalize_service(service)}"
