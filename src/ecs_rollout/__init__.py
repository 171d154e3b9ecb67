"""
Roll new container image versions out to an ECS service.

Fetches the latest task definition of a family, rewrites container images,
registers a new revision, points the service at it and waits until the
service is stable.
"""
