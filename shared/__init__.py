"""
Shared utilities for the ladder viewer service.

This package aggregates common building blocks:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry decorators for transient upstream failures
- circuit_breaker: Resilient external call protection
"""
